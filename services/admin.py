from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List

from telegram.helpers import escape_markdown

from db.database import session_scope
from db.models import Patient
from db import repo
from services.config import settings
from services.delivery import send_markdown_message
from services.patients import format_date

logger = logging.getLogger(__name__)

EXPIRING_DAYS = 7
BROADCAST_GROUPS = ("all", "active", "expiring")
BROADCAST_DELAY = 0.1  # seconds between messages


@dataclass
class DashboardStats:
	total_patients: int
	active_plans: int
	expiring_soon: int
	expired: int
	food_records: int


@dataclass
class BroadcastResult:
	sent: int
	failed: int


def is_admin(telegram_id: int | None) -> bool:
	return bool(settings.admin_telegram_id) and str(telegram_id) == str(settings.admin_telegram_id).strip()


async def notify_admin(bot, text: str, reply_markup=None) -> bool:
	"""Send a Markdown message to the admin. Never raises; False if not delivered.

	Text the Markdown parser rejects is resent as plain text.
	"""
	if not settings.admin_telegram_id:
		return False
	try:
		await send_markdown_message(bot, settings.admin_telegram_id, text, reply_markup=reply_markup)
	except Exception as e:
		logger.error("admin notification failed: %s", e)
		return False
	return True


def format_new_patient(patient: Patient) -> str:
	return (
		"🆕 *Novo Paciente Cadastrado*\n\n"
		f"👤 *Nome:* {escape_markdown(patient.name)}\n"
		f"🆔 *ID:* {patient.telegram_id}\n"
		f"🎂 *Idade:* {patient.age} anos\n"
		f"⚖️ *Peso:* {patient.weight:g} kg\n"
		f"📏 *Altura:* {patient.height:g} cm\n"
		f"🎯 *Objetivo:* {escape_markdown(patient.objective or '')}\n"
		f"🥗 *Restrições:* {escape_markdown(patient.restrictions or '')}\n"
		f"📅 *Plano até:* {format_date(patient.plan_end_date)}"
	)


async def notify_new_patient(bot, patient: Patient) -> bool:
	return await notify_admin(bot, format_new_patient(patient))


def get_dashboard_stats(now: datetime | None = None) -> DashboardStats:
	now = now or datetime.now()
	horizon = now + timedelta(days=EXPIRING_DAYS)
	with session_scope() as s:
		patients = repo.list_patients(s)
		food_records = repo.count_food_records(s)
	ends = [p.plan_end_date for p in patients]
	return DashboardStats(
		total_patients=len(patients),
		active_plans=sum(1 for end in ends if end is not None and end > now),
		expiring_soon=sum(1 for end in ends if end is not None and now < end <= horizon),
		expired=sum(1 for end in ends if end is not None and end <= now),
		food_records=food_records,
	)


def format_dashboard(stats: DashboardStats) -> str:
	return (
		"📊 *Dashboard - Estatísticas*\n\n"
		f"👥 *Total de Pacientes:* {stats.total_patients}\n"
		f"✅ *Planos Ativos:* {stats.active_plans}\n"
		f"⚠️ *Vencendo em {EXPIRING_DAYS} dias:* {stats.expiring_soon}\n"
		f"❌ *Planos Vencidos:* {stats.expired}\n"
		f"📝 *Questionários Recebidos:* {stats.food_records}"
	)


def list_all_patients() -> List[Patient]:
	with session_scope() as s:
		return repo.list_patients(s)


def list_expiring_patients(days: int = EXPIRING_DAYS, now: datetime | None = None) -> List[Patient]:
	now = now or datetime.now()
	with session_scope() as s:
		return repo.list_patients_ending_between(s, now, now + timedelta(days=days))


def list_expired_patients(now: datetime | None = None) -> List[Patient]:
	with session_scope() as s:
		return repo.list_patients_ended_before(s, now or datetime.now())


def format_patient_list(patients: List[Patient], now: datetime | None = None) -> str:
	if not patients:
		return "📭 Nenhum paciente cadastrado ainda."
	now = now or datetime.now()
	text = "👥 *Lista de Pacientes*\n\n"
	for idx, p in enumerate(patients, start=1):
		status = "✅" if p.plan_end_date and p.plan_end_date > now else "❌"
		text += f"{idx}. {status} {escape_markdown(p.name)}\n   ID: `{p.telegram_id}`\n\n"
	return text


def format_expiring(patients: List[Patient], now: datetime | None = None) -> str:
	if not patients:
		return f"✅ Nenhum plano vencendo nos próximos {EXPIRING_DAYS} dias."
	now = now or datetime.now()
	text = f"⚠️ *Planos Vencendo em {EXPIRING_DAYS} Dias*\n\n"
	for idx, p in enumerate(patients, start=1):
		days_left = math.ceil((p.plan_end_date - now).total_seconds() / 86400)
		text += f"{idx}. {escape_markdown(p.name)}\n   📅 {format_date(p.plan_end_date)} ({days_left} dia(s))\n\n"
	return text


def format_expired(patients: List[Patient]) -> str:
	if not patients:
		return "✅ Nenhum plano vencido no momento."
	text = "❌ *Planos Vencidos*\n\n"
	for idx, p in enumerate(patients, start=1):
		text += f"{idx}. {escape_markdown(p.name)}\n   📅 Vencido em {format_date(p.plan_end_date)}\n\n"
	return text


def broadcast_targets(group: str, now: datetime | None = None) -> List[Patient]:
	if group not in BROADCAST_GROUPS:
		raise ValueError(f"unknown broadcast group: {group}")
	now = now or datetime.now()
	patients = list_all_patients()
	if group == "active":
		return [p for p in patients if p.plan_end_date is not None and p.plan_end_date >= now]
	if group == "expiring":
		horizon = now + timedelta(days=EXPIRING_DAYS)
		return [p for p in patients if p.plan_end_date is not None and now <= p.plan_end_date <= horizon]
	return patients


async def send_broadcast(bot, patients: List[Patient], message: str) -> BroadcastResult:
	result = BroadcastResult(sent=0, failed=0)
	for patient in patients:
		try:
			await send_markdown_message(bot, patient.telegram_id, f"📢 *Mensagem da Nutricionista*\n\n{message}")
		except Exception as e:
			result.failed += 1
			logger.warning("broadcast failed for %s: %s", patient.telegram_id, e)
			continue
		result.sent += 1
		await asyncio.sleep(BROADCAST_DELAY)
	logger.info("Broadcast done: %d sent, %d failed", result.sent, result.failed)
	return result


def format_broadcast_result(result: BroadcastResult) -> str:
	return f"✅ *Mensagem enviada!*\n\n✔️ Sucesso: {result.sent}\n❌ Falhas: {result.failed}"
