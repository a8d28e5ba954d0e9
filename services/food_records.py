from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from telegram.helpers import escape_markdown

from db.database import session_scope
from db.models import FoodRecord
from db import repo
from services.patients import is_plan_active
from states.questionnaire import QUESTION_LABELS

logger = logging.getLogger(__name__)

RECORD_TYPE = "recordatorio_24h"


class FoodRecordLimitReached(Exception):
	pass


@dataclass
class Eligibility:
	allowed: bool
	reason: Optional[str] = None
	message: str = ""


@dataclass
class RecordPage:
	records: List[FoodRecord]
	page: int
	total_pages: int
	total: int


def _month_start(now: datetime) -> datetime:
	return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _next_month_start(now: datetime) -> datetime:
	start = _month_start(now)
	if start.month == 12:
		return start.replace(year=start.year + 1, month=1)
	return start.replace(month=start.month + 1)


def can_fill_food_record(telegram_id: int, now: datetime | None = None) -> Eligibility:
	"""One questionnaire per calendar month, for patients with an active plan."""
	now = now or datetime.now()
	with session_scope() as s:
		patient = repo.get_patient(s, telegram_id)
		if not is_plan_active(patient, now):
			return Eligibility(
				allowed=False,
				reason="plan_inactive",
				message=(
					"🔒 *Recurso Premium*\n\nO Questionário Alimentar é exclusivo para planos ativos.\n\n"
					"💰 Clique em *Renovar Plano* para ativar seu acesso!"
				),
			)
		last = repo.get_latest_food_record_since(s, telegram_id, _month_start(now))
	if last is not None:
		return Eligibility(
			allowed=False,
			reason="already_filled",
			message=(
				"📝 *Questionário Já Enviado*\n\n"
				f"Você já preencheu o questionário deste mês em {last.created_at.strftime('%d/%m/%Y')}.\n\n"
				f"📅 Próximo disponível: {_next_month_start(now).strftime('%d/%m/%Y')}"
			),
		)
	return Eligibility(allowed=True)


def save_food_record(telegram_id: int, answers: Dict[str, Any], now: datetime | None = None) -> FoodRecord:
	now = now or datetime.now()
	with session_scope() as s:
		if repo.get_latest_food_record_since(s, telegram_id, _month_start(now)) is not None:
			raise FoodRecordLimitReached(telegram_id)
		record = repo.add_food_record(s, telegram_id, dict(answers), record_type=RECORD_TYPE, created_at=now)
	logger.info("Food record %s saved for %s", record.id, telegram_id)
	return record


def list_food_records(telegram_id: int) -> List[FoodRecord]:
	with session_scope() as s:
		return repo.list_food_records(s, telegram_id)


def get_food_record(record_id: int, telegram_id: int | None = None) -> Optional[FoodRecord]:
	"""Fetch a record; with ``telegram_id`` only the owner's record is returned."""
	with session_scope() as s:
		record = repo.get_food_record(s, record_id)
	if record is None or (telegram_id is not None and record.telegram_id != telegram_id):
		return None
	return record


def list_recent_food_records(page: int = 0, per_page: int = 5) -> RecordPage:
	page = max(page, 0)
	with session_scope() as s:
		records, total = repo.list_recent_food_records(s, page * per_page, per_page)
	total_pages = max(1, math.ceil(total / per_page))
	return RecordPage(records=records, page=page, total_pages=total_pages, total=total)


def format_food_record(record: FoodRecord, patient_name: str | None = None) -> str:
	header = "📋 *Questionário Alimentar*\n\n"
	if patient_name:
		header += f"👤 *Paciente:* {escape_markdown(patient_name)}\n"
	header += f"📅 *Data:* {record.created_at.strftime('%d/%m/%Y %H:%M')}\n\n"
	data = record.data or {}
	body = []
	for key, label in QUESTION_LABELS.items():
		value = data.get(key)
		if value:
			body.append(f"*{label}:*\n{escape_markdown(str(value))}")
	return header + "\n\n".join(body)


def format_record_notification(patient_name: str, telegram_id: int, answers: Dict[str, Any]) -> str:
	lines = [
		"📋 *Novo Questionário Alimentar*\n",
		f"👤 *Paciente:* {escape_markdown(patient_name)}",
		f"🆔 ID: `{telegram_id}`\n",
	]
	for key, label in QUESTION_LABELS.items():
		if key in answers:
			lines.append(f"*{label}:* {escape_markdown(str(answers[key]))}")
	return "\n".join(lines)
