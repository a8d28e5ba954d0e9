from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from telegram.helpers import escape_markdown

from db.database import session_scope
from db.models import Patient
from db import repo
from services.config import settings

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y"

PROFILE_FIELDS = ("name", "age", "gender", "weight", "height", "activity_level", "objective", "restrictions")


class PatientNotFound(Exception):
	pass


@dataclass
class RegistrationResult:
	patient: Patient
	restored: bool
	created: bool = True


@dataclass(frozen=True)
class PlanOption:
	name: str
	days: int
	price: float


PLANS = {
	"monthly": PlanOption("Plano Mensal", 30, 150.0),
	"quarterly": PlanOption("Plano Trimestral", 90, 400.0),
	"semiannual": PlanOption("Plano Semestral", 180, 750.0),
}


@dataclass
class RenewalInfo:
	message: str
	days_remaining: Optional[int]
	end_date: Optional[datetime] = None


def format_date(value: datetime | None) -> str:
	return value.strftime(DATE_FORMAT) if value else "—"


def get_patient(telegram_id: int) -> Optional[Patient]:
	with session_scope() as s:
		return repo.get_patient(s, telegram_id)


def upsert_patient(telegram_id: int, profile: Dict[str, Any], now: datetime | None = None) -> Patient:
	"""Insert or update the patient keeping plan dates consistent.

	Existing patients keep their plan; new ones get ``plan_duration_days`` from
	``plan_start_date`` (or now).
	"""
	now = now or datetime.now()
	fields = {k: profile[k] for k in PROFILE_FIELDS if k in profile}
	with session_scope() as s:
		existing = repo.get_patient(s, telegram_id)
		plan_start = profile.get("plan_start_date") or (existing.plan_start_date if existing else None) or now
		plan_end = (
			profile.get("plan_end_date")
			or (existing.plan_end_date if existing else None)
			or plan_start + timedelta(days=settings.plan_duration_days)
		)
		fields.update(plan_start_date=plan_start, plan_end_date=plan_end, updated_at=now)
		if profile.get("plan_status"):
			fields["plan_status"] = profile["plan_status"]
		if existing is None:
			fields["created_at"] = now
		return repo.upsert_patient(s, telegram_id, fields)


def complete_registration(telegram_id: int, answers: Dict[str, Any], now: datetime | None = None) -> RegistrationResult:
	"""Persist a finished registration. A previous weight history means the
	registration was reset by the admin, so the plan start is restored."""
	now = now or datetime.now()
	profile = dict(answers)
	restored = False
	with session_scope() as s:
		oldest = repo.get_oldest_weight_entry(s, telegram_id)
		had_patient = repo.get_patient(s, telegram_id) is not None
	if oldest is not None and not had_patient:
		profile["plan_start_date"] = oldest.recorded_at
		profile["plan_end_date"] = now + timedelta(days=settings.plan_duration_days)
		profile["plan_status"] = "active"
		restored = True
	patient = upsert_patient(telegram_id, profile, now=now)
	logger.info("Patient %s registered (restored=%s)", telegram_id, restored)
	return RegistrationResult(patient=patient, restored=restored, created=not had_patient)


def grant_free_trial(telegram_id: int, days: int | None = None, now: datetime | None = None) -> Optional[Patient]:
	now = now or datetime.now()
	days = days or settings.plan_duration_days
	with session_scope() as s:
		if repo.get_patient(s, telegram_id) is None:
			return None
		return repo.upsert_patient(
			s,
			telegram_id,
			{
				"plan_status": "active",
				"plan_start_date": now,
				"plan_end_date": now + timedelta(days=days),
				"updated_at": now,
			},
		)


def can_get_free_trial(patient: Optional[Patient]) -> bool:
	# only a plan that was never activated; an expired one has to be renewed
	return patient is not None and patient.plan_status == "inactive"


def activate_plan(telegram_id: int, days: int, now: datetime | None = None) -> Optional[Patient]:
	"""Activate or extend a plan by ``days``.

	A plan that is still running grows from its end date, an expired or inactive
	one starts now. Returns None for an unknown patient.
	"""
	if days <= 0:
		raise ValueError(f"plan days must be positive: {days}")
	now = now or datetime.now()
	with session_scope() as s:
		patient = repo.get_patient(s, telegram_id)
		if patient is None:
			return None
		if is_plan_active(patient, now):
			start, base = patient.plan_start_date, patient.plan_end_date
		else:
			start, base = now, now
		patient = repo.upsert_patient(
			s,
			telegram_id,
			{
				"plan_status": "active",
				"plan_start_date": start,
				"plan_end_date": base + timedelta(days=days),
				"updated_at": now,
			},
		)
	logger.info("Plan of %s active until %s", telegram_id, patient.plan_end_date)
	return patient


def format_plan_options(patient: Optional[Patient], now: datetime | None = None) -> str:
	text = "💰 *Renovação de Plano*\n\n"
	if is_plan_active(patient, now):
		text += f"Seu plano atual vai até *{format_date(patient.plan_end_date)}*. Os novos dias são somados ao final.\n\n"
	else:
		text += "Seu plano não está ativo. O novo plano começa assim que o pagamento for confirmado.\n\n"
	for option in PLANS.values():
		price = f"{option.price:.2f}".replace(".", ",")
		text += f"• *{option.name}*: {option.days} dias, R$ {price}\n"
	text += "\nEscolha um plano e a nutricionista entrará em contato para o pagamento."
	return text


def update_activity_level(telegram_id: int, level: str) -> Patient:
	with session_scope() as s:
		if repo.get_patient(s, telegram_id) is None:
			raise PatientNotFound(telegram_id)
		return repo.upsert_patient(s, telegram_id, {"activity_level": level, "updated_at": datetime.now()})


def reset_registration(telegram_id: int) -> bool:
	# weight history is kept so the next registration restores the plan start
	with session_scope() as s:
		return repo.delete_patient(s, telegram_id)


def is_plan_active(patient: Optional[Patient], now: datetime | None = None) -> bool:
	if patient is None or patient.plan_status != "active":
		return False
	now = now or datetime.now()
	return patient.plan_end_date is not None and patient.plan_end_date > now


def format_patient_profile(patient: Optional[Patient]) -> str:
	if patient is None:
		return "❌ Nenhum cadastro encontrado."
	return (
		"━━━━━━━━━━━━━━━━\n"
		f"👤 *Nome:* {escape_markdown(patient.name)}\n"
		f"🎂 *Idade:* {patient.age} anos\n"
		f"⚧ *Sexo:* {patient.gender or 'Não informado'}\n"
		f"⚖️ *Peso:* {patient.weight:g} kg\n"
		f"📏 *Altura:* {patient.height:g} cm\n"
		f"🎯 *Objetivo:* {escape_markdown(patient.objective or '')}\n"
		f"🥗 *Restrições:* {escape_markdown(patient.restrictions or '')}\n"
		"━━━━━━━━━━━━━━━━\n"
		f"📅 *Início:* {format_date(patient.plan_start_date)}\n"
		f"⏳ *Término:* {format_date(patient.plan_end_date)}"
	)


def get_renewal_info(patient: Optional[Patient], now: datetime | None = None) -> RenewalInfo:
	if patient is None or patient.plan_end_date is None:
		return RenewalInfo(message="Cadastro não encontrado.", days_remaining=None)
	now = now or datetime.now()
	end_date = patient.plan_end_date
	seconds = (end_date - now).total_seconds()
	days_remaining = max(0, math.ceil(seconds / 86400))
	formatted_end = format_date(end_date)
	if days_remaining > 0:
		message = (
			"✅ *Plano Ativo*\n\n"
			f"Seu plano encerra em *{days_remaining} dia(s)*.\n📅 Data: {formatted_end}\n\n"
			"💰 Use *Renovar Plano* para renovar antes do vencimento."
		)
	elif end_date.date() >= now.date():
		message = (
			"⚠️ *Plano Vencendo Hoje*\n\n"
			f"Seu plano encerra *hoje* ({formatted_end}).\n\n"
			"💰 Use *Renovar Plano* para continuar seu acompanhamento!"
		)
	else:
		message = (
			"❌ *Plano Vencido*\n\n"
			f"Seu plano venceu em {formatted_end}.\n\n"
			"💰 Use *Renovar Plano* para voltar a usar todos os recursos."
		)
	return RenewalInfo(message=message, days_remaining=days_remaining, end_date=end_date)
