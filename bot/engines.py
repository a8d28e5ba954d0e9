from __future__ import annotations

import logging
from typing import Any, Dict

from telegram.ext import ContextTypes

from services import admin, food_records, patients, reminders
from services.ai_content import generate_recipe
from services.weight import record_weight
from states.engine import ConversationEngine
from states.questionnaire import QUESTIONNAIRE_FLOW
from states.quick_inputs import PANTRY_FLOW, REMINDER_FLOW, WEIGHT_FLOW
from states.registration import REGISTRATION_FLOW, format_registration_error
from states.session_store import SessionStore

logger = logging.getLogger(__name__)

REGISTRATION = "registration"
QUESTIONNAIRE = "questionnaire"
WEIGHT = "weight"
REMINDER = "reminder"
PANTRY = "pantry"

# flows a patient can abandon by opening another one
PATIENT_INPUTS = (QUESTIONNAIRE, WEIGHT, REMINDER, PANTRY)


def build_engines(bot) -> Dict[str, ConversationEngine]:
	"""One engine and one store per flow; completion handlers close over ``bot``."""

	async def finish_registration(owner_id: int, answers: Dict[str, Any]) -> patients.RegistrationResult:
		result = patients.complete_registration(owner_id, answers)
		if result.created:
			# an edited profile keeps its plan and reminders
			reminders.schedule_renewal_reminders(owner_id, result.patient.plan_end_date)
			await admin.notify_new_patient(bot, result.patient)
		return result

	async def finish_questionnaire(owner_id: int, answers: Dict[str, Any]):
		record = food_records.save_food_record(owner_id, answers)
		patient = patients.get_patient(owner_id)
		name = patient.name if patient else str(owner_id)
		await admin.notify_admin(bot, food_records.format_record_notification(name, owner_id, answers))
		return record

	async def finish_weight(owner_id: int, answers: Dict[str, Any]):
		return record_weight(owner_id, answers["weight"])

	async def finish_reminder(owner_id: int, answers: Dict[str, Any]):
		return reminders.create_reminder(owner_id, reminders.CUSTOM, answers["message"], answers["scheduled_for"])

	async def finish_pantry(owner_id: int, answers: Dict[str, Any]):
		return await generate_recipe(answers["ingredients"], patients.get_patient(owner_id))

	return {
		REGISTRATION: ConversationEngine(
			REGISTRATION_FLOW, SessionStore(), finish_registration, format_error=format_registration_error
		),
		QUESTIONNAIRE: ConversationEngine(QUESTIONNAIRE_FLOW, SessionStore(), finish_questionnaire),
		WEIGHT: ConversationEngine(WEIGHT_FLOW, SessionStore(), finish_weight),
		REMINDER: ConversationEngine(REMINDER_FLOW, SessionStore(), finish_reminder),
		PANTRY: ConversationEngine(PANTRY_FLOW, SessionStore(), finish_pantry),
	}


def get_engine(context: ContextTypes.DEFAULT_TYPE, name: str) -> ConversationEngine:
	return context.bot_data["engines"][name]


async def cancel_flows(context: ContextTypes.DEFAULT_TYPE, user_id: int, names=None) -> list[str]:
	cancelled = []
	for name, engine in context.bot_data["engines"].items():
		if names is not None and name not in names:
			continue
		if await engine.cancel(user_id):
			cancelled.append(name)
	return cancelled


async def start_flow(context: ContextTypes.DEFAULT_TYPE, user_id: int, name: str) -> str:
	"""Start ``name``, abandoning any other patient input in progress."""
	await cancel_flows(context, user_id, [n for n in PATIENT_INPUTS if n != name])
	return await get_engine(context, name).start(user_id)
