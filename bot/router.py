"""Routing of free text, photos and documents.

Plain messages are offered to each route in priority order until one claims
it: admin broadcast, admin reply, reminder creation, patient chat,
questionnaire, weight input, pantry input, registration, FAQ keywords. Unclaimed
text gets the "didn't understand" fallback. Media goes to the admin reply, a
requested file upload, then the patient chat.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, List

from telegram import Update
from telegram.ext import ContextTypes

from bot.engines import PANTRY, QUESTIONNAIRE, REGISTRATION, REMINDER, WEIGHT, get_engine
from bot.handlers.admin import handle_broadcast_text
from bot.handlers.ai import on_pantry_done
from bot.handlers.chat import relay_from_admin, relay_from_patient
from bot.handlers.faq import answer_faq
from bot.handlers.files import receive_upload
from bot.handlers.menu import fallback_text, send_main_menu
from bot.handlers.questionnaire import on_questionnaire_done
from bot.handlers.registration import on_registration_done
from bot.handlers.reminders import on_reminder_done
from bot.handlers.weight import on_weight_done
from bot.keyboards import cancel_kb
from bot.messaging import reply
from services.food_records import FoodRecordLimitReached
from states.errors import CompletionFailure

logger = logging.getLogger(__name__)

Route = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[bool]]

COMPLETION_RENDERERS = {
	REGISTRATION: on_registration_done,
	QUESTIONNAIRE: on_questionnaire_done,
	WEIGHT: on_weight_done,
	REMINDER: on_reminder_done,
	PANTRY: on_pantry_done,
}

COMPLETION_FAILED = "❌ Não foi possível salvar suas respostas agora. Por favor, tente novamente mais tarde."
LIMIT_REACHED = "📝 *Questionário Já Enviado*\n\nVocê já preencheu o questionário deste mês."


def flow_route(name: str) -> Route:
	async def route(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
		return await submit_to_flow(update, context, name)

	route.__name__ = f"{name}_flow"
	return route


async def submit_to_flow(update: Update, context: ContextTypes.DEFAULT_TYPE, name: str) -> bool:
	engine = get_engine(context, name)
	user_id = update.effective_user.id
	if not engine.is_active(user_id):
		return False
	try:
		result = await engine.submit(user_id, update.message.text)
	except CompletionFailure as exc:
		if isinstance(exc.__cause__, FoodRecordLimitReached):
			await send_main_menu(update, context, LIMIT_REACHED)
		else:
			await send_main_menu(update, context, COMPLETION_FAILED)
		return True
	if not result.handled:
		return False
	if result.complete:
		await COMPLETION_RENDERERS[name](update, context, result.result)
	else:
		await reply(update, context, result.text, cancel_kb())
	return True


TEXT_ROUTES: List[Route] = [
	handle_broadcast_text,
	relay_from_admin,
	flow_route(REMINDER),
	relay_from_patient,
	flow_route(QUESTIONNAIRE),
	flow_route(WEIGHT),
	flow_route(PANTRY),
	flow_route(REGISTRATION),
	answer_faq,
]

MEDIA_ROUTES: List[Route] = [
	relay_from_admin,
	receive_upload,
	relay_from_patient,
]


async def _dispatch(routes: List[Route], update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
	for route in routes:
		if await route(update, context):
			return True
	return False


async def route_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	if not update.message or update.message.text is None or not update.effective_user:
		return
	if not await _dispatch(TEXT_ROUTES, update, context):
		await fallback_text(update, context)


async def route_media(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	if not update.message or not update.effective_user:
		return
	if not await _dispatch(MEDIA_ROUTES, update, context):
		await reply(update, context, "📎 Para enviar fotos ou documentos, use 📁 Meus Arquivos, 📸 Diário Alimentar ou o 💬 Chat Nutricionista no /menu.")

