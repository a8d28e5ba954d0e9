from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from bot.engines import cancel_flows
from bot.handlers.chat import notify_chat_ended
from bot.handlers.registration import begin_registration
from bot.keyboards import main_menu_kb
from bot.messaging import reply
from services import admin, patients
from services.chat_relay import CHAT_ENDED_BY_PATIENT

logger = logging.getLogger(__name__)

MAIN_MENU = "📋 *Menu Principal*\n\nEscolha uma das opções abaixo:"
NOT_UNDERSTOOD = "🤔 Não entendi sua mensagem.\n\nUse o menu abaixo para escolher uma opção."


async def send_main_menu(update: Update, context: ContextTypes.DEFAULT_TYPE, text: str = MAIN_MENU) -> None:
	user_id = update.effective_user.id
	patient = patients.get_patient(user_id)
	await reply(update, context, text, main_menu_kb(patients.is_plan_active(patient), admin.is_admin(user_id)))


async def leave_modes(context: ContextTypes.DEFAULT_TYPE, user_id: int) -> list[str]:
	"""Abandon every flow, chat mode and pending admin action of ``user_id``."""
	left = await cancel_flows(context, user_id)
	relay = context.bot_data["chat_relay"]
	if relay.end_chat(user_id):
		left.append("chat")
	if relay.end_reply(user_id) is not None:
		left.append("admin_reply")
	if context.bot_data["file_uploads"].take(user_id) is not None:
		left.append("upload")
	if context.user_data.pop("broadcast_group", None):
		left.append("broadcast")
	context.user_data.pop("workout", None)
	return left


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	await leave_modes(context, user_id)
	patient = patients.get_patient(user_id)
	if patient is None:
		await begin_registration(update, context)
		return
	await send_main_menu(update, context, f"👋 Olá, *{patient.first_name}*!\n\n{MAIN_MENU}")


async def menu_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	left = await leave_modes(context, user_id)
	if "chat" in left:
		await reply(update, context, CHAT_ENDED_BY_PATIENT)
		await notify_chat_ended(context, user_id)
	if patients.get_patient(user_id) is None:
		await begin_registration(update, context)
		return
	await send_main_menu(update, context)


async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	left = await leave_modes(context, update.effective_user.id)
	text = "❌ Operação cancelada." if left else "Nada para cancelar."
	if patients.get_patient(update.effective_user.id) is None:
		await reply(update, context, text + "\n\nUse /start quando quiser fazer seu cadastro.")
		return
	await send_main_menu(update, context, f"{text}\n\n{MAIN_MENU}")


async def fallback_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	if patients.get_patient(update.effective_user.id) is None:
		await begin_registration(update, context)
		return
	await send_main_menu(update, context, NOT_UNDERSTOOD)
