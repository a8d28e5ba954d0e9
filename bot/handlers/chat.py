from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from bot.keyboards import back_kb, chat_history_kb, chat_kb, patient_message_kb
from bot.messaging import message_parts, reply
from decorators.access import require_active_plan, require_admin
from services import admin, patients
from services.chat_relay import (
	ADMIN_SENT_CONFIRMATION,
	CHAT_ENDED_BY_NUTRITIONIST,
	CHAT_ENDED_BY_PATIENT,
	CHAT_ERROR,
	CHAT_START,
	SENT_CONFIRMATION,
	ChatRelay,
	count_unread,
	format_admin_reply_start,
	format_chat_history,
	format_patient_header,
	get_chat_history,
	mark_read,
	save_chat_message,
)
from services.config import settings
from services.delivery import send_markdown_media, send_markdown_message

logger = logging.getLogger(__name__)

ADMIN_CAPTIONS = {
	"photo": "💬 *Foto da Nutricionista*",
	"document": "💬 *Documento da Nutricionista*",
}


def _relay(context: ContextTypes.DEFAULT_TYPE) -> ChatRelay:
	return context.bot_data["chat_relay"]


# --------- Patient side ---------

@require_active_plan
async def start_chat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	if not settings.admin_telegram_id:
		await reply(update, context, "⚠️ O chat com a nutricionista não está disponível no momento.", back_kb())
		return
	_relay(context).start_chat(update.effective_user.id)
	await reply(update, context, CHAT_START, chat_kb())


async def end_chat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	if not _relay(context).end_chat(user_id):
		await reply(update, context, "Você não está em uma conversa.", back_kb())
		return
	await reply(update, context, CHAT_ENDED_BY_PATIENT, back_kb())
	await notify_chat_ended(context, user_id)


async def notify_chat_ended(context: ContextTypes.DEFAULT_TYPE, user_id: int) -> None:
	patient = patients.get_patient(user_id)
	name = escape_markdown(patient.name) if patient else "Paciente"
	await admin.notify_admin(context.bot, f"🔴 *Conversa Encerrada*\n\n👤 *{name}* (ID: {user_id}) encerrou a conversa.")


async def relay_from_patient(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
	"""Forward a text, photo or document of a patient in chat mode to the admin."""
	user = update.effective_user
	if not _relay(context).in_chat(user.id):
		return False
	patient = patients.get_patient(user.id)
	if patient is None:
		_relay(context).end_chat(user.id)
		return False
	kind, body, file_id, file_name = message_parts(update.message)
	try:
		save_chat_message(user.id, "patient", kind, body or None, file_id=file_id, file_name=file_name)
		header = format_patient_header(kind, patient.name, user.id, user.username, count_unread(user.id))
		markup = patient_message_kb(user.id)
		if kind == "text":
			delivered = await admin.notify_admin(context.bot, f'{header}📩 "{escape_markdown(body)}"', reply_markup=markup)
		else:
			quoted = f'📝 "{escape_markdown(body)}"' if body else ""
			await send_markdown_media(
				context.bot, settings.admin_telegram_id, kind, file_id, caption=header + quoted, reply_markup=markup
			)
			delivered = True
	except Exception as e:
		logger.error("relay to admin failed for %s: %s", user.id, e)
		delivered = False
	if not delivered:
		await reply(update, context, CHAT_ERROR, chat_kb())
		return True
	await reply(update, context, SENT_CONFIRMATION[kind], chat_kb())
	return True


# --------- Admin side ---------

@require_admin
async def start_admin_reply(update: Update, context: ContextTypes.DEFAULT_TYPE, patient_id: int) -> None:
	_relay(context).start_reply(update.effective_user.id, patient_id)
	mark_read(patient_id)
	patient = patients.get_patient(patient_id)
	await reply(update, context, format_admin_reply_start(patient.name if patient else "Paciente"))


async def relay_from_admin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
	"""Send the admin's next text, photo or document to the patient being answered."""
	admin_id = update.effective_user.id
	if not admin.is_admin(admin_id):
		return False
	patient_id = _relay(context).end_reply(admin_id)
	if patient_id is None:
		return False
	kind, body, file_id, file_name = message_parts(update.message)
	text = escape_markdown(body)
	try:
		save_chat_message(patient_id, "admin", kind, body or None, file_id=file_id, file_name=file_name)
		if kind == "text":
			await send_markdown_message(context.bot, patient_id, f"💬 *Mensagem da Nutricionista*\n\n{text}")
		else:
			await send_markdown_media(context.bot, patient_id, kind, file_id, caption=f"{ADMIN_CAPTIONS[kind]}\n\n{text}")
	except Exception as e:
		logger.error("relay to patient %s failed: %s", patient_id, e)
		await reply(update, context, CHAT_ERROR)
		return True
	await reply(update, context, ADMIN_SENT_CONFIRMATION[kind])
	return True


@require_admin
async def show_chat_history(update: Update, context: ContextTypes.DEFAULT_TYPE, patient_id: int) -> None:
	patient = patients.get_patient(patient_id)
	if patient is None:
		await reply(update, context, "❌ Paciente não encontrado.")
		return
	history = format_chat_history(get_chat_history(patient_id))
	mark_read(patient_id)
	await reply(update, context, f"💬 *Conversa com {escape_markdown(patient.name)}*\n\n{history}", chat_history_kb(patient_id))


@require_admin
async def end_patient_chat(update: Update, context: ContextTypes.DEFAULT_TYPE, patient_id: int) -> None:
	_relay(context).end_chat(patient_id)
	patient = patients.get_patient(patient_id)
	name = escape_markdown(patient.name) if patient else "Paciente"
	try:
		await send_markdown_message(context.bot, patient_id, CHAT_ENDED_BY_NUTRITIONIST)
	except Exception as e:
		logger.warning("could not notify patient %s: %s", patient_id, e)
	await reply(update, context, f"✅ Conversa com {name} encerrada.")
