from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from bot.keyboards import admin_files_kb, back_kb, files_kb, patient_files_kb
from bot.messaging import message_parts, reply
from decorators.access import require_active_plan, require_admin
from services import admin, files, patients
from services.config import settings
from services.delivery import send_markdown_media

logger = logging.getLogger(__name__)


def _uploads(context: ContextTypes.DEFAULT_TYPE) -> files.UploadRequests:
	return context.bot_data["file_uploads"]


async def _show_history(update: Update, context: ContextTypes.DEFAULT_TYPE, category: str) -> None:
	rows = files.list_patient_files(update.effective_user.id, category)
	await reply(update, context, files.format_file_history(rows, category), files_kb(category, [r.id for r in rows]))


@require_active_plan
async def show_documents(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await _show_history(update, context, files.DOCUMENT)


@require_active_plan
async def show_diary(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await _show_history(update, context, files.FOOD_DIARY)


@require_active_plan
async def request_upload(update: Update, context: ContextTypes.DEFAULT_TYPE, category: str) -> None:
	if category not in files.CATEGORIES:
		await reply(update, context, "❌ Opção inválida.", back_kb())
		return
	_uploads(context).request(update.effective_user.id, category)
	await reply(update, context, files.UPLOAD_PROMPTS[category])


async def receive_upload(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
	"""Store the photo or document a patient was asked for; False when none was requested."""
	user_id = update.effective_user.id
	if _uploads(context).pending(user_id) is None:
		return False
	kind, caption, file_id, file_name = message_parts(update.message)
	if kind == "text":
		return False
	category = _uploads(context).take(user_id)
	patient = patients.get_patient(user_id)
	if patient is None:
		return False
	try:
		row = files.save_patient_file(user_id, category, kind, file_id, file_name=file_name, caption=caption or None)
	except Exception as e:
		logger.error("could not save file of %s: %s", user_id, e)
		await reply(update, context, files.UPLOAD_FAILED, back_kb())
		return True
	if settings.admin_telegram_id:
		try:
			await send_markdown_media(
				context.bot,
				settings.admin_telegram_id,
				kind,
				file_id,
				caption=files.format_upload_notification(patient.name, row),
				reply_markup=patient_files_kb(user_id),
			)
		except Exception as e:
			logger.warning("upload notification failed for %s: %s", user_id, e)
	await reply(update, context, files.UPLOAD_SAVED[category], back_kb())
	return True


async def send_file(update: Update, context: ContextTypes.DEFAULT_TYPE, file_row_id: int) -> None:
	"""Send a stored file again; patients only get their own, the admin gets any."""
	user_id = update.effective_user.id
	owner = None if admin.is_admin(user_id) else user_id
	row = files.get_patient_file(file_row_id, telegram_id=owner)
	if row is None:
		await reply(update, context, "❌ Arquivo não encontrado.", back_kb())
		return
	caption = escape_markdown(row.caption or files.describe_file(row))
	await send_markdown_media(context.bot, update.effective_chat.id, row.kind, row.file_id, caption=caption)


@require_admin
async def show_patient_files(update: Update, context: ContextTypes.DEFAULT_TYPE, patient_id: int) -> None:
	patient = patients.get_patient(patient_id)
	name = patient.name if patient else str(patient_id)
	rows = files.list_patient_files(patient_id)
	title = f"📂 *Arquivos de {escape_markdown(name)}*"
	await reply(update, context, files.format_file_history(rows, files.DOCUMENT, title=title), admin_files_kb([r.id for r in rows]))
