from __future__ import annotations

import logging
from functools import partial
from typing import Awaitable, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import (
	Application,
	ApplicationBuilder,
	CallbackQueryHandler,
	CommandHandler,
	ContextTypes,
	MessageHandler,
	filters,
)

from bot.engines import build_engines, cancel_flows
from bot.handlers import admin as admin_handlers
from bot.handlers import ai, chat, faq, files, patient, questionnaire, reminders as reminder_handlers, weight
from bot.handlers.menu import cancel_command, menu_command, send_main_menu, start_command
from bot.router import route_media, route_text
from db.database import init_db
from services.chat_relay import ChatRelay
from services.files import UploadRequests
from services.config import settings, assert_required_settings
from services.logging import setup_logging
from services.reminders import setup_scheduler

logger = logging.getLogger("bot")

Handler = Callable[[Update, ContextTypes.DEFAULT_TYPE], Awaitable[None]]


async def cancel_flow_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await cancel_flows(context, update.effective_user.id)
	await send_main_menu(update, context, "❌ Operação cancelada.")


CALLBACKS: Dict[str, Handler] = {
	"menu": send_main_menu,
	"cancel_flow": cancel_flow_callback,
	"profile": patient.show_profile_menu,
	"profile_view": patient.show_full_profile,
	"profile_edit": patient.edit_profile,
	"renewal": patient.show_renewal,
	"plans": patient.show_plans,
	"faq": faq.show_faq,
	"files": files.show_documents,
	"diary": files.show_diary,
	"nutrition": patient.show_nutrition,
	"activity": patient.show_activity_menu,
	"weight_add": weight.ask_weight,
	"weight_history": weight.show_weight_history,
	"weight_chart": weight.show_weight_chart,
	"questionnaire": questionnaire.begin_questionnaire,
	"records": questionnaire.show_my_records,
	"reminders": reminder_handlers.show_reminders,
	"reminder_new": reminder_handlers.ask_reminder,
	"chat": chat.start_chat,
	"chat_end": chat.end_chat,
	"workout": ai.workout_start,
	"recipe": ai.ask_pantry,
	"admin": admin_handlers.admin_command,
	"admin_dashboard": admin_handlers.show_dashboard,
	"admin_patients": admin_handlers.show_patients,
	"admin_expiring": admin_handlers.show_expiring,
	"admin_expired": admin_handlers.show_expired,
	"admin_broadcast": admin_handlers.broadcast_menu,
}

# (prefix, handler, converter); the converted suffix is the third positional argument
PREFIX_CALLBACKS = [
	("activity_", patient.set_activity, str),
	("plan_", patient.request_plan, str),
	("faq_", faq.show_faq_topic, str),
	("upload_", files.request_upload, str),
	("file_", files.send_file, int),
	("record_", questionnaire.show_my_record, int),
	("reminder_del_", reminder_handlers.remove_reminder, int),
	("wk_level_", partial(ai.workout_choose, field="level"), str),
	("wk_group_", partial(ai.workout_choose, field="group"), str),
	("wk_type_", partial(ai.workout_choose, field="type"), str),
	("wk_ex_", partial(ai.workout_choose, field="exercises"), str),
	("admin_records_", admin_handlers.show_records, int),
	("admin_record_", admin_handlers.show_record, int),
	("admin_bc_", admin_handlers.ask_broadcast, str),
	("admin_reply_", chat.start_admin_reply, int),
	("admin_history_", chat.show_chat_history, int),
	("admin_endchat_", chat.end_patient_chat, int),
	("admin_files_", files.show_patient_files, int),
	("admin_activate_", admin_handlers.activate_requested_plan, admin_handlers.parse_activation),
]


def _call_with(handler, value, update: Update, context: ContextTypes.DEFAULT_TYPE) -> Awaitable[None]:
	return handler(update, context, value)


def resolve_callback(data: str) -> Optional[Handler]:
	"""Map callback data to a handler taking ``(update, context)``; None if unknown."""
	if data in CALLBACKS:
		return CALLBACKS[data]
	for prefix, handler, convert in sorted(PREFIX_CALLBACKS, key=lambda item: len(item[0]), reverse=True):
		if data.startswith(prefix):
			try:
				value = convert(data[len(prefix):])
			except ValueError:
				return None
			return partial(_call_with, handler, value)
	return None


async def handle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	query = update.callback_query
	if not query:
		return
	data = (query.data or "").strip()
	await query.answer()
	handler = resolve_callback(data)
	if handler is None:
		logger.warning("Unknown callback data: %s", data)
		await send_main_menu(update, context)
		return
	await handler(update, context)


# Global error handler to avoid crashing on unhandled exceptions
async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
	logging.getLogger("errors").error("Unhandled error: %s", context.error, exc_info=context.error)
	if isinstance(update, Update) and update.effective_chat:
		try:
			await context.bot.send_message(
				chat_id=update.effective_chat.id,
				text="❌ Ocorreu um erro inesperado. Tente novamente ou use /menu.",
				parse_mode=ParseMode.MARKDOWN,
			)
		except Exception as e:
			logging.getLogger("errors").warning("could not notify user: %s", e)


async def post_init(application: Application) -> None:
	init_db()
	scheduler = AsyncIOScheduler(timezone=settings.timezone)
	setup_scheduler(scheduler, application.bot, settings.reminder_poll_minutes)
	scheduler.start()
	application.bot_data["scheduler"] = scheduler
	logger.info("Database ready, reminders every %s min", settings.reminder_poll_minutes)


async def post_shutdown(application: Application) -> None:
	scheduler = application.bot_data.get("scheduler")
	if scheduler:
		scheduler.shutdown(wait=False)


def build_application() -> Application:
	app = (
		ApplicationBuilder()
		.token(settings.telegram_bot_token)
		.concurrent_updates(True)
		.post_init(post_init)
		.post_shutdown(post_shutdown)
		.build()
	)
	app.bot_data["engines"] = build_engines(app.bot)
	app.bot_data["chat_relay"] = ChatRelay()
	app.bot_data["file_uploads"] = UploadRequests()

	app.add_handler(CommandHandler("start", start_command))
	app.add_handler(CommandHandler("menu", menu_command))
	app.add_handler(CommandHandler("cancel", cancel_command))
	app.add_handler(CommandHandler("admin", admin_handlers.admin_command))
	app.add_handler(CommandHandler("faq", faq.show_faq))
	app.add_handler(CommandHandler("reset_patient", admin_handlers.reset_patient_command))
	app.add_handler(CommandHandler("activate_plan", admin_handlers.activate_plan_command))
	app.add_handler(CallbackQueryHandler(handle_callback))
	app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, route_text))
	app.add_handler(MessageHandler(filters.PHOTO | filters.Document.ALL, route_media))
	app.add_error_handler(error_handler)
	return app


def main() -> None:
	setup_logging(settings.log_level)
	try:
		assert_required_settings()
	except RuntimeError as exc:
		logger.error(str(exc))
		raise SystemExit(1)

	app = build_application()
	logger.info("Bot is starting (polling)...")
	app.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
	main()
