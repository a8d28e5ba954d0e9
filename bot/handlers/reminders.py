from __future__ import annotations

from telegram import Update
from telegram.ext import ContextTypes

from bot.engines import REMINDER, start_flow
from bot.keyboards import cancel_kb, reminders_kb
from bot.messaging import reply
from decorators.access import require_active_plan
from services import reminders


@require_active_plan
async def show_reminders(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	items = reminders.get_patient_reminders(update.effective_user.id)
	await reply(update, context, reminders.format_reminders_list(items), reminders_kb([r.id for r in items]))


@require_active_plan
async def ask_reminder(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	prompt = await start_flow(context, update.effective_user.id, REMINDER)
	await reply(update, context, prompt, cancel_kb())


async def on_reminder_done(update: Update, context: ContextTypes.DEFAULT_TYPE, result) -> None:
	when = result.scheduled_for.strftime("%d/%m/%Y às %H:%M")
	items = reminders.get_patient_reminders(update.effective_user.id)
	await reply(
		update,
		context,
		f"✅ *Lembrete criado!*\n\n📝 {result.message}\n📅 {when}",
		reminders_kb([r.id for r in items]),
	)


@require_active_plan
async def remove_reminder(update: Update, context: ContextTypes.DEFAULT_TYPE, reminder_id: int) -> None:
	user_id = update.effective_user.id
	deleted = reminders.delete_reminder(reminder_id, telegram_id=user_id)
	items = reminders.get_patient_reminders(user_id)
	text = "🗑️ Lembrete apagado." if deleted else "❌ Lembrete não encontrado."
	await reply(update, context, f"{text}\n\n{reminders.format_reminders_list(items)}", reminders_kb([r.id for r in items]))
