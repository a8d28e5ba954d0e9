from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from telegram.helpers import escape_markdown

from db.database import session_scope
from db.models import Reminder
from db import repo
from services.delivery import send_markdown_message

logger = logging.getLogger(__name__)

PLAN_RENEWAL = "plan_renewal"
WEIGHT_CHECK = "weight_check"
CUSTOM = "custom"
REMINDER_TYPES = (PLAN_RENEWAL, WEIGHT_CHECK, CUSTOM)

TYPE_EMOJI = {PLAN_RENEWAL: "📅", WEIGHT_CHECK: "⚖️", CUSTOM: "📝"}

RENEWAL_HOUR = 10
RENEWAL_NOTICES = (
	(7, "⚠️ Seu plano vence em 7 dias! Não esqueça de renovar para continuar seu acompanhamento."),
	(3, "⏰ Seu plano vence em 3 dias! Entre em contato para renovar."),
	(1, "🚨 Seu plano vence amanhã! Renove agora para não perder seu progresso."),
)


def create_reminder(telegram_id: int, type_: str, message: str, scheduled_for: datetime) -> Reminder:
	if type_ not in REMINDER_TYPES:
		raise ValueError(f"unknown reminder type: {type_}")
	with session_scope() as s:
		reminder = repo.add_reminder(s, telegram_id, type_, message, scheduled_for)
	logger.info("Reminder %s (%s) scheduled for %s at %s", reminder.id, type_, telegram_id, scheduled_for)
	return reminder


def get_pending_reminders(now: datetime | None = None) -> List[Reminder]:
	with session_scope() as s:
		return repo.get_pending_reminders(s, now or datetime.now())


def mark_reminder_sent(reminder_id: int, sent_at: datetime | None = None) -> bool:
	with session_scope() as s:
		return repo.mark_reminder_sent(s, reminder_id, sent_at or datetime.now())


def delete_reminder(reminder_id: int, telegram_id: int | None = None) -> bool:
	with session_scope() as s:
		return repo.delete_reminder(s, reminder_id, telegram_id=telegram_id)


def get_patient_reminders(telegram_id: int) -> List[Reminder]:
	with session_scope() as s:
		return repo.get_patient_reminders(s, telegram_id)


def format_reminders_list(reminders: List[Reminder]) -> str:
	if not reminders:
		return "📭 *Nenhum lembrete agendado*\n\nVocê não tem lembretes pendentes no momento."
	text = "🔔 *Seus Lembretes Agendados*\n\n"
	for idx, reminder in enumerate(reminders, start=1):
		emoji = TYPE_EMOJI.get(reminder.type, "🔔")
		when = reminder.scheduled_for
		text += f"{idx}. {emoji} {escape_markdown(reminder.message)}\n   📅 {when.strftime('%d/%m/%Y')} às {when.strftime('%H:%M')}\n\n"
	return text


def schedule_renewal_reminders(telegram_id: int, plan_end: datetime | None, now: datetime | None = None) -> List[Reminder]:
	"""Renewal notices 7, 3 and 1 day(s) before the plan ends, at 10:00.

	Notices whose moment already passed are skipped.
	"""
	if plan_end is None:
		return []
	now = now or datetime.now()
	created: List[Reminder] = []
	for days, message in RENEWAL_NOTICES:
		moment = (plan_end - timedelta(days=days)).replace(hour=RENEWAL_HOUR, minute=0, second=0, microsecond=0)
		if moment > now:
			created.append(create_reminder(telegram_id, PLAN_RENEWAL, message, moment))
	return created


def reschedule_renewal_reminders(telegram_id: int, plan_end: datetime | None, now: datetime | None = None) -> List[Reminder]:
	"""Drop the pending renewal notices of the old end date and schedule new ones."""
	with session_scope() as s:
		dropped = repo.delete_pending_reminders(s, telegram_id, PLAN_RENEWAL)
	if dropped:
		logger.info("Dropped %d renewal reminder(s) of %s", dropped, telegram_id)
	return schedule_renewal_reminders(telegram_id, plan_end, now=now)


async def send_pending_reminders(bot, now: datetime | None = None) -> int:
	sent = 0
	for reminder in get_pending_reminders(now):
		try:
			await send_markdown_message(bot, reminder.telegram_id, f"🔔 *Lembrete*\n\n{escape_markdown(reminder.message)}")
		except Exception as e:
			logger.warning("reminder %s failed for %s: %s", reminder.id, reminder.telegram_id, e)
			continue
		mark_reminder_sent(reminder.id)
		sent += 1
	if sent:
		logger.info("Sent %d reminder(s)", sent)
	return sent


def setup_scheduler(scheduler: AsyncIOScheduler, bot, minutes: int) -> None:
	trigger = IntervalTrigger(minutes=minutes)
	scheduler.add_job(
		send_pending_reminders,
		trigger=trigger,
		args=[bot],
		id="pending_reminders",
		replace_existing=True,
		next_run_time=datetime.now(),
	)
