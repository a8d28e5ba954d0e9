from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from telegram.error import BadRequest

from services import reminders

NOW = datetime(2025, 1, 1, 12, 0)


def test_create_reminder_rejects_unknown_type():
    with pytest.raises(ValueError):
        reminders.create_reminder(1001, "birthday", "Parabéns", NOW)


def test_pending_reminders_are_due_and_unsent():
    due = reminders.create_reminder(1001, reminders.CUSTOM, "Tomar água", NOW - timedelta(minutes=5))
    reminders.create_reminder(1001, reminders.CUSTOM, "Mais tarde", NOW + timedelta(hours=1))

    assert [r.id for r in reminders.get_pending_reminders(NOW)] == [due.id]

    assert reminders.mark_reminder_sent(due.id, NOW) is True
    assert reminders.get_pending_reminders(NOW) == []
    assert reminders.mark_reminder_sent(9999) is False


def test_patient_reminders_and_delete():
    mine = reminders.create_reminder(1001, reminders.CUSTOM, "Tomar suplemento", NOW + timedelta(days=1))
    reminders.create_reminder(2002, reminders.CUSTOM, "Outro paciente", NOW + timedelta(days=1))

    assert [r.message for r in reminders.get_patient_reminders(1001)] == ["Tomar suplemento"]
    assert reminders.delete_reminder(mine.id, telegram_id=2002) is False
    assert reminders.delete_reminder(mine.id, telegram_id=1001) is True
    assert reminders.get_patient_reminders(1001) == []


def test_schedule_renewal_reminders_at_ten():
    created = reminders.schedule_renewal_reminders(1001, NOW + timedelta(days=10), now=NOW)
    assert [r.scheduled_for for r in created] == [
        datetime(2025, 1, 4, 10, 0),
        datetime(2025, 1, 8, 10, 0),
        datetime(2025, 1, 10, 10, 0),
    ]
    assert {r.type for r in created} == {reminders.PLAN_RENEWAL}


def test_schedule_renewal_reminders_skips_past_moments():
    created = reminders.schedule_renewal_reminders(1001, NOW + timedelta(days=2), now=NOW)
    assert [r.scheduled_for for r in created] == [datetime(2025, 1, 2, 10, 0)]
    assert reminders.schedule_renewal_reminders(1001, None, now=NOW) == []


def test_format_reminders_list():
    assert "Nenhum lembrete" in reminders.format_reminders_list([])
    reminder = reminders.create_reminder(1001, reminders.WEIGHT_CHECK, "Pesar", datetime(2025, 1, 3, 7, 30))
    text = reminders.format_reminders_list([reminder])
    assert "⚖️ Pesar" in text
    assert "03/01/2025 às 07:30" in text


async def test_send_pending_reminders_keeps_failed_ones(bot):
    first = reminders.create_reminder(1001, reminders.CUSTOM, "Primeiro", NOW - timedelta(minutes=2))
    second = reminders.create_reminder(2002, reminders.CUSTOM, "Segundo", NOW - timedelta(minutes=1))
    bot.send_message.side_effect = [None, Exception("bot was blocked by the user")]

    sent = await reminders.send_pending_reminders(bot, now=NOW)

    assert sent == 1
    assert bot.send_message.await_args_list[0].kwargs["chat_id"] == 1001
    assert "Primeiro" in bot.send_message.await_args_list[0].kwargs["text"]
    assert [r.id for r in reminders.get_pending_reminders(NOW)] == [second.id]
    assert first.id not in [r.id for r in reminders.get_pending_reminders(NOW)]


def test_setup_scheduler_registers_polling_job(bot):
    scheduler = MagicMock()
    reminders.setup_scheduler(scheduler, bot, 2)
    kwargs = scheduler.add_job.call_args.kwargs
    assert scheduler.add_job.call_args.args[0] is reminders.send_pending_reminders
    assert kwargs["id"] == "pending_reminders"
    assert kwargs["args"] == [bot]
    assert kwargs["trigger"].interval == timedelta(minutes=2)


async def test_reminder_text_is_escaped_for_markdown(bot):
    reminders.create_reminder(1001, reminders.CUSTOM, "tomar vitamina_D", NOW - timedelta(minutes=1))

    assert await reminders.send_pending_reminders(bot, now=NOW) == 1

    assert "vitamina\\_D" in bot.send_message.await_args.kwargs["text"]
    assert reminders.get_pending_reminders(NOW) == []


async def test_rejected_markdown_reminder_is_sent_plain_and_marked(bot):
    reminders.create_reminder(1001, reminders.CUSTOM, "Beber *água", NOW - timedelta(minutes=1))
    bot.send_message.side_effect = [BadRequest("Can't parse entities"), None]

    assert await reminders.send_pending_reminders(bot, now=NOW) == 1

    plain = bot.send_message.await_args_list[1].kwargs
    assert "parse_mode" not in plain
    assert reminders.get_pending_reminders(NOW) == []


def test_reschedule_replaces_pending_renewal_notices():
    reminders.schedule_renewal_reminders(1001, NOW + timedelta(days=10), now=NOW)
    reminders.create_reminder(1001, reminders.CUSTOM, "Tomar água", NOW + timedelta(days=2))
    new_end = NOW + timedelta(days=40)

    reminders.reschedule_renewal_reminders(1001, new_end, now=NOW)

    renewal = [r for r in reminders.get_patient_reminders(1001) if r.type == reminders.PLAN_RENEWAL]
    assert sorted(r.scheduled_for for r in renewal) == [
        (new_end - timedelta(days=d)).replace(hour=10, minute=0) for d in (7, 3, 1)
    ]
    assert any(r.type == reminders.CUSTOM for r in reminders.get_patient_reminders(1001))
