from datetime import datetime

import pytest

from services import food_records
from states.questionnaire import QUESTIONS

ANSWERS = {key: example for key, _, _, example in QUESTIONS}


def test_inactive_plan_cannot_fill(make_patient):
    make_patient(1001, plan_status="inactive")
    result = food_records.can_fill_food_record(1001)
    assert result.allowed is False
    assert result.reason == "plan_inactive"


def test_unknown_patient_cannot_fill():
    assert food_records.can_fill_food_record(404).reason == "plan_inactive"


def test_one_record_per_calendar_month(make_patient):
    make_patient(1001)
    now = datetime(2025, 3, 10, 15, 0)
    assert food_records.can_fill_food_record(1001, now=now).allowed is True

    food_records.save_food_record(1001, ANSWERS, now=now)

    result = food_records.can_fill_food_record(1001, now=datetime(2025, 3, 31, 23, 0))
    assert result.allowed is False
    assert result.reason == "already_filled"
    assert "10/03/2025" in result.message
    assert "01/04/2025" in result.message

    with pytest.raises(food_records.FoodRecordLimitReached):
        food_records.save_food_record(1001, ANSWERS, now=datetime(2025, 3, 20))

    assert food_records.can_fill_food_record(1001, now=datetime(2025, 4, 1, 0, 0)).allowed is True


def test_next_month_wraps_year(make_patient):
    make_patient(1001)
    food_records.save_food_record(1001, ANSWERS, now=datetime(2025, 12, 5))
    result = food_records.can_fill_food_record(1001, now=datetime(2025, 12, 20))
    assert "01/01/2026" in result.message


def test_list_and_get_records(make_patient):
    make_patient(1001)
    older = food_records.save_food_record(1001, ANSWERS, now=datetime(2025, 1, 5))
    newer = food_records.save_food_record(1001, ANSWERS, now=datetime(2025, 2, 5))

    assert [r.id for r in food_records.list_food_records(1001)] == [newer.id, older.id]
    assert food_records.get_food_record(older.id).data == ANSWERS
    assert food_records.get_food_record(older.id, telegram_id=1001) is not None
    assert food_records.get_food_record(older.id, telegram_id=2002) is None
    assert food_records.get_food_record(9999) is None


def test_recent_records_are_paginated():
    for month in range(1, 8):
        food_records.save_food_record(1001, ANSWERS, now=datetime(2025, month, 1))

    first = food_records.list_recent_food_records(page=0, per_page=5)
    assert first.total == 7
    assert first.total_pages == 2
    assert [r.created_at.month for r in first.records] == [7, 6, 5, 4, 3]

    second = food_records.list_recent_food_records(page=1, per_page=5)
    assert [r.created_at.month for r in second.records] == [2, 1]


def test_empty_page_reports_one_page():
    page = food_records.list_recent_food_records()
    assert page.records == []
    assert page.total_pages == 1


def test_format_food_record(make_patient):
    make_patient(1001)
    record = food_records.save_food_record(1001, ANSWERS, now=datetime(2025, 1, 5, 10, 30))
    text = food_records.format_food_record(record, patient_name="Maria Souza")
    assert "Maria Souza" in text
    assert "05/01/2025 10:30" in text
    assert "16) Peso ideal/meta" in text
    assert text.index("1) Nome") < text.index("16) Peso")


def test_format_record_notification():
    text = food_records.format_record_notification("Maria", 1001, {"objetivo": "Emagrecer"})
    assert "Novo Questionário" in text
    assert "2) Objetivo principal:* Emagrecer" in text
    assert "Doenças" not in text


def test_expired_plan_cannot_fill(make_patient):
    now = datetime(2025, 3, 10, 15, 0)
    make_patient(1001, plan_status="active", plan_end_date=datetime(2025, 3, 1))
    result = food_records.can_fill_food_record(1001, now=now)
    assert result.allowed is False
    assert result.reason == "plan_inactive"
