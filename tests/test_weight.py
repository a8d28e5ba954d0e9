from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from services import weight
from services.patients import PatientNotFound, get_patient


def _entry(kg, when, notes=None):
    return SimpleNamespace(weight=kg, recorded_at=when, notes=notes)


def test_record_weight_requires_patient():
    with pytest.raises(PatientNotFound):
        weight.record_weight(404, 70.0)


def test_record_weight_updates_profile_and_history(make_patient):
    make_patient(1001, weight=65.5, gender="Feminino", age=34, height=168.0)
    now = datetime(2025, 1, 10, 8, 0)

    update = weight.record_weight(1001, 64.0, now=now)

    assert update.previous_weight == 65.5
    assert update.difference == -1.5
    assert update.bmr == round(10 * 64.0 + 6.25 * 168.0 - 5 * 34 - 161)
    assert get_patient(1001).weight == 64.0
    history = weight.get_weight_history(1001)
    assert [(e.weight, e.recorded_at) for e in history] == [(64.0, now)]


def test_history_is_oldest_first(make_patient):
    make_patient(1001)
    base = datetime(2025, 1, 1, 8, 0)
    weight.record_weight(1001, 66.0, now=base + timedelta(days=7))
    weight.record_weight(1001, 67.0, now=base)
    assert [e.weight for e in weight.get_weight_history(1001)] == [67.0, 66.0]


def test_calculate_weight_stats():
    start = datetime(2025, 1, 1)
    history = [_entry(80.0, start), _entry(79.0, start + timedelta(days=7)), _entry(78.0, start + timedelta(days=14))]
    stats = weight.calculate_weight_stats(history)
    assert stats.has_history
    assert stats.total_entries == 3
    assert stats.total_change == -2.0
    assert stats.percent_change == -2.5
    assert stats.avg_per_week == -1.0
    assert stats.days_since_start == 14


def test_calculate_weight_stats_empty():
    assert weight.calculate_weight_stats([]).has_history is False


def test_format_weight_history_lists_last_entries():
    start = datetime(2025, 1, 1)
    history = [_entry(80.0 - i * 0.5, start + timedelta(days=i)) for i in range(12)]
    text = weight.format_weight_history(history, weight.calculate_weight_stats(history))
    assert "Registros (12)" in text
    assert "e mais 2 registro(s)" in text
    assert "80 kg - 01/01/2025" not in text
    assert "74.5 kg" in text


def test_format_weight_history_without_entries():
    text = weight.format_weight_history([], weight.calculate_weight_stats([]))
    assert "ainda não possui registros" in text


def test_format_weight_update():
    text = weight.format_weight_update(weight.WeightUpdate(weight=70.0, previous_weight=71.5, difference=-1.5, bmr=1500))
    assert "70 kg" in text
    assert "-1.5 kg" in text
    assert "1500 kcal" in text

    first = weight.format_weight_update(weight.WeightUpdate(weight=70.0, previous_weight=None, difference=None, bmr=None))
    assert "anterior" not in first


def test_render_weight_chart():
    assert weight.render_weight_chart([]) is None
    start = datetime(2025, 1, 1)
    png = weight.render_weight_chart([_entry(80.0, start), _entry(79.2, start + timedelta(days=3))])
    assert png.startswith(b"\x89PNG")
