from datetime import datetime

import pytest

from states import validators as v
from states.errors import ValidationFailure


@pytest.mark.parametrize("raw", ["", "   ", "Al"])
def test_validate_name_rejects_short_names(raw):
    with pytest.raises(ValidationFailure):
        v.validate_name(raw)


def test_validate_name_strips():
    assert v.validate_name("  João Silva ") == "João Silva"


@pytest.mark.parametrize("raw,expected", [("10", 10), ("120", 120), (" 34 ", 34), ("34.0", 34)])
def test_validate_age_accepts_bounds(raw, expected):
    assert v.validate_age(raw) == expected


@pytest.mark.parametrize("raw", ["9", "121", "abc", "30.5", ""])
def test_validate_age_rejects(raw):
    with pytest.raises(ValidationFailure):
        v.validate_age(raw)


def test_validate_weight_accepts_comma_and_rounds():
    assert v.validate_weight("70,56") == pytest.approx(70.6)
    assert v.validate_weight("20") == 20.0


@pytest.mark.parametrize("raw", ["19.9", "400.1", "nan", "inf", "setenta"])
def test_validate_weight_rejects(raw):
    with pytest.raises(ValidationFailure):
        v.validate_weight(raw)


@pytest.mark.parametrize("raw", ["99", "251", "1,75"])
def test_validate_height_is_in_centimetres(raw):
    with pytest.raises(ValidationFailure):
        v.validate_height(raw)


@pytest.mark.parametrize("raw,expected", [("m", "Masculino"), ("Feminino", "Feminino"), (" F ", "Feminino")])
def test_validate_gender(raw, expected):
    assert v.validate_gender(raw) == expected


def test_validate_gender_rejects_other_answers():
    with pytest.raises(ValidationFailure):
        v.validate_gender("x")


@pytest.mark.parametrize(
    "raw,expected",
    [("S", "sedentary"), ("leve", "light"), ("M", "moderate"), ("a", "active"), ("MA", "veryActive"), ("muito ativo", "veryActive")],
)
def test_validate_activity_level_aliases(raw, expected):
    assert v.validate_activity_level(raw) == expected


def test_validate_activity_level_rejects_unknown():
    with pytest.raises(ValidationFailure):
        v.validate_activity_level("turbo")


def test_validate_objective_is_required():
    with pytest.raises(ValidationFailure):
        v.validate_objective("  ")


def test_restrictions_default_when_empty():
    assert v.validate_restrictions("   ") == v.NO_RESTRICTIONS
    assert v.validate_restrictions("Lactose") == "Lactose"


def test_min_length():
    validate = v.min_length(2, "Não")
    assert validate(" ok ") == "ok"
    with pytest.raises(ValidationFailure) as exc:
        validate("a")
    assert "Não" in exc.value.message


def test_validate_future_datetime():
    now = datetime(2025, 11, 1, 12, 0)
    assert v.validate_future_datetime("25/11/2025  14:30", now=now) == datetime(2025, 11, 25, 14, 30)
    with pytest.raises(ValidationFailure):
        v.validate_future_datetime("01/10/2025 10:00", now=now)
    with pytest.raises(ValidationFailure):
        v.validate_future_datetime("2025-11-25 14:30", now=now)
