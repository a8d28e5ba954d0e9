from types import SimpleNamespace

import pytest

from services import nutrition


def test_calculate_bmi_rounds_to_one_decimal():
    assert nutrition.calculate_bmi(70, 175) == 22.9


@pytest.mark.parametrize(
    "bmi,label",
    [
        (17.0, "Abaixo do peso"),
        (18.5, "Peso normal"),
        (24.9, "Peso normal"),
        (25.0, "Sobrepeso"),
        (32.0, "Obesidade Grau I"),
        (37.0, "Obesidade Grau II"),
        (41.0, "Obesidade Grau III"),
    ],
)
def test_classify_bmi(bmi, label):
    assert nutrition.classify_bmi(bmi)[0] == label


def test_calculate_bmr_by_gender():
    assert nutrition.calculate_bmr(70, 175, 30, "male") == 1649
    assert nutrition.calculate_bmr(70, 175, 30, "female") == 1483


def test_daily_calories_use_activity_multiplier():
    assert nutrition.calculate_daily_calories(1649, "sedentary") == 1979
    assert nutrition.calculate_daily_calories(1000, "veryActive") == 1900
    # unknown levels count as sedentary
    assert nutrition.calculate_daily_calories(1000, "couch") == 1200


def test_macros_follow_objective():
    assert nutrition.calculate_macros(2000, "manter") == nutrition.Macros(protein=150, carbs=200, fats=67)
    assert nutrition.calculate_macros(2000, " Emagrecer ") == nutrition.Macros(protein=175, carbs=150, fats=78)
    assert nutrition.calculate_macros(2000, "hipertrofia") == nutrition.Macros(protein=150, carbs=225, fats=56)
    assert nutrition.calculate_macros(2000, None) == nutrition.Macros(protein=150, carbs=200, fats=67)


def test_gender_code():
    assert nutrition.gender_code("Masculino") == "male"
    assert nutrition.gender_code("Feminino") == "female"
    assert nutrition.gender_code(None) == "female"


def test_generate_nutritional_analysis():
    patient = SimpleNamespace(
        weight=70, height=175, age=30, gender="Masculino", activity_level="moderate", objective="emagrecer"
    )
    analysis = nutrition.generate_nutritional_analysis(patient)
    assert analysis.bmi == 22.9
    assert analysis.classification == "Peso normal"
    assert analysis.bmr == 1649
    assert analysis.daily_calories == round(1649 * 1.55)
    assert analysis.macros.protein == round(analysis.daily_calories * 0.35 / 4)
    assert "Moderado" in analysis.formatted
    assert "1649 kcal/dia" in analysis.formatted
