"""Body composition and energy estimates shown by the nutrition calculator."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

ACTIVITY_MULTIPLIERS: Dict[str, float] = {
	"sedentary": 1.2,  # little or no exercise
	"light": 1.375,  # 1-3 days/week
	"moderate": 1.55,  # 3-5 days/week
	"active": 1.725,  # 6-7 days/week
	"veryActive": 1.9,  # hard training or twice a day
}

ACTIVITY_LABELS: Dict[str, str] = {
	"sedentary": "Sedentário",
	"light": "Leve",
	"moderate": "Moderado",
	"active": "Ativo",
	"veryActive": "Muito Ativo",
}

LOSS_OBJECTIVES = ("perder peso", "emagrecer", "definir")
GAIN_OBJECTIVES = ("ganhar massa", "hipertrofia", "bulking")


@dataclass
class Macros:
	protein: int
	carbs: int
	fats: int


@dataclass
class NutritionalAnalysis:
	bmi: float
	classification: str
	emoji: str
	bmr: int
	daily_calories: int
	macros: Macros
	formatted: str


def calculate_bmi(weight: float, height_cm: float) -> float:
	meters = height_cm / 100
	return round(weight / (meters * meters), 1)


def classify_bmi(bmi: float) -> tuple[str, str]:
	"""WHO classification: (label, emoji)."""
	if bmi < 18.5:
		return "Abaixo do peso", "⚠️"
	if bmi < 25:
		return "Peso normal", "✅"
	if bmi < 30:
		return "Sobrepeso", "⚠️"
	if bmi < 35:
		return "Obesidade Grau I", "🔴"
	if bmi < 40:
		return "Obesidade Grau II", "🔴"
	return "Obesidade Grau III", "🔴"


def calculate_bmr(weight: float, height_cm: float, age: int, gender: str = "male") -> int:
	"""Mifflin-St Jeor basal metabolic rate, kcal/day."""
	base = 10 * weight + 6.25 * height_cm - 5 * age
	return round(base + 5 if gender == "male" else base - 161)


def calculate_daily_calories(bmr: float, activity_level: str = "sedentary") -> int:
	multiplier = ACTIVITY_MULTIPLIERS.get(activity_level, ACTIVITY_MULTIPLIERS["sedentary"])
	return round(bmr * multiplier)


def calculate_macros(daily_calories: float, objective: str | None = "maintain") -> Macros:
	normalized = (objective or "").strip().lower()
	if normalized in LOSS_OBJECTIVES:
		protein_pct, carb_pct, fat_pct = 0.35, 0.30, 0.35
	elif normalized in GAIN_OBJECTIVES:
		protein_pct, carb_pct, fat_pct = 0.30, 0.45, 0.25
	else:
		protein_pct, carb_pct, fat_pct = 0.30, 0.40, 0.30
	return Macros(
		protein=round(daily_calories * protein_pct / 4),
		carbs=round(daily_calories * carb_pct / 4),
		fats=round(daily_calories * fat_pct / 9),
	)


def gender_code(gender: str | None) -> str:
	return "male" if (gender or "").lower().startswith("m") else "female"


def generate_nutritional_analysis(patient) -> NutritionalAnalysis:
	activity_level = patient.activity_level or "sedentary"
	bmi = calculate_bmi(patient.weight, patient.height)
	classification, emoji = classify_bmi(bmi)
	bmr = calculate_bmr(patient.weight, patient.height, patient.age, gender_code(patient.gender))
	daily = calculate_daily_calories(bmr, activity_level)
	macros = calculate_macros(daily, patient.objective)
	formatted = (
		"🧮 *Análise Nutricional Completa*\n\n"
		"━━━━━━━━━━━━━━━━━━━━\n"
		"📊 *IMC (Índice de Massa Corporal)*\n"
		f"   {emoji} *{bmi}* - {classification}\n\n"
		"🔥 *TMB (Taxa Metabólica Basal)*\n"
		f"   {bmr} kcal/dia em repouso\n\n"
		"🍽️ *Necessidade Calórica Diária*\n"
		f"   {daily} kcal/dia\n"
		f"   _(Nível de atividade: {ACTIVITY_LABELS.get(activity_level, activity_level)})_\n\n"
		"⚖️ *Distribuição de Macronutrientes*\n"
		f"   🥩 Proteína: *{macros.protein}g/dia*\n"
		f"   🍚 Carboidrato: *{macros.carbs}g/dia*\n"
		f"   🥑 Gordura: *{macros.fats}g/dia*\n"
		"━━━━━━━━━━━━━━━━━━━━\n\n"
		f"💡 _Valores calculados com base no seu perfil e objetivo: {patient.objective}_"
	)
	return NutritionalAnalysis(
		bmi=bmi,
		classification=classification,
		emoji=emoji,
		bmr=bmr,
		daily_calories=daily,
		macros=macros,
		formatted=formatted,
	)
