from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from services.config import settings
from services.openrouter_client import OpenRouterError, chat_completion

logger = logging.getLogger(__name__)

LEVELS: Dict[str, str] = {
	"iniciante": "Iniciante",
	"intermediario": "Intermediário",
	"avancado": "Avançado",
}

MUSCLE_GROUPS: Dict[str, str] = {
	"fullbody": "Corpo inteiro",
	"peito": "Peito",
	"costas": "Costas",
	"pernas": "Pernas (quadríceps)",
	"posterior": "Posterior/Glúteos",
	"ombros": "Ombros",
	"biceps": "Bíceps",
	"triceps": "Tríceps",
	"core": "Core/Abdômen",
	"hiit": "HIIT/Cardio",
	"peito_triceps": "Peito + Tríceps (conjugado)",
	"costas_biceps": "Costas + Bíceps (conjugado)",
	"ombros_trapezio": "Ombros + Trapézio (conjugado)",
	"pernas_gluteo": "Pernas + Glúteo (conjugado)",
}

TRAINING_TYPES: Dict[str, str] = {
	"piramide": "Pirâmide",
	"gvt": "GVT (10x10)",
	"circuito": "Circuito",
	"fullbody": "Full Body",
	"push_pull_legs": "Push/Pull/Legs",
	"upper_lower": "Upper/Lower",
	"hiit_forca": "HIIT + Força",
	"five_by_five": "Força 5x5",
}

EXERCISE_OPTIONS = list(range(1, 9))

WORKOUT_SYSTEM_PROMPT = (
	"Você é um personal trainer que escreve treinos claros, seguros e profissionais em Markdown. "
	"Separe seções com linhas em branco, use bullets, sem tabelas."
)

RECIPE_SYSTEM_PROMPT = (
	"Você é um nutricionista. Gere uma receita única em português usando apenas os ingredientes fornecidos "
	"(se possível). Se faltar algo, sugira substituições simples. Formato: TÍTULO, linha \"━━━━━━━━━━━━━━━━\", "
	"INGREDIENTES em lista, MODO DE PREPARO numerado, INFO NUTRICIONAL ESTIMADA (kcal aproximada por porção), "
	"DICAS com 2 bullets. Seja conciso, direto e organizado."
)

WORKOUT_FALLBACK = (
	"## 🔥 Aquecimento\n"
	"- Polichinelos — 2 séries — 30s\n"
	"- Mobilidade de ombros e quadril — 2 min\n\n"
	"## 🏋️ Treino Principal\n"
	"- Agachamento livre — 3x12 — 60s descanso\n"
	"- Flexão de braços — 3x10 — 60s descanso\n"
	"- Remada com halter — 3x12 — 60s descanso\n"
	"- Prancha — 3x30s — 45s descanso\n\n"
	"## ✅ Finalização\n"
	"- Alongamento geral — 3 min\n\n"
	"## ⚠️ Dica de segurança\n"
	"- Priorize a execução correta antes de aumentar a carga."
)

RECIPE_FALLBACK = (
	"🥗 *Receita rápida*\n"
	"━━━━━━━━━━━━━━━━\n"
	"Não consegui montar uma receita personalizada agora.\n\n"
	"💡 Combine uma proteína magra, um carboidrato integral e vegetais à vontade, "
	"com preparo grelhado, assado ou cozido. Tente novamente em instantes."
)


@dataclass
class GeneratedContent:
	text: str
	fallback: bool
	usage: Optional[Dict[str, Any]] = None


def _patient_context(patient) -> str:
	if patient is None:
		return ""
	parts = []
	if patient.objective:
		parts.append(f"Objetivo do paciente: {patient.objective}.")
	if patient.restrictions:
		parts.append(f"Restrições alimentares: {patient.restrictions}.")
	return " ".join(parts)


def workout_header(level: str, group: str, training_type: str, exercises: int) -> str:
	return (
		"🏋️ *Treino gerado!*\n\n"
		f"*Nível:* {LEVELS.get(level, level)}\n"
		f"*Grupamento:* {MUSCLE_GROUPS.get(group, group)}\n"
		f"*Estratégia:* {TRAINING_TYPES.get(training_type, training_type)}\n"
		f"*Exercícios no treino:* {exercises}"
	)


def build_workout_messages(level: str, group: str, training_type: str, exercises: int, patient=None) -> List[Dict[str, str]]:
	prompt = " ".join([
		"Gere um treino de musculação em português, com Markdown limpo e espaçado.",
		f"Nível: {LEVELS.get(level, level)}.",
		f"Grupamento principal ou conjugado: {MUSCLE_GROUPS.get(group, group)}.",
		f"Estratégia: {TRAINING_TYPES.get(training_type, training_type)}.",
		f"Quantidade de exercícios: {exercises}.",
		_patient_context(patient),
		"Formato desejado (sem tabelas):",
		"## 🔥 Aquecimento (2 bullets curtos)",
		"## 🏋️ Treino Principal (nome — séries x reps — descanso — dica curta de execução)",
		"## ✅ Finalização (alongamento ou respiração — 2-3 min)",
		"## ⚠️ Dica de segurança (1 bullet curta e prática)",
		"Use bullets, deixe linhas em branco entre seções, não use tabelas nem blocos enormes.",
	])
	return [
		{"role": "system", "content": WORKOUT_SYSTEM_PROMPT},
		{"role": "user", "content": prompt},
	]


def build_recipe_messages(ingredients: str, patient=None) -> List[Dict[str, str]]:
	user = f"Ingredientes disponíveis: {ingredients}.\nUse calorias moderadas. {_patient_context(patient)}".strip()
	return [
		{"role": "system", "content": RECIPE_SYSTEM_PROMPT},
		{"role": "user", "content": user},
	]


async def _generate(messages: List[Dict[str, str]], fallback: str, temperature: float, max_tokens: int) -> GeneratedContent:
	if not settings.feature_llm:
		return GeneratedContent(text=fallback, fallback=True)
	try:
		text, usage = await chat_completion(messages, temperature=temperature, max_tokens=max_tokens)
	except OpenRouterError as e:
		logger.warning("LLM unavailable, using fallback: %s", e)
		return GeneratedContent(text=fallback, fallback=True)
	return GeneratedContent(text=text, fallback=False, usage=usage)


async def generate_workout(level: str, group: str, training_type: str, exercises: int, patient=None) -> GeneratedContent:
	messages = build_workout_messages(level, group, training_type, exercises, patient)
	return await _generate(messages, WORKOUT_FALLBACK, temperature=0.6, max_tokens=750)


async def generate_recipe(ingredients: str, patient=None) -> GeneratedContent:
	return await _generate(build_recipe_messages(ingredients, patient), RECIPE_FALLBACK, temperature=0.35, max_tokens=500)
