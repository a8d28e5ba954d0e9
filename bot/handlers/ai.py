from __future__ import annotations

from telegram import Update
from telegram.constants import ChatAction
from telegram.ext import ContextTypes

from bot.engines import PANTRY, start_flow
from bot.keyboards import (
	back_kb,
	cancel_kb,
	workout_done_kb,
	workout_exercises_kb,
	workout_group_kb,
	workout_level_kb,
	workout_type_kb,
)
from bot.messaging import reply
from decorators.access import require_active_plan
from services import patients
from services.ai_content import (
	EXERCISE_OPTIONS,
	LEVELS,
	MUSCLE_GROUPS,
	TRAINING_TYPES,
	GeneratedContent,
	generate_workout,
	workout_header,
)

FALLBACK_NOTE = "\n\n_ℹ️ Sugestão padrão: a geração personalizada está indisponível no momento._"


# --------- Workouts: level → group → type → number of exercises ---------

@require_active_plan
async def workout_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	context.user_data["workout"] = {}
	await reply(update, context, "🏋️ *Gerador de Treino*\n\nEscolha seu *nível*:", workout_level_kb())


@require_active_plan
async def workout_choose(update: Update, context: ContextTypes.DEFAULT_TYPE, value: str, field: str) -> None:
	state = context.user_data.setdefault("workout", {})
	if field == "level" and value in LEVELS:
		state.clear()
		state["level"] = value
		await reply(update, context, "💪 Escolha o *grupamento muscular*:", workout_group_kb())
	elif field == "group" and value in MUSCLE_GROUPS and "level" in state:
		state["group"] = value
		await reply(update, context, "📐 Escolha a *estratégia de treino*:", workout_type_kb())
	elif field == "type" and value in TRAINING_TYPES and "group" in state:
		state["training_type"] = value
		await reply(update, context, "🔢 Quantos *exercícios* no treino principal?", workout_exercises_kb())
	elif field == "exercises" and value.isdigit() and int(value) in EXERCISE_OPTIONS and "training_type" in state:
		state["exercises"] = int(value)
		await _send_workout(update, context, context.user_data.pop("workout"))
	else:
		context.user_data.pop("workout", None)
		await reply(
			update,
			context,
			"❌ Não consegui entender todas as escolhas. Toque em \"Gerar Treino\" para recomeçar.",
			back_kb(),
		)


async def _send_workout(update: Update, context: ContextTypes.DEFAULT_TYPE, state: dict) -> None:
	await context.bot.send_chat_action(chat_id=update.effective_chat.id, action=ChatAction.TYPING)
	patient = patients.get_patient(update.effective_user.id)
	content = await generate_workout(state["level"], state["group"], state["training_type"], state["exercises"], patient)
	header = workout_header(state["level"], state["group"], state["training_type"], state["exercises"])
	await reply(update, context, header + "\n\nConfira o plano abaixo:")
	text = content.text + (FALLBACK_NOTE if content.fallback else "")
	await reply(update, context, text, workout_done_kb())


# --------- Recipes from what the patient has at home ---------

@require_active_plan
async def ask_pantry(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	prompt = await start_flow(context, update.effective_user.id, PANTRY)
	await reply(update, context, prompt, cancel_kb())


async def on_pantry_done(update: Update, context: ContextTypes.DEFAULT_TYPE, result: GeneratedContent) -> None:
	text = result.text + (FALLBACK_NOTE if result.fallback else "")
	await reply(update, context, text, back_kb())
