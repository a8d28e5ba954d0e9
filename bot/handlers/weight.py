from __future__ import annotations

from telegram import Update, InputFile
from telegram.ext import ContextTypes

from bot.engines import WEIGHT, start_flow
from bot.keyboards import back_kb, cancel_kb, main_menu_kb, weight_kb
from bot.messaging import reply
from decorators.access import require_active_plan
from services import patients
from services.weight import (
	WeightUpdate,
	calculate_weight_stats,
	format_weight_history,
	format_weight_update,
	get_weight_history,
	render_weight_chart,
)


@require_active_plan
async def ask_weight(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	prompt = await start_flow(context, user_id, WEIGHT)
	patient = patients.get_patient(user_id)
	if patient and patient.weight:
		prompt += f"\n\n💡 _Peso anterior: {patient.weight:g} kg_"
	await reply(update, context, prompt, cancel_kb())


async def on_weight_done(update: Update, context: ContextTypes.DEFAULT_TYPE, result: WeightUpdate) -> None:
	await reply(update, context, format_weight_update(result), main_menu_kb(plan_active=True))


@require_active_plan
async def show_weight_history(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	history = get_weight_history(user_id)
	patient = patients.get_patient(user_id)
	stats = calculate_weight_stats(history, patient.weight if patient else None)
	await reply(update, context, format_weight_history(history, stats), weight_kb())


@require_active_plan
async def show_weight_chart(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	png = render_weight_chart(get_weight_history(update.effective_user.id))
	if png is None:
		await reply(update, context, "Ainda não há registros suficientes para o gráfico.", weight_kb())
		return
	await context.bot.send_photo(
		chat_id=update.effective_chat.id,
		photo=InputFile(png, filename="peso.png"),
		caption="📈 Evolução do seu peso",
		reply_markup=back_kb(),
	)
