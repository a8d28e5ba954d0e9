from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes

from bot.engines import QUESTIONNAIRE, start_flow
from bot.keyboards import back_kb, cancel_kb, main_menu_kb, records_kb, renewal_kb
from bot.messaging import reply
from decorators.access import require_active_plan
from services import food_records
from states.questionnaire import QUESTIONNAIRE_INTRO

logger = logging.getLogger(__name__)

QUESTIONNAIRE_DONE = (
	"✅ *Questionário enviado!*\n\n"
	"Obrigado! A nutricionista vai analisar suas respostas.\n\n"
	"📅 _Próximo questionário disponível no próximo mês._"
)


@require_active_plan
async def begin_questionnaire(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	eligibility = food_records.can_fill_food_record(user_id)
	if not eligibility.allowed:
		markup = renewal_kb() if eligibility.reason == "plan_inactive" else back_kb()
		await reply(update, context, eligibility.message, markup)
		return
	prompt = await start_flow(context, user_id, QUESTIONNAIRE)
	await reply(update, context, QUESTIONNAIRE_INTRO)
	await reply(update, context, prompt, cancel_kb())


async def on_questionnaire_done(update: Update, context: ContextTypes.DEFAULT_TYPE, result) -> None:
	await reply(update, context, QUESTIONNAIRE_DONE, main_menu_kb(plan_active=True))


@require_active_plan
async def show_my_records(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	records = food_records.list_food_records(update.effective_user.id)
	if not records:
		await reply(update, context, "📭 Você ainda não enviou nenhum questionário.", back_kb())
		return
	buttons = [(r.id, r.created_at.strftime("%d/%m/%Y %H:%M")) for r in records]
	await reply(update, context, "📂 *Seus Questionários*\n\nEscolha um para ver as respostas:", records_kb(buttons))


@require_active_plan
async def show_my_record(update: Update, context: ContextTypes.DEFAULT_TYPE, record_id: int) -> None:
	record = food_records.get_food_record(record_id, telegram_id=update.effective_user.id)
	if record is None:
		await reply(update, context, "❌ Questionário não encontrado.", back_kb())
		return
	await reply(update, context, food_records.format_food_record(record), back_kb())
