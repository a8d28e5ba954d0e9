from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from bot.handlers.registration import begin_registration
from bot.keyboards import activity_kb, back_kb, plan_request_kb, plans_kb, profile_kb, renewal_kb
from bot.messaging import reply
from decorators.access import require_active_plan, require_registration
from services import admin, patients
from services.nutrition import ACTIVITY_LABELS, ACTIVITY_MULTIPLIERS, generate_nutritional_analysis

logger = logging.getLogger(__name__)

RENEWAL_REQUESTED = (
	"📨 *Pedido enviado!*\n\n"
	"Você escolheu o *{plan}*. A nutricionista vai entrar em contato para o pagamento "
	"e ativar seu plano assim que ele for confirmado."
)
RENEWAL_REQUEST_FAILED = "⚠️ Não consegui enviar seu pedido agora. Tente novamente mais tarde."


@require_registration
async def show_profile_menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, "📋 *Seu Perfil Completo*", profile_kb())


@require_registration
async def show_full_profile(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	patient = patients.get_patient(update.effective_user.id)
	await reply(update, context, patients.format_patient_profile(patient), back_kb())


@require_registration
async def edit_profile(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	# the plan dates of an existing patient survive a new registration
	await begin_registration(update, context)


@require_registration
async def show_renewal(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	info = patients.get_renewal_info(patients.get_patient(update.effective_user.id))
	await reply(update, context, info.message, renewal_kb())


@require_active_plan
async def show_nutrition(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	patient = patients.get_patient(update.effective_user.id)
	if not (patient.weight and patient.height and patient.age):
		await reply(update, context, "⚠️ Complete seu cadastro (peso, altura e idade) para usar a calculadora.", back_kb())
		return
	await reply(update, context, generate_nutritional_analysis(patient).formatted, back_kb())


@require_active_plan
async def show_activity_menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	patient = patients.get_patient(update.effective_user.id)
	current = ACTIVITY_LABELS.get(patient.activity_level or "sedentary", patient.activity_level)
	await reply(
		update,
		context,
		f"🏃 *Nível de Atividade*\n\nAtual: *{current}*\n\nEscolha o nível que melhor descreve sua rotina:",
		activity_kb(),
	)


@require_active_plan
async def set_activity(update: Update, context: ContextTypes.DEFAULT_TYPE, level: str) -> None:
	if level not in ACTIVITY_MULTIPLIERS:
		await reply(update, context, "❌ Nível de atividade inválido.", activity_kb())
		return
	patients.update_activity_level(update.effective_user.id, level)
	await reply(
		update,
		context,
		f"✅ Nível de atividade atualizado para *{ACTIVITY_LABELS[level]}* (x{ACTIVITY_MULTIPLIERS[level]}).\n\n"
		"Use a 🧮 Calculadora para ver suas novas necessidades.",
		back_kb(),
	)


@require_registration
async def show_plans(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	patient = patients.get_patient(update.effective_user.id)
	await reply(update, context, patients.format_plan_options(patient), plans_kb())


@require_registration
async def request_plan(update: Update, context: ContextTypes.DEFAULT_TYPE, plan_key: str) -> None:
	"""Forward the chosen plan to the nutritionist, who confirms payment and activates it."""
	option = patients.PLANS.get(plan_key)
	if option is None:
		await reply(update, context, "❌ Plano inválido.", plans_kb())
		return
	user_id = update.effective_user.id
	patient = patients.get_patient(user_id)
	text = (
		"💰 *Pedido de Renovação*\n\n"
		f"👤 *{escape_markdown(patient.name)}*\n"
		f"🆔 ID: {user_id}\n"
		f"📦 {option.name} ({option.days} dias)\n"
		f"📅 Plano atual até: {patients.format_date(patient.plan_end_date)}"
	)
	if not await admin.notify_admin(context.bot, text, reply_markup=plan_request_kb(user_id, plan_key)):
		await reply(update, context, RENEWAL_REQUEST_FAILED, back_kb())
		return
	logger.info("Renewal (%s) requested by %s", plan_key, user_id)
	await reply(update, context, RENEWAL_REQUESTED.format(plan=option.name), back_kb())
