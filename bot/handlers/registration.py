from __future__ import annotations

from telegram import Update
from telegram.ext import ContextTypes

from bot.engines import REGISTRATION, get_engine, cancel_flows
from bot.keyboards import main_menu_kb
from bot.messaging import reply
from services import admin
from services.patients import RegistrationResult, is_plan_active
from states.registration import REGISTRATION_INTRO


def registration_success(first_name: str, restored: bool) -> str:
	text = (
		f"🎉 *Cadastro concluído, {first_name}!*\n\n"
		"Seu perfil foi criado com sucesso. A partir de agora você tem acesso ao acompanhamento nutricional."
	)
	if restored:
		text += "\n\n✅ Seu histórico foi restaurado!"
	return text


async def begin_registration(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	user_id = update.effective_user.id
	await cancel_flows(context, user_id)
	prompt = await get_engine(context, REGISTRATION).start(user_id)
	await reply(update, context, REGISTRATION_INTRO)
	await reply(update, context, prompt)


async def on_registration_done(update: Update, context: ContextTypes.DEFAULT_TYPE, result: RegistrationResult) -> None:
	patient = result.patient
	if result.created:
		await reply(update, context, registration_success(patient.first_name, result.restored))
	else:
		await reply(update, context, f"✅ *Cadastro atualizado, {patient.first_name}!*")
	await reply(
		update,
		context,
		"📋 *Menu Principal*\n\nEscolha uma das opções abaixo:",
		main_menu_kb(is_plan_active(patient), admin.is_admin(patient.telegram_id)),
	)
