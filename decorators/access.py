from __future__ import annotations

import logging
from functools import wraps

from telegram import Update
from telegram.ext import ContextTypes

from bot.handlers.registration import begin_registration
from bot.keyboards import renewal_kb
from bot.messaging import reply
from services import admin, patients, reminders
from services.config import settings

logger = logging.getLogger(__name__)

REGISTRATION_INCOMPLETE = (
    "⚠️ *Cadastro necessário*\n\n"
    "Você precisa finalizar seu cadastro para acessar esta função. Vamos começar!"
)
TRIAL_GRANTED = (
    "🎁 *Plano liberado para testes*\n\n"
    "Você ganhou acesso total por {days} dias para testarmos o bot.\n"
    "Após o período, será necessário um plano ativo."
)
TRIAL_FAILED = (
    "🔒 *Recurso Premium*\n\n"
    "Não foi possível ativar o teste gratuito agora. Tente novamente mais tarde."
)
PLAN_EXPIRED = (
    "🔒 *Plano Vencido*\n\n"
    "Seu plano venceu em {end}. Renove para voltar a usar este recurso."
)
ACCESS_DENIED = "⛔ Acesso negado. Apenas administradores podem usar este comando."


async def _ask_registration(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await reply(update, context, REGISTRATION_INCOMPLETE)
    await begin_registration(update, context)


def require_registration(func):
    """Run the handler only for registered patients; others are sent to registration."""
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        if patients.get_patient(update.effective_user.id) is None:
            await _ask_registration(update, context)
            return None
        return await func(update, context, *args, **kwargs)

    return wrapper


def require_active_plan(func):
    """Like require_registration, and the plan must be running.

    A plan that was never activated turns into a free trial; an expired one is
    sent to the renewal options.
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user_id = update.effective_user.id
        patient = patients.get_patient(user_id)
        if patient is None:
            await _ask_registration(update, context)
            return None
        if not patients.is_plan_active(patient):
            if not patients.can_get_free_trial(patient):
                message = PLAN_EXPIRED.format(end=patients.format_date(patient.plan_end_date))
                await reply(update, context, message, renewal_kb())
                return None
            trial = patients.grant_free_trial(user_id)
            if trial is None:
                await reply(update, context, TRIAL_FAILED)
                return None
            reminders.reschedule_renewal_reminders(user_id, trial.plan_end_date)
            logger.info("Free trial granted to %s", user_id)
            await reply(update, context, TRIAL_GRANTED.format(days=settings.plan_duration_days))
        return await func(update, context, *args, **kwargs)

    return wrapper


def require_admin(func):
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        if not admin.is_admin(update.effective_user.id):
            await reply(update, context, ACCESS_DENIED)
            return None
        return await func(update, context, *args, **kwargs)

    return wrapper
