from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import ContextTypes
from telegram.helpers import escape_markdown

from bot.keyboards import admin_back_kb, admin_menu_kb, admin_records_kb, broadcast_kb
from bot.messaging import reply
from decorators.access import require_admin
from services import admin, food_records, patients, reminders
from services.config import settings
from services.delivery import send_markdown_message

logger = logging.getLogger(__name__)

RECORDS_PER_PAGE = 5
BROADCAST_LABELS = {"all": "todos os pacientes", "active": "pacientes ativos", "expiring": "planos vencendo"}


@require_admin
async def admin_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, "🔐 *Painel Administrativo*\n\nEscolha uma opção:", admin_menu_kb())


@require_admin
async def show_dashboard(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, admin.format_dashboard(admin.get_dashboard_stats()), admin_back_kb())


@require_admin
async def show_patients(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, admin.format_patient_list(admin.list_all_patients()), admin_back_kb())


@require_admin
async def show_expiring(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, admin.format_expiring(admin.list_expiring_patients()), admin_back_kb())


@require_admin
async def show_expired(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, admin.format_expired(admin.list_expired_patients()), admin_back_kb())


@require_admin
async def show_records(update: Update, context: ContextTypes.DEFAULT_TYPE, page: int = 0) -> None:
	result = food_records.list_recent_food_records(page, RECORDS_PER_PAGE)
	if not result.records:
		await reply(update, context, "📭 Nenhum questionário recebido ainda.", admin_back_kb())
		return
	names = {p.telegram_id: p.name for p in admin.list_all_patients()}
	buttons = [
		(r.id, f"{names.get(r.telegram_id, r.telegram_id)} - {r.created_at.strftime('%d/%m/%Y')}")
		for r in result.records
	]
	await reply(
		update,
		context,
		f"📝 *Questionários Recebidos* ({result.total})\n\nPágina {result.page + 1} de {result.total_pages}",
		admin_records_kb(buttons, result.page, result.total_pages),
	)


@require_admin
async def show_record(update: Update, context: ContextTypes.DEFAULT_TYPE, record_id: int) -> None:
	record = food_records.get_food_record(record_id)
	if record is None:
		await reply(update, context, "❌ Questionário não encontrado.", admin_back_kb())
		return
	patient = patients.get_patient(record.telegram_id)
	name = patient.name if patient else str(record.telegram_id)
	await reply(update, context, food_records.format_food_record(record, patient_name=name), admin_back_kb())


@require_admin
async def broadcast_menu(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, "📢 *Enviar Mensagem*\n\nPara quem deseja enviar?", broadcast_kb())


@require_admin
async def ask_broadcast(update: Update, context: ContextTypes.DEFAULT_TYPE, group: str) -> None:
	if group not in admin.BROADCAST_GROUPS:
		await reply(update, context, "❌ Grupo inválido.", broadcast_kb())
		return
	context.user_data["broadcast_group"] = group
	await reply(
		update,
		context,
		f"✍️ Digite a mensagem para *{BROADCAST_LABELS[group]}*.\n\n❌ Para cancelar: /cancel",
	)


async def handle_broadcast_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
	if not admin.is_admin(update.effective_user.id):
		return False
	group = context.user_data.pop("broadcast_group", None)
	if group is None:
		return False
	targets = admin.broadcast_targets(group)
	if not targets:
		await reply(update, context, "❌ Nenhum paciente encontrado neste grupo.", admin_back_kb())
		return True
	await reply(update, context, f"📤 Enviando mensagem para {len(targets)} paciente(s)...")
	result = await admin.send_broadcast(context.bot, targets, update.message.text)
	await reply(update, context, admin.format_broadcast_result(result), admin_back_kb())
	return True


@require_admin
async def reset_patient_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	"""/reset_patient <telegram_id>: drop the registration, keeping the weight history."""
	args = context.args or []
	if len(args) != 1 or not args[0].lstrip("-").isdigit():
		await reply(update, context, "Uso: /reset\\_patient <telegram\\_id>")
		return
	telegram_id = int(args[0])
	if patients.reset_registration(telegram_id):
		logger.info("Registration of %s reset by admin", telegram_id)
		await reply(update, context, f"✅ Cadastro de `{telegram_id}` removido. O histórico de peso foi mantido.")
	else:
		await reply(update, context, f"❌ Nenhum cadastro encontrado para `{telegram_id}`.")


PLAN_ACTIVATED = (
	"✅ *Plano Ativado!*\n\n"
	"Seu plano está ativo até *{end}*.\n\n"
	"Obrigado por continuar seu acompanhamento! 💚"
)
ACTIVATE_USAGE = "Uso: /activate\\_plan <telegram\\_id> [dias | monthly | quarterly | semiannual]"


async def _activate(update: Update, context: ContextTypes.DEFAULT_TYPE, telegram_id: int, days: int) -> None:
	patient = patients.activate_plan(telegram_id, days)
	if patient is None:
		await reply(update, context, f"❌ Nenhum cadastro encontrado para `{telegram_id}`.", admin_back_kb())
		return
	reminders.reschedule_renewal_reminders(telegram_id, patient.plan_end_date)
	end = patients.format_date(patient.plan_end_date)
	try:
		await send_markdown_message(context.bot, telegram_id, PLAN_ACTIVATED.format(end=end))
	except Exception as e:
		logger.warning("could not notify patient %s: %s", telegram_id, e)
	logger.info("Plan of %s extended by %d day(s) by admin", telegram_id, days)
	await reply(update, context, f"✅ Plano de {escape_markdown(patient.name)} ativo até {end} (+{days} dias).", admin_back_kb())


@require_admin
async def activate_plan_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	"""/activate_plan <telegram_id> [days or plan]: activate or extend a plan after payment."""
	args = context.args or []
	if len(args) not in (1, 2) or not args[0].lstrip("-").isdigit():
		await reply(update, context, ACTIVATE_USAGE)
		return
	days = settings.plan_duration_days
	if len(args) == 2:
		if args[1] in patients.PLANS:
			days = patients.PLANS[args[1]].days
		elif args[1].isdigit() and int(args[1]) > 0:
			days = int(args[1])
		else:
			await reply(update, context, ACTIVATE_USAGE)
			return
	await _activate(update, context, int(args[0]), days)


def parse_activation(value: str) -> tuple[int, str]:
	"""``<telegram_id>_<plan>`` of an activation button; ValueError when malformed."""
	telegram_id, _, plan_key = value.rpartition("_")
	if plan_key not in patients.PLANS:
		raise ValueError(value)
	return int(telegram_id), plan_key


@require_admin
async def activate_requested_plan(update: Update, context: ContextTypes.DEFAULT_TYPE, request: tuple[int, str]) -> None:
	telegram_id, plan_key = request
	await _activate(update, context, telegram_id, patients.PLANS[plan_key].days)
