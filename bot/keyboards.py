from __future__ import annotations

from typing import Dict, List

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from services.ai_content import EXERCISE_OPTIONS, LEVELS, MUSCLE_GROUPS, TRAINING_TYPES
from services.faq import FAQ_TOPICS
from services.files import FOOD_DIARY
from services.nutrition import ACTIVITY_LABELS
from services.patients import PLANS

BACK_TO_MENU = InlineKeyboardButton("🔙 Voltar ao Menu", callback_data="menu")


def _chunk(buttons: List[InlineKeyboardButton], size: int = 2) -> List[List[InlineKeyboardButton]]:
	return [buttons[i : i + size] for i in range(0, len(buttons), size)]


def main_menu_kb(plan_active: bool = False, is_admin: bool = False) -> InlineKeyboardMarkup:
	rows = [
		[
			InlineKeyboardButton("📋 Meu Cadastro", callback_data="profile"),
			InlineKeyboardButton("📆 Validade Plano", callback_data="renewal"),
		],
		[
			InlineKeyboardButton("💰 Renovar Plano", callback_data="plans"),
			InlineKeyboardButton("❓ Dúvidas", callback_data="faq"),
		],
		[
			InlineKeyboardButton("🧮 Calculadora", callback_data="nutrition"),
			InlineKeyboardButton("🏃 Nível de Atividade", callback_data="activity"),
		],
		[
			InlineKeyboardButton("⚖️ Registrar Peso", callback_data="weight_add"),
			InlineKeyboardButton("📊 Evolução Peso", callback_data="weight_history"),
		],
		[
			InlineKeyboardButton("💬 Chat Nutricionista", callback_data="chat"),
			InlineKeyboardButton("🔔 Lembretes", callback_data="reminders"),
		],
		[
			InlineKeyboardButton("🍽️ Receitas", callback_data="recipe"),
			InlineKeyboardButton("🏋️ Gerar Treino", callback_data="workout"),
		],
		[
			InlineKeyboardButton("📁 Meus Arquivos", callback_data="files"),
			InlineKeyboardButton("📸 Diário Alimentar", callback_data="diary"),
		],
	]
	if plan_active:
		rows.append([
			InlineKeyboardButton("📝 Questionário", callback_data="questionnaire"),
			InlineKeyboardButton("📂 Meus Questionários", callback_data="records"),
		])
	if is_admin:
		rows.append([InlineKeyboardButton("🔐 Painel Admin", callback_data="admin")])
	return InlineKeyboardMarkup(rows)


def back_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([[BACK_TO_MENU]])


def cancel_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([[InlineKeyboardButton("❌ Cancelar", callback_data="cancel_flow")]])


def renewal_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[InlineKeyboardButton("💰 Renovar Plano", callback_data="plans")],
		[BACK_TO_MENU],
	])


def plans_kb() -> InlineKeyboardMarkup:
	rows = [[InlineKeyboardButton(f"💳 {option.name}", callback_data=f"plan_{key}")] for key, option in PLANS.items()]
	rows.append([BACK_TO_MENU])
	return InlineKeyboardMarkup(rows)


def faq_kb() -> InlineKeyboardMarkup:
	rows = [[InlineKeyboardButton(f"❓ {topic.title}", callback_data=f"faq_{topic.id}")] for topic in FAQ_TOPICS]
	rows.append([BACK_TO_MENU])
	return InlineKeyboardMarkup(rows)


def files_kb(category: str, file_ids: List[int]) -> InlineKeyboardMarkup:
	label = "📸 Enviar Foto" if category == FOOD_DIARY else "📤 Enviar Arquivo"
	rows = [[InlineKeyboardButton(label, callback_data=f"upload_{category}")]]
	rows += _chunk(
		[InlineKeyboardButton(f"📥 #{i}", callback_data=f"file_{fid}") for i, fid in enumerate(file_ids, start=1)],
		size=4,
	)
	rows.append([BACK_TO_MENU])
	return InlineKeyboardMarkup(rows)


def profile_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[InlineKeyboardButton("👀 Ver cadastro completo", callback_data="profile_view")],
		[InlineKeyboardButton("✏️ Alterar cadastro", callback_data="profile_edit")],
		[InlineKeyboardButton("🔙 Voltar", callback_data="menu")],
	])


def activity_kb() -> InlineKeyboardMarkup:
	buttons = [InlineKeyboardButton(label, callback_data=f"activity_{level}") for level, label in ACTIVITY_LABELS.items()]
	return InlineKeyboardMarkup(_chunk(buttons) + [[BACK_TO_MENU]])


def weight_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[
			InlineKeyboardButton("⚖️ Registrar Peso", callback_data="weight_add"),
			InlineKeyboardButton("📈 Gráfico", callback_data="weight_chart"),
		],
		[BACK_TO_MENU],
	])


def reminders_kb(reminder_ids: List[int]) -> InlineKeyboardMarkup:
	rows = [[InlineKeyboardButton("➕ Novo Lembrete", callback_data="reminder_new")]]
	rows += _chunk(
		[InlineKeyboardButton(f"🗑️ Apagar #{i}", callback_data=f"reminder_del_{rid}") for i, rid in enumerate(reminder_ids, start=1)],
		size=3,
	)
	rows.append([BACK_TO_MENU])
	return InlineKeyboardMarkup(rows)


def chat_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([[InlineKeyboardButton("🔴 Encerrar Conversa", callback_data="chat_end")]])


def records_kb(records: List[tuple[int, str]]) -> InlineKeyboardMarkup:
	rows = [[InlineKeyboardButton(f"📋 {label}", callback_data=f"record_{rid}")] for rid, label in records]
	rows.append([BACK_TO_MENU])
	return InlineKeyboardMarkup(rows)


def _options_kb(prefix: str, options: Dict[str, str], back: str) -> InlineKeyboardMarkup:
	buttons = [InlineKeyboardButton(label, callback_data=f"{prefix}{key}") for key, label in options.items()]
	return InlineKeyboardMarkup(_chunk(buttons) + [[InlineKeyboardButton("🔙 Voltar", callback_data=back)]])


def workout_level_kb() -> InlineKeyboardMarkup:
	return _options_kb("wk_level_", LEVELS, "menu")


def workout_group_kb() -> InlineKeyboardMarkup:
	return _options_kb("wk_group_", MUSCLE_GROUPS, "workout")


def workout_type_kb() -> InlineKeyboardMarkup:
	return _options_kb("wk_type_", TRAINING_TYPES, "workout")


def workout_exercises_kb() -> InlineKeyboardMarkup:
	buttons = [InlineKeyboardButton(f"{n} exercícios", callback_data=f"wk_ex_{n}") for n in EXERCISE_OPTIONS]
	return InlineKeyboardMarkup(_chunk(buttons, size=4) + [[InlineKeyboardButton("🔙 Voltar", callback_data="workout")]])


def workout_done_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[InlineKeyboardButton("🔁 Novo treino", callback_data="workout")],
		[BACK_TO_MENU],
	])


# --------- Admin ---------

def admin_menu_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[
			InlineKeyboardButton("📊 Dashboard", callback_data="admin_dashboard"),
			InlineKeyboardButton("👥 Pacientes", callback_data="admin_patients"),
		],
		[
			InlineKeyboardButton("📝 Questionários", callback_data="admin_records_0"),
			InlineKeyboardButton("⚠️ Vencendo", callback_data="admin_expiring"),
		],
		[
			InlineKeyboardButton("❌ Vencidos", callback_data="admin_expired"),
			InlineKeyboardButton("📢 Enviar Mensagem", callback_data="admin_broadcast"),
		],
	])


def admin_back_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([[InlineKeyboardButton("🔙 Voltar", callback_data="admin")]])


def broadcast_kb() -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[
			InlineKeyboardButton("👥 Todos", callback_data="admin_bc_all"),
			InlineKeyboardButton("✅ Ativos", callback_data="admin_bc_active"),
		],
		[InlineKeyboardButton("⚠️ Vencendo", callback_data="admin_bc_expiring")],
		[InlineKeyboardButton("🔙 Voltar", callback_data="admin")],
	])


def patient_message_kb(patient_id: int) -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[InlineKeyboardButton("↩️ Responder", callback_data=f"admin_reply_{patient_id}")],
		[InlineKeyboardButton("📋 Ver Histórico", callback_data=f"admin_history_{patient_id}")],
		[InlineKeyboardButton("🔴 Encerrar Conversa", callback_data=f"admin_endchat_{patient_id}")],
	])


def chat_history_kb(patient_id: int) -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[InlineKeyboardButton("↩️ Responder", callback_data=f"admin_reply_{patient_id}")],
		[InlineKeyboardButton("🔙 Voltar", callback_data="admin")],
	])


def admin_records_kb(records: List[tuple[int, str]], page: int, total_pages: int) -> InlineKeyboardMarkup:
	rows = [[InlineKeyboardButton(label, callback_data=f"admin_record_{rid}")] for rid, label in records]
	nav = []
	if page > 0:
		nav.append(InlineKeyboardButton("⬅️", callback_data=f"admin_records_{page - 1}"))
	if page + 1 < total_pages:
		nav.append(InlineKeyboardButton("➡️", callback_data=f"admin_records_{page + 1}"))
	if nav:
		rows.append(nav)
	rows.append([InlineKeyboardButton("🔙 Voltar", callback_data="admin")])
	return InlineKeyboardMarkup(rows)


def plan_request_kb(patient_id: int, plan_key: str) -> InlineKeyboardMarkup:
	option = PLANS[plan_key]
	return InlineKeyboardMarkup([
		[InlineKeyboardButton(f"✅ Ativar {option.name}", callback_data=f"admin_activate_{patient_id}_{plan_key}")],
		[InlineKeyboardButton("💬 Responder", callback_data=f"admin_reply_{patient_id}")],
	])


def patient_files_kb(patient_id: int) -> InlineKeyboardMarkup:
	return InlineKeyboardMarkup([
		[InlineKeyboardButton("📂 Arquivos do Paciente", callback_data=f"admin_files_{patient_id}")],
		[InlineKeyboardButton("↩️ Responder", callback_data=f"admin_reply_{patient_id}")],
	])


def admin_files_kb(file_ids: List[int]) -> InlineKeyboardMarkup:
	rows = _chunk(
		[InlineKeyboardButton(f"📥 #{i}", callback_data=f"file_{fid}") for i, fid in enumerate(file_ids, start=1)],
		size=4,
	)
	rows.append([InlineKeyboardButton("🔙 Voltar", callback_data="admin")])
	return InlineKeyboardMarkup(rows)
