from __future__ import annotations

import logging
from typing import Dict, List, Optional

from telegram.helpers import escape_markdown

from db.database import session_scope
from db.models import PatientFile
from db import repo

logger = logging.getLogger(__name__)

DOCUMENT = "document"
FOOD_DIARY = "food_diary"
CATEGORIES = (DOCUMENT, FOOD_DIARY)

HISTORY_TITLES = {
	DOCUMENT: "📂 *Meus Arquivos*",
	FOOD_DIARY: "📸 *Diário Alimentar*",
}
UPLOAD_PROMPTS = {
	DOCUMENT: (
		"📄 *Enviar Arquivo*\n\n"
		"Envie o arquivo diretamente nesta conversa:\n\n"
		"• Dietas\n• Exames\n• Fotos de progresso\n• Receitas médicas\n\n"
		"📎 Aguardando seu arquivo... (/cancel para desistir)"
	),
	FOOD_DIARY: (
		"📸 *Diário Alimentar*\n\n"
		"Envie a foto da sua refeição. Se quiser, escreva na legenda o que comeu e o horário.\n\n"
		"📎 Aguardando sua foto... (/cancel para desistir)"
	),
}
UPLOAD_SAVED = {
	DOCUMENT: "✅ *Arquivo salvo com sucesso!*\n\nEle já está no seu histórico e a nutricionista recebeu uma cópia.",
	FOOD_DIARY: "✅ *Refeição registrada!*\n\nA foto entrou no seu diário e a nutricionista recebeu uma cópia.",
}
UPLOAD_FAILED = "❌ *Erro ao salvar arquivo*\n\nNão consegui registrar o arquivo agora. Tente novamente em instantes."


class UploadRequests:
	"""Patients whose next photo or document goes to their file history, by category.

	Lives in memory only, like the chat relay.
	"""

	def __init__(self):
		self._pending: Dict[int, str] = {}

	def request(self, telegram_id: int, category: str) -> None:
		if category not in CATEGORIES:
			raise ValueError(f"unknown file category: {category}")
		self._pending[telegram_id] = category

	def pending(self, telegram_id: int) -> Optional[str]:
		return self._pending.get(telegram_id)

	def take(self, telegram_id: int) -> Optional[str]:
		return self._pending.pop(telegram_id, None)


def save_patient_file(
	telegram_id: int,
	category: str,
	kind: str,
	file_id: str,
	file_name: str | None = None,
	caption: str | None = None,
) -> PatientFile:
	if category not in CATEGORIES:
		raise ValueError(f"unknown file category: {category}")
	with session_scope() as s:
		row = repo.add_patient_file(s, telegram_id, category, kind, file_id, file_name=file_name, caption=caption)
	logger.info("File %s (%s/%s) saved for %s", row.id, category, kind, telegram_id)
	return row


def list_patient_files(telegram_id: int, category: str | None = None) -> List[PatientFile]:
	with session_scope() as s:
		return repo.list_patient_files(s, telegram_id, category)


def get_patient_file(file_row_id: int, telegram_id: int | None = None) -> Optional[PatientFile]:
	"""Fetch a file row; with ``telegram_id`` only the owner's file is returned."""
	with session_scope() as s:
		row = repo.get_patient_file(s, file_row_id)
	if row is None or (telegram_id is not None and row.telegram_id != telegram_id):
		return None
	return row


def describe_file(row: PatientFile) -> str:
	if row.file_name:
		return row.file_name
	return "Foto" if row.kind == "photo" else "Documento"


def format_file_history(files: List[PatientFile], category: str, title: str | None = None) -> str:
	title = title or HISTORY_TITLES.get(category, HISTORY_TITLES[DOCUMENT])
	if not files:
		return f"{title}\n\n📦 Nada enviado ainda."
	text = f"{title}\n\nTotal: *{len(files)}* item(ns)\n\n"
	for idx, row in enumerate(files, start=1):
		icon = "🖼️" if row.kind == "photo" else "📄"
		text += f"{idx}. {icon} {escape_markdown(describe_file(row))}\n   📅 {row.uploaded_at.strftime('%d/%m/%Y %H:%M')}\n"
		if row.caption:
			text += f"   📝 {escape_markdown(row.caption)}\n"
		text += "\n"
	return text


def format_upload_notification(patient_name: str, row: PatientFile) -> str:
	title = "📸 *Diário Alimentar*" if row.category == FOOD_DIARY else "📎 *Novo Arquivo*"
	text = f"{title}\n\n👤 *{escape_markdown(patient_name)}*\n🆔 ID: {row.telegram_id}\n"
	if row.file_name:
		text += f"📄 {escape_markdown(row.file_name)}\n"
	if row.caption:
		text += f"📝 {escape_markdown(row.caption)}\n"
	return text
