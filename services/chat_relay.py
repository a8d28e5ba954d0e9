from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from telegram.helpers import escape_markdown

from db.database import session_scope
from db.models import ChatMessage
from db import repo

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30

CHAT_START = (
	"💬 *Chat com Nutricionista*\n\n"
	"Agora você pode enviar mensagens diretamente para a nutricionista! 👩‍⚕️\n\n"
	"📝 Digite sua mensagem e ela será encaminhada.\n"
	"📷 Você também pode enviar fotos e documentos.\n\n"
	"❌ Para sair do chat, digite: /menu"
)
CHAT_ENDED_BY_PATIENT = (
	"🔴 *Conversa Encerrada*\n\nVocê saiu do chat com a nutricionista.\n\n"
	"💡 Use /menu para acessar o menu novamente."
)
CHAT_ENDED_BY_NUTRITIONIST = (
	"🔴 *Conversa Encerrada*\n\nA nutricionista encerrou a conversa.\n\n"
	"💡 Use /menu para acessar o menu novamente."
)
CHAT_ERROR = "❌ Erro ao enviar mensagem. Tente novamente."

SENT_CONFIRMATION = {
	"text": "✅ Mensagem enviada para a nutricionista!",
	"photo": "✅ Foto enviada para a nutricionista!",
	"document": "✅ Documento enviado para a nutricionista!",
}
ADMIN_SENT_CONFIRMATION = {
	"text": "✅ Resposta enviada!",
	"photo": "✅ Foto enviada!",
	"document": "✅ Documento enviado!",
}


class ChatRelay:
	"""Who is talking to the nutritionist right now, and whom the admin answers.

	Lives in memory only; a restart drops open conversations.
	"""

	def __init__(self):
		self._patients: Set[int] = set()
		self._replies: Dict[int, int] = {}

	def start_chat(self, patient_id: int) -> None:
		self._patients.add(patient_id)

	def end_chat(self, patient_id: int) -> bool:
		if patient_id in self._patients:
			self._patients.discard(patient_id)
			return True
		return False

	def in_chat(self, patient_id: int) -> bool:
		return patient_id in self._patients

	def start_reply(self, admin_id: int, patient_id: int) -> None:
		self._replies[admin_id] = patient_id

	def reply_target(self, admin_id: int) -> Optional[int]:
		return self._replies.get(admin_id)

	def end_reply(self, admin_id: int) -> Optional[int]:
		return self._replies.pop(admin_id, None)


def save_chat_message(
	patient_id: int,
	sender: str,
	type_: str = "text",
	content: str | None = None,
	file_id: str | None = None,
	file_name: str | None = None,
) -> ChatMessage:
	with session_scope() as s:
		return repo.add_chat_message(s, patient_id, sender, type_, content, file_id=file_id, file_name=file_name)


def get_chat_history(patient_id: int, limit: int = HISTORY_LIMIT) -> List[ChatMessage]:
	with session_scope() as s:
		return repo.get_chat_history(s, patient_id, limit)


def count_unread(patient_id: int) -> int:
	with session_scope() as s:
		return repo.count_unread_from_patient(s, patient_id)


def mark_read(patient_id: int) -> int:
	with session_scope() as s:
		return repo.mark_patient_messages_read(s, patient_id)


def format_chat_history(messages: List[ChatMessage]) -> str:
	if not messages:
		return "📭 *Sem mensagens anteriores*"
	text = "💬 *Histórico da Conversa*\n\n"
	for msg in messages:
		when = msg.created_at.strftime("%d/%m %H:%M")
		icon, sender = ("👤", "Paciente") if msg.sender == "patient" else ("👩‍⚕️", "Nutricionista")
		content = escape_markdown(msg.content) if msg.content else ""
		caption = f": {content}" if content else ""
		if msg.type == "photo":
			body = f"📷 Foto{caption}"
		elif msg.type == "document":
			body = f"📎 {escape_markdown(msg.file_name or 'Documento')}{caption}"
		else:
			body = content
		text += f"{icon} *{sender}* ({when})\n{body}\n\n"
	return text


def format_patient_header(kind: str, patient_name: str, patient_id: int, username: str | None, unread: int) -> str:
	title = {"text": "Nova Mensagem", "photo": "Nova Foto", "document": "Novo Documento"}.get(kind, "Nova Mensagem")
	badge = f" 🔴{unread}" if unread > 1 else ""
	return (
		f"💬 *{title}{badge}*\n\n"
		f"👤 *{escape_markdown(patient_name)}*\n"
		f"🆔 ID: {patient_id}\n"
		f"📞 @{escape_markdown(username or 'sem username')}\n\n"
	)


def format_admin_reply_start(patient_name: str) -> str:
	return (
		f"↩️ *Respondendo para: {escape_markdown(patient_name)}*\n\n"
		"Digite sua mensagem e ela será enviada diretamente.\n\n"
		"📷 Você também pode enviar fotos e documentos.\n\n"
		"❌ Para cancelar: /menu"
	)
