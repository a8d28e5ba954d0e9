from __future__ import annotations

from typing import List

from telegram import InlineKeyboardMarkup, Message
from telegram.ext import ContextTypes

from services.delivery import send_markdown_message

MAX_TG_TEXT = 4000


def split_text_chunks(text: str, limit: int = MAX_TG_TEXT) -> List[str]:
	if len(text) <= limit:
		return [text]
	chunks: List[str] = []
	start = 0
	while start < len(text):
		end = min(start + limit, len(text))
		# try split on nearest newline for readability
		newline = text.rfind("\n", start, end)
		if end < len(text) and newline != -1 and newline > start + 1000:
			end = newline
		chunks.append(text[start:end])
		start = end
	return chunks


async def send_markdown(
	context: ContextTypes.DEFAULT_TYPE,
	chat_id: int,
	text: str,
	reply_markup: InlineKeyboardMarkup | None = None,
) -> None:
	"""Send Markdown text in chunks; the keyboard goes on the last one.

	User-typed answers can break Markdown entities, so a rejected chunk is resent
	as plain text.
	"""
	parts = split_text_chunks(text)
	for i, part in enumerate(parts):
		markup = reply_markup if i == len(parts) - 1 else None
		await send_markdown_message(context.bot, chat_id, part, reply_markup=markup)


async def reply(update, context: ContextTypes.DEFAULT_TYPE, text: str, reply_markup: InlineKeyboardMarkup | None = None) -> None:
	await send_markdown(context, update.effective_chat.id, text, reply_markup)


def message_parts(message: Message) -> tuple[str, str, str | None, str | None]:
	"""(kind, text or caption, file_id, file_name) of an incoming message."""
	if message.photo:
		return "photo", message.caption or "", message.photo[-1].file_id, None
	if message.document:
		return "document", message.caption or "", message.document.file_id, message.document.file_name
	return "text", message.text or "", None, None
