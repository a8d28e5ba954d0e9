from __future__ import annotations

import logging

from telegram.constants import ParseMode
from telegram.error import BadRequest

logger = logging.getLogger(__name__)


async def send_markdown_message(bot, chat_id, text: str, reply_markup=None) -> None:
	"""Send ``text`` as Markdown; a text the parser rejects is resent plain.

	Any other error (blocked bot, unknown chat) propagates to the caller.
	"""
	try:
		await bot.send_message(chat_id=chat_id, text=text, parse_mode=ParseMode.MARKDOWN, reply_markup=reply_markup)
	except BadRequest as e:
		logger.warning("markdown rejected for %s, sending plain text: %s", chat_id, e)
		await bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup)


async def send_markdown_media(bot, chat_id, kind: str, file_id: str, caption: str = "", reply_markup=None) -> None:
	"""Send a photo or document by ``file_id`` with a Markdown caption, plain on rejection."""
	if kind == "photo":
		send, media = bot.send_photo, {"photo": file_id}
	elif kind == "document":
		send, media = bot.send_document, {"document": file_id}
	else:
		raise ValueError(f"unknown media kind: {kind}")
	try:
		await send(chat_id=chat_id, caption=caption, parse_mode=ParseMode.MARKDOWN, reply_markup=reply_markup, **media)
	except BadRequest as e:
		logger.warning("caption rejected for %s, sending plain text: %s", chat_id, e)
		await send(chat_id=chat_id, caption=caption, reply_markup=reply_markup, **media)
