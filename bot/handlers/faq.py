from __future__ import annotations

from telegram import Update
from telegram.ext import ContextTypes

from bot.keyboards import faq_kb
from bot.messaging import reply
from services import faq, patients


async def show_faq(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
	await reply(update, context, faq.FAQ_INTRO, faq_kb())


async def show_faq_topic(update: Update, context: ContextTypes.DEFAULT_TYPE, topic_id: str) -> None:
	topic = faq.get_topic(topic_id)
	if topic is None:
		await show_faq(update, context)
		return
	await reply(update, context, topic.answer, faq_kb())


async def answer_faq(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
	"""Answer free text of a registered patient that matches a FAQ topic."""
	if patients.get_patient(update.effective_user.id) is None:
		return False
	answer = faq.find_answer(update.message.text)
	if answer is None:
		return False
	await reply(update, context, answer, faq_kb())
	return True
