from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class FaqTopic:
	id: str
	title: str
	keywords: Tuple[str, ...]
	answer: str


FAQ_INTRO = "❓ *Dúvidas Frequentes*\n\nEscolha um tema ou digite sua dúvida que eu tento responder."

FAQ_TOPICS: List[FaqTopic] = [
	FaqTopic(
		"planos",
		"Planos e renovação",
		("pagamento", "plano", "pix", "cartão", "cartao", "renovar", "renovação", "validade", "vence"),
		"💳 *Planos e renovação*\n"
		"- Veja a validade em \"📆 Validade Plano\".\n"
		"- Para renovar, use \"💰 Renovar Plano\" e escolha mensal, trimestral ou semestral.\n"
		"- A nutricionista confirma o pagamento e ativa o plano; os dias são somados ao plano atual.\n"
		"- Com o plano vencido, as funções premium ficam bloqueadas até a renovação.",
	),
	FaqTopic(
		"cadastro",
		"Acesso e cadastro",
		("cadastro", "acesso", "login", "primeiro", "dados"),
		"👤 *Acesso e cadastro*\n"
		"- Use /start para iniciar o cadastro.\n"
		"- Se parou no meio, digite /menu e comece de novo.\n"
		"- Para editar seus dados, use \"📋 Meu Cadastro\".",
	),
	FaqTopic(
		"treinos",
		"Treinos",
		("treino", "academia", "exercício", "exercicio", "musculação", "musculacao"),
		"🏋️ *Treinos*\n"
		"- Gere um treino em \"🏋️ Gerar Treino\".\n"
		"- Escolha nível, grupamento, tipo e quantidade de exercícios.\n"
		"- Se estiver fácil ou difícil demais, conte no chat com a nutricionista.",
	),
	FaqTopic(
		"alimentacao",
		"Alimentação e diário",
		("alimentação", "alimentacao", "diário", "diario", "refeição", "refeicao", "receita", "questionário", "questionario"),
		"🥗 *Alimentação*\n"
		"- Envie fotos das refeições em \"📸 Diário Alimentar\".\n"
		"- Receitas com o que você tem em casa: \"🍽️ Receitas\".\n"
		"- Uma vez por mês, responda o \"📝 Questionário\".",
	),
	FaqTopic(
		"arquivos",
		"Exames e arquivos",
		("arquivo", "exame", "documento", "pdf", "dieta"),
		"📁 *Exames e arquivos*\n"
		"- Envie exames, dietas e receitas médicas em \"📁 Meus Arquivos\".\n"
		"- Tudo fica no seu histórico e a nutricionista recebe uma cópia.",
	),
	FaqTopic(
		"contato",
		"Falar com a nutricionista",
		("nutri", "nutricionista", "humano", "atendente", "falar"),
		"👩‍⚕️ *Falar com a Nutri*\n"
		"- Use \"💬 Chat Nutricionista\" para falar diretamente.\n"
		"- Se for urgente, escreva \"URGENTE\" na mensagem.",
	),
]

_TOPICS_BY_ID = {topic.id: topic for topic in FAQ_TOPICS}


def get_topic(topic_id: str) -> Optional[FaqTopic]:
	return _TOPICS_BY_ID.get(topic_id)


def find_answer(text: str | None) -> Optional[str]:
	"""Answer of the first topic with a keyword in ``text``; None when nothing matches."""
	if not text:
		return None
	question = text.lower()
	for topic in FAQ_TOPICS:
		if any(keyword in question for keyword in topic.keywords):
			return topic.answer
	return None
