from __future__ import annotations

from states.flow import Flow, Step
from states import validators as v

REGISTRATION_INTRO = (
    "🌟 *Bem-vindo ao Sistema de Gestão Nutricional!*\n\n"
    "Vamos criar seu perfil personalizado.\n"
    "São apenas *8 perguntas rápidas*.\n\n"
    "📝 Responda cada pergunta com atenção para receber o melhor acompanhamento possível."
)

ACTIVITY_PROMPT = (
    "🏃 *Passo 6 de 8*\n\n"
    "Qual é o seu *nível de atividade*? Escolha e responda apenas a sigla:\n\n"
    "• S = Sedentário — Pouco ou nenhum exercício (x1.2)\n"
    "• L = Leve — 1-3x/semana (x1.375)\n"
    "• M = Moderado — 3-5x/semana (x1.55)\n"
    "• A = Ativo — 6-7x/semana (x1.725)\n"
    "• MA = Muito Ativo — Treino intenso/2x dia (x1.9)\n\n"
    "Responda: S, L, M, A ou MA."
)

REGISTRATION_FLOW = Flow(
    "registration",
    [
        Step("name", "👤 *Passo 1 de 8*\n\nQual é o seu *nome completo*?", v.validate_name),
        Step("age", "🎂 *Passo 2 de 8*\n\nQual é a sua *idade*?\n_Exemplo: 25_", v.validate_age),
        Step(
            "gender",
            "⚧ *Passo 3 de 8*\n\nQual é o seu *sexo*?\n\nResponda: *M* (Masculino) ou *F* (Feminino)",
            v.validate_gender,
        ),
        Step("weight", "⚖️ *Passo 4 de 8*\n\nQual é o seu *peso* em kg?\n_Exemplo: 70.5_", v.validate_weight),
        Step("height", "📏 *Passo 5 de 8*\n\nQual é a sua *altura* em cm?\n_Exemplo: 175_", v.validate_height),
        Step("activity_level", ACTIVITY_PROMPT, v.validate_activity_level),
        Step(
            "objective",
            "🎯 *Passo 7 de 8*\n\nQual é o seu *principal objetivo*?\n"
            "_Exemplo: Ganhar massa muscular, emagrecer, melhorar saúde..._",
            v.validate_objective,
        ),
        Step(
            "restrictions",
            "🥗 *Passo 8 de 8*\n\nPossui *restrições alimentares*?\n"
            "_Exemplo: Lactose, glúten, vegetariano...\nSe não tiver, responda: Sem restrições_",
            v.validate_restrictions,
        ),
    ],
)


def format_registration_error(reason: str) -> str:
    return f"❌ *Ops! Algo deu errado...*\n\n{reason}\n\n💡 _Por favor, tente novamente._"
