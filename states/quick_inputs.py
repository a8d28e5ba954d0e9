from __future__ import annotations

from states.flow import Flow, Step
from states.validators import min_length, validate_future_datetime, validate_weight

WEIGHT_FLOW = Flow(
    "weight",
    [
        Step(
            "weight",
            "⚖️ *Registrar Novo Peso*\n\nDigite seu peso atual em kg.\n\n📝 Exemplo: `72.5` ou `72`",
            validate_weight,
        ),
    ],
)

REMINDER_FLOW = Flow(
    "reminder",
    [
        Step(
            "message",
            "📝 *Criar Novo Lembrete*\n\nPasso 1/2: Digite a mensagem do lembrete.\n\n_Exemplo: Tomar suplemento_",
            min_length(2, "Tomar suplemento"),
        ),
        Step(
            "scheduled_for",
            "📅 *Criar Novo Lembrete*\n\nPasso 2/2: Digite a data e hora do lembrete.\n\n"
            "💡 _Formato: DD/MM/AAAA HH:MM_\n📝 _Exemplo: 25/11/2025 14:30_",
            validate_future_datetime,
        ),
    ],
)

PANTRY_FLOW = Flow(
    "pantry",
    [
        Step(
            "ingredients",
            "🥕 *Receita com o que você tem*\n\nListe os ingredientes disponíveis, separados por vírgula.\n\n"
            "_Exemplo: frango, arroz, brócolis, alho_",
            min_length(3, "frango, arroz, brócolis"),
        ),
    ],
)
