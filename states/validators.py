"""Input validators shared by the conversational flows.

Every validator takes the raw message text and returns the value to store, or
raises ValidationFailure with a message ready to be shown to the patient.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Callable

from states.errors import ValidationFailure

MIN_AGE = 10
MAX_AGE = 120
MIN_WEIGHT = 20  # kg
MAX_WEIGHT = 400
MIN_HEIGHT = 100  # cm
MAX_HEIGHT = 250
MIN_NAME_LENGTH = 3
MIN_ANSWER_LENGTH = 2

NO_RESTRICTIONS = "Sem restrições"

ONLY_NUMBERS = "Use apenas números."

GENDERS = {
    "M": "Masculino",
    "MASCULINO": "Masculino",
    "F": "Feminino",
    "FEMININO": "Feminino",
}

ACTIVITY_LEVELS = {
    "sedentary": ("s", "sed", "sedentario", "sedentário"),
    "light": ("l", "leve", "light"),
    "moderate": ("m", "mod", "moderado"),
    "active": ("a", "ativo", "active"),
    "veryActive": ("ma", "va", "muito ativo", "muitoativo", "veryactive", "very active"),
}


def sanitize_text(value: str | None) -> str:
    return (value or "").strip()


def parse_number(value: str | None) -> float:
    """Parse a decimal number, accepting a comma as separator. Raises ValueError."""
    text = sanitize_text(value).replace(",", ".")
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(text)
    return number


def _number_or_fail(value: str | None, example: str) -> float:
    try:
        return parse_number(value)
    except ValueError:
        raise ValidationFailure(f"{ONLY_NUMBERS}\n_Exemplo: {example}_") from None


def validate_name(value: str) -> str:
    name = sanitize_text(value)
    if not name:
        raise ValidationFailure("👤 O campo nome é obrigatório.\n_Exemplo: João Silva_")
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationFailure(f"👤 O nome deve ter pelo menos {MIN_NAME_LENGTH} caracteres.\n_Exemplo: João Silva_")
    return name


def validate_age(value: str) -> int:
    age = _number_or_fail(value, "25")
    if not age.is_integer() or age < MIN_AGE or age > MAX_AGE:
        raise ValidationFailure(
            f"🎂 Idade inválida.\n\nInforme um número inteiro entre *{MIN_AGE}* e *{MAX_AGE}* anos.\n_Exemplo: 25_"
        )
    return int(age)


def validate_weight(value: str) -> float:
    weight = round(_number_or_fail(value, "70 ou 70.5"), 1)
    if weight < MIN_WEIGHT or weight > MAX_WEIGHT:
        raise ValidationFailure(
            f"⚖️ Peso fora do intervalo permitido.\n\nInforme um valor entre *{MIN_WEIGHT}kg* e *{MAX_WEIGHT}kg*.\n_Exemplo: 70.5_"
        )
    return weight


def validate_height(value: str) -> float:
    height = _number_or_fail(value, "175")
    if height < MIN_HEIGHT or height > MAX_HEIGHT:
        raise ValidationFailure(
            f"📏 Altura inválida.\n\nInforme um valor entre *{MIN_HEIGHT}cm* e *{MAX_HEIGHT}cm*.\n_Exemplo: 175_"
        )
    return height


def validate_gender(value: str) -> str:
    normalized = sanitize_text(value).upper()
    if normalized not in GENDERS:
        raise ValidationFailure("Por favor, responda apenas *M* (Masculino) ou *F* (Feminino).")
    return GENDERS[normalized]


def validate_activity_level(value: str) -> str:
    normalized = sanitize_text(value).lower()
    if not normalized:
        raise ValidationFailure("Informe um nível de atividade.")
    for level, tokens in ACTIVITY_LEVELS.items():
        if normalized in tokens:
            return level
    raise ValidationFailure(
        "Escolha: Sedentário, Leve, Moderado, Ativo ou Muito Ativo (pode usar S/L/M/A/MA)."
    )


def validate_objective(value: str) -> str:
    objective = sanitize_text(value)
    if not objective:
        raise ValidationFailure(
            "🎯 O campo objetivo é obrigatório.\n\n_Exemplo: Emagrecer, ganhar massa muscular, melhorar saúde..._"
        )
    return objective


def validate_restrictions(value: str) -> str:
    # the only field where an empty answer means a default
    return sanitize_text(value) or NO_RESTRICTIONS


def min_length(minimum: int, example: str) -> Callable[[str], str]:
    """Build a free-text validator requiring at least ``minimum`` characters."""

    def _validate(value: str) -> str:
        answer = sanitize_text(value)
        if len(answer) < minimum:
            raise ValidationFailure(
                f"❌ *Resposta muito curta*\n\nPor favor, seja mais específico.\n_Exemplo: {example}_"
            )
        return answer

    return _validate


def validate_future_datetime(value: str, now: datetime | None = None) -> datetime:
    """Parse ``DD/MM/AAAA HH:MM`` and require a moment in the future."""
    text = " ".join(sanitize_text(value).split())
    try:
        moment = datetime.strptime(text, "%d/%m/%Y %H:%M")
    except ValueError:
        raise ValidationFailure(
            "❌ Formato inválido. Use: DD/MM/AAAA HH:MM\n_Exemplo: 25/11/2025 14:30_"
        ) from None
    if moment <= (now or datetime.now()):
        raise ValidationFailure("❌ A data deve ser no futuro!")
    return moment
