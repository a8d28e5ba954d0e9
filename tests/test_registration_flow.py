from unittest.mock import AsyncMock

import pytest

from states.engine import ConversationEngine
from states.registration import REGISTRATION_FLOW, format_registration_error
from states.session_store import SessionStore
from states.validators import NO_RESTRICTIONS

ANSWERS = ["Maria Souza", "34", "f", "65,5", "168", "M", "Emagrecer", ""]


@pytest.fixture
def on_complete():
    return AsyncMock()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def engine(store, on_complete):
    return ConversationEngine(REGISTRATION_FLOW, store, on_complete, format_error=format_registration_error)


def test_registration_has_eight_steps_in_order():
    assert REGISTRATION_FLOW.keys == [
        "name", "age", "gender", "weight", "height", "activity_level", "objective", "restrictions",
    ]


async def test_happy_path_collects_typed_answers(engine, on_complete):
    prompt = await engine.start(1)
    assert "Passo 1 de 8" in prompt
    for answer in ANSWERS[:-1]:
        reply = await engine.submit(1, answer)
        assert reply.complete is False
    reply = await engine.submit(1, ANSWERS[-1])

    assert reply.complete is True
    on_complete.assert_awaited_once_with(
        1,
        {
            "name": "Maria Souza",
            "age": 34,
            "gender": "Feminino",
            "weight": 65.5,
            "height": 168.0,
            "activity_level": "moderate",
            "objective": "Emagrecer",
            "restrictions": NO_RESTRICTIONS,
        },
    )
    assert not engine.is_active(1)


async def test_invalid_weight_reprompts_same_step(engine, store):
    await engine.start(1)
    for answer in ANSWERS[:3]:
        await engine.submit(1, answer)
    assert store.get(1).step_index == 3

    reply = await engine.submit(1, "abc")
    assert "Ops!" in reply.text
    assert "Use apenas números" in reply.text
    assert "Passo 4 de 8" in reply.text
    assert store.get(1).step_index == 3
    assert "weight" not in store.get(1).answers

    reply = await engine.submit(1, "71.0")
    assert "Passo 5 de 8" in reply.text
    assert store.get(1).answers["weight"] == 71.0


async def test_age_outside_range_is_rejected(engine, store):
    await engine.start(1)
    await engine.submit(1, "Maria Souza")

    for bad in ("5", "200", "34.5"):
        reply = await engine.submit(1, bad)
        assert "Idade inválida" in reply.text
        assert store.get(1).step_index == 1

    reply = await engine.submit(1, "34")
    assert "Passo 3 de 8" in reply.text
    assert store.get(1).answers["age"] == 34


async def test_short_name_is_rejected(engine, store):
    await engine.start(1)
    reply = await engine.submit(1, "Al")
    assert "pelo menos 3 caracteres" in reply.text
    assert store.get(1).step_index == 0
