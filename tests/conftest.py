import os
import tempfile
from datetime import datetime, timedelta

# settings are read at import time, so the environment goes first
_TMP_DIR = tempfile.mkdtemp(prefix="nutri-bot-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["ADMIN_TELEGRAM_ID"] = "999"
os.environ["TELEGRAM_BOT_TOKEN"] = "123:test"
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["FEATURE_LLM"] = "0"
os.environ["PLAN_DURATION_DAYS"] = "30"

import pytest  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

from db.database import engine, init_db, session_scope  # noqa: E402
from db.models import Base  # noqa: E402
from db import repo  # noqa: E402
from services.chat_relay import ChatRelay  # noqa: E402
from services.files import UploadRequests  # noqa: E402


@pytest.fixture(autouse=True)
def db():
    """Fresh tables for every test."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_patient():
    def _make(telegram_id=1001, **overrides):
        now = datetime.now()
        fields = {
            "name": "Maria Souza",
            "age": 34,
            "gender": "Feminino",
            "weight": 65.5,
            "height": 168.0,
            "activity_level": "moderate",
            "objective": "Emagrecer",
            "restrictions": "Sem restrições",
            "plan_status": "active",
            "plan_start_date": now - timedelta(days=5),
            "plan_end_date": now + timedelta(days=25),
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        with session_scope() as s:
            return repo.upsert_patient(s, telegram_id, fields)

    return _make


@pytest.fixture
def bot():
    fake = MagicMock()
    fake.send_message = AsyncMock()
    fake.send_photo = AsyncMock()
    fake.send_document = AsyncMock()
    fake.send_chat_action = AsyncMock()
    return fake


@pytest.fixture
def context(bot):
    from bot.engines import build_engines

    ctx = MagicMock()
    ctx.bot = bot
    ctx.bot_data = {"engines": build_engines(bot), "chat_relay": ChatRelay(), "file_uploads": UploadRequests()}
    ctx.user_data = {}
    ctx.args = []
    return ctx


@pytest.fixture
def make_update():
    def _make(user_id=1001, text=None, username="maria"):
        update = MagicMock()
        update.effective_user.id = user_id
        update.effective_user.username = username
        update.effective_chat.id = user_id
        update.message.text = text
        update.message.photo = []
        update.message.document = None
        update.message.caption = None
        return update

    return _make
