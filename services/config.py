from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load .env if present
load_dotenv()


def env_bool(name: str, default: str = "0") -> bool:
	val = os.getenv(name, default).strip().lower()
	return val in ("1", "true", "yes", "y", "on")


def env_int(name: str, default: int) -> int:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	return int(raw)


@dataclass
class AppSettings:
	telegram_bot_token: str | None = os.getenv("TELEGRAM_BOT_TOKEN")
	admin_telegram_id: str | None = os.getenv("ADMIN_TELEGRAM_ID")
	openrouter_api_key: str | None = os.getenv("OPENROUTER_API_KEY")
	openrouter_base_url: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
	openrouter_model: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
	database_url: str = os.getenv("DATABASE_URL", "sqlite:///data/nutri_bot.db")
	log_level: str = os.getenv("LOG_LEVEL", "INFO")
	timezone: str = os.getenv("TIMEZONE", "America/Sao_Paulo")

	plan_duration_days: int = env_int("PLAN_DURATION_DAYS", 30)
	reminder_poll_minutes: int = env_int("REMINDER_POLL_MINUTES", 2)

	# Feature flags for staged rollout
	feature_llm: bool = env_bool("FEATURE_LLM", "0")


settings = AppSettings()


def assert_required_settings() -> None:
	missing: list[str] = []
	if not settings.telegram_bot_token:
		missing.append("TELEGRAM_BOT_TOKEN")
	if missing:
		raised = ", ".join(missing)
		raise RuntimeError(f"Variáveis de ambiente obrigatórias ausentes: {raised}. Veja .env.template")
