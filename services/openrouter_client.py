from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple
import httpx

from services.config import settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class OpenRouterError(Exception):
	pass


async def chat_completion(
	messages: List[Dict[str, str]],
	temperature: float = 0.4,
	max_tokens: int | None = None,
) -> Tuple[str, Dict[str, Any]]:
	"""POST to ``/chat/completions`` and return (text, usage)."""
	if not settings.openrouter_api_key:
		raise OpenRouterError("OPENROUTER_API_KEY não configurada")

	model = settings.openrouter_model or "openai/gpt-4o-mini"
	url = settings.openrouter_base_url.rstrip("/") + "/chat/completions"
	headers = {
		"Authorization": f"Bearer {settings.openrouter_api_key}",
		"Content-Type": "application/json",
		"HTTP-Referer": "https://example.local/",
		"X-Title": "NutriBot",
	}
	payload: Dict[str, Any] = {
		"model": model,
		"messages": messages,
		"temperature": temperature,
	}
	if max_tokens:
		payload["max_tokens"] = max_tokens

	try:
		async with httpx.AsyncClient(timeout=httpx.Timeout(DEFAULT_TIMEOUT)) as client:
			resp = await client.post(url, headers=headers, json=payload)
			if resp.status_code >= 400:
				logger.error("OpenRouter error %s: %s", resp.status_code, resp.text[:500])
				raise OpenRouterError(f"Erro OpenRouter: {resp.status_code}")
			data = resp.json()
	except httpx.HTTPError as e:
		logger.error("OpenRouter request failed: %s", e)
		raise OpenRouterError("Falha de comunicação com o OpenRouter") from e

	choices = data.get("choices", [])
	if not choices:
		raise OpenRouterError("Resposta vazia do LLM")

	text = (choices[0].get("message", {}).get("content") or "").strip()
	if not text:
		raise OpenRouterError("Resposta vazia do LLM")
	usage = data.get("usage", {})
	return text, usage
