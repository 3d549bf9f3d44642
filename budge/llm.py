"""Client for the external text-generation service used by the AI chat."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from . import config

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """The text-generation service failed or returned an unusable answer."""


class TextGenerator(Protocol):
    """Anything that turns a system prompt and a user message into text.

    Implementations should raise :class:`GenerationError` on failure; callers
    still treat any exception as a failed generation.
    """

    def generate(self, system_prompt: str, user_message: str) -> str:
        ...


class OpenAIChatGenerator:
    """Chat-completions client over plain HTTP."""

    def __init__(
        self,
        api_key: str,
        model: str = config.OPENAI_MODEL,
        base_url: str = config.OPENAI_BASE_URL,
        timeout: float = config.OPENAI_TIMEOUT,
        max_tokens: int = 500,
        temperature: float = 0.7,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or httpx.Client(timeout=timeout)

    def generate(self, system_prompt: str, user_message: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_message},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        try:
            response = self._client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )
            response.raise_for_status()
            content = response.json()["choices"][0]["message"]["content"]
        except httpx.HTTPError as exc:
            raise GenerationError(f"Text generation request failed: {exc}") from exc
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise GenerationError(f"Unexpected text generation response: {exc}") from exc
        if not isinstance(content, str) or not content.strip():
            raise GenerationError("Text generation returned an empty answer")
        return content.strip()

    def close(self) -> None:
        self._client.close()


def default_generator() -> Optional[TextGenerator]:
    """A generator built from the environment, or ``None`` when no key is set."""
    if not config.OPENAI_API_KEY:
        logger.info("OPENAI_API_KEY not set; AI chat will use fallback replies")
        return None
    return OpenAIChatGenerator(config.OPENAI_API_KEY)
