"""OpenAI-style Chat Completions client.

Used for intent resolution and log summarization. The client performs exactly one HTTP call per
request and never retries; timeouts are delegated to the transport.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)


class LLMError(RuntimeError):
    """Raised when the completion call fails or returns an unexpected payload."""


class CompletionClient(Protocol):
    """Anything that turns a system + user prompt into assistant text."""

    def complete(
            self,
            system_prompt: str,
            user_prompt: str,
            *,
            temperature: float,
            max_tokens: int,
    ) -> str: ...


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for the Chat Completions API call."""

    api_key: str
    model: str = "gpt-3.5-turbo"
    api_base: str = "https://api.openai.com/v1"
    timeout_s: float = 60.0


def _chat_completions_url(api_base: str) -> str:
    return api_base.rstrip("/") + "/chat/completions"


class ChatCompletionClient:
    """Minimal blocking client for `/v1/chat/completions`."""

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    def complete(
            self,
            system_prompt: str,
            user_prompt: str,
            *,
            temperature: float,
            max_tokens: int,
    ) -> str:
        """Send one system + user exchange and return the assistant text.

        Raises:
            LLMError: On HTTP/network errors, an unexpected response shape or empty content.
        """

        payload = {
            "model": self.config.model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        req = Request(
            _chat_completions_url(self.config.api_base),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload).encode(),
        )

        try:
            with urlopen(req, timeout=self.config.timeout_s) as resp:  # noqa: S310 (fixed API base)
                body = resp.read()
        except HTTPError as exc:
            raise LLMError(f"LLM HTTP error: {exc.code}") from exc
        except URLError as exc:
            raise LLMError("LLM connection error") from exc
        except TimeoutError as exc:
            raise LLMError("LLM request timed out") from exc

        try:
            decoded = json.loads(body)
            content = decoded["choices"][0]["message"]["content"]
        except Exception as exc:  # noqa: BLE001
            raise LLMError("Unexpected LLM response format") from exc

        if not isinstance(content, str) or not content.strip():
            raise LLMError("LLM returned an empty response")

        logger.debug("llm completion model=%s chars=%d", self.config.model, len(content))
        return content
