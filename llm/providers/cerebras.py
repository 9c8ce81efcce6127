"""Cerebras LLM provider."""

from __future__ import annotations

import logging

from ..errors import GatewayError
from .base import Completion, LLMProvider
from .openai import build_chat_kwargs, parse_chat_response

logger = logging.getLogger(__name__)


class CerebrasProvider(LLMProvider):
    """Cerebras Cloud SDK — fast inference, OpenAI-compatible API."""

    DEFAULT_MODEL = "gpt-oss-120b"

    def __init__(self, api_key: str, model: str = "", timeout: float | None = None):
        from cerebras.cloud.sdk import Cerebras

        kwargs: dict = {"api_key": api_key}
        if timeout:
            kwargs["timeout"] = timeout
        self._client = Cerebras(**kwargs)
        self._model = model or self.DEFAULT_MODEL
        logger.info(f"Cerebras provider ready (model={self._model})")

    @property
    def name(self) -> str:
        return "cerebras"

    @property
    def model(self) -> str:
        return self._model

    def complete(
        self,
        messages: list[dict],
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
        response_format: dict | None = None,
    ) -> Completion:
        kwargs = build_chat_kwargs(
            self._model, messages, temperature, max_tokens, stop, response_format,
        )
        try:
            response = self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise GatewayError(f"cerebras request failed: {exc}", cause=exc) from exc
        return parse_chat_response(response, self.name)
