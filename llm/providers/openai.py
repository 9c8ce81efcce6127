"""OpenAI LLM provider.

Also works with any OpenAI-compatible API (Azure OpenAI, vLLM, Ollama,
Together AI, etc.) — set LLM_BASE_URL to the custom endpoint.
"""

from __future__ import annotations

import logging

from ..errors import EmptyCompletion, GatewayError
from .base import Completion, LLMProvider

logger = logging.getLogger(__name__)


def build_chat_kwargs(
    model: str,
    messages: list[dict],
    temperature: float,
    max_tokens: int | None,
    stop: list[str] | None,
    response_format: dict | None,
) -> dict:
    """Chat-completions arguments; optional fields are sent only when set."""
    kwargs: dict = dict(model=model, messages=messages, temperature=temperature)
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    if stop:
        kwargs["stop"] = stop
    if response_format:
        kwargs["response_format"] = response_format
    return kwargs


def parse_chat_response(response, provider: str) -> Completion:
    """Turn a chat-completions response object into a ``Completion``."""
    if not response.choices:
        raise EmptyCompletion(f"{provider} returned no choices")

    choice = response.choices[0]
    usage = getattr(response, "usage", None)
    return Completion(
        text=choice.message.content or "",
        finish_reason=str(choice.finish_reason or ""),
        model=getattr(response, "model", "") or "",
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        total_tokens=getattr(usage, "total_tokens", 0) or 0,
    )


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions API."""

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str,
        model: str = "",
        base_url: str = "",
        timeout: float | None = None,
    ):
        from openai import OpenAI  # type: ignore[import-untyped]

        kwargs: dict = {"api_key": api_key}
        if base_url:
            kwargs["base_url"] = base_url
        if timeout:
            kwargs["timeout"] = timeout
        self._client = OpenAI(**kwargs)
        self._model = model or self.DEFAULT_MODEL
        logger.info(
            f"OpenAI provider ready (model={self._model}"
            f"{', base_url=' + base_url if base_url else ''})"
        )

    @property
    def name(self) -> str:
        return "openai"

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
        logger.debug("openai request: %d messages, model=%s", len(messages), self._model)
        try:
            response = self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise GatewayError(f"openai request failed: {exc}", cause=exc) from exc
        return parse_chat_response(response, self.name)
