"""Anthropic LLM provider.

Handles Anthropic-specific API differences:
  - System prompt is a separate parameter (not a message)
  - Messages must strictly alternate user/assistant
  - max_tokens is mandatory
  - Response format differs from OpenAI
"""

from __future__ import annotations

import logging

from ..errors import EmptyCompletion, GatewayError
from .base import Completion, LLMProvider

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """Anthropic Messages API."""

    DEFAULT_MODEL = "claude-sonnet-4-20250514"
    DEFAULT_MAX_TOKENS = 1024

    def __init__(self, api_key: str, model: str = "", timeout: float | None = None):
        from anthropic import Anthropic  # type: ignore[import-untyped]

        kwargs: dict = {"api_key": api_key}
        if timeout:
            kwargs["timeout"] = timeout
        self._client = Anthropic(**kwargs)
        self._model = model or self.DEFAULT_MODEL
        logger.info(f"Anthropic provider ready (model={self._model})")

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def model(self) -> str:
        return self._model

    # ── Internal helpers ──────────────────────────────────────────

    @staticmethod
    def _split_messages(
        messages: list[dict],
    ) -> tuple[str | None, list[dict]]:
        """Separate system messages from chat messages.

        Anthropic API takes system as a top-level param, not a message.
        """
        system_parts: list[str] = []
        chat: list[dict] = []
        for msg in messages:
            if msg["role"] == "system":
                system_parts.append(msg["content"])
            else:
                chat.append({"role": msg["role"], "content": msg["content"]})

        # Merge consecutive same-role messages (Anthropic requires alternation)
        merged: list[dict] = []
        for msg in chat:
            if merged and msg["role"] == merged[-1]["role"]:
                merged[-1]["content"] += "\n\n" + msg["content"]
            else:
                merged.append(msg)

        # Anthropic requires first message to be user
        if merged and merged[0]["role"] != "user":
            merged.insert(0, {"role": "user", "content": "(continued)"})

        system = "\n\n".join(system_parts) if system_parts else None
        return system, merged

    # ── Public API ────────────────────────────────────────────────

    def complete(
        self,
        messages: list[dict],
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
        response_format: dict | None = None,
    ) -> Completion:
        system, chat_msgs = self._split_messages(messages)
        kwargs: dict = dict(
            model=self._model,
            messages=chat_msgs,
            temperature=temperature,
            max_tokens=max_tokens or self.DEFAULT_MAX_TOKENS,
        )
        if system:
            kwargs["system"] = system
        if stop:
            kwargs["stop_sequences"] = stop
        if response_format:
            logger.debug("anthropic: response_format %s ignored", response_format)

        try:
            response = self._client.messages.create(**kwargs)
        except Exception as exc:
            raise GatewayError(f"anthropic request failed: {exc}", cause=exc) from exc

        if not response.content:
            raise EmptyCompletion("anthropic returned no content blocks")

        text = "".join(
            getattr(block, "text", "") for block in response.content
        )
        usage = response.usage
        prompt_tokens = getattr(usage, "input_tokens", 0) or 0
        completion_tokens = getattr(usage, "output_tokens", 0) or 0
        return Completion(
            text=text,
            finish_reason=str(response.stop_reason or ""),
            model=getattr(response, "model", "") or self._model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
