"""LLM provider base class.

Every provider implements one method:
  - complete(messages, ...) -> Completion   (text + finish reason + usage)

Providers raise ``GatewayError`` for any SDK/transport failure and
``EmptyCompletion`` when the API returns no choices.

To add a new provider:
  1. Create llm/providers/your_provider.py
  2. Subclass LLMProvider
  3. Register it in llm/providers/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Completion:
    """Generated text plus token usage for one request."""

    text: str
    finish_reason: str = ""
    model: str = ""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LLMProvider(ABC):
    """Abstract base for LLM providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'openai', 'anthropic')."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier sent with every request."""
        ...

    @abstractmethod
    def complete(
        self,
        messages: list[dict],
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
        response_format: dict | None = None,
    ) -> Completion:
        """Send messages and return the completion.

        Args:
            messages:        ``[{"role": ..., "content": ...}]`` in order.
            temperature:     Sampling temperature.
            max_tokens:      Output-token cap; ``None`` lets the API decide.
            stop:            Stop sequences.
            response_format: Structured-output hint, e.g. ``{"type": "json_object"}``.
        """
        ...
