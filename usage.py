"""Token usage, cost and context-limit tracking.

Pure arithmetic over the usage numbers a gateway reports; no control
logic.  Prices are USD per one million tokens.
"""

from __future__ import annotations

import logging

from llm.providers.base import Completion

logger = logging.getLogger(__name__)

# ── Model tables ──────────────────────────────────────────────────────────

MODEL_LIMITS: dict[str, int] = {
    "gpt-4o-mini": 128000,
    "gpt-4o": 128000,
    "gpt-4-turbo-preview": 128000,
    "gpt-4": 8192,
    "gpt-3.5-turbo": 16385,
}

# (input, output) per 1M tokens
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "gpt-4o-mini": (0.150, 0.600),
    "gpt-4o": (2.50, 10.00),
    "gpt-4-turbo-preview": (10.00, 30.00),
    "gpt-4": (30.00, 60.00),
    "gpt-3.5-turbo": (0.50, 1.50),
}

DEFAULT_LIMIT = 4096
DEFAULT_PRICING = (0.50, 1.50)

NEAR_LIMIT_PERCENT = 80.0


def get_model_limit(model: str) -> int:
    """Context window for *model*; 4096 for unknown models."""
    return MODEL_LIMITS.get(model, DEFAULT_LIMIT)


def get_model_pricing(model: str) -> tuple[float, float]:
    """``(input_price, output_price)`` per 1M tokens for *model*."""
    return MODEL_PRICING.get(model, DEFAULT_PRICING)


def request_cost(
    prompt_tokens: int,
    completion_tokens: int,
    input_price: float,
    output_price: float,
) -> float:
    return (
        prompt_tokens / 1_000_000 * input_price
        + completion_tokens / 1_000_000 * output_price
    )


class UsageTracker:
    """Accumulates token counts and cost across requests."""

    def __init__(self, max_context_tokens: int, input_price: float, output_price: float):
        self.max_context_tokens = max_context_tokens
        self.input_price = input_price
        self.output_price = output_price

        self.total_requests = 0
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0
        self.total_cost = 0.0
        self.current_context_tokens = 0

    @classmethod
    def for_model(cls, model: str) -> "UsageTracker":
        input_price, output_price = get_model_pricing(model)
        return cls(get_model_limit(model), input_price, output_price)

    @property
    def total_tokens(self) -> int:
        return self.total_prompt_tokens + self.total_completion_tokens

    # ── Recording ─────────────────────────────────────────────────

    def add_request(self, prompt_tokens: int, completion_tokens: int) -> None:
        self.total_requests += 1
        self.total_prompt_tokens += prompt_tokens
        self.total_completion_tokens += completion_tokens
        self.total_cost += request_cost(
            prompt_tokens, completion_tokens, self.input_price, self.output_price,
        )

    def record(self, completion: Completion) -> None:
        """Add a completion's usage; its prompt size becomes the context size."""
        self.add_request(completion.prompt_tokens, completion.completion_tokens)
        self.update_context_size(completion.prompt_tokens)

    def update_context_size(self, tokens: int) -> None:
        self.current_context_tokens = tokens
        if self.is_over_limit:
            logger.warning(
                "Context size %d exceeds model limit %d",
                tokens, self.max_context_tokens,
            )

    # ── Derived ───────────────────────────────────────────────────

    @property
    def context_usage_percent(self) -> float:
        if self.max_context_tokens == 0:
            return 0.0
        return self.current_context_tokens / self.max_context_tokens * 100

    @property
    def is_near_limit(self) -> bool:
        return self.context_usage_percent > NEAR_LIMIT_PERCENT

    @property
    def is_over_limit(self) -> bool:
        return self.current_context_tokens > self.max_context_tokens

    @property
    def remaining_tokens(self) -> int:
        return max(0, self.max_context_tokens - self.current_context_tokens)

    @property
    def average_cost_per_request(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_cost / self.total_requests

    @property
    def average_tokens_per_request(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_tokens / self.total_requests

    # ── Display ───────────────────────────────────────────────────

    def format_context_bar(self, width: int = 50) -> str:
        """``[▒▒▒░░░…] 12.5%`` — fill char turns ▓ above 80 % and █ above 90 %."""
        if width <= 0:
            width = 50
        percent = self.context_usage_percent
        filled = min(int(percent / 100 * width), width)

        if percent > 90:
            fill = "█"
        elif percent > 80:
            fill = "▓"
        else:
            fill = "▒"
        bar = fill * filled + "░" * (width - filled)
        return f"[{bar}] {percent:.1f}%"

    def warning_message(self) -> str:
        """Human-readable warning when near or over the limit, else ``""``."""
        if self.is_over_limit:
            return (
                f"CRITICAL: context limit exceeded "
                f"({self.current_context_tokens} / {self.max_context_tokens} tokens)"
            )
        if self.is_near_limit:
            return (
                f"WARNING: close to the context limit "
                f"({self.current_context_tokens} / {self.max_context_tokens} tokens)"
            )
        return ""
