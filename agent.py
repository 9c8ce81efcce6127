"""Chat agent — system prompt + compressed context + new question.

The agent is the caller the context manager was built for: every turn it
asks the manager for the bounded context view, appends the user's
question, sends it to the gateway, records both turns and lets the
manager compress if a block is due.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from context_manager import ContextManager
from history import load_history, save_history
from llm.errors import LLMError
from llm.providers.base import LLMProvider
from messages import Role
from usage import UsageTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentResponse:
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    model: str = ""
    elapsed: float = 0.0


class Agent:
    """One conversation with a chat model."""

    def __init__(
        self,
        gateway: LLMProvider,
        context: ContextManager,
        *,
        system_prompt: str = "",
        temperature: float = 0.7,
        max_tokens: int | None = None,
        tracker: UsageTracker | None = None,
    ):
        self._gateway = gateway
        self.context = context
        self.system_prompt = system_prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.tracker = tracker

    def set_system_prompt(self, prompt: str) -> None:
        self.system_prompt = prompt

    def build_messages(self, question: str) -> list[dict]:
        messages: list[dict] = []
        if self.system_prompt:
            messages.append({"role": Role.SYSTEM.value, "content": self.system_prompt})
        messages.extend(self.context.get_context_for_request())
        messages.append({"role": Role.USER.value, "content": question})
        return messages

    def ask(self, question: str) -> AgentResponse:
        """Send *question* with the current context and record the exchange.

        Gateway errors propagate and nothing is recorded.  A failed
        compression after a successful answer is only logged; it is retried
        on the next turn.
        """
        messages = self.build_messages(question)

        start = time.monotonic()
        completion = self._gateway.complete(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        elapsed = time.monotonic() - start

        self.context.add_message(Role.USER, question)
        self.context.add_message(Role.ASSISTANT, completion.text)
        if self.tracker is not None:
            self.tracker.record(completion)

        try:
            self.context.compress_if_needed()
        except LLMError as exc:
            logger.warning(f"Compression skipped this turn: {exc}")

        return AgentResponse(
            content=completion.text,
            prompt_tokens=completion.prompt_tokens,
            completion_tokens=completion.completion_tokens,
            total_tokens=completion.total_tokens,
            model=completion.model,
            elapsed=elapsed,
        )

    def last_answer(self) -> str | None:
        for message in reversed(self.context.history):
            if message.role is Role.ASSISTANT:
                return message.content
        return None

    def clear(self) -> None:
        self.context.reset()

    # ── Persistence ───────────────────────────────────────────────

    def save(self, path: str | Path) -> Path:
        return save_history(path, self.context.history, self.system_prompt)

    def load(self, path: str | Path) -> int:
        """Replace the conversation with the one saved at *path*.

        An explicitly set system prompt wins over the saved one.  Returns
        the number of messages restored.
        """
        saved = load_history(path)
        self.context.reset()
        for message in saved.history:
            self.context.add_message(message.role, message.content, timestamp=message.timestamp)
        if saved.system_prompt and not self.system_prompt:
            self.system_prompt = saved.system_prompt
        logger.info(f"Restored {len(saved.history)} messages from {path}")
        self.catch_up()
        return len(saved.history)

    def catch_up(self) -> int:
        """Compress every block that is due.  Returns the number of new blocks.

        Stops at the first failure; the remaining blocks are retried on
        later turns.
        """
        compressed = 0
        while True:
            try:
                if self.context.compress_if_needed() is None:
                    break
            except LLMError as exc:
                logger.warning(f"Compression of restored history stopped: {exc}")
                break
            compressed += 1
        return compressed
