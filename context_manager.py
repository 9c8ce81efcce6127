"""Windowed context compression — summaries of old blocks + verbatim tail.

How it works
------------
The manager keeps the *full* conversation in an append-only store.  Once
enough messages have piled up in front of the recent window, the oldest
``compression_window`` uncompressed messages are sent to the gateway and
replaced (in the request view only) by a 2–3 sentence summary.

    history:  [ 0 … 9 ][ 10 … 19 ][ 20 … 23 ][ 24 … 29 ]
               block 1   block 2   pending    recent (verbatim)

Each message is summarized at most once, so summarization cost stays
linear in conversation length.  Summaries are never merged: for very long
conversations the summary preamble keeps growing.

Token estimation
----------------
Tokens are estimated as ``len(text) // 3``.  Not a tokenizer; kept
deliberately simple so stats stay comparable between runs.

Public API
----------
    ContextManager(gateway, compression_window=10, recent_window=6)
        .add_message(role, content)
        .compress_if_needed()        → SummaryBlock | None
        .get_context_for_request()   → list[dict]
        .get_stats()                 → ContextStats
        .reset()
    summarize_messages(messages, gateway) → str
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from llm.errors import GatewayError, LLMError
from llm.providers.base import LLMProvider
from messages import Message, MessageStore, Role

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------
#  Constants
# --------------------------------------------------------------------------

_CHARS_PER_TOKEN: int = 3

SUMMARY_TEMPERATURE: float = 0.3
MAX_SUMMARY_TOKENS: int = 150

# Header of the synthetic system message carrying all block summaries.
SUMMARY_HEADER: str = "Summary of the earlier conversation:"

SUMMARY_PROMPT: str = """\
Write a short summary of the following dialogue, keeping the key facts, \
decisions and conclusions:

{dialogue}

Summary (2-3 sentences):"""


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per three characters."""
    return len(text) // _CHARS_PER_TOKEN


# --------------------------------------------------------------------------
#  Data
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class SummaryBlock:
    """Summary of history messages ``[source_range_start, source_range_end)``."""

    source_range_start: int
    source_range_end: int
    text: str

    @property
    def size(self) -> int:
        return self.source_range_end - self.source_range_start


@dataclass(frozen=True)
class ContextStats:
    total_messages: int = 0
    compressed_blocks: int = 0
    recent_messages: int = 0
    original_tokens: int = 0
    compressed_tokens: int = 0
    compression_ratio: float = 0.0
    tokens_saved: int = 0
    compression_percent: float = 0.0


# --------------------------------------------------------------------------
#  Summarization
# --------------------------------------------------------------------------

def render_dialogue(messages: list[Message]) -> str:
    """``"<role>: <content>"`` lines in order."""
    return "\n".join(f"{m.role.value}: {m.content}" for m in messages)


def summarize_messages(
    messages: list[Message],
    gateway: LLMProvider,
    *,
    temperature: float = SUMMARY_TEMPERATURE,
    max_tokens: int = MAX_SUMMARY_TOKENS,
) -> str:
    """Ask *gateway* for a short summary of *messages*.

    Returns the completion text verbatim.

    Raises:
        EmptyCompletion: the gateway returned no choices.
        GatewayError:    any transport/API failure.
    """
    prompt = SUMMARY_PROMPT.format(dialogue=render_dialogue(messages))
    try:
        completion = gateway.complete(
            [{"role": Role.USER.value, "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except LLMError:
        raise
    except Exception as exc:
        raise GatewayError(f"summarization request failed: {exc}", cause=exc) from exc
    return completion.text


# --------------------------------------------------------------------------
#  Context manager
# --------------------------------------------------------------------------

class ContextManager:
    """Conversation history with windowed summarization.

    Args:
        gateway:            Completion gateway used for summaries.
        compression_window: Messages summarized together as one block (> 0).
        recent_window:      Newest messages always kept verbatim (>= 0).
        summary_temperature / max_summary_tokens:
                            Sampling settings for the summary request.
    """

    def __init__(
        self,
        gateway: LLMProvider,
        compression_window: int = 10,
        recent_window: int = 6,
        *,
        summary_temperature: float = SUMMARY_TEMPERATURE,
        max_summary_tokens: int = MAX_SUMMARY_TOKENS,
    ):
        if compression_window <= 0:
            raise ValueError("compression_window must be > 0")
        if recent_window < 0:
            raise ValueError("recent_window must be >= 0")

        self._gateway = gateway
        self.compression_window = compression_window
        self.recent_window = recent_window
        self.summary_temperature = summary_temperature
        self.max_summary_tokens = max_summary_tokens

        self._history = MessageStore()
        self._summaries: list[SummaryBlock] = []

    # ── Accessors ─────────────────────────────────────────────────

    @property
    def history(self) -> list[Message]:
        """Full history, oldest first (a copy)."""
        return self._history[:]

    @property
    def summaries(self) -> tuple[SummaryBlock, ...]:
        return tuple(self._summaries)

    @property
    def compressed_count(self) -> int:
        """Number of history messages already covered by summaries."""
        return len(self._summaries) * self.compression_window

    def __len__(self) -> int:
        return len(self._history)

    # ── Mutation ──────────────────────────────────────────────────

    def add_message(
        self,
        role: Role | str,
        content: str,
        *,
        timestamp: datetime | None = None,
    ) -> None:
        """Append a message.  Does not trigger compression.

        *timestamp* is only for restoring saved history; new messages get
        the current UTC time.
        """
        role = Role(role)
        if timestamp is None:
            message = Message(role=role, content=content)
        else:
            message = Message(role=role, content=content, timestamp=timestamp)
        self._history.append(message)

    def _pending_range(self) -> tuple[int, int] | None:
        """Next block to compress, or None when not enough has piled up."""
        compressible = len(self._history) - self.recent_window
        already = self.compressed_count
        if compressible - already < self.compression_window:
            return None
        end = min(already + self.compression_window, compressible)
        return already, end

    def compress_if_needed(self) -> SummaryBlock | None:
        """Summarize the oldest uncompressed block if it is due.

        Returns the new block, or None when nothing was due.  On failure the
        exception propagates and no state changes, so the same range is
        attempted again on the next call.
        """
        pending = self._pending_range()
        if pending is None:
            return None

        start, end = pending
        block = self._history[start:end]
        try:
            text = summarize_messages(
                block,
                self._gateway,
                temperature=self.summary_temperature,
                max_tokens=self.max_summary_tokens,
            )
        except LLMError as exc:
            logger.warning("Context: compression of messages [%d, %d) failed: %s", start, end, exc)
            raise

        summary = SummaryBlock(source_range_start=start, source_range_end=end, text=text)
        self._summaries.append(summary)
        logger.info(
            "Context: compressed messages [%d, %d) into block %d (~%d → ~%d tokens)",
            start, end, len(self._summaries),
            sum(estimate_tokens(m.content) for m in block),
            estimate_tokens(text),
        )
        return summary

    def reset(self) -> None:
        """Drop all history and summaries."""
        self._history.clear()
        self._summaries = []
        logger.debug("Context: reset")

    # ── Views ─────────────────────────────────────────────────────

    def _recent(self) -> list[Message]:
        if self.recent_window == 0:
            return []
        return self._history[-self.recent_window:]

    def summary_message(self) -> dict | None:
        """The synthetic system message with all block summaries, if any."""
        if not self._summaries:
            return None
        body = "".join(
            f"[Block {i}]: {s.text}\n" for i, s in enumerate(self._summaries, 1)
        )
        return {"role": Role.SYSTEM.value, "content": f"{SUMMARY_HEADER}\n{body}"}

    def get_context_for_request(self) -> list[dict]:
        """Summaries (as one system message) followed by the recent tail.

        Recomputed on every call; nothing is cached.
        """
        messages: list[dict] = []
        summary = self.summary_message()
        if summary is not None:
            messages.append(summary)
        messages.extend(m.to_dict() for m in self._recent())
        return messages

    def get_stats(self) -> ContextStats:
        recent = self._recent()
        original = sum(estimate_tokens(m.content) for m in self._history)
        if self._summaries:
            compressed = sum(estimate_tokens(s.text) for s in self._summaries)
            compressed += sum(estimate_tokens(m.content) for m in recent)
        else:
            # Nothing compressed yet: no savings to report.
            compressed = original

        ratio = 0.0
        saved = 0
        percent = 0.0
        if original > 0:
            saved = original - compressed
            ratio = compressed / original
            percent = (1.0 - ratio) * 100

        return ContextStats(
            total_messages=len(self._history),
            compressed_blocks=len(self._summaries),
            recent_messages=len(recent),
            original_tokens=original,
            compressed_tokens=compressed,
            compression_ratio=ratio,
            tokens_saved=saved,
            compression_percent=percent,
        )
