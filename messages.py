"""Conversation messages and the append-only message store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    """One role-tagged entry of a conversation.  Never mutated."""

    role: Role
    content: str
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict:
        """OpenAI-format ``{"role", "content"}`` dict for gateway submission."""
        return {"role": self.role.value, "content": self.content}


class MessageStore:
    """Ordered, append-only sequence of messages.

    Indices are stable: a message keeps its position for the lifetime of
    the store.  The only way to shrink it is ``clear()``.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> int:
        """Append *message* and return its index."""
        self._messages.append(message)
        return len(self._messages) - 1

    def clear(self) -> None:
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __getitem__(self, index):
        # Slices return detached lists.
        if isinstance(index, slice):
            return list(self._messages[index])
        return self._messages[index]

    def __repr__(self) -> str:
        return f"MessageStore({len(self._messages)} messages)"
