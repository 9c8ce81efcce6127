"""Conversation persistence as indented JSON.

File shape::

    {
      "system_prompt": "...",            (omitted when empty)
      "history": [
        {"role": "user", "content": "...", "timestamp": "2025-01-01T10:00:00+00:00"}
      ],
      "saved_at": "2025-01-01T10:05:00+00:00"
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from messages import Message, Role

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """History file exists but cannot be parsed."""


@dataclass
class SavedConversation:
    system_prompt: str = ""
    history: list[Message] = field(default_factory=list)
    saved_at: datetime | None = None


def _message_to_json(m: Message) -> dict:
    return {
        "role": m.role.value,
        "content": m.content,
        "timestamp": m.timestamp.isoformat(),
    }


def _message_from_json(raw: dict) -> Message:
    return Message(
        role=Role(raw["role"]),
        content=raw["content"],
        timestamp=datetime.fromisoformat(raw["timestamp"]),
    )


def save_history(
    path: str | Path,
    messages: list[Message],
    system_prompt: str = "",
) -> Path:
    """Write *messages* (and the system prompt, if any) to *path*."""
    path = Path(path)
    data: dict = {}
    if system_prompt:
        data["system_prompt"] = system_prompt
    data["history"] = [_message_to_json(m) for m in messages]
    data["saved_at"] = datetime.now(timezone.utc).isoformat()

    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info(f"Saved {len(messages)} messages to {path}")
    return path


def load_history(path: str | Path) -> SavedConversation:
    """Read a conversation saved by ``save_history``.

    A missing file is not an error (first run): an empty conversation is
    returned.
    """
    path = Path(path)
    if not path.exists():
        logger.debug(f"No history file at {path}")
        return SavedConversation()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        history = [_message_from_json(m) for m in data.get("history", [])]
        saved_at = data.get("saved_at")
        return SavedConversation(
            system_prompt=data.get("system_prompt", ""),
            history=history,
            saved_at=datetime.fromisoformat(saved_at) if saved_at else None,
        )
    except (json.JSONDecodeError, KeyError, ValueError, TypeError, AttributeError) as exc:
        raise HistoryError(f"cannot read history file {path}: {exc}") from exc
