"""Pytest conftest — ensure the repo root is importable for flat module imports."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add the repo root to sys.path so `import context_manager`, `from llm.errors import ...` etc. work
_root_dir = str(Path(__file__).resolve().parent.parent)
if _root_dir not in sys.path:
    sys.path.insert(0, _root_dir)

from llm.providers.base import Completion  # noqa: E402


@pytest.fixture
def gateway():
    """Gateway double: every call returns a numbered summary."""
    fake = MagicMock()
    fake.name = "fake"
    fake.model = "gpt-4o-mini"
    counter = {"n": 0}

    def _complete(messages, **kwargs):
        counter["n"] += 1
        return Completion(
            text=f"summary {counter['n']}",
            finish_reason="stop",
            model="gpt-4o-mini",
            prompt_tokens=100,
            completion_tokens=20,
            total_tokens=120,
        )

    fake.complete.side_effect = _complete
    return fake
