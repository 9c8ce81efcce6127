"""Centralized configuration — every tunable in one place.

Environment variables override defaults. Import anywhere:

    from settings import settings

All values are frozen at startup. To change, update .env and restart.
Library code (context_manager, agent, providers) never imports this
module; only the CLI reads it and passes values in explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
_project_root = Path(__file__).resolve().parent
load_dotenv(_project_root / ".env")


# ── Helpers ───────────────────────────────────────────────────────────────

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int = 0) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float = 0.0) -> float:
    return float(os.getenv(key, str(default)))


def _env_bool(key: str, default: bool = False) -> bool:
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# ── Settings ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    """Application settings.  Immutable after creation."""

    # ── LLM Provider ──────────────────────────────────────────────
    # Supported: openai, anthropic, cerebras
    LLM_PROVIDER: str = _env("LLM_PROVIDER", "openai")
    LLM_API_KEY: str = _env("LLM_API_KEY", _env("OPENAI_API_KEY"))
    LLM_MODEL: str = _env("LLM_MODEL", "gpt-4o-mini")
    # Optional: override API endpoint (Azure OpenAI, vLLM, Ollama, etc.)
    LLM_BASE_URL: str = _env("LLM_BASE_URL")
    # Per-request timeout handed to the SDK client, in seconds.
    LLM_TIMEOUT: float = _env_float("LLM_TIMEOUT", 60.0)

    # ── Chat ──────────────────────────────────────────────────────
    CHAT_TEMPERATURE: float = _env_float("CHAT_TEMPERATURE", 0.7)
    MAX_RESPONSE_TOKENS: int = _env_int("MAX_RESPONSE_TOKENS", 1024)
    SYSTEM_PROMPT: str = _env("SYSTEM_PROMPT", "You are a helpful assistant.")

    # ── Context Compression ───────────────────────────────────────
    # Oldest uncompressed messages summarized together as one block.
    COMPRESSION_WINDOW: int = _env_int("COMPRESSION_WINDOW", 10)
    # Newest messages that are always sent verbatim.
    RECENT_WINDOW: int = _env_int("RECENT_WINDOW", 6)
    SUMMARY_TEMPERATURE: float = _env_float("SUMMARY_TEMPERATURE", 0.3)
    MAX_SUMMARY_TOKENS: int = _env_int("MAX_SUMMARY_TOKENS", 150)

    # ── Persistence ───────────────────────────────────────────────
    HISTORY_FILE: str = _env("HISTORY_FILE", "conversation_history.json")

    # ── Logging ───────────────────────────────────────────────────
    LOG_LEVEL: str = _env("LOG_LEVEL", "INFO").upper()


settings = Settings()
