"""LLM provider factory.

Returns a provider instance for an explicit name + credentials.  Provider
SDKs are imported lazily — only the selected provider's SDK needs to be
installed.

Usage:
    from llm.providers import create_provider
    gateway = create_provider("openai", api_key=key)
    completion = gateway.complete(messages)
"""

from __future__ import annotations

import logging

from .base import Completion, LLMProvider

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "anthropic", "cerebras")

__all__ = [
    "Completion",
    "LLMProvider",
    "SUPPORTED_PROVIDERS",
    "create_provider",
    "provider_from_settings",
]


def create_provider(
    name: str,
    *,
    api_key: str,
    model: str = "",
    base_url: str = "",
    timeout: float | None = None,
) -> LLMProvider:
    """Instantiate the named provider with explicit configuration."""
    name = (name or "").lower()
    if name not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unknown LLM provider: '{name}'.  "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    if not api_key:
        raise ValueError(f"No API key configured for provider '{name}'")

    if name == "openai":
        from .openai import OpenAIProvider

        return OpenAIProvider(
            api_key=api_key, model=model, base_url=base_url, timeout=timeout,
        )
    elif name == "anthropic":
        from .anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model, timeout=timeout)
    else:
        from .cerebras import CerebrasProvider

        return CerebrasProvider(api_key=api_key, model=model, timeout=timeout)


def provider_from_settings(settings) -> LLMProvider:
    """Build the provider described by a ``Settings`` object."""
    return create_provider(
        settings.LLM_PROVIDER,
        api_key=settings.LLM_API_KEY,
        model=settings.LLM_MODEL,
        base_url=settings.LLM_BASE_URL,
        timeout=settings.LLM_TIMEOUT,
    )
