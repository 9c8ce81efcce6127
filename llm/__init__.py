"""LLM package — completion gateway providers and their error types.

For new code, import from submodules directly::

    from llm.providers import create_provider
    from llm.errors import GatewayError
"""

from .errors import EmptyCompletion, GatewayError, LLMError
from .providers import Completion, LLMProvider, create_provider

__all__ = [
    "Completion",
    "EmptyCompletion",
    "GatewayError",
    "LLMError",
    "LLMProvider",
    "create_provider",
]
