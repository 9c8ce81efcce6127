"""Error taxonomy for the completion gateway.

Every provider translates its SDK's exceptions into these, so callers
only ever catch ``LLMError``.
"""

from __future__ import annotations


class LLMError(Exception):
    """Base class for all gateway failures."""


class GatewayError(LLMError):
    """The gateway call failed (network, auth, rate limit, bad request…).

    The original exception is kept on ``cause`` (and as ``__cause__`` when
    raised with ``from``).
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class EmptyCompletion(LLMError):
    """The gateway answered but returned no choices."""
