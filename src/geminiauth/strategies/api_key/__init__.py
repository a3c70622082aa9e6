"""Gemini API key authentication strategy.

Implements the ``gemini`` strategy kind, which sends a static API key in the
``x-goog-api-key`` header against the Generative Language API.

See Also:
    :class:`~geminiauth.strategies.api_key.strategy.APIKeyStrategy`
    :mod:`geminiauth.auth.base` for the strategy interface contract.
"""

from geminiauth.strategies.api_key.strategy import GEMINI_BASE_URL, APIKeyStrategy

__all__ = ["APIKeyStrategy", "GEMINI_BASE_URL"]
