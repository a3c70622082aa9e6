"""Exception hierarchy for geminiauth.

All exceptions inherit from :class:`GeminiAuthError`.  Each layer of the
auth pipeline (resolver, strategy, coordinator) raises one of the typed
subclasses below; the coordinator re-raises with a strategy-scoped prefix
via :meth:`GeminiAuthError.with_prefix` so that the type survives while the
message gains context.

Subclass hierarchy::

    GeminiAuthError
    +-- ConfigurationError
    |   +-- KeyFileReadError
    +-- CredentialFormatError
    |   +-- KeyFileParseError
    +-- SigningError
    |   +-- TokenExchangeError
    +-- TransportError
    +-- UnknownStrategyError
"""

from __future__ import annotations

import copy
from typing import Optional, TypeVar

_E = TypeVar("_E", bound="GeminiAuthError")


class GeminiAuthError(Exception):
    """Base exception for all geminiauth errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def with_prefix(self: _E, prefix: str) -> _E:
        """Return a copy of this error with *prefix* prepended to the message.

        The copy keeps the concrete type and any extra attributes
        (``status_code``, ``body``, ...), so callers can still branch on the
        error class after the coordinator has added context.
        """
        prefixed = copy.copy(self)
        prefixed.message = f"{prefix}: {self.message}"
        prefixed.args = (prefixed.message,)
        return prefixed

    def __str__(self) -> str:
        return self.message


class ConfigurationError(GeminiAuthError):
    """Raised when required configuration is missing (project id, location, API key, auth method)."""


class KeyFileReadError(ConfigurationError):
    """Raised when a service-account key file cannot be read from disk."""


class CredentialFormatError(GeminiAuthError):
    """Raised for malformed credential material (bad JSON, missing fields, invalid JWT structure)."""


class KeyFileParseError(CredentialFormatError):
    """Raised when a service-account key file does not contain valid JSON."""


class SigningError(GeminiAuthError):
    """Raised when a JWT cannot be signed locally or the remote signing call is rejected.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the remote endpoint, if any.
        body: Raw response body returned by the remote endpoint, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TokenExchangeError(SigningError):
    """Raised when the OAuth2 token endpoint rejects a signed assertion."""


class TransportError(GeminiAuthError):
    """Raised on network-level failures reaching a credential endpoint.

    Named distinctly from the built-in ``ConnectionError`` so both can be
    caught independently.
    """


class UnknownStrategyError(GeminiAuthError):
    """Raised when a strategy selector does not name a registered strategy."""
