"""Gemini API key strategy.

This module provides :class:`APIKeyStrategy`, which implements the
``gemini`` strategy kind.  The key is sent unchanged in the
``x-goog-api-key`` header; keys do not expire, so refreshing is a no-op.

The key deliberately does not go in ``Authorization: Bearer``: the
Generative Language API only accepts API keys through ``x-goog-api-key``
(or a ``key`` query parameter).

See Also:
    :class:`geminiauth.auth.base.AuthStrategy` for the base interface.
"""

from __future__ import annotations

from geminiauth.auth.base import AuthStrategy, Header, normalize_model
from geminiauth.exceptions import CredentialFormatError
from geminiauth.models import APIKeyCredentials, AuthInfo, AuthStrategyKind, Credentials

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
API_KEY_HEADER = "x-goog-api-key"


class APIKeyStrategy(AuthStrategy):
    """Authenticate Gemini API requests with a static API key."""

    @property
    def kind(self) -> AuthStrategyKind:
        return AuthStrategyKind.API_KEY

    @staticmethod
    def _api_key(credentials: Credentials) -> str:
        if not isinstance(credentials, APIKeyCredentials):
            raise CredentialFormatError(
                f"Gemini API key strategy cannot use {credentials.kind} credentials"
            )
        return credentials.api_key

    def authenticate(self, credentials: Credentials) -> AuthInfo:
        """Check that the credentials carry a non-empty API key.

        Raises:
            CredentialFormatError: If *credentials* is not an API key or the
                key is blank.
        """
        api_key = self._api_key(credentials)
        if not api_key.strip():
            raise CredentialFormatError("Invalid Gemini API key")
        return AuthInfo(auth_type="api_key")

    def headers(self, credentials: Credentials) -> list[Header]:
        return [
            ("Content-Type", "application/json"),
            (API_KEY_HEADER, self._api_key(credentials)),
        ]

    def base_url(self, credentials: Credentials) -> str:
        return GEMINI_BASE_URL

    def build_path(self, model: str, endpoint: str, credentials: Credentials) -> str:
        return f"{normalize_model(model)}:{endpoint}"

    def models_path(self, credentials: Credentials) -> str:
        return "models"
