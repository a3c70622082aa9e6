"""Vertex AI service-account authentication strategy.

Implements the ``vertex_ai`` strategy kind: access tokens, pre-signed JWTs,
and service-account keys (file or inline) exchanged for OAuth2 access tokens.

See Also:
    :class:`~geminiauth.strategies.service_account.strategy.ServiceAccountStrategy`
    :class:`~geminiauth.auth.jwt.JWTManager` for JWT signing.
"""

from geminiauth.strategies.service_account.strategy import (
    DEFAULT_TOKEN_URI,
    ERROR_PLACEHOLDER_TOKEN,
    VERTEX_AI_SCOPES,
    ServiceAccountStrategy,
)

__all__ = [
    "DEFAULT_TOKEN_URI",
    "ERROR_PLACEHOLDER_TOKEN",
    "ServiceAccountStrategy",
    "VERTEX_AI_SCOPES",
]
