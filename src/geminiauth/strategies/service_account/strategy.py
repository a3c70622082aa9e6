"""Vertex AI strategy using OAuth2 access tokens and service accounts.

This module provides :class:`ServiceAccountStrategy`, which implements the
``vertex_ai`` strategy kind.  It accepts four credential shapes:

* :class:`~geminiauth.models.AccessTokenCredentials` -- used as-is.
* :class:`~geminiauth.models.PreSignedJWTCredentials` -- used as-is after a
  structural check.
* :class:`~geminiauth.models.ServiceAccountKeyFileCredentials` and
  :class:`~geminiauth.models.ServiceAccountDataCredentials` -- a self-signed
  assertion (:rfc:`7523`) is exchanged at the key's token endpoint for an
  access token.

Header construction never raises.  If a service-account token cannot be
generated, :meth:`ServiceAccountStrategy.headers` logs a warning and returns
a syntactically valid placeholder; the real failure is reported by
:meth:`~ServiceAccountStrategy.authenticate` or
:meth:`~ServiceAccountStrategy.generate_access_token`.

See Also:
    :class:`geminiauth.auth.base.AuthStrategy` for the base interface.
    :class:`geminiauth.auth.jwt.JWTManager` for signing.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any, Callable, Optional

import httpx
from pydantic import ValidationError

from geminiauth.auth.base import AuthStrategy, Header, normalize_model
from geminiauth.auth.jwt import JWTManager
from geminiauth.exceptions import (
    ConfigurationError,
    CredentialFormatError,
    GeminiAuthError,
    TokenExchangeError,
    TransportError,
)
from geminiauth.models import (
    DEFAULT_TOKEN_LIFETIME,
    AccessTokenCredentials,
    AuthInfo,
    AuthStrategyKind,
    Credentials,
    PreSignedJWTCredentials,
    ServiceAccountDataCredentials,
    ServiceAccountKey,
    ServiceAccountKeyFileCredentials,
    VertexCredentials,
)

logger = logging.getLogger(__name__)

VERTEX_AI_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
REQUIRED_SERVICE_ACCOUNT_FIELDS = ("client_email", "private_key", "project_id")

ERROR_PLACEHOLDER_TOKEN = "service-account-error-token"
DEFAULT_PLACEHOLDER_TOKEN = "default-credentials-token"

_SERVICE_ACCOUNT_SHAPES = (ServiceAccountKeyFileCredentials, ServiceAccountDataCredentials)


def _routing(credentials: Credentials) -> tuple[Optional[str], Optional[str]]:
    if isinstance(credentials, VertexCredentials):
        return credentials.project_id, credentials.location
    return None, None


class ServiceAccountStrategy(AuthStrategy):
    """Authenticate Vertex AI requests with OAuth2 bearer tokens.

    Args:
        jwt_manager: Signs token-exchange assertions.  Defaults to a
            :class:`~geminiauth.auth.jwt.JWTManager` with the RS256 signer.
        timeout: Timeout in seconds for the token endpoint request.
        clock: Returns the current Unix time; injectable for tests.
    """

    def __init__(
        self,
        jwt_manager: Optional[JWTManager] = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._jwt = jwt_manager or JWTManager()
        self._timeout = timeout
        self._clock = clock

    @property
    def kind(self) -> AuthStrategyKind:
        return AuthStrategyKind.SERVICE_ACCOUNT

    # --- Authentication ---

    def authenticate(self, credentials: Credentials) -> AuthInfo:
        """Validate *credentials* according to their shape.

        Raises:
            CredentialFormatError: On a blank access token, a JWT without a
                ``.`` separator, unparsable key JSON or missing key fields.
            KeyFileReadError: If a key file cannot be read.
        """
        if isinstance(credentials, AccessTokenCredentials):
            if not credentials.access_token:
                raise CredentialFormatError("Invalid access token")
            return AuthInfo(
                auth_type="access_token",
                token=credentials.access_token,
                project_id=credentials.project_id,
            )

        if isinstance(credentials, PreSignedJWTCredentials):
            if "." not in credentials.jwt_token:
                raise CredentialFormatError("Invalid JWT token format")
            return AuthInfo(
                auth_type="jwt_token",
                token=credentials.jwt_token,
                project_id=credentials.project_id,
            )

        if isinstance(credentials, ServiceAccountKeyFileCredentials):
            key = self._jwt.load_service_account_key(credentials.key_path)
            return self.validate_service_account_data(key.model_dump())

        if isinstance(credentials, ServiceAccountDataCredentials):
            return self.validate_service_account_data(credentials.data)

        raise CredentialFormatError(
            f"Vertex AI strategy cannot use {credentials.kind} credentials"
        )

    @staticmethod
    def validate_service_account_data(data: Mapping[str, Any]) -> AuthInfo:
        """Check that inline key material carries every required field.

        Raises:
            CredentialFormatError: Naming the first missing field among
                ``client_email``, ``private_key`` and ``project_id``.
        """
        for field in REQUIRED_SERVICE_ACCOUNT_FIELDS:
            if not data.get(field):
                raise CredentialFormatError(
                    f"Service account data missing required field: {field}"
                )
        return AuthInfo(
            auth_type="service_account",
            client_email=data["client_email"],
            project_id=data["project_id"],
        )

    # --- Token generation ---

    def _service_account_key(self, credentials: Credentials) -> ServiceAccountKey:
        if isinstance(credentials, ServiceAccountKeyFileCredentials):
            key = self._jwt.load_service_account_key(credentials.key_path)
        elif isinstance(credentials, ServiceAccountDataCredentials):
            try:
                key = ServiceAccountKey.model_validate(credentials.data)
            except ValidationError as exc:
                raise CredentialFormatError(
                    f"Invalid service account data: {exc}"
                ) from exc
        else:
            raise ConfigurationError("No service account credentials provided")
        self.validate_service_account_data(key.model_dump())
        return key

    def generate_access_token(self, credentials: Credentials) -> str:
        """Exchange service-account material for an OAuth2 access token.

        Signs an assertion scoped to :data:`VERTEX_AI_SCOPES` and posts it to
        the key's ``token_uri`` (default :data:`DEFAULT_TOKEN_URI`).

        Raises:
            ConfigurationError: If *credentials* carries no service account.
            CredentialFormatError: If the key material is incomplete.
            SigningError: If the assertion cannot be signed.
            TokenExchangeError: If the token endpoint rejects the assertion.
            TransportError: If the token endpoint cannot be reached.
        """
        key = self._service_account_key(credentials)
        token_uri = key.token_uri or DEFAULT_TOKEN_URI
        now = int(self._clock())
        claims = {
            "iss": key.client_email,
            "scope": " ".join(VERTEX_AI_SCOPES),
            "aud": token_uri,
            "iat": now,
            "exp": now + DEFAULT_TOKEN_LIFETIME,
        }
        assertion = self._jwt.sign_claims(claims, key.private_key, key.private_key_id)
        logger.debug("Exchanging service account assertion for %s", key.client_email)
        return self._exchange_assertion(assertion, token_uri)

    def _exchange_assertion(self, assertion: str, token_uri: str) -> str:
        try:
            response = httpx.post(
                token_uri,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                headers={"Accept": "application/json"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Token request failed: {exc}") from exc

        if response.status_code != 200:
            raise TokenExchangeError(
                f"Token request failed with status {response.status_code}: "
                f"{response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            token_data = response.json()
        except ValueError as exc:
            raise TokenExchangeError(
                f"Failed to parse token response: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            raise TokenExchangeError("Token response missing 'access_token' field")
        return access_token

    # --- Headers and routing ---

    def _bearer_token(self, credentials: Credentials) -> str:
        if isinstance(credentials, AccessTokenCredentials):
            return credentials.access_token
        if isinstance(credentials, PreSignedJWTCredentials):
            return credentials.jwt_token
        if isinstance(credentials, _SERVICE_ACCOUNT_SHAPES):
            if credentials.access_token:
                return credentials.access_token
            try:
                return self.generate_access_token(credentials)
            except GeminiAuthError as exc:
                logger.warning(
                    "Service account token generation failed, sending placeholder: %s",
                    exc,
                )
                return ERROR_PLACEHOLDER_TOKEN
        return DEFAULT_PLACEHOLDER_TOKEN

    def headers(self, credentials: Credentials) -> list[Header]:
        """Build ``Authorization: Bearer`` headers.  Never raises."""
        return [
            ("Content-Type", "application/json"),
            ("Authorization", f"Bearer {self._bearer_token(credentials)}"),
        ]

    def base_url(self, credentials: Credentials) -> str:
        """Return the regional Vertex AI endpoint.

        Raises:
            ConfigurationError: If project id and/or location are missing.
        """
        project_id, location = _routing(credentials)
        if not project_id and not location:
            raise ConfigurationError(
                "Project ID and Location are required for Vertex AI base URL"
            )
        if not location:
            raise ConfigurationError("Location is required for Vertex AI base URL")
        if not project_id:
            raise ConfigurationError("Project ID is required for Vertex AI base URL")
        return f"https://{location}-aiplatform.googleapis.com/v1"

    def build_path(self, model: str, endpoint: str, credentials: Credentials) -> str:
        project_id, location = _routing(credentials)
        if not project_id or not location:
            return f"{normalize_model(model)}:{endpoint}"
        return (
            f"projects/{project_id}/locations/{location}/publishers/google/"
            f"{normalize_model(model)}:{endpoint}"
        )

    def models_path(self, credentials: Credentials) -> str:
        project_id, location = _routing(credentials)
        if not project_id or not location:
            return "models"
        return f"projects/{project_id}/locations/{location}/publishers/google/models"

    # --- Refresh ---

    def refresh_credentials(self, credentials: Credentials) -> Credentials:
        """Attach a freshly generated access token to service-account credentials.

        Access-token and pre-signed JWT credentials are returned unchanged.
        The input is never mutated.

        Raises:
            GeminiAuthError: Any error from :meth:`generate_access_token`.
        """
        if isinstance(credentials, _SERVICE_ACCOUNT_SHAPES):
            access_token = self.generate_access_token(credentials)
            return credentials.model_copy(update={"access_token": access_token})
        return credentials
