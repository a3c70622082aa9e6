"""Canonical Pydantic models shared across all geminiauth modules.

This is the single source of truth for data shapes in the project.  The
models fall into three groups:

**Credential models** -- the discriminated union produced by the resolver and
consumed by the strategies:
    :class:`APIKeyCredentials`, :class:`AccessTokenCredentials`,
    :class:`ServiceAccountKeyFileCredentials`,
    :class:`ServiceAccountDataCredentials`, :class:`PreSignedJWTCredentials`,
    joined as :data:`Credentials` on the ``kind`` field.

**Configuration models** -- per-call overrides and static settings:
    :class:`AuthOptions`, :class:`VertexSettings`, :class:`AuthSettings`.

**Token models** -- service-account key material and JWT claims:
    :class:`ServiceAccountKey`, :class:`JWTPayload`, :class:`AuthInfo`.

Credential and option models are frozen: a resolved bundle belongs to the
call that produced it and is never mutated afterwards.  "Updating" a
credential (e.g. after a refresh) means ``model_copy(update=...)``.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

DEFAULT_LOCATION = "us-central1"
DEFAULT_TOKEN_LIFETIME = 3600


# --- Strategy selector ---


class AuthStrategyKind(str, enum.Enum):
    """Selects which :class:`~geminiauth.auth.base.AuthStrategy` handles a request."""

    API_KEY = "gemini"
    SERVICE_ACCOUNT = "vertex_ai"

    @property
    def label(self) -> str:
        """Human-readable provider name used in error prefixes."""
        return "Gemini" if self is AuthStrategyKind.API_KEY else "Vertex AI"


# --- Credentials ---


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class APIKeyCredentials(_FrozenModel):
    """A Gemini API key."""

    kind: Literal["api_key"] = "api_key"
    api_key: str


class VertexCredentials(_FrozenModel):
    """Fields shared by every service-account family credential."""

    project_id: Optional[str] = None
    location: Optional[str] = None


class AccessTokenCredentials(VertexCredentials):
    """A ready-to-use OAuth2 access token."""

    kind: Literal["access_token"] = "access_token"
    access_token: str


class ServiceAccountKeyFileCredentials(VertexCredentials):
    """Path to a service-account JSON key file.

    ``access_token`` is only populated by
    :meth:`~geminiauth.strategies.service_account.ServiceAccountStrategy.refresh_credentials`.
    """

    kind: Literal["service_account_key"] = "service_account_key"
    key_path: str
    access_token: Optional[str] = None


class ServiceAccountDataCredentials(VertexCredentials):
    """Inline service-account key material (the parsed JSON key file)."""

    kind: Literal["service_account_data"] = "service_account_data"
    data: dict[str, Any]
    access_token: Optional[str] = None


class PreSignedJWTCredentials(VertexCredentials):
    """A JWT that has already been signed elsewhere."""

    kind: Literal["jwt_token"] = "jwt_token"
    jwt_token: str


Credentials = Annotated[
    Union[
        APIKeyCredentials,
        AccessTokenCredentials,
        ServiceAccountKeyFileCredentials,
        ServiceAccountDataCredentials,
        PreSignedJWTCredentials,
    ],
    Field(discriminator="kind"),
]

_credentials_adapter: TypeAdapter[Credentials] = TypeAdapter(Credentials)


def parse_credentials(data: dict[str, Any]) -> Credentials:
    """Validate a plain dict (carrying a ``kind`` tag) into a credential model.

    Raises:
        pydantic.ValidationError: If the tag is unknown or fields are invalid.
    """
    return _credentials_adapter.validate_python(data)


# --- Configuration ---


class AuthOptions(_FrozenModel):
    """Per-call credential overrides.

    Every field is optional; a present value here wins over the environment
    and static settings during resolution.

    Example::

        AuthOptions(api_key="sk-live-123")
        AuthOptions(project_id="my-project", access_token="ya29....")
    """

    api_key: Optional[str] = None
    project_id: Optional[str] = None
    location: Optional[str] = None
    access_token: Optional[str] = None
    service_account_key: Optional[str] = Field(
        default=None, description="Path to a service-account JSON key file"
    )
    service_account_data: Optional[dict[str, Any]] = Field(
        default=None, description="Inline service-account key material"
    )


class VertexSettings(BaseModel):
    """Static Vertex AI settings."""

    project_id: Optional[str] = None
    location: Optional[str] = None
    access_token: Optional[str] = None
    service_account_key: Optional[str] = None
    service_account_data: Optional[dict[str, Any]] = None


class AuthSettings(BaseModel):
    """Application-level static configuration, the lowest precedence layer.

    Serialised as JSON (see :func:`geminiauth.config.load_settings`)::

        {
          "gemini_api_key": "...",
          "vertex": {"project_id": "my-project", "location": "europe-west4"}
        }
    """

    gemini_api_key: Optional[str] = None
    vertex: VertexSettings = Field(default_factory=VertexSettings)


# --- Token material ---


class ServiceAccountKey(BaseModel):
    """Parsed Google Cloud service-account key file.

    Unknown keys in the source JSON are ignored; absent keys become ``None``.
    Signing requires non-empty ``client_email`` and ``private_key``.
    """

    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    project_id: Optional[str] = None
    private_key_id: Optional[str] = None
    private_key: Optional[str] = None
    client_email: Optional[str] = None
    client_id: Optional[str] = None
    auth_uri: Optional[str] = None
    token_uri: Optional[str] = None
    auth_provider_x509_cert_url: Optional[str] = None
    client_x509_cert_url: Optional[str] = None


class JWTPayload(BaseModel):
    """Time-bounded JWT claim set.

    Attributes use descriptive names; the registered claim names (``iss``,
    ``aud``, ``sub``, ``iat``, ``exp``) are the aliases and are what
    :meth:`claims` emits.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    issuer: str = Field(alias="iss")
    audience: str = Field(alias="aud")
    subject: str = Field(alias="sub")
    issued_at: int = Field(alias="iat")
    expiry: int = Field(alias="exp")

    def claims(self) -> dict[str, Any]:
        """Return the claim dict as it appears on the wire."""
        return self.model_dump(by_alias=True)


class AuthInfo(BaseModel):
    """What a strategy learned while authenticating a credential."""

    auth_type: str
    token: Optional[str] = None
    client_email: Optional[str] = None
    project_id: Optional[str] = None
