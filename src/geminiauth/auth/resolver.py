"""Precedence-ordered credential resolution.

:class:`CredentialResolver` turns a strategy kind plus per-call overrides into
exactly one :data:`~geminiauth.models.Credentials` model.  Three layers are
consulted, highest precedence first:

1. Per-call overrides (:class:`~geminiauth.models.AuthOptions`)
2. Environment variables (see :mod:`geminiauth.config` for the names)
3. Static settings (:class:`~geminiauth.models.AuthSettings`)

The environment and settings are snapshotted once per :meth:`resolve` call
into a :class:`ResolutionSources` value and passed down, so a single
resolution never observes two different views of the configuration.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, NamedTuple, Optional, Union

from geminiauth.config import (
    ACCESS_TOKEN_ENV,
    APPLICATION_CREDENTIALS_ENV,
    GEMINI_API_KEY_ENV,
    LOCATION_ENVS,
    PROJECT_ID_ENVS,
    SERVICE_ACCOUNT_KEY_ENVS,
    first_env,
    load_settings,
)
from geminiauth.exceptions import ConfigurationError, UnknownStrategyError
from geminiauth.models import (
    DEFAULT_LOCATION,
    AccessTokenCredentials,
    APIKeyCredentials,
    AuthOptions,
    AuthSettings,
    AuthStrategyKind,
    Credentials,
    ServiceAccountDataCredentials,
    ServiceAccountKeyFileCredentials,
)

logger = logging.getLogger(__name__)


class ResolutionSources(NamedTuple):
    """Immutable view of every configuration layer for one resolution."""

    options: AuthOptions
    environ: Mapping[str, str]
    settings: AuthSettings


def _first_present(*values: Any) -> Any:
    """Return the first value that is neither ``None`` nor empty."""
    for value in values:
        if value is not None and value != "" and value != {}:
            return value
    return None


def coerce_kind(kind: Union[AuthStrategyKind, str]) -> AuthStrategyKind:
    """Convert a strategy selector into :class:`AuthStrategyKind`.

    Raises:
        UnknownStrategyError: If *kind* names no known strategy.
    """
    if isinstance(kind, AuthStrategyKind):
        return kind
    try:
        return AuthStrategyKind(kind)
    except ValueError:
        raise UnknownStrategyError(
            f"Unknown authentication strategy: {kind!r}"
        ) from None


class CredentialResolver:
    """Resolve credential bundles from overrides, environment and settings.

    Args:
        settings: Fixed static settings.  When ``None`` (the default),
            *settings_loader* is called on every resolution.
        environ: Environment mapping to snapshot.  Defaults to
            :data:`os.environ`.
        settings_loader: Callable returning the current settings.
    """

    def __init__(
        self,
        settings: Optional[AuthSettings] = None,
        environ: Optional[Mapping[str, str]] = None,
        settings_loader: Callable[[], AuthSettings] = load_settings,
    ) -> None:
        self._settings = settings
        self._environ = environ
        self._settings_loader = settings_loader

    def sources(self, options: Optional[AuthOptions] = None) -> ResolutionSources:
        """Snapshot every configuration layer."""
        environ = self._environ if self._environ is not None else os.environ
        settings = self._settings if self._settings is not None else self._settings_loader()
        return ResolutionSources(
            options=options or AuthOptions(),
            environ=MappingProxyType(dict(environ)),
            settings=settings,
        )

    def resolve(
        self,
        kind: Union[AuthStrategyKind, str],
        options: Optional[AuthOptions] = None,
    ) -> Credentials:
        """Resolve credentials for *kind*.

        Args:
            kind: The strategy to resolve credentials for.
            options: Per-call overrides.

        Returns:
            A freshly built credential model, owned by the caller.

        Raises:
            ConfigurationError: If a required field cannot be resolved.
            UnknownStrategyError: If *kind* is not a known strategy.
        """
        kind = coerce_kind(kind)
        sources = self.sources(options)
        if kind is AuthStrategyKind.API_KEY:
            return self._resolve_api_key(sources)
        return self._resolve_service_account(sources)

    # --- Strategies ---

    @staticmethod
    def _resolve_api_key(sources: ResolutionSources) -> APIKeyCredentials:
        api_key = _first_present(
            sources.options.api_key,
            first_env(sources.environ, GEMINI_API_KEY_ENV),
            sources.settings.gemini_api_key,
        )
        if not isinstance(api_key, str) or not api_key:
            raise ConfigurationError("Missing or invalid Gemini API key")
        return APIKeyCredentials(api_key=api_key)

    def _resolve_service_account(self, sources: ResolutionSources) -> Credentials:
        options, environ, vertex = sources.options, sources.environ, sources.settings.vertex

        project_id = _first_present(
            options.project_id,
            first_env(environ, *PROJECT_ID_ENVS),
            vertex.project_id,
        )
        if not project_id:
            raise ConfigurationError("Missing Vertex AI project_id")

        location = _first_present(
            options.location,
            first_env(environ, *LOCATION_ENVS),
            vertex.location,
            DEFAULT_LOCATION,
        )
        if not location:
            raise ConfigurationError("Missing Vertex AI location")

        routing = {"project_id": project_id, "location": location}
        credentials = self._resolve_auth_method(sources, routing)
        if credentials is None:
            raise ConfigurationError("Missing Vertex AI authentication method")
        logger.debug(
            "Resolved Vertex AI credentials (%s) for project %s in %s",
            credentials.kind,
            project_id,
            location,
        )
        return credentials

    @staticmethod
    def _resolve_auth_method(
        sources: ResolutionSources, routing: dict[str, str]
    ) -> Optional[Credentials]:
        """Pick the authentication method, stopping at the first present one.

        Order: per-call access token, key file path, inline key data,
        configured access token, ``GOOGLE_APPLICATION_CREDENTIALS``.
        """
        options, environ, vertex = sources.options, sources.environ, sources.settings.vertex

        if options.access_token:
            return AccessTokenCredentials(access_token=options.access_token, **routing)

        key_path = _first_present(
            options.service_account_key,
            first_env(environ, *SERVICE_ACCOUNT_KEY_ENVS),
            vertex.service_account_key,
        )
        if key_path:
            return ServiceAccountKeyFileCredentials(key_path=key_path, **routing)

        data = _first_present(options.service_account_data, vertex.service_account_data)
        if data:
            return ServiceAccountDataCredentials(data=dict(data), **routing)

        token = _first_present(first_env(environ, ACCESS_TOKEN_ENV), vertex.access_token)
        if token:
            return AccessTokenCredentials(access_token=token, **routing)

        ambient = first_env(environ, APPLICATION_CREDENTIALS_ENV)
        if ambient:
            logger.debug("Falling back to %s", APPLICATION_CREDENTIALS_ENV)
            return ServiceAccountKeyFileCredentials(key_path=ambient, **routing)

        return None
