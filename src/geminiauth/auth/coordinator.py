"""Multi-auth coordinator -- registry and facade for auth strategies.

The :class:`MultiAuthCoordinator` is the central entry point of the package.
It maps :class:`~geminiauth.models.AuthStrategyKind` values to concrete
:class:`~geminiauth.auth.base.AuthStrategy` instances, resolves credentials
through a :class:`~geminiauth.auth.resolver.CredentialResolver`, and hands
back headers and routing for the external transport.

Every call is independent: nothing is cached between calls and the
coordinator holds no per-request state.

For most use cases, call :func:`create_default_coordinator` to get a
coordinator pre-loaded with both built-in strategies.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional, Union

from geminiauth.auth.base import AuthResult, AuthStrategy, RequestTarget
from geminiauth.auth.resolver import CredentialResolver, coerce_kind
from geminiauth.exceptions import CredentialFormatError, GeminiAuthError, UnknownStrategyError
from geminiauth.models import AuthOptions, AuthStrategyKind, Credentials

logger = logging.getLogger(__name__)

StrategySelector = Union[AuthStrategyKind, str]


class MultiAuthCoordinator:
    """Registry and dispatcher for authentication strategies.

    Args:
        resolver: Credential resolver.  Defaults to one reading
            ``os.environ`` and the settings file on every call.

    Example::

        from geminiauth import AuthOptions, AuthStrategyKind, create_default_coordinator

        coordinator = create_default_coordinator()
        result = coordinator.coordinate_auth(
            AuthStrategyKind.API_KEY, AuthOptions(api_key="sk-live-123")
        )
        result.headers  # [("Content-Type", ...), ("x-goog-api-key", "sk-live-123")]
    """

    def __init__(self, resolver: Optional[CredentialResolver] = None) -> None:
        self._resolver = resolver or CredentialResolver()
        self._strategies: dict[AuthStrategyKind, AuthStrategy] = {}

    def register(self, strategy: AuthStrategy) -> None:
        """Register a strategy, keyed by its :attr:`~AuthStrategy.kind`.

        A strategy already registered for the same kind is replaced.
        """
        self._strategies[strategy.kind] = strategy

    def get_strategy(self, kind: StrategySelector) -> AuthStrategy:
        """Retrieve the strategy registered for *kind*.

        Raises:
            UnknownStrategyError: If *kind* is unknown or has no registered
                strategy.
        """
        strategy = self._strategies.get(coerce_kind(kind))
        if strategy is None:
            raise UnknownStrategyError(f"Unknown authentication strategy: {kind!r}")
        return strategy

    def list_kinds(self) -> list[AuthStrategyKind]:
        """Return the registered strategy kinds, sorted by value."""
        return sorted(self._strategies, key=lambda kind: kind.value)

    # --- Coordination ---

    def get_credentials(
        self,
        kind: StrategySelector,
        options: Optional[AuthOptions] = None,
    ) -> Credentials:
        """Resolve credentials for *kind* from overrides, environment and settings."""
        return self._resolver.resolve(kind, options)

    def coordinate_auth(
        self,
        kind: StrategySelector,
        options: Optional[AuthOptions] = None,
    ) -> AuthResult:
        """Resolve, authenticate and build headers for one request.

        Args:
            kind: Which strategy to use.
            options: Per-call credential overrides.

        Returns:
            An :class:`~geminiauth.auth.base.AuthResult` with the strategy,
            headers and resolved credentials.

        Raises:
            UnknownStrategyError: If *kind* has no registered strategy.
            GeminiAuthError: Any resolution or authentication failure,
                re-raised with its original type and a
                ``"Gemini auth failed: "`` / ``"Vertex AI auth failed: "``
                prefix.
        """
        strategy = self.get_strategy(kind)
        try:
            credentials = self._resolver.resolve(strategy.kind, options)
            strategy.authenticate(credentials)
        except GeminiAuthError as exc:
            raise exc.with_prefix(f"{strategy.kind.label} auth failed") from exc
        logger.debug("Authenticated %s request with %s", strategy.kind.value, credentials.kind)
        return AuthResult(strategy.kind, strategy.headers(credentials), credentials)

    def prepare_request(
        self,
        kind: StrategySelector,
        model: str,
        endpoint: str,
        options: Optional[AuthOptions] = None,
    ) -> RequestTarget:
        """Authenticate and compute headers, base URL and path in one call.

        Raises:
            GeminiAuthError: As for :meth:`coordinate_auth`, or a
                :class:`~geminiauth.exceptions.ConfigurationError` from
                :meth:`get_base_url`.
        """
        result = self.coordinate_auth(kind, options)
        strategy = self.get_strategy(result.strategy)
        return RequestTarget(
            strategy=result.strategy,
            headers=result.headers,
            base_url=strategy.base_url(result.credentials),
            path=strategy.build_path(model, endpoint, result.credentials),
        )

    # --- Inference ---

    @staticmethod
    def determine_strategy(
        credentials: Union[Credentials, Mapping[str, Any]],
    ) -> AuthStrategyKind:
        """Guess the strategy from the shape of *credentials*.

        An ``api_key`` field implies the API key strategy; otherwise a
        ``project_id`` field implies the service-account strategy.  This is a
        heuristic; prefer selecting the strategy explicitly.

        Raises:
            CredentialFormatError: If neither field is present.
        """
        if isinstance(credentials, Mapping):
            fields = credentials
        else:
            fields = credentials.model_dump(exclude_none=True)
        if "api_key" in fields:
            return AuthStrategyKind.API_KEY
        if "project_id" in fields:
            return AuthStrategyKind.SERVICE_ACCOUNT
        raise CredentialFormatError("Cannot determine auth strategy from credentials")

    # --- Delegation ---

    def get_base_url(self, kind: StrategySelector, credentials: Credentials) -> str:
        return self.get_strategy(kind).base_url(credentials)

    def build_path(
        self,
        kind: StrategySelector,
        model: str,
        endpoint: str,
        credentials: Credentials,
    ) -> str:
        return self.get_strategy(kind).build_path(model, endpoint, credentials)

    def models_path(self, kind: StrategySelector, credentials: Credentials) -> str:
        return self.get_strategy(kind).models_path(credentials)

    def refresh_credentials(
        self,
        kind: StrategySelector,
        credentials: Optional[Credentials] = None,
        options: Optional[AuthOptions] = None,
    ) -> Credentials:
        """Refresh *credentials*, resolving them first when not supplied."""
        strategy = self.get_strategy(kind)
        if credentials is None:
            credentials = self._resolver.resolve(strategy.kind, options)
        return strategy.refresh_credentials(credentials)


def create_default_coordinator(
    resolver: Optional[CredentialResolver] = None,
) -> MultiAuthCoordinator:
    """Create a :class:`MultiAuthCoordinator` with both built-in strategies.

    - ``gemini`` -- :class:`~geminiauth.strategies.api_key.APIKeyStrategy`
    - ``vertex_ai`` --
      :class:`~geminiauth.strategies.service_account.ServiceAccountStrategy`
    """
    from geminiauth.strategies.api_key import APIKeyStrategy
    from geminiauth.strategies.service_account import ServiceAccountStrategy

    coordinator = MultiAuthCoordinator(resolver)
    coordinator.register(APIKeyStrategy())
    coordinator.register(ServiceAccountStrategy())
    return coordinator
