"""Abstract base class for authentication strategies.

This module defines the foundational types of the auth subsystem:

- :class:`AuthResult` -- the strategy kind, outbound headers and the
  credential bundle produced by one coordination call.
- :class:`RequestTarget` -- everything the transport needs to address a
  model endpoint: headers, base URL and resource path.
- :class:`AuthStrategy` -- the abstract base class every authentication
  strategy must extend.

To implement a new strategy, subclass :class:`AuthStrategy`, set the
:attr:`~AuthStrategy.kind` property, and implement the abstract methods.
Strategies pattern-match on the credential model's type; they never inspect
ad hoc dict keys.

See Also:
    :mod:`geminiauth.auth.coordinator` for strategy registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from geminiauth.models import AuthInfo, AuthStrategyKind, Credentials

Header = tuple[str, str]


class AuthResult:
    """Container for the artifacts of a successful coordination call.

    Args:
        strategy: The strategy that authenticated the request.
        headers: Header name/value pairs to inject into the outbound request.
        credentials: The resolved credential bundle.  Hand it back to
            :meth:`~geminiauth.auth.coordinator.MultiAuthCoordinator.get_base_url`
            and friends for routing.

    Example::

        result = coordinator.coordinate_auth(AuthStrategyKind.API_KEY)
        dict(result.headers)["x-goog-api-key"]
    """

    def __init__(
        self,
        strategy: AuthStrategyKind,
        headers: list[Header],
        credentials: Credentials,
    ):
        self.strategy = strategy
        self.headers = headers
        self.credentials = credentials

    def header_dict(self) -> dict[str, str]:
        """Return the headers as a dict, later duplicates winning."""
        return dict(self.headers)

    def __repr__(self) -> str:
        names = ", ".join(name for name, _ in self.headers)
        return f"AuthResult(strategy={self.strategy.value!r}, headers=[{names}])"


class RequestTarget:
    """Headers plus routing information for one outbound model request.

    Args:
        strategy: The strategy that produced this target.
        headers: Header name/value pairs.
        base_url: API root, without a trailing slash.
        path: Resource path relative to *base_url*.
    """

    def __init__(
        self,
        strategy: AuthStrategyKind,
        headers: list[Header],
        base_url: str,
        path: str,
    ):
        self.strategy = strategy
        self.headers = headers
        self.base_url = base_url
        self.path = path

    @property
    def url(self) -> str:
        """The full request URL."""
        return f"{self.base_url.rstrip('/')}/{self.path.lstrip('/')}"

    def __repr__(self) -> str:
        return f"RequestTarget(strategy={self.strategy.value!r}, url={self.url!r})"


def normalize_model(model: str) -> str:
    """Return *model* with a single ``models/`` prefix."""
    return model if model.startswith("models/") else f"models/{model}"


class AuthStrategy(ABC):
    """Abstract base class for authentication strategies.

    Every concrete strategy must subclass this and provide:

    1. A :attr:`kind` property returning its :class:`AuthStrategyKind`.
    2. :meth:`authenticate` -- validate a credential bundle.
    3. :meth:`headers` -- build outbound headers.
    4. :meth:`base_url` and :meth:`build_path` -- routing.

    Strategies are registered with
    :class:`~geminiauth.auth.coordinator.MultiAuthCoordinator` and looked up
    by their ``kind`` at runtime.
    """

    @property
    @abstractmethod
    def kind(self) -> AuthStrategyKind:
        """Return the strategy kind this class handles."""
        ...

    @abstractmethod
    def authenticate(self, credentials: Credentials) -> AuthInfo:
        """Validate *credentials* and report what was authenticated.

        Raises:
            CredentialFormatError: If the credential shape or content is invalid.
            ConfigurationError: If referenced material (e.g. a key file) is
                unavailable.
        """
        ...

    @abstractmethod
    def headers(self, credentials: Credentials) -> list[Header]:
        """Build header name/value pairs for an outbound request."""
        ...

    @abstractmethod
    def base_url(self, credentials: Credentials) -> str:
        """Return the API root for *credentials*.

        Raises:
            ConfigurationError: If routing information is missing.
        """
        ...

    @abstractmethod
    def build_path(self, model: str, endpoint: str, credentials: Credentials) -> str:
        """Build the resource path for ``model`` and ``endpoint``.

        Args:
            model: Model name, with or without a ``models/`` prefix.
            endpoint: Method suffix such as ``"generateContent"``.
            credentials: The credential bundle carrying routing fields.
        """
        ...

    @abstractmethod
    def models_path(self, credentials: Credentials) -> str:
        """Return the collection path used to list available models."""
        ...

    def refresh_credentials(self, credentials: Credentials) -> Credentials:
        """Return credentials that are fresh enough to use.

        The default implementation returns *credentials* unchanged.
        Token-based strategies override this.
        """
        return credentials
