"""geminiauth -- credential coordination for the Gemini API and Vertex AI.

The same generative models are reachable through two authentication
surfaces: the Gemini API (API key) and Vertex AI (OAuth2 tokens derived from
a Google Cloud service account).  This package resolves credentials from
per-call overrides, the environment and a settings file, authenticates them
with the matching strategy, and returns headers, base URL and resource path
for whatever HTTP client sends the request.

Typical usage::

    from geminiauth import AuthOptions, AuthStrategyKind, create_default_coordinator

    coordinator = create_default_coordinator()
    target = coordinator.prepare_request(
        AuthStrategyKind.API_KEY,
        "gemini-1.5-flash",
        "generateContent",
        AuthOptions(api_key="..."),
    )
    httpx.post(target.url, headers=target.headers, json=body)

Modules:
    models: Pydantic models shared across the package.
    config: Settings file and environment variable names.
    exceptions: Exception hierarchy.
    auth: Strategy interface, resolver, JWT manager and coordinator.
    strategies: The API key and service-account strategies.
"""

from geminiauth.auth import (
    AuthResult,
    CredentialResolver,
    JWTManager,
    MultiAuthCoordinator,
    RequestTarget,
    create_default_coordinator,
)
from geminiauth.exceptions import (
    ConfigurationError,
    CredentialFormatError,
    GeminiAuthError,
    SigningError,
    TransportError,
    UnknownStrategyError,
)
from geminiauth.models import AuthOptions, AuthSettings, AuthStrategyKind

__version__ = "0.1.0"

__all__ = [
    "AuthOptions",
    "AuthResult",
    "AuthSettings",
    "AuthStrategyKind",
    "ConfigurationError",
    "CredentialFormatError",
    "CredentialResolver",
    "GeminiAuthError",
    "JWTManager",
    "MultiAuthCoordinator",
    "RequestTarget",
    "SigningError",
    "TransportError",
    "UnknownStrategyError",
    "create_default_coordinator",
]
