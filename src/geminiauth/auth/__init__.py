"""Strategy-based authentication for the Gemini API and Vertex AI.

The main entry points are:

- :class:`AuthStrategy` -- abstract base class for authentication strategies.
- :class:`CredentialResolver` -- precedence-ordered credential resolution.
- :class:`JWTManager` -- JWT payload construction and signing.
- :class:`MultiAuthCoordinator` -- registry that maps strategy kinds to
  strategies and produces headers and routing for a request.
- :func:`create_default_coordinator` -- factory returning a coordinator
  pre-loaded with both built-in strategies.

Typical usage::

    from geminiauth.auth import create_default_coordinator

    coordinator = create_default_coordinator()
    target = coordinator.prepare_request("vertex_ai", "gemini-1.5-pro", "generateContent")
    # target.headers / target.url are ready to hand to an HTTP client.
"""

from geminiauth.auth.base import AuthResult, AuthStrategy, RequestTarget
from geminiauth.auth.coordinator import MultiAuthCoordinator, create_default_coordinator
from geminiauth.auth.jwt import JoseSigner, JWTManager, Signer
from geminiauth.auth.resolver import CredentialResolver

__all__ = [
    "AuthResult",
    "AuthStrategy",
    "CredentialResolver",
    "JWTManager",
    "JoseSigner",
    "MultiAuthCoordinator",
    "RequestTarget",
    "Signer",
    "create_default_coordinator",
]
