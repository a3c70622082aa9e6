"""Shared test fixtures for geminiauth.

Provides an isolated environment (no credential env vars, no settings file),
a throw-away RSA key pair, service-account key material built from it, a
key-file writer, and a deterministic fake signer.  These fixtures are
discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional
from unittest.mock import MagicMock

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from geminiauth.config import (
    ACCESS_TOKEN_ENV,
    APPLICATION_CREDENTIALS_ENV,
    CONFIG_PATH_ENV,
    GEMINI_API_KEY_ENV,
    LOCATION_ENVS,
    PROJECT_ID_ENVS,
    SERVICE_ACCOUNT_KEY_ENVS,
)

CLIENT_EMAIL = "svc@my-project.iam.gserviceaccount.com"


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear every credential env var and point settings at an empty location.

    Returns:
        The directory that XDG_CONFIG_HOME points to.
    """
    for var in (
        GEMINI_API_KEY_ENV,
        ACCESS_TOKEN_ENV,
        APPLICATION_CREDENTIALS_ENV,
        CONFIG_PATH_ENV,
        *PROJECT_ID_ENVS,
        *LOCATION_ENVS,
        *SERVICE_ACCOUNT_KEY_ENVS,
    ):
        monkeypatch.delenv(var, raising=False)

    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def rsa_keypair() -> tuple[str, str]:
    """A 2048-bit RSA key pair as ``(private_pem, public_pem)`` strings."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def service_account_info(rsa_keypair: tuple[str, str]) -> dict[str, str]:
    """A complete service-account key dict, as found in a downloaded key file."""
    private_pem, _ = rsa_keypair
    return {
        "type": "service_account",
        "project_id": "my-project",
        "private_key_id": "key-id-123",
        "private_key": private_pem,
        "client_email": CLIENT_EMAIL,
        "client_id": "1234567890",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "auth_provider_x509_cert_url": "https://www.googleapis.com/oauth2/v1/certs",
        "client_x509_cert_url": (
            "https://www.googleapis.com/robot/v1/metadata/x509/"
            "svc%40my-project.iam.gserviceaccount.com"
        ),
    }


@pytest.fixture
def write_key_file(tmp_path: Path) -> Callable[..., Path]:
    """Factory that writes a key file and returns its path.

    Pass a dict to write it as JSON, or a string to write it verbatim.
    """

    def _write(content: Any, name: str = "key.json") -> Path:
        path = tmp_path / name
        text = content if isinstance(content, str) else json.dumps(content)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeSigner:
    """Deterministic signer that records what it was asked to sign."""

    def __init__(self, token: str = "header.payload.signature") -> None:
        self.token = token
        self.calls: list[tuple[dict[str, Any], str, Optional[str]]] = []

    def sign(
        self,
        claims: Mapping[str, Any],
        private_key: str,
        key_id: Optional[str] = None,
    ) -> str:
        self.calls.append((dict(claims), private_key, key_id))
        return self.token


@pytest.fixture
def fake_signer() -> FakeSigner:
    return FakeSigner()


def mock_response(
    status_code: int = 200,
    json_body: Any = None,
    text: Optional[str] = None,
) -> MagicMock:
    """Build a mock :class:`httpx.Response`.

    When *json_body* is ``None``, ``.json()`` raises ``ValueError`` like the
    real response does for a non-JSON body.
    """
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    if json_body is not None:
        response.json.return_value = json_body
        response.text = text if text is not None else json.dumps(json_body)
    else:
        response.text = text or ""
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    return response


@pytest.fixture
def make_response() -> Callable[..., MagicMock]:
    """The :func:`mock_response` factory, as a fixture."""
    return mock_response
