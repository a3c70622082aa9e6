"""JWT construction and signing for Google Cloud service accounts.

:class:`JWTManager` builds time-bounded claim sets and signs them with one of
two backends:

* **Local signing** -- RS256 against the PEM private key of a service-account
  key, performed by a :class:`Signer`.  :class:`JoseSigner` (python-jose) is
  the default; tests substitute a deterministic fake.
* **Remote signing** -- the IAM Credentials ``signJwt`` API, authorised with
  an existing access token.  The private key never leaves Google.

Nothing is cached.  Every call builds a fresh payload from the current clock
and, on the remote path, issues a fresh HTTP request.

See Also:
    :class:`~geminiauth.strategies.service_account.ServiceAccountStrategy`,
    the main consumer.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Union

import httpx
from jose import jwt
from jose.exceptions import JOSEError
from pydantic import ValidationError

from geminiauth.exceptions import (
    ConfigurationError,
    CredentialFormatError,
    KeyFileParseError,
    KeyFileReadError,
    SigningError,
    TransportError,
)
from geminiauth.models import DEFAULT_TOKEN_LIFETIME, JWTPayload, ServiceAccountKey

logger = logging.getLogger(__name__)

IAM_CREDENTIALS_URL = "https://iamcredentials.googleapis.com/v1"
SIGNING_ALGORITHM = "RS256"

KeyMaterial = Union[ServiceAccountKey, Mapping[str, Any]]


class Signer(Protocol):
    """Capability that turns a claim dict into a compact signed JWT."""

    def sign(
        self,
        claims: Mapping[str, Any],
        private_key: str,
        key_id: Optional[str] = None,
    ) -> str:
        """Sign *claims* with the PEM-encoded *private_key*.

        Raises:
            Exception: Any error on malformed key material.  Callers wrap it
                in :class:`~geminiauth.exceptions.SigningError`.
        """
        ...


class JoseSigner:
    """RS256 :class:`Signer` backed by python-jose."""

    def sign(
        self,
        claims: Mapping[str, Any],
        private_key: str,
        key_id: Optional[str] = None,
    ) -> str:
        headers = {"kid": key_id} if key_id else None
        return jwt.encode(
            dict(claims), private_key, algorithm=SIGNING_ALGORITHM, headers=headers
        )


def _coerce_key(key: KeyMaterial) -> ServiceAccountKey:
    if isinstance(key, ServiceAccountKey):
        return key
    if not isinstance(key, Mapping):
        raise SigningError("Invalid service account key format")
    try:
        return ServiceAccountKey.model_validate(dict(key))
    except ValidationError as exc:
        raise SigningError(f"Invalid service account key format: {exc}") from exc


class JWTManager:
    """Builds and signs JWTs for service-account authentication.

    Args:
        signer: Local signing backend.  Defaults to :class:`JoseSigner`.
        timeout: Timeout in seconds for the remote signing request.
        clock: Returns the current Unix time; injectable for tests.

    Example::

        manager = JWTManager()
        token = manager.create_signed_token(
            "svc@project.iam.gserviceaccount.com",
            "https://example.com/audience",
            service_account_key="/path/to/key.json",
        )
    """

    def __init__(
        self,
        signer: Optional[Signer] = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._signer: Signer = signer or JoseSigner()
        self._timeout = timeout
        self._clock = clock

    # --- Payloads ---

    def create_payload(
        self,
        issuer: str,
        audience: str,
        lifetime: int = DEFAULT_TOKEN_LIFETIME,
        issued_at: Optional[int] = None,
    ) -> JWTPayload:
        """Build a claim set valid for *lifetime* seconds from *issued_at*.

        ``subject`` is set to *audience*, not *issuer*.

        Args:
            issuer: Service-account email (``iss``).
            audience: Intended recipient (``aud`` and ``sub``).
            lifetime: Validity in seconds.
            issued_at: Unix time of issue.  Defaults to now.

        Raises:
            CredentialFormatError: If a claim has the wrong type.
        """
        now = int(self._clock()) if issued_at is None else issued_at
        try:
            return JWTPayload(
                issuer=issuer,
                audience=audience,
                subject=audience,
                issued_at=now,
                expiry=now + lifetime,
            )
        except ValidationError as exc:
            raise CredentialFormatError("Invalid JWT payload format") from exc

    @staticmethod
    def validate_payload(payload: JWTPayload) -> None:
        """Check that string claims are non-empty and ``expiry > issued_at``.

        Raises:
            CredentialFormatError: If the payload is malformed.
        """
        strings = (payload.issuer, payload.audience, payload.subject)
        if not all(isinstance(value, str) and value for value in strings):
            raise CredentialFormatError("Invalid JWT payload format")
        if payload.expiry <= payload.issued_at:
            raise CredentialFormatError("Invalid JWT payload format")

    # --- Local signing ---

    def sign_claims(
        self,
        claims: Mapping[str, Any],
        private_key: Optional[str],
        key_id: Optional[str] = None,
    ) -> str:
        """Sign an arbitrary claim dict with RS256.

        Raises:
            SigningError: If the private key is missing or malformed.
        """
        if not private_key:
            raise SigningError("Invalid service account key format")
        try:
            return self._signer.sign(claims, private_key, key_id)
        except (JOSEError, ValueError, TypeError) as exc:
            raise SigningError(f"Invalid service account key format: {exc}") from exc

    def sign_with_key(self, payload: JWTPayload, key: KeyMaterial) -> str:
        """Sign *payload* locally with a service-account private key.

        Args:
            payload: The claim set to sign.
            key: A :class:`~geminiauth.models.ServiceAccountKey` or the raw
                key mapping.

        Raises:
            SigningError: If ``client_email`` or ``private_key`` is missing,
                or the key cannot be used for RS256.
        """
        key = _coerce_key(key)
        if not key.client_email or not key.private_key:
            raise SigningError("Invalid service account key format")
        logger.debug("Signing JWT locally for %s", key.client_email)
        return self.sign_claims(payload.claims(), key.private_key, key.private_key_id)

    # --- Remote signing ---

    def sign_with_iam_api(
        self,
        payload: JWTPayload,
        service_account_email: str,
        access_token: str,
    ) -> str:
        """Sign *payload* with the IAM Credentials ``signJwt`` API.

        Args:
            payload: The claim set to sign.
            service_account_email: The account whose key signs the JWT.
            access_token: OAuth2 token authorised to act as that account.

        Returns:
            The ``signedJwt`` field of the response.

        Raises:
            SigningError: On a non-200 status (``status_code`` and ``body``
                are set) or an unparsable response.
            TransportError: If the endpoint cannot be reached.
        """
        url = (
            f"{IAM_CREDENTIALS_URL}/projects/-/serviceAccounts/"
            f"{service_account_email}:signJwt"
        )
        logger.debug("Signing JWT via IAM API for %s", service_account_email)
        try:
            response = httpx.post(
                url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
                json={"payload": json.dumps(payload.claims())},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Request failed: {exc}") from exc

        if response.status_code != 200:
            raise SigningError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise SigningError(
                f"Failed to parse response: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        signed = data.get("signedJwt") if isinstance(data, dict) else None
        if not signed:
            raise SigningError(
                f"Unexpected response format: {data!r}",
                status_code=response.status_code,
                body=response.text,
            )
        return signed

    # --- Key files ---

    @staticmethod
    def load_service_account_key(path: Union[str, Path]) -> ServiceAccountKey:
        """Read and parse a service-account JSON key file.

        Raises:
            KeyFileReadError: If the file cannot be read.
            KeyFileParseError: If the content is not UTF-8 text holding a
                JSON object of strings.
        """
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise KeyFileParseError(f"Failed to parse JSON: {exc}") from exc
        except OSError as exc:
            raise KeyFileReadError(
                f"Failed to read file: {path}: {exc.strerror or exc}"
            ) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise KeyFileParseError(f"Failed to parse JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise KeyFileParseError("Failed to parse JSON: expected an object")

        try:
            return ServiceAccountKey.model_validate(data)
        except ValidationError as exc:
            raise KeyFileParseError(f"Failed to parse JSON: {exc}") from exc

    @staticmethod
    def get_service_account_email(key: KeyMaterial) -> Optional[str]:
        """Return the ``client_email`` of a service-account key."""
        return _coerce_key(key).client_email

    # --- Dispatch ---

    def create_signed_token(
        self,
        service_account_email: str,
        audience: str,
        *,
        service_account_key: Optional[Union[str, Path]] = None,
        service_account_data: Optional[Mapping[str, Any]] = None,
        access_token: Optional[str] = None,
        lifetime: int = DEFAULT_TOKEN_LIFETIME,
        issued_at: Optional[int] = None,
    ) -> str:
        """Build, validate and sign a JWT using the first available method.

        Methods are tried in this fixed order: key file path, inline key
        data, IAM API.  Only the first present one is used.

        Raises:
            ConfigurationError: If no signing method is supplied.
            CredentialFormatError: If the payload is invalid.
            SigningError: If signing fails.
        """
        payload = self.create_payload(
            service_account_email, audience, lifetime=lifetime, issued_at=issued_at
        )
        self.validate_payload(payload)

        if service_account_key:
            key = self.load_service_account_key(service_account_key)
            return self.sign_with_key(payload, key)
        if service_account_data:
            return self.sign_with_key(payload, service_account_data)
        if access_token:
            return self.sign_with_iam_api(payload, service_account_email, access_token)

        raise ConfigurationError(
            "Either service_account_key, service_account_data, or access_token "
            "must be provided"
        )
