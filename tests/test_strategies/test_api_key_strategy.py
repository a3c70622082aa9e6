"""Tests for the Gemini API key strategy."""

from __future__ import annotations

import pytest

from geminiauth.exceptions import CredentialFormatError
from geminiauth.models import AccessTokenCredentials, APIKeyCredentials, AuthStrategyKind
from geminiauth.strategies.api_key import GEMINI_BASE_URL, APIKeyStrategy


class TestAPIKeyStrategy:
    def test_kind(self) -> None:
        assert APIKeyStrategy().kind is AuthStrategyKind.API_KEY

    def test_authenticate(self) -> None:
        info = APIKeyStrategy().authenticate(APIKeyCredentials(api_key="sk-live-123"))
        assert info.auth_type == "api_key"
        assert info.token is None

    @pytest.mark.parametrize("key", ["", "   "])
    def test_blank_key_rejected(self, key: str) -> None:
        with pytest.raises(CredentialFormatError, match="Invalid Gemini API key"):
            APIKeyStrategy().authenticate(APIKeyCredentials(api_key=key))

    def test_wrong_shape_rejected(self) -> None:
        with pytest.raises(CredentialFormatError, match="access_token"):
            APIKeyStrategy().authenticate(AccessTokenCredentials(access_token="tok"))

    def test_headers_embed_key(self) -> None:
        headers = APIKeyStrategy().headers(APIKeyCredentials(api_key="sk-live-123"))
        assert headers == [
            ("Content-Type", "application/json"),
            ("x-goog-api-key", "sk-live-123"),
        ]

    def test_base_url(self) -> None:
        creds = APIKeyCredentials(api_key="k")
        assert APIKeyStrategy().base_url(creds) == GEMINI_BASE_URL
        assert GEMINI_BASE_URL == "https://generativelanguage.googleapis.com/v1beta"

    @pytest.mark.parametrize("model", ["gemini-1.5-pro", "models/gemini-1.5-pro"])
    def test_build_path_normalizes_prefix(self, model: str) -> None:
        path = APIKeyStrategy().build_path(model, "generateContent", APIKeyCredentials(api_key="k"))
        assert path == "models/gemini-1.5-pro:generateContent"

    def test_models_path(self) -> None:
        assert APIKeyStrategy().models_path(APIKeyCredentials(api_key="k")) == "models"

    def test_refresh_is_noop(self) -> None:
        creds = APIKeyCredentials(api_key="k")
        assert APIKeyStrategy().refresh_credentials(creds) is creds
