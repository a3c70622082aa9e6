"""Built-in authentication strategies.

Each sub-package contributes one :class:`~geminiauth.auth.base.AuthStrategy`:

- :mod:`~geminiauth.strategies.api_key` -- Gemini API key.
- :mod:`~geminiauth.strategies.service_account` -- Vertex AI service account.
"""
