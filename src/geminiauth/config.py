"""Static settings storage and environment lookups.

This module owns the lowest-precedence layer of credential resolution and
the names of every environment variable the resolver consults:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.geminiauth/`` on macOS and Windows.  See :func:`get_config_dir`.
* **Static settings** -- a single :class:`~geminiauth.models.AuthSettings`
  JSON file, loaded with :func:`load_settings` and written atomically with
  :func:`save_settings`.  ``$GEMINIAUTH_CONFIG`` points at an alternative
  file.
* **Environment lookups** -- :func:`first_env` returns the first non-empty
  value among several variable names.

Nothing here caches: every call re-reads the file or the environment mapping
it is given.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from geminiauth.exceptions import ConfigurationError
from geminiauth.models import AuthSettings

_APP_NAME = "geminiauth"
_CONFIG_FILENAME = "config.json"

CONFIG_PATH_ENV = "GEMINIAUTH_CONFIG"

GEMINI_API_KEY_ENV = "GEMINI_API_KEY"
PROJECT_ID_ENVS = ("VERTEX_PROJECT_ID", "GOOGLE_CLOUD_PROJECT")
LOCATION_ENVS = ("VERTEX_LOCATION", "GOOGLE_CLOUD_LOCATION")
ACCESS_TOKEN_ENV = "VERTEX_ACCESS_TOKEN"
SERVICE_ACCOUNT_KEY_ENVS = ("VERTEX_SERVICE_ACCOUNT", "VERTEX_JSON_FILE")
APPLICATION_CREDENTIALS_ENV = "GOOGLE_APPLICATION_CREDENTIALS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/geminiauth/`` (default
    ``~/.config/geminiauth/``).  On macOS/Windows: ``~/.geminiauth/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        return base / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


def settings_path() -> Path:
    """Path to the settings file, honouring ``$GEMINIAUTH_CONFIG``."""
    override = os.environ.get(CONFIG_PATH_ENV, "")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives next to *path* so ``os.replace`` is an atomic
    rename on POSIX.  The file is created ``0o600`` because settings may
    hold an API key.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, 0o600)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Static settings ---


def load_settings(path: Optional[Path] = None) -> AuthSettings:
    """Load static settings from disk.

    Args:
        path: Explicit settings file.  Defaults to :func:`settings_path`.

    Returns:
        The deserialised :class:`~geminiauth.models.AuthSettings`.  If the
        file does not exist, a default (empty) instance is returned.

    Raises:
        ConfigurationError: If the file exists but contains invalid JSON or
            fails Pydantic validation.
    """
    path = path or settings_path()
    if not path.is_file():
        return AuthSettings()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return AuthSettings.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid settings at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Cannot read settings at {path}: {exc}") from exc


def save_settings(settings: AuthSettings, path: Optional[Path] = None) -> Path:
    """Persist static settings atomically and return the path written."""
    path = path or settings_path()
    data = settings.model_dump(mode="json", exclude_none=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Environment lookups ---


def first_env(environ: Mapping[str, str], *names: str) -> Optional[str]:
    """Return the first non-empty value among the environment variables *names*.

    Args:
        environ: The environment snapshot to read from.
        *names: Variable names, highest precedence first.

    Returns:
        The value, or ``None`` if every variable is unset or empty.
    """
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None
