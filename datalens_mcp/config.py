"""
Configuration

Settings are read once at startup. Credentials are read through on every
call so that a token rotated in the environment applies without restart.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.datalens.tech"
DEFAULT_API_VERSION = "0"
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_HTTP_HOST = "127.0.0.1"
DEFAULT_HTTP_PORT = 8000

ORG_ID_ENV = "DATALENS_ORG_ID"
# First non-empty value wins
TOKEN_ENVS: Tuple[str, ...] = ("DATALENS_IAM_TOKEN", "YC_IAM_TOKEN", "DATALENS_SUBJECT_TOKEN")


def env_non_empty(name: str, environ: Mapping[str, str] = None) -> Optional[str]:
    """Return the trimmed value of an env var, or None when unset or blank."""
    environ = os.environ if environ is None else environ
    value = environ.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _positive_int(name: str, default: int, environ: Mapping[str, str]) -> int:
    raw = env_non_empty(name, environ)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Failed to parse {name}='{raw}'; using default {default}")
        return default
    if value <= 0:
        logger.warning(f"{name} must be a positive integer, using default {default}")
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, immutable after startup."""
    base_url: str = DEFAULT_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"
    http_host: str = DEFAULT_HTTP_HOST
    http_port: int = DEFAULT_HTTP_PORT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        return cls(
            base_url=(env_non_empty("DATALENS_BASE_URL", environ) or DEFAULT_BASE_URL).rstrip("/"),
            api_version=env_non_empty("DATALENS_API_VERSION", environ) or DEFAULT_API_VERSION,
            timeout_seconds=_positive_int("DATALENS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS, environ),
            log_level=(env_non_empty("DATALENS_LOG_LEVEL", environ) or "INFO").upper(),
            http_host=env_non_empty("DATALENS_HTTP_HOST", environ) or DEFAULT_HTTP_HOST,
            http_port=_positive_int("DATALENS_HTTP_PORT", DEFAULT_HTTP_PORT, environ),
        )


@dataclass(frozen=True)
class Credentials:
    org_id: Optional[str]
    token: Optional[str]

    @property
    def complete(self) -> bool:
        return bool(self.org_id and self.token)


class EnvCredentials:
    """Read-through credentials accessor backed by environment variables."""

    def __init__(self, environ: Mapping[str, str] = None):
        self._environ = environ

    def current(self) -> Credentials:
        environ = os.environ if self._environ is None else self._environ
        token = None
        for name in TOKEN_ENVS:
            token = env_non_empty(name, environ)
            if token:
                break
        return Credentials(org_id=env_non_empty(ORG_ID_ENV, environ), token=token)


class StaticCredentials:
    """Fixed credentials, mainly for embedding and tests."""

    def __init__(self, org_id: Optional[str], token: Optional[str]):
        self._credentials = Credentials(org_id=org_id, token=token)

    def current(self) -> Credentials:
        return self._credentials
