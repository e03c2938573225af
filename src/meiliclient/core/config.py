"""
meiliclient Configuration Module

Centralized configuration for the Meilisearch client: server location,
the single static auth header, request timeouts and the defaults used by
the task polling loop.

Each ``ClientConfig`` is self-contained and never touches global state.
"""

import os
from dataclasses import dataclass
from typing import Callable, Dict, Optional, TypeVar
from urllib.parse import urlparse

DEFAULT_URL = "http://localhost:7700"

T = TypeVar("T", int, float)


def _env_number(name: str, default: str, cast: Callable[[str], T]) -> T:
    """Read a numeric env var; a malformed value raises ConfigError."""
    from meiliclient.exceptions import ConfigError

    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(
            f"{name} must be a number, got '{raw}'."
        ) from None


@dataclass
class ClientConfig:
    """
    Instance-based configuration for meiliclient.

    Create from environment variables::

        config = ClientConfig.from_env()

    Or with explicit values::

        config = ClientConfig(url="http://search:7700", api_key="masterKey")
    """

    # ── Server ────────────────────────────────────────────────────
    url: str = DEFAULT_URL
    api_key: Optional[str] = None
    api_key_header: str = "Authorization"
    """Header carrying the key. ``Authorization`` sends ``Bearer <key>``;
    any other name (e.g. the legacy ``X-Meili-API-Key``) sends the raw key."""

    # ── HTTP ──────────────────────────────────────────────────────
    timeout: float = 10.0  # seconds, per request

    # ── Task polling ──────────────────────────────────────────────
    task_timeout_ms: int = 5000
    task_interval_ms: int = 50

    # ── Documents ─────────────────────────────────────────────────
    batch_size: int = 1000

    # ── Logging ───────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ── Factory ───────────────────────────────────────────────────

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config snapshot from current environment variables.

        :envvar:`MEILI_API_KEY` wins over :envvar:`MEILI_MASTER_KEY`.
        """
        return cls(
            url=os.getenv("MEILI_URL", DEFAULT_URL),
            api_key=os.getenv("MEILI_API_KEY") or os.getenv("MEILI_MASTER_KEY"),
            api_key_header=os.getenv("MEILI_API_KEY_HEADER", "Authorization"),
            timeout=_env_number("MEILI_TIMEOUT", "10.0", float),
            task_timeout_ms=_env_number("MEILI_TASK_TIMEOUT_MS", "5000", int),
            task_interval_ms=_env_number("MEILI_TASK_INTERVAL_MS", "50", int),
            batch_size=_env_number("MEILI_BATCH_SIZE", "1000", int),
            log_level=os.getenv("MEILI_LOG_LEVEL", "INFO").upper(),
        )

    # ── Validation & Accessors ────────────────────────────────────

    def validate(self) -> bool:
        """
        Validate the server URL and the numeric limits.

        Raises :class:`~meiliclient.exceptions.ConfigError` on failure.
        """
        from meiliclient.exceptions import ConfigError

        parsed = urlparse(self.url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(
                f"Invalid Meilisearch URL '{self.url}'. "
                "Expected something like http://localhost:7700\n"
                "  Set via: export MEILI_URL=http://localhost:7700"
            )
        if not self.api_key_header:
            raise ConfigError("api_key_header must be a non-empty header name.")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}.")
        if self.task_timeout_ms <= 0 or self.task_interval_ms <= 0:
            raise ConfigError(
                "task_timeout_ms and task_interval_ms must be positive "
                f"(got {self.task_timeout_ms} / {self.task_interval_ms})."
            )
        if self.batch_size <= 0:
            raise ConfigError(f"batch_size must be positive, got {self.batch_size}.")
        return True

    @property
    def base_url(self) -> str:
        """The server URL without a trailing slash."""
        return self.url.rstrip("/")

    def auth_headers(self) -> Dict[str, str]:
        """Return the static auth header, or an empty dict without a key."""
        if not self.api_key:
            return {}
        if self.api_key_header.lower() == "authorization":
            return {"Authorization": f"Bearer {self.api_key}"}
        return {self.api_key_header: self.api_key}
