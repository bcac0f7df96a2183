"""Service-level settings read from the environment.

Search parameters are not configured here; they travel with each request
as an ``AIConfig`` built from the strategy's difficulty preset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8001
DEFAULT_SESSION_TTL_SEC = 1800
DEFAULT_SESSION_MAX = 256


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


@dataclass(frozen=True)
class ServiceSettings:
    log_level: str = "INFO"
    session_ttl_sec: int = DEFAULT_SESSION_TTL_SEC
    session_max: int = DEFAULT_SESSION_MAX
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Read HEX_AI_* settings, falling back to defaults on bad values."""
        origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        return cls(
            log_level=os.getenv("HEX_AI_LOG_LEVEL", "INFO").upper(),
            session_ttl_sec=max(1, _int_env("HEX_AI_SESSION_TTL_SEC", DEFAULT_SESSION_TTL_SEC)),
            session_max=max(1, _int_env("HEX_AI_SESSION_MAX", DEFAULT_SESSION_MAX)),
            cors_origins=origins or ["*"],
            port=_int_env("HEX_AI_SERVICE_PORT", DEFAULT_PORT),
        )
