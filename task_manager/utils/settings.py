"""Runtime configuration sourced from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


def _normalize_int(value: str | None, default: int, minimum: int = 0) -> int:
    """Return an integer parsed from an environment value, or the default when invalid."""
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= minimum else default


def _normalize_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _normalize_base_url(value: str | None) -> Optional[str]:
    """Return a base URL without trailing slash; ``None`` when unset."""
    if value is None:
        return None
    url = value.strip()
    if not url:
        return None
    if not url.startswith("http://") and not url.startswith("https://"):
        url = f"http://{url}"
    return url.rstrip("/")


def _normalize_origins(value: str | None) -> Tuple[str, ...]:
    if not value:
        return ("*",)
    origins = tuple(origin.strip() for origin in value.split(",") if origin.strip())
    return origins or ("*",)


@dataclass(frozen=True)
class ServiceSettings:
    default_limit: int = 10
    max_limit: int = 100
    profile_manager_url: Optional[str] = None
    service_api_url: Optional[str] = None
    interaction_protocol_engine_url: Optional[str] = None
    peer_connect_timeout: float = 3.0
    peer_read_timeout: float = 15.0
    cascade_max_workers: int = 3
    cors_origins: Tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        default_limit = _normalize_int(os.getenv("TASK_MANAGER_DEFAULT_LIMIT"), 10)
        max_limit = _normalize_int(os.getenv("TASK_MANAGER_MAX_LIMIT"), 100, minimum=1)
        return cls(
            default_limit=min(default_limit, max_limit),
            max_limit=max_limit,
            profile_manager_url=_normalize_base_url(os.getenv("PROFILE_MANAGER_URL")),
            service_api_url=_normalize_base_url(os.getenv("SERVICE_API_URL")),
            interaction_protocol_engine_url=_normalize_base_url(os.getenv("INTERACTION_PROTOCOL_ENGINE_URL")),
            peer_connect_timeout=_normalize_float(os.getenv("PEER_CONNECT_TIMEOUT"), 3.0),
            peer_read_timeout=_normalize_float(os.getenv("PEER_READ_TIMEOUT"), 15.0),
            cascade_max_workers=_normalize_int(os.getenv("CASCADE_MAX_WORKERS"), 3, minimum=1),
            cors_origins=_normalize_origins(os.getenv("CORS_ORIGINS")),
        )

    @property
    def peer_timeout(self) -> Tuple[float, float]:
        """(connect, read) tuple accepted by ``requests``."""
        return (self.peer_connect_timeout, self.peer_read_timeout)


@lru_cache(maxsize=None)
def get_settings() -> ServiceSettings:
    """Return the cached settings sourced from the environment."""
    return ServiceSettings.from_env()


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()
