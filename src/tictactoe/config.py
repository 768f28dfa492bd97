"""Runtime settings read from ``TICTACTOE_*`` environment variables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional
import os

ENV_PREFIX = "TICTACTOE_"


def _get(
    env: Mapping[str, str],
    name: str,
    default: Any,
    cast: Optional[Callable[[str], Any]] = None,
) -> Any:
    key = ENV_PREFIX + name
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    if cast is None:
        return raw.strip()
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {key}: {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    # Idle sessions older than this are dropped when new ones are created.
    session_ttl_seconds: float = 60 * 30
    max_sessions: int = 1000


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        env = os.environ
    defaults = Settings()
    settings = Settings(
        host=_get(env, "HOST", defaults.host),
        port=_get(env, "PORT", defaults.port, int),
        log_level=_get(env, "LOG_LEVEL", defaults.log_level).upper(),
        session_ttl_seconds=_get(
            env, "SESSION_TTL", defaults.session_ttl_seconds, float
        ),
        max_sessions=_get(env, "MAX_SESSIONS", defaults.max_sessions, int),
    )
    if not 0 < settings.port < 65536:
        raise ValueError(f"Invalid value for {ENV_PREFIX}PORT: {settings.port}")
    if settings.max_sessions < 1:
        raise ValueError(
            f"Invalid value for {ENV_PREFIX}MAX_SESSIONS: {settings.max_sessions}"
        )
    return settings
