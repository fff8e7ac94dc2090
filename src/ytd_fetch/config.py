"""Static runtime settings shared by the transport and the orchestrator.

Settings are a frozen dataclass built once (from defaults, the
environment, or CLI flags via :func:`dataclasses.replace`) and treated as
immutable afterwards, so independent downloads can share one instance.

Environment variables
---------------------
``YTD_FETCH_BACKEND``        ``requests`` (default) or ``socket``
``YTD_FETCH_CHUNK_SIZE``     read size in bytes (default 128)
``YTD_FETCH_MAX_REDIRECTS``  redirect hop cap (default 10)
``YTD_FETCH_TIMEOUT``        read timeout in seconds (default 30)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from ytd_fetch.exceptions import EnvironmentError

BACKENDS: tuple[str, ...] = ("requests", "socket")

DEFAULT_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; WOW64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/49.0.2623.87 Safari/537.36"
)

DEFAULT_PLAYER_URL_TEMPLATE: str = "https://s.ytimg.com/yts/jsbin/{player_id}.js"

HOME_PAGE_URL: str = "https://www.youtube.com"


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable configuration for one or more download runs."""

    backend: str = "requests"
    """Transport backend name, one of :data:`BACKENDS`."""

    chunk_size: int = 128
    """Bytes read per chunk; progress is reported at this granularity."""

    max_redirects: int = 10
    """Maximum number of redirect hops followed per request."""

    connect_timeout: float = 5.0
    read_timeout: float = 30.0

    user_agent: str = DEFAULT_USER_AGENT

    verify_tls: bool = False
    """Certificate verification is off to tolerate platform certificate churn."""

    player_url_template: str = DEFAULT_PLAYER_URL_TEMPLATE

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise EnvironmentError(
                f"Unknown transport backend: {self.backend!r}",
                hint=f"Choose one of: {', '.join(BACKENDS)}",
            )
        if self.chunk_size <= 0:
            raise EnvironmentError("chunk_size must be a positive integer.")
        if self.max_redirects < 0:
            raise EnvironmentError("max_redirects must not be negative.")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``YTD_FETCH_*`` variables over the defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            backend=env.get("YTD_FETCH_BACKEND", defaults.backend).strip().lower(),
            chunk_size=_env_int(env, "YTD_FETCH_CHUNK_SIZE", defaults.chunk_size),
            max_redirects=_env_int(env, "YTD_FETCH_MAX_REDIRECTS", defaults.max_redirects),
            read_timeout=_env_float(env, "YTD_FETCH_TIMEOUT", defaults.read_timeout),
        )


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise EnvironmentError(
            f"{name} must be an integer, got {raw!r}.",
        ) from exc


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise EnvironmentError(
            f"{name} must be a number, got {raw!r}.",
        ) from exc
    if not value > 0:
        raise EnvironmentError(f"{name} must be a positive number, got {raw!r}.")
    return value
