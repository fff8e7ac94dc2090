"""Exit-code constants used by the CLI layer.

Centralised here so that every exit path uses a well-known, tested
value rather than magic integers scattered across the codebase.
"""

from __future__ import annotations

from ytd_fetch.exceptions import PlatformFormatChangedError, TransportError, YtdFetchError

SUCCESS: int = 0
"""Clean exit — command completed without error."""

GENERAL_ERROR: int = 1
"""A known YtdFetchError was caught. User-facing message was displayed."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""

PLATFORM_CHANGED: int = 3
"""The platform's page or player no longer matches any known shape."""

NETWORK_ERROR: int = 4
"""Connection, protocol, redirect or HTTP status failure."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""


def for_error(exc: YtdFetchError) -> int:
    """Map a domain error to its exit code."""
    if isinstance(exc, PlatformFormatChangedError):
        return PLATFORM_CHANGED
    if isinstance(exc, TransportError):
        return NETWORK_ERROR
    return GENERAL_ERROR
