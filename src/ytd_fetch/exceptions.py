"""Custom exception hierarchy for ytd-fetch.

All exceptions that cross layer boundaries must inherit from
:class:`YtdFetchError`.  Raw socket, TLS and ``requests`` exceptions must
NEVER propagate beyond the infrastructure layer — they are caught there
and re-raised as a typed subclass defined here.

Hierarchy
---------
YtdFetchError
├── InvalidURLError
├── TransportError
│   ├── ConnectionFailedError
│   ├── ProtocolParseError
│   ├── RedirectLimitExceededError
│   └── HttpStatusError
├── PlatformFormatChangedError
│   ├── NoFormatsFoundError
│   ├── VideoUnavailableError
│   ├── PlayerNotFoundError
│   ├── CipherFunctionNameNotFoundError
│   ├── CipherFunctionBodyNotFoundError
│   ├── HelperFunctionNotFoundError
│   └── UnparsableInstructionError
├── NoMatchingFormatError
├── OutputFileError
├── DownloadCancelledError
└── EnvironmentError
"""

from __future__ import annotations


class YtdFetchError(Exception):
    """Base exception for all ytd-fetch errors.

    Every user-visible error condition maps to a subclass of this
    exception so that the CLI error boundary can render a clean message
    without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- URL validation --------------------------------------------------------

class InvalidURLError(YtdFetchError):
    """Raised when the provided watch URL fails validation."""


# --- Transport -------------------------------------------------------------

class TransportError(YtdFetchError):
    """Base class for failures of the HTTP retrieval layer."""


class ConnectionFailedError(TransportError):
    """Raised when a connection cannot be opened, read or written."""


class ProtocolParseError(TransportError):
    """Raised for a malformed status line or an unusable redirect."""


class RedirectLimitExceededError(TransportError):
    """Raised when a redirect chain is longer than the configured cap."""


class HttpStatusError(TransportError):
    """Raised when the media request ends in a non-2xx status."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(
            f"HTTP {status} while downloading {url}",
            hint="The signed URL may have expired; try again.",
        )
        self.status: int = status


# --- Platform drift --------------------------------------------------------

class PlatformFormatChangedError(YtdFetchError):
    """Raised when the platform's page or script no longer has a known shape.

    None of these are caller errors, and retrying within the same session
    will not help.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(
            message,
            hint=hint or "The platform may have changed its page or player format.",
        )


class NoFormatsFoundError(PlatformFormatChangedError):
    """Raised when the watch page carries no recognisable format map."""


class VideoUnavailableError(PlatformFormatChangedError):
    """Raised when the page reports the video as blocked or unavailable."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Video unavailable: {reason}",
            hint="The video may be age-restricted, removed, or geo-blocked.",
        )
        self.reason: str = reason


class PlayerNotFoundError(PlatformFormatChangedError):
    """Raised when no player script reference is found in the watch page."""


class CipherFunctionNameNotFoundError(PlatformFormatChangedError):
    """Raised when the decode function's call site cannot be located."""


class CipherFunctionBodyNotFoundError(PlatformFormatChangedError):
    """Raised when the decode function's declaration cannot be located."""


class HelperFunctionNotFoundError(PlatformFormatChangedError):
    """Raised when a helper called by the decode function is missing."""


class UnparsableInstructionError(PlatformFormatChangedError):
    """Raised for a decode-function statement with no known shape."""

    def __init__(self, statement: str) -> None:
        super().__init__(f"Unparsable cipher instruction: {statement!r}")
        self.statement: str = statement


# --- Format selection ------------------------------------------------------

class NoMatchingFormatError(YtdFetchError):
    """Raised when no format can be selected from the catalog."""


# --- Output ----------------------------------------------------------------

class OutputFileError(YtdFetchError):
    """Raised when the destination file cannot be opened, written or renamed."""


class DownloadCancelledError(YtdFetchError):
    """Raised when a transfer is stopped through its cancellation signal."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(YtdFetchError):
    """Raised when a runtime dependency or setting is not usable."""
