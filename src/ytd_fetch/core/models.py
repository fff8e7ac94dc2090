"""Domain models for ytd-fetch.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and rendering.  They carry zero I/O and
zero dependencies on external packages.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import BinaryIO, Union

ProgressCallback = Callable[[int, int], None]
"""Called as ``callback(downloaded_bytes, total_bytes)`` after each chunk."""


# ---------------------------------------------------------------------------
# Transport values
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TransportRequest:
    """A single GET request, discarded after use."""

    url: str
    """Absolute ``http``/``https`` URL."""

    follow_redirects: bool = False

    sink: BinaryIO | None = None
    """Writable binary stream receiving the body.  ``None`` buffers it."""

    progress_callback: ProgressCallback | None = None

    cancel_event: threading.Event | None = None
    """Checked at every chunk boundary; when set the transfer is aborted."""

    def with_url(self, url: str) -> TransportRequest:
        """Return a copy of this request pointed at *url* (redirect hop)."""
        return replace(self, url=url)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass(frozen=True, slots=True)
class TransportResponse:
    """Status, headers and (unless streamed to a sink) the body."""

    status: int
    headers: Mapping[str, str]
    """Case-insensitive header mapping."""

    body: bytes = b""
    """Empty when the body was written to the request's sink."""

    url: str = ""
    """URL that produced this response, after any redirects."""

    redirects: int = 0
    """Number of redirect hops followed to reach :attr:`url`."""

    @property
    def is_redirect(self) -> bool:
        return self.status in REDIRECT_STATUSES

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


REDIRECT_STATUSES: frozenset[int] = frozenset({300, 301, 302, 303, 307})


# ---------------------------------------------------------------------------
# Format descriptors
# ---------------------------------------------------------------------------

_MIME_EXTENSIONS: tuple[tuple[str, str], ...] = (
    ("/mp4", "mp4"),
    ("/webm", "webm"),
    ("/x-flv", "flv"),
    ("video/3gpp", "3gp"),
)


def extension_for_mime(mime_type: str) -> str | None:
    """Map a mime type (with or without codec parameters) to an extension."""
    lowered = mime_type.lower()
    for marker, ext in _MIME_EXTENSIONS:
        if marker in lowered:
            return ext
    return None


@dataclass(frozen=True, slots=True)
class FormatDescriptor:
    """One downloadable encoding listed in the watch page's format map.

    Every field is already percent-decoded.
    """

    itag: str
    """Platform format identifier (e.g. ``"18"``)."""

    mime_type: str
    """Mime type, possibly with codec parameters (``video/mp4; codecs=…``)."""

    quality: str
    """Quality label (e.g. ``"hd720"``, ``"medium"``)."""

    url: str
    """Raw download URL, without the ``signature`` parameter."""

    sig: str | None = None
    """Plaintext signature, when the platform sent one."""

    s: str | None = None
    """Ciphered signature, to be deciphered with the player's cipher."""

    @property
    def is_ciphered(self) -> bool:
        return self.sig is None and self.s is not None

    @property
    def extension(self) -> str | None:
        return extension_for_mime(self.mime_type)


@dataclass(frozen=True, slots=True)
class FormatSummary:
    """Display triple for format listings."""

    itag: str
    quality: str
    mime_type: str


# ---------------------------------------------------------------------------
# Cipher program
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Reverse:
    """Reverse the whole sequence."""

    def __str__(self) -> str:
        return "reverse"


@dataclass(frozen=True, slots=True)
class Splice:
    """Drop the first :attr:`count` elements."""

    count: int

    def __str__(self) -> str:
        return f"splice{self.count}"


@dataclass(frozen=True, slots=True)
class Swap:
    """Exchange index 0 with ``index % len(sequence)``."""

    index: int

    def __str__(self) -> str:
        return f"swap{self.index}"


CipherOp = Union[Reverse, Splice, Swap]


@dataclass(frozen=True, slots=True)
class CipherProgram:
    """Ordered, reusable sequence of cipher operations."""

    ops: tuple[CipherOp, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.ops)

    def __iter__(self) -> Iterator[CipherOp]:
        return iter(self.ops)

    def __str__(self) -> str:
        return " ".join(str(op) for op in self.ops)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DownloadTarget:
    """A selected format together with its fully resolved URL."""

    descriptor: FormatDescriptor
    url: str
    """Download URL with the ``signature`` parameter appended when needed."""

    file_name: str
    """Destination base name; the extension is appended after download."""


class DownloadState(enum.Enum):
    """Linear states of one orchestration run."""

    IDLE = 0
    PAGE_FETCHED = 1
    CATALOG_EXTRACTED = 2
    FORMAT_SELECTED = 3
    URL_RESOLVED = 4
    DOWNLOADING = 5
    COMPLETED = 6
    FAILED = 7
