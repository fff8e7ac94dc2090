"""Format map parsing and format selection.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.

Pipeline
--------
1. **Parse** — split the raw map into entries, percent-decode, drop
   entries without a URL (:func:`parse_format_map`).
2. **Select** — by itag, falling back to the quality tiers
   (:func:`select_by_itag`, :func:`select_highest_quality`).
3. **Enumerate** — display triples in original order
   (:func:`list_formats`).
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from urllib.parse import unquote_plus

from ytd_fetch.core.models import FormatDescriptor, FormatSummary
from ytd_fetch.exceptions import NoMatchingFormatError


# ---------------------------------------------------------------------------
# Typed collection wrapper
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FormatCatalog:
    """Immutable, ordered collection of :class:`FormatDescriptor` entries.

    Built fresh from every page fetch and never modified afterwards.
    """

    formats: tuple[FormatDescriptor, ...]

    def __len__(self) -> int:
        return len(self.formats)

    def __bool__(self) -> bool:
        return len(self.formats) > 0

    def __iter__(self) -> Iterator[FormatDescriptor]:
        return iter(self.formats)

    def highest_quality(self) -> FormatDescriptor:
        return select_highest_quality(self.formats)

    def by_itag(self, itag: str) -> FormatDescriptor:
        return select_by_itag(self.formats, itag)

    def summaries(self) -> list[FormatSummary]:
        return list_formats(self.formats)


# ---------------------------------------------------------------------------
# 1. Parse
# ---------------------------------------------------------------------------

def _segment_pairs(segment: str) -> list[tuple[str, str]]:
    """Split one query-string segment into non-empty ``(key, value)`` pairs."""
    pairs: list[tuple[str, str]] = []
    for part in segment.split("&"):
        key, sep, value = part.partition("=")
        key = key.strip()
        if sep and key and value:
            pairs.append((key, value))
    return pairs


def _group_entries(raw: str) -> list[dict[str, str]]:
    """Group comma segments into per-format field dicts.

    A segment holding several ``&``-joined pairs is one entry on its own.
    Runs of single-pair segments are merged into one entry until a key
    repeats, so a map whose fields were comma-joined still parses.
    Within an entry the first occurrence of a key wins.
    """
    entries: list[dict[str, str]] = []
    pending: dict[str, str] | None = None
    for segment in raw.split(","):
        pairs = _segment_pairs(segment)
        if not pairs:
            continue
        if len(pairs) == 1:
            key, value = pairs[0]
            if pending is None or key in pending:
                pending = {}
                entries.append(pending)
            pending[key] = value
            continue

        pending = None
        entry: dict[str, str] = {}
        for key, value in pairs:
            entry.setdefault(key, value)
        entries.append(entry)
    return entries


def _descriptor_from_fields(fields: dict[str, str]) -> FormatDescriptor | None:
    url = unquote_plus(fields.get("url", ""))
    if not url:
        return None

    def optional(key: str) -> str | None:
        value = fields.get(key)
        return unquote_plus(value) if value is not None else None

    return FormatDescriptor(
        itag=unquote_plus(fields.get("itag", "")),
        mime_type=unquote_plus(fields.get("type", "")),
        quality=unquote_plus(fields.get("quality", "")),
        url=url,
        sig=optional("sig"),
        s=optional("s"),
    )


def parse_format_map(raw: str) -> FormatCatalog:
    """Parse a raw format-map string into a :class:`FormatCatalog`.

    Entries lacking a URL are dropped; an empty catalog is a valid result.
    """
    descriptors = (
        _descriptor_from_fields(fields) for fields in _group_entries(raw)
    )
    return FormatCatalog(formats=tuple(d for d in descriptors if d is not None))


# ---------------------------------------------------------------------------
# 2. Select
# ---------------------------------------------------------------------------

def select_highest_quality(formats: Sequence[FormatDescriptor]) -> FormatDescriptor:
    """Pick the preferred format in a single pass.

    Tiers, highest first: MP4 ``hd720`` > MP4 ``medium`` > any MP4 > FLV >
    the first candidate.  Within a tier the **last** match wins.  WebM and
    3GPP formats are never preferred; they are only reachable through the
    first-candidate fallback or an explicit itag.

    Raises
    ------
    NoMatchingFormatError
        When *formats* is empty.
    """
    if not formats:
        raise NoMatchingFormatError("No formats available to choose from.")

    hd720_mp4: FormatDescriptor | None = None
    medium_mp4: FormatDescriptor | None = None
    other_mp4: FormatDescriptor | None = None
    flv: FormatDescriptor | None = None

    for fmt in formats:
        mime = fmt.mime_type.lower()
        quality = fmt.quality.lower()
        is_mp4 = "video/mp4" in mime
        if is_mp4 and "hd720" in quality:
            hd720_mp4 = fmt
        elif is_mp4:
            other_mp4 = fmt
        if is_mp4 and "medium" in quality:
            medium_mp4 = fmt
        if "video/x-flv" in mime:
            flv = fmt

    for candidate in (hd720_mp4, medium_mp4, other_mp4, flv):
        if candidate is not None:
            return candidate
    return formats[0]


def select_by_itag(formats: Sequence[FormatDescriptor], itag: str) -> FormatDescriptor:
    """Return the first format whose itag equals *itag* exactly.

    Falls back to :func:`select_highest_quality` when none matches.
    """
    for fmt in formats:
        if fmt.itag == itag:
            return fmt
    return select_highest_quality(formats)


# ---------------------------------------------------------------------------
# 3. Enumerate
# ---------------------------------------------------------------------------

def list_formats(formats: Sequence[FormatDescriptor]) -> list[FormatSummary]:
    """Return ``(itag, quality, mime type)`` triples in original order.

    Formats without an itag cannot be requested and are left out.
    """
    return [
        FormatSummary(itag=fmt.itag, quality=fmt.quality, mime_type=fmt.mime_type)
        for fmt in formats
        if fmt.itag
    ]
