"""Pure extraction of the format map and page metadata from a watch page.

The platform embeds its player configuration as a JavaScript object
literal (``ytplayer.config = {...};``).  Inside it, one of three legacy
keys carries the muxed format map and ``adaptive_fmts`` carries the
adaptive one; both are comma-separated lists of query strings.

When no map is present the page usually explains why in plain text, so
the failure is classified by scanning for known block phrases.
"""

from __future__ import annotations

import html
import re
from urllib.parse import parse_qs, urlsplit

from ytd_fetch.exceptions import NoFormatsFoundError, VideoUnavailableError

_CONFIG_BLOB = re.compile(r"ytplayer\.config\s*=\s*\{(.*?)\};", re.S)

# Priority order: the first key found wins.
_MAP_KEYS: tuple[str, ...] = (
    "fmt_url_map",
    "fmt_stream_map",
    "url_encoded_fmt_stream_map",
)
_ADAPTIVE_KEY = "adaptive_fmts"

# Checked in order; the first phrase found in the page decides the reason.
_BLOCK_PHRASES: tuple[tuple[str, str], ...] = (
    ("this video has been age-restricted", "the video is age-restricted"),
    ("large volume of requests", "rate-limited, solve the captcha on the site first"),
    ("is not available", "the video is not available"),
    ("content warning", "content warning"),
    ("removed by the user", "the video was removed by the user"),
    ("copyright claim", "copyright claim"),
    ("in your country", "the video is not available in your country"),
)

_TITLE = re.compile(r"<title>(.+?)</title>", re.S | re.I)
_TITLE_SUFFIX = " - YouTube"


def _config_value(config: str, key: str) -> str | None:
    match = re.search(rf'"{re.escape(key)}":\s*"(.*?)"', config, re.S)
    return match.group(1) if match else None


def classify_block(page: str) -> str | None:
    """Return the block reason announced by *page*, or ``None``."""
    lowered = page.lower()
    for phrase, reason in _BLOCK_PHRASES:
        if phrase in lowered:
            return reason
    return None


def extract_format_map(page: str) -> str:
    """Return the raw format-map string embedded in *page*.

    The adaptive map, when present, is appended to the primary one with a
    comma separator.

    Raises
    ------
    VideoUnavailableError
        When the page has no map and carries a known block phrase.
    NoFormatsFoundError
        When no map is found and no reason can be given.
    """
    blob = _CONFIG_BLOB.search(page)
    config = blob.group(1).replace("\\u0026", "&") if blob else ""

    primary: str | None = None
    for key in _MAP_KEYS:
        primary = _config_value(config, key)
        if primary is not None:
            break

    if primary is None:
        reason = classify_block(page)
        if reason is not None:
            raise VideoUnavailableError(reason)
        raise NoFormatsFoundError("No links are found for this video.")

    adaptive = _config_value(config, _ADAPTIVE_KEY)
    if adaptive:
        return f"{primary},{adaptive}"
    return primary


def extract_title(page: str) -> str | None:
    """Return the unescaped ``<title>`` text without the site suffix."""
    match = _TITLE.search(page)
    if match is None:
        return None
    title = html.unescape(match.group(1)).strip()
    if title.endswith(_TITLE_SUFFIX):
        title = title[: -len(_TITLE_SUFFIX)].rstrip()
    return title or None


def extract_video_id(url: str) -> str | None:
    """Return the video id from a ``watch?v=`` or ``youtu.be/`` URL."""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    if host == "youtu.be" or host.endswith(".youtu.be"):
        video_id = parts.path.strip("/").split("/", 1)[0]
        return video_id or None
    values = parse_qs(parts.query).get("v")
    return values[0] if values else None
