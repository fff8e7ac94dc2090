"""Shared pytest fixtures and configuration for the ytd-fetch test suite.

Guidelines
----------
* No internet access in any test.
* Network I/O is faked at the transport boundary (or at ``socket`` /
  ``requests.Session`` for backend tests).
* Core tests must be pure — no side effects.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping

import pytest

from ytd_fetch.core.models import TransportRequest, TransportResponse
from ytd_fetch.exceptions import ConnectionFailedError

WATCH_URL = "https://www.youtube.com/watch?v=abc123"
PLAYER_URL = "https://s.ytimg.com/yts/jsbin/player-en_US-vfl1234/base.js"
MEDIA_URL = "https://r1.example.com/videoplayback?id=1"

# Decode function Kr: swap3 splice2 reverse reverse splice1.
PLAYER_SCRIPT = (
    "var Xy={ab:function(a,b){a.splice(0,b)},"
    "cd:function(a){a.reverse()},"
    "ef:function(a,b){var c=a[0];a[0]=a[b%a.length];a[b%a.length]=c}};\n"
    'Kr=function(a){a=a.split("");Xy.ef(a,3);Xy.ab(a,2);Xy.cd(a,7);'
    'a=a.reverse();a=a.slice(1);return a.join("")};\n'
    "function zz(e){var c=e.sig||Kr(e.s);return c}\n"
)


def build_watch_page(
    stream_map: str,
    *,
    title: str = "My Clip",
    adaptive: str | None = None,
) -> str:
    """Return a minimal watch page embedding *stream_map*."""
    args = f'"url_encoded_fmt_stream_map":"{stream_map}"'
    if adaptive is not None:
        args += f',"adaptive_fmts":"{adaptive}"'
    return (
        f"<html><head><title>{title} - YouTube</title></head><body>"
        "<script>var ytplayer = ytplayer || {};"
        r'ytplayer.config = {"assets":{"js":"\/yts\/jsbin\/player-en_US-vfl1234\/base.js"},'
        f'"args":{{{args}}}}};'
        "</script></body></html>"
    )


def map_entry(**fields: str) -> str:
    """Join *fields* the way the page escapes them, with ``\\u0026``."""
    return r"\u0026".join(f"{key}={value}" for key, value in fields.items())


class FakeTransport:
    """In-memory :class:`~ytd_fetch.core.protocols.Transport`.

    ``get_text`` serves *pages* by URL; ``send`` writes *media* to the
    request's sink and answers with *status*.
    """

    def __init__(
        self,
        pages: Mapping[str, str],
        *,
        media: bytes = b"media-bytes",
        status: int = 200,
    ) -> None:
        self.pages = dict(pages)
        self.media = media
        self.status = status
        self.fetched: list[str] = []
        self.sent: list[TransportRequest] = []

    def get_text(self, url: str) -> str:
        self.fetched.append(url)
        try:
            return self.pages[url]
        except KeyError:
            raise ConnectionFailedError(f"no fake page for {url}") from None

    def send(self, request: TransportRequest) -> TransportResponse:
        self.sent.append(request)
        if request.sink is not None and 200 <= self.status < 300:
            request.sink.write(self.media)
            if request.progress_callback is not None:
                request.progress_callback(len(self.media), len(self.media))
        return TransportResponse(status=self.status, headers={}, url=request.url)


@pytest.fixture
def player_script() -> str:
    return PLAYER_SCRIPT


@pytest.fixture(autouse=True)
def _reset_logging_handlers() -> Iterator[None]:
    """Drop handlers attached by ``configure_logging`` during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    for handler in [h for h in root.handlers if getattr(h, "_ytd_fetch", False)]:
        root.removeHandler(handler)
