"""Body handling shared by both transport backends.

:class:`BodyWriter` routes response chunks either to the request's sink
or to an in-memory buffer, counts bytes, reports progress and honours
the cancellation signal.  :func:`parse_header_block` and
:class:`ChunkedDecoder` serve the socket backend, which has to read the
wire format itself.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from requests.structures import CaseInsensitiveDict

from ytd_fetch.core.models import TransportRequest
from ytd_fetch.exceptions import DownloadCancelledError, OutputFileError, ProtocolParseError

_STATUS_LINE = re.compile(r"^HTTP/\d(?:\.\d)?\s+(\d{3})\b")


def content_length(headers: Mapping[str, str]) -> int | None:
    """Return the ``Content-Length`` value, or ``None`` when absent or bogus."""
    raw = headers.get("Content-Length")
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value >= 0 else None


def is_success(status: int) -> bool:
    return 200 <= status < 300


class BodyWriter:
    """Collects a response body chunk by chunk.

    The body goes to ``request.sink`` when *to_sink* is true, otherwise it
    is buffered and available from :meth:`body`.  Progress is reported
    after every chunk, but only when *total* is known.
    """

    def __init__(
        self,
        request: TransportRequest,
        total: int | None,
        *,
        to_sink: bool = True,
    ) -> None:
        self._request = request
        self._total = total
        self._sink = request.sink if to_sink else None
        self._buffer = bytearray()
        self.downloaded: int = 0

    @property
    def complete(self) -> bool:
        """True once *total* bytes have been received."""
        return self._total is not None and self.downloaded >= self._total

    def write(self, chunk: bytes) -> None:
        if self._request.cancelled:
            raise DownloadCancelledError(
                f"Transfer cancelled after {self.downloaded} bytes.",
            )
        if not chunk:
            return
        if self._sink is not None:
            try:
                self._sink.write(chunk)
            except OSError as exc:
                raise OutputFileError(f"Cannot write to destination: {exc}") from exc
        else:
            self._buffer.extend(chunk)
        self.downloaded += len(chunk)

        callback = self._request.progress_callback
        if callback is not None and self._total is not None:
            callback(self.downloaded, self._total)

    def body(self) -> bytes:
        return bytes(self._buffer)


# ---------------------------------------------------------------------------
# Wire-format helpers (socket backend)
# ---------------------------------------------------------------------------

def parse_header_block(block: bytes) -> tuple[int, CaseInsensitiveDict[str]]:
    """Split a raw header block into the status code and a header mapping.

    Raises
    ------
    ProtocolParseError
        When the first line is not an HTTP status line.
    """
    lines = block.decode("iso-8859-1").split("\r\n")
    match = _STATUS_LINE.match(lines[0])
    if match is None:
        raise ProtocolParseError(f"Invalid response from server: {lines[0][:80]!r}")

    headers: CaseInsensitiveDict[str] = CaseInsensitiveDict()
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        name, value = name.strip(), value.strip()
        if name in headers:
            headers[name] = f"{headers[name]}, {value}"
        else:
            headers[name] = value
    return int(match.group(1)), headers


class ChunkedDecoder:
    """Incremental decoder for ``Transfer-Encoding: chunked`` bodies."""

    def __init__(self) -> None:
        self._buffer = b""
        self._remaining = 0
        self._need_crlf = False
        self.finished: bool = False

    def feed(self, data: bytes) -> bytes:
        """Consume raw wire bytes and return whatever payload they complete."""
        self._buffer += data
        out = bytearray()
        while not self.finished:
            if self._need_crlf:
                if len(self._buffer) < 2:
                    break
                self._buffer = self._buffer[2:]
                self._need_crlf = False
                continue

            if self._remaining == 0:
                line_end = self._buffer.find(b"\r\n")
                if line_end < 0:
                    break
                size_field = self._buffer[:line_end].split(b";", 1)[0].strip()
                self._buffer = self._buffer[line_end + 2:]
                try:
                    size = int(size_field, 16)
                except ValueError as exc:
                    raise ProtocolParseError(
                        f"Invalid chunk size: {size_field[:16]!r}",
                    ) from exc
                if size == 0:
                    self.finished = True
                    break
                self._remaining = size
                continue

            if not self._buffer:
                break
            piece = self._buffer[: self._remaining]
            out.extend(piece)
            self._buffer = self._buffer[len(piece):]
            self._remaining -= len(piece)
            if self._remaining == 0:
                self._need_crlf = True
        return bytes(out)
