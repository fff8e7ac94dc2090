"""Manual HTTP/1.1 backend over a raw TCP (optionally TLS) socket.

Writes a literal request line with a minimal header set, reads the
response in fixed-size chunks, splits the header block from the body on
the first blank line, and then either buffers the body or streams it to
the request's sink.  No redirect handling — that lives in
:class:`~ytd_fetch.infra.http_transport.HttpTransport`.

TLS certificate and hostname verification follow
:attr:`Settings.verify_tls <ytd_fetch.config.Settings.verify_tls>`,
which is off by default.
"""

from __future__ import annotations

import logging
import socket
import ssl
from collections.abc import Mapping
from urllib.parse import urlsplit

from requests.utils import requote_uri

from ytd_fetch.config import Settings
from ytd_fetch.core.models import REDIRECT_STATUSES, TransportRequest, TransportResponse
from ytd_fetch.exceptions import ConnectionFailedError, ProtocolParseError
from ytd_fetch.infra.streaming import (
    BodyWriter,
    ChunkedDecoder,
    content_length,
    is_success,
    parse_header_block,
)

logger = logging.getLogger(__name__)

_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}
_HEADER_END = b"\r\n\r\n"


class SocketBackend:
    """Concrete :class:`~ytd_fetch.core.protocols.TransportBackend` on sockets."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings(backend="socket")

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def perform(self, request: TransportRequest) -> TransportResponse:
        scheme, host, port, target = self._split_url(request.url)
        raw_request = self._build_request(host, port, scheme, target)

        sock = self._connect(scheme, host, port)
        try:
            sock.sendall(raw_request)
            status, headers, body = self._read_response(sock, request)
        except socket.timeout as exc:
            raise ConnectionFailedError(f"Timed out reading from {host}:{port}") from exc
        except OSError as exc:
            raise ConnectionFailedError(f"Connection to {host}:{port} failed: {exc}") from exc
        finally:
            sock.close()

        return TransportResponse(status=status, headers=headers, body=body, url=request.url)

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------

    @staticmethod
    def _split_url(url: str) -> tuple[str, str, int, str]:
        """Return ``(scheme, host, port, request-target)`` for *url*."""
        parts = urlsplit(url)
        scheme = parts.scheme.lower()
        if scheme not in _DEFAULT_PORTS:
            raise ProtocolParseError(f"Unsupported URL scheme: {scheme or '(none)'}")
        if not parts.hostname:
            raise ProtocolParseError(f"URL has no host: {url}")
        try:
            port = parts.port or _DEFAULT_PORTS[scheme]
        except ValueError as exc:
            raise ProtocolParseError(f"Invalid port in URL: {url}") from exc

        target = parts.path or "/"
        if parts.query:
            target = f"{target}?{parts.query}"
        return scheme, parts.hostname, port, requote_uri(target)

    def _build_request(self, host: str, port: int, scheme: str, target: str) -> bytes:
        host_header = host if port == _DEFAULT_PORTS[scheme] else f"{host}:{port}"
        lines = (
            f"GET {target} HTTP/1.1",
            f"Host: {host_header}",
            "Accept: */*",
            f"User-Agent: {self._settings.user_agent}",
            "Connection: close",
        )
        try:
            return ("\r\n".join(lines) + "\r\n\r\n").encode("ascii", errors="strict")
        except UnicodeEncodeError as exc:
            raise ProtocolParseError(f"Request for {host} is not ASCII-safe: {exc.reason}") from exc

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _tls_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self._settings.verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def _connect(self, scheme: str, host: str, port: int) -> socket.socket:
        logger.debug("Opening %s connection to %s:%d", scheme, host, port)
        try:
            sock = socket.create_connection((host, port), timeout=self._settings.connect_timeout)
        except OSError as exc:
            raise ConnectionFailedError(f"Cannot connect to {host}:{port}: {exc}") from exc

        sock.settimeout(self._settings.read_timeout)
        if scheme != "https":
            return sock
        try:
            return self._tls_context().wrap_socket(sock, server_hostname=host)
        except OSError as exc:
            sock.close()
            raise ConnectionFailedError(f"TLS handshake with {host} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    def _read_response(
        self,
        sock: socket.socket,
        request: TransportRequest,
    ) -> tuple[int, Mapping[str, str], bytes]:
        chunk_size = self._settings.chunk_size

        head = b""
        while _HEADER_END not in head:
            chunk = sock.recv(chunk_size)
            if not chunk:
                break
            head += chunk
        if _HEADER_END not in head:
            if not head:
                raise ProtocolParseError("Empty response from server")
            raise ProtocolParseError("Response ended inside the header block")

        header_block, _, rest = head.partition(_HEADER_END)
        status, headers = parse_header_block(header_block)
        if status in REDIRECT_STATUSES:
            return status, headers, b""

        chunked = "chunked" in headers.get("Transfer-Encoding", "").lower()
        decoder = ChunkedDecoder() if chunked else None
        total = None if chunked else content_length(headers)
        writer = BodyWriter(request, total, to_sink=is_success(status))

        data = rest
        while True:
            if data:
                writer.write(decoder.feed(data) if decoder is not None else data)
            if decoder is not None and decoder.finished:
                break
            if writer.complete:
                break
            data = sock.recv(chunk_size)
            if not data:
                break

        if total is not None and writer.downloaded < total:
            raise ConnectionFailedError(
                f"Connection closed after {writer.downloaded} of {total} bytes",
            )
        return status, headers, writer.body()
