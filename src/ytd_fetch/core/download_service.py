"""Download orchestrator — drives one watch URL to a file on disk.

The orchestrator sequences the pipeline as a linear state machine::

    IDLE → PAGE_FETCHED → CATALOG_EXTRACTED → FORMAT_SELECTED
         → URL_RESOLVED → DOWNLOADING → COMPLETED

``FAILED`` is reachable from every state and records the originating
error in :attr:`DownloadOrchestrator.error`.  There are no backward
transitions, so one instance serves exactly one run.

It depends on a :class:`~ytd_fetch.core.protocols.Transport` injected at
construction time and touches the filesystem only to write and rename
the destination file.

Guarantees
----------
* Only :class:`~ytd_fetch.exceptions.YtdFetchError` subclasses escape.
* The cipher is resolved at most once per run.
* A failed transfer may leave a truncated file at the destination; it is
  not deleted here.  Cleaning it up is the caller's responsibility.
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from urllib.parse import quote

from ytd_fetch.config import DEFAULT_PLAYER_URL_TEMPLATE
from ytd_fetch.core.cipher_resolver import CipherResolver
from ytd_fetch.core.decipher import decipher
from ytd_fetch.core.format_catalog import FormatCatalog, parse_format_map
from ytd_fetch.core.models import (
    CipherProgram,
    DownloadState,
    DownloadTarget,
    FormatDescriptor,
    FormatSummary,
    ProgressCallback,
    TransportRequest,
    TransportResponse,
)
from ytd_fetch.core.page_extractor import extract_format_map, extract_title, extract_video_id
from ytd_fetch.core.protocols import Transport
from ytd_fetch.exceptions import (
    ConnectionFailedError,
    HttpStatusError,
    InvalidURLError,
    NoFormatsFoundError,
    OutputFileError,
    YtdFetchError,
)

logger = logging.getLogger(__name__)

_WATCH_URL_SHAPES: tuple[re.Pattern[str], ...] = (
    re.compile(r"\byoutube\.com/watch\?v=.+"),
    re.compile(r"\byoutu\.be/.+"),
)
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def validate_watch_url(url: str) -> str:
    """Return the stripped *url*, or raise :class:`InvalidURLError`."""
    stripped = url.strip()
    if not stripped:
        raise InvalidURLError("URL must not be empty.")
    if not stripped.startswith(("http://", "https://")):
        raise InvalidURLError(
            f"Invalid URL: {stripped}",
            hint="URL must start with http:// or https://",
        )
    if not any(shape.search(stripped) for shape in _WATCH_URL_SHAPES):
        raise InvalidURLError(
            f"Not a video URL: {stripped}",
            hint="Expected youtube.com/watch?v=… or youtu.be/…",
        )
    return stripped


def append_signature(url: str, signature: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}signature={quote(signature, safe='.')}"


def default_file_name(title: str | None, video_id: str | None) -> str:
    """Build ``<title>_<video id>`` with filesystem-unsafe characters replaced."""
    parts = [
        _UNSAFE_FILENAME_CHARS.sub("_", part).strip(" .")
        for part in (title, video_id)
        if part
    ]
    name = "_".join(part for part in parts if part)
    return name or "video"


def append_extension(path: Path, descriptor: FormatDescriptor) -> Path:
    """Rename *path* to carry the extension inferred from the mime type.

    Unknown mime types leave the file untouched.
    """
    ext = descriptor.extension
    if ext is None:
        logger.warning("Unknown mime type %r; leaving %s unrenamed", descriptor.mime_type, path)
        return path
    renamed = path.with_name(f"{path.name}.{ext}")
    try:
        path.replace(renamed)
    except OSError as exc:
        raise OutputFileError(f"Cannot rename {path} to {renamed}: {exc}") from exc
    return renamed


class DownloadOrchestrator:
    """Single-run pipeline from watch URL to media file.

    Parameters
    ----------
    transport:
        Any object satisfying the :class:`Transport` protocol.
    player_url_template:
        Forwarded to :class:`CipherResolver`.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        player_url_template: str = DEFAULT_PLAYER_URL_TEMPLATE,
    ) -> None:
        self._transport: Transport = transport
        self._resolver = CipherResolver(transport, player_url_template=player_url_template)
        self._state: DownloadState = DownloadState.IDLE
        self._error: YtdFetchError | None = None
        self._url: str | None = None
        self._page: str | None = None
        self._program: CipherProgram | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> DownloadState:
        return self._state

    @property
    def error(self) -> YtdFetchError | None:
        """The error that moved the run to ``FAILED``, if any."""
        return self._error

    @property
    def title(self) -> str | None:
        return extract_title(self._page) if self._page is not None else None

    def _advance(self, state: DownloadState) -> None:
        if self._state is DownloadState.FAILED or state.value <= self._state.value:
            raise RuntimeError(
                f"Illegal transition {self._state.name} -> {state.name}; "
                "use a new orchestrator per run.",
            )
        logger.debug("State %s -> %s", self._state.name, state.name)
        self._state = state

    def _fail(self, exc: YtdFetchError) -> None:
        logger.debug("State %s -> FAILED: %s", self._state.name, exc)
        self._state = DownloadState.FAILED
        self._error = exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch_catalog(self, url: str) -> FormatCatalog:
        """Fetch the watch page and parse its format catalog.

        Raises
        ------
        InvalidURLError
            If *url* is not an accepted watch URL.
        VideoUnavailableError
            If the page reports the video as blocked.
        NoFormatsFoundError
            If the page carries no usable formats.
        """
        try:
            return self._fetch_catalog(url)
        except YtdFetchError as exc:
            self._fail(exc)
            raise

    def list_formats(self, url: str) -> list[FormatSummary]:
        return self.fetch_catalog(url).summaries()

    def resolve_target(
        self,
        url: str,
        *,
        itag: str | None = None,
        file_name: str | None = None,
    ) -> DownloadTarget:
        """Select a format for *url* and build its signed download URL."""
        try:
            return self._resolve_target(url, itag=itag, file_name=file_name)
        except YtdFetchError as exc:
            self._fail(exc)
            raise

    def download(
        self,
        url: str,
        *,
        itag: str | None = None,
        file_name: str | None = None,
        directory: str | Path = ".",
        progress_callback: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Path:
        """Download *url* and return the path of the written file.

        Raises
        ------
        OutputFileError
            When the destination cannot be opened, written or renamed.
        HttpStatusError
            When the media request does not end in a 2xx status.
        DownloadCancelledError
            When *cancel_event* is set mid-transfer.
        """
        try:
            target = self._resolve_target(url, itag=itag, file_name=file_name)
            path = Path(directory) / target.file_name
            self._advance(DownloadState.DOWNLOADING)
            self._stream_to_file(target, path, progress_callback, cancel_event)
            final_path = append_extension(path, target.descriptor)
            self._advance(DownloadState.COMPLETED)
        except YtdFetchError as exc:
            self._fail(exc)
            raise
        logger.info("Saved %s", final_path)
        return final_path

    def print_cipher(self, url: str | None = None) -> CipherProgram:
        """Resolve the cipher currently served for *url*.

        Without *url*, a watch page linked from the home page is used.
        """
        try:
            if url is None:
                url = self._resolver.random_watch_url()
                logger.info("Using %s", url)
            self._fetch_page(url)
            return self._cipher_program()
        except YtdFetchError as exc:
            self._fail(exc)
            raise

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _fetch_page(self, url: str) -> str:
        self._url = validate_watch_url(url)
        self._page = self._get_text(self._url)
        self._advance(DownloadState.PAGE_FETCHED)
        return self._page

    def _fetch_catalog(self, url: str) -> FormatCatalog:
        page = self._fetch_page(url)
        catalog = parse_format_map(extract_format_map(page))
        if not catalog:
            raise NoFormatsFoundError("The format map lists no downloadable URLs.")
        self._advance(DownloadState.CATALOG_EXTRACTED)
        return catalog

    def _resolve_target(
        self,
        url: str,
        *,
        itag: str | None,
        file_name: str | None,
    ) -> DownloadTarget:
        catalog = self._fetch_catalog(url)
        descriptor = catalog.by_itag(itag) if itag is not None else catalog.highest_quality()
        if itag is not None and descriptor.itag != itag:
            logger.warning("Format %s not offered; using %s instead", itag, descriptor.itag)
        self._advance(DownloadState.FORMAT_SELECTED)
        logger.info(
            "Selected itag %s (%s, %s)",
            descriptor.itag,
            descriptor.quality or "?",
            descriptor.mime_type or "?",
        )

        resolved = descriptor.url
        if descriptor.sig is not None:
            resolved = append_signature(resolved, descriptor.sig)
        elif descriptor.s is not None:
            signature = decipher(self._cipher_program(), descriptor.s)
            resolved = append_signature(resolved, signature)

        name = file_name or default_file_name(self.title, extract_video_id(self._url or url))
        self._advance(DownloadState.URL_RESOLVED)
        return DownloadTarget(descriptor=descriptor, url=resolved, file_name=name)

    def _cipher_program(self) -> CipherProgram:
        if self._program is None:
            if self._page is None:
                raise RuntimeError("The watch page must be fetched before the cipher.")
            self._program = self._resolver.resolve(self._page)
        return self._program

    def _stream_to_file(
        self,
        target: DownloadTarget,
        path: Path,
        progress_callback: ProgressCallback | None,
        cancel_event: threading.Event | None,
    ) -> None:
        try:
            sink = path.open("wb")
        except OSError as exc:
            raise OutputFileError(f"Unable to open file {path}: {exc}") from exc

        with sink:
            response = self._send(
                TransportRequest(
                    target.url,
                    follow_redirects=True,
                    sink=sink,
                    progress_callback=progress_callback,
                    cancel_event=cancel_event,
                )
            )
        if not 200 <= response.status < 300:
            raise HttpStatusError(response.status, target.url)

    # ------------------------------------------------------------------
    # Transport delegation (safe boundary)
    # ------------------------------------------------------------------

    def _send(self, request: TransportRequest) -> TransportResponse:
        """Call the transport and ensure only our exceptions escape."""
        try:
            return self._transport.send(request)
        except YtdFetchError:
            raise
        except Exception as exc:
            raise ConnectionFailedError(f"Unexpected transport error: {exc}") from exc

    def _get_text(self, url: str) -> str:
        try:
            return self._transport.get_text(url)
        except YtdFetchError:
            raise
        except Exception as exc:
            raise ConnectionFailedError(f"Unexpected transport error: {exc}") from exc
