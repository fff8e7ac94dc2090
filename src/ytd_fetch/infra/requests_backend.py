"""``requests``-backed implementation of the transport backend.

This module is the **only** place in the codebase that imports
``requests`` for I/O.  Bodies are streamed straight to the sink with
``iter_content`` so large media never sits in memory, and every
``requests`` exception is re-raised as a typed
:class:`~ytd_fetch.exceptions.TransportError`.

TLS verification is disabled by default (see
:attr:`Settings.verify_tls <ytd_fetch.config.Settings.verify_tls>`);
the resulting ``InsecureRequestWarning`` is silenced only around the
requests issued here.
"""

from __future__ import annotations

import logging
import warnings

import requests
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import InsecureRequestWarning

from ytd_fetch.config import Settings
from ytd_fetch.core.models import REDIRECT_STATUSES, TransportRequest, TransportResponse
from ytd_fetch.exceptions import ConnectionFailedError, ProtocolParseError
from ytd_fetch.infra.streaming import BodyWriter, content_length, is_success

logger = logging.getLogger(__name__)


class RequestsBackend:
    """Concrete :class:`~ytd_fetch.core.protocols.TransportBackend` on ``requests``."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._session = session if session is not None else requests.Session()
        self._session.headers.update(
            {
                "User-Agent": self._settings.user_agent,
                "Accept": "*/*",
            }
        )

    # ------------------------------------------------------------------
    # Protocol method
    # ------------------------------------------------------------------

    def perform(self, request: TransportRequest) -> TransportResponse:
        response = self._open(request.url)
        with response:
            headers = CaseInsensitiveDict(response.headers)
            status = response.status_code
            if status in REDIRECT_STATUSES:
                return TransportResponse(status=status, headers=headers, url=request.url)

            writer = BodyWriter(
                request,
                content_length(headers),
                to_sink=is_success(status),
            )
            try:
                for chunk in response.iter_content(chunk_size=self._settings.chunk_size):
                    writer.write(chunk)
            except requests.RequestException as exc:
                raise ConnectionFailedError(
                    f"Transfer from {request.url} broke after {writer.downloaded} bytes: {exc}",
                ) from exc

        return TransportResponse(
            status=status,
            headers=headers,
            body=writer.body(),
            url=request.url,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _open(self, url: str) -> requests.Response:
        """Issue the GET and return the unread, streaming response."""
        settings = self._settings
        try:
            with warnings.catch_warnings():
                if not settings.verify_tls:
                    warnings.simplefilter("ignore", InsecureRequestWarning)
                return self._session.get(
                    url,
                    stream=True,
                    allow_redirects=False,
                    verify=settings.verify_tls,
                    timeout=(settings.connect_timeout, settings.read_timeout),
                )
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as exc:
            raise ProtocolParseError(f"Unusable URL {url!r}: {exc}") from exc
        except requests.RequestException as exc:
            raise ConnectionFailedError(f"GET {url} failed: {exc}") from exc
