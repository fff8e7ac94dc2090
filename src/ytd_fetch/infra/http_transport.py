"""Redirect-following transport over a single interchangeable backend.

:class:`HttpTransport` satisfies :class:`~ytd_fetch.core.protocols.Transport`.
The backend (manual socket or ``requests``) is chosen once, at
construction, by :func:`create_transport`; no per-call branching on the
backend exists anywhere else.

The redirect loop is the only automatic retry in the application: on a
300/301/302/303/307 response it validates the ``Location`` header and
re-issues the request, up to ``max_redirects`` hops.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from urllib.parse import urlsplit

from ytd_fetch.config import Settings
from ytd_fetch.core.models import TransportRequest, TransportResponse
from ytd_fetch.core.protocols import TransportBackend
from ytd_fetch.exceptions import ProtocolParseError, RedirectLimitExceededError

logger = logging.getLogger(__name__)


def is_absolute_http_url(url: str) -> bool:
    """Return ``True`` for a well-formed absolute ``http``/``https`` URL."""
    if not url or any(ch.isspace() for ch in url):
        return False
    parts = urlsplit(url)
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return False
    try:
        parts.port
    except ValueError:
        return False
    return True


class HttpTransport:
    """GET requests with optional redirect following.

    Parameters
    ----------
    backend:
        Any object satisfying the :class:`TransportBackend` protocol.
    max_redirects:
        Maximum number of redirect hops followed per :meth:`send` call.
    """

    def __init__(self, backend: TransportBackend, *, max_redirects: int = 10) -> None:
        self._backend: TransportBackend = backend
        self._max_redirects: int = max_redirects

    @property
    def backend(self) -> TransportBackend:
        return self._backend

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send(self, request: TransportRequest) -> TransportResponse:
        """Perform *request*, following redirects when it asks for that.

        Raises
        ------
        ProtocolParseError
            When a redirect carries no ``Location`` or an invalid one.
        RedirectLimitExceededError
            When more than ``max_redirects`` hops would be needed.
        """
        current = request
        hops = 0
        while True:
            logger.debug("GET %s", current.url)
            response = self._backend.perform(current)

            if not (request.follow_redirects and response.is_redirect):
                return replace(response, url=current.url, redirects=hops)

            if hops >= self._max_redirects:
                raise RedirectLimitExceededError(
                    f"Maximum redirects reached ({self._max_redirects}) "
                    f"while fetching {request.url}",
                )

            location = response.headers.get("Location", "").strip()
            if not location:
                raise ProtocolParseError(
                    f"HTTP {response.status} from {current.url} has no Location header",
                )
            if not is_absolute_http_url(location):
                raise ProtocolParseError(
                    f"Redirect to an invalid location: {location!r}",
                )

            hops += 1
            logger.debug("HTTP %d, redirect %d -> %s", response.status, hops, location)
            current = current.with_url(location)

    def get_text(self, url: str) -> str:
        """Fetch *url* following redirects and return the decoded body."""
        response = self.send(TransportRequest(url, follow_redirects=True))
        if response.status >= 400:
            logger.warning("HTTP %d for %s", response.status, url)
        return response.text()


def create_transport(settings: Settings | None = None) -> HttpTransport:
    """Build the transport for ``settings.backend``."""
    settings = settings or Settings()
    backend: TransportBackend
    if settings.backend == "socket":
        from ytd_fetch.infra.socket_backend import SocketBackend

        backend = SocketBackend(settings)
    else:
        from ytd_fetch.infra.requests_backend import RequestsBackend

        backend = RequestsBackend(settings)
    logger.debug("Using %s transport backend", settings.backend)
    return HttpTransport(backend, max_redirects=settings.max_redirects)
