"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
transports — preserving the dependency inversion principle.
"""

from __future__ import annotations

from typing import Protocol

from ytd_fetch.core.models import TransportRequest, TransportResponse


class TransportBackend(Protocol):
    """A single GET over the wire, with no redirect handling.

    Implementations must map every socket/TLS/library exception to a
    :class:`~ytd_fetch.exceptions.TransportError` subclass, write the body
    to ``request.sink`` only for 2xx responses, report progress
    through ``request.progress_callback`` when the total size is known,
    and honour ``request.cancel_event`` at every chunk boundary.
    """

    def perform(self, request: TransportRequest) -> TransportResponse:
        ...  # pragma: no cover


class Transport(Protocol):
    """Contract consumed by the core: a GET that may follow redirects.

    Raises
    ------
    ConnectionFailedError
        When the connection cannot be opened or breaks mid-transfer.
    ProtocolParseError
        For a malformed status line or an unusable ``Location`` header.
    RedirectLimitExceededError
        When the redirect chain is longer than the configured cap.
    """

    def send(self, request: TransportRequest) -> TransportResponse:
        ...  # pragma: no cover

    def get_text(self, url: str) -> str:
        """Fetch *url* following redirects and decode the body as text."""
        ...  # pragma: no cover
