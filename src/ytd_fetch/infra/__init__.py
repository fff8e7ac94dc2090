"""Infrastructure layer — HTTP transports.

This layer wraps all interaction with sockets, TLS and ``requests``.
Every raw third-party or OS exception is caught here and re-raised as a
:class:`~ytd_fetch.exceptions.YtdFetchError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
* Backends are imported by :func:`create_transport` only when chosen.
"""

from ytd_fetch.infra.http_transport import HttpTransport, create_transport, is_absolute_http_url

__all__: list[str] = [
    "HttpTransport",
    "create_transport",
    "is_absolute_http_url",
]
