"""Core / service layer — page parsing, cipher resolution, orchestration.

Rules
-----
* No ``print()`` calls.
* Network I/O only through the :class:`~ytd_fetch.core.protocols.Transport`
  protocol; filesystem access only for the destination file.
* No imports from ``cli`` or ``infra``.
* Parsing and deciphering functions are pure and deterministic.
"""

from ytd_fetch.core.cipher_resolver import CipherResolver, compile_program
from ytd_fetch.core.decipher import decipher
from ytd_fetch.core.download_service import DownloadOrchestrator
from ytd_fetch.core.format_catalog import FormatCatalog, parse_format_map
from ytd_fetch.core.models import (
    CipherProgram,
    DownloadState,
    DownloadTarget,
    FormatDescriptor,
    FormatSummary,
    Reverse,
    Splice,
    Swap,
    TransportRequest,
    TransportResponse,
)
from ytd_fetch.core.protocols import Transport, TransportBackend

__all__: list[str] = [
    "CipherProgram",
    "CipherResolver",
    "DownloadOrchestrator",
    "DownloadState",
    "DownloadTarget",
    "FormatCatalog",
    "FormatDescriptor",
    "FormatSummary",
    "Reverse",
    "Splice",
    "Swap",
    "Transport",
    "TransportBackend",
    "TransportRequest",
    "TransportResponse",
    "compile_program",
    "decipher",
    "parse_format_map",
]
