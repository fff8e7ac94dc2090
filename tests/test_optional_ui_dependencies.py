"""Regression tests for optional CLI UI dependencies (rich/questionary).

These tests verify bootstrap commands are resilient when the UI
packages are missing, and that download flows fail cleanly only when
UI paths are actually exercised.
"""

from __future__ import annotations

import logging
import sys
from unittest.mock import patch

import pytest

from ytd_fetch.cli.app import main
from ytd_fetch.cli.console import configure_logging
from ytd_fetch.core.models import FormatSummary
from ytd_fetch.exceptions import EnvironmentError

_URL = "https://www.youtube.com/watch?v=abc123"


def _hide_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "rich", None)
    monkeypatch.setitem(sys.modules, "rich.console", None)
    monkeypatch.setitem(sys.modules, "rich.logging", None)
    monkeypatch.setitem(sys.modules, "rich.table", None)
    monkeypatch.setitem(sys.modules, "rich.progress", None)


def _hide_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "questionary", None)


def test_help_works_without_rich_or_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)
    _hide_questionary(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0


def test_version_works_without_rich_or_questionary(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)
    _hide_questionary(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0


def test_logging_falls_back_without_rich(monkeypatch: pytest.MonkeyPatch) -> None:
    _hide_rich(monkeypatch)

    handler = configure_logging(verbose=True)

    assert type(handler) is logging.StreamHandler
    assert logging.getLogger().level == logging.DEBUG


def test_logging_handler_is_replaced_not_stacked() -> None:
    first = configure_logging()
    second = configure_logging()
    root = logging.getLogger()
    assert second in root.handlers
    assert first not in root.handlers


def test_download_errors_cleanly_when_rich_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _hide_rich(monkeypatch)

    with patch("ytd_fetch.cli.app._new_orchestrator"):
        with pytest.raises(EnvironmentError, match="rich is not installed"):
            main([_URL])


def test_interactive_errors_cleanly_when_questionary_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    _hide_questionary(monkeypatch)

    with patch("ytd_fetch.cli.app._new_orchestrator") as mock_new:
        mock_new.return_value.title = "Test Video"
        mock_new.return_value.list_formats.return_value = [
            FormatSummary(itag="18", quality="medium", mime_type="video/mp4"),
        ]

        with pytest.raises(EnvironmentError, match="questionary is not installed"):
            main([_URL, "-i"])
