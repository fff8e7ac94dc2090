"""Smoke tests — verify package wiring.

These tests prove that:
* The CLI entry point is importable and callable.
* The exception hierarchy is correctly structured.
* Version is accessible.
* Exit codes are defined and mapped from errors.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from ytd_fetch import __version__
from ytd_fetch.cli import exit_codes
from ytd_fetch.cli.app import cli, main
from ytd_fetch.exceptions import (
    CipherFunctionBodyNotFoundError,
    CipherFunctionNameNotFoundError,
    ConnectionFailedError,
    DownloadCancelledError,
    EnvironmentError,
    HelperFunctionNotFoundError,
    HttpStatusError,
    InvalidURLError,
    NoFormatsFoundError,
    NoMatchingFormatError,
    OutputFileError,
    PlatformFormatChangedError,
    PlayerNotFoundError,
    ProtocolParseError,
    RedirectLimitExceededError,
    TransportError,
    UnparsableInstructionError,
    VideoUnavailableError,
    YtdFetchError,
)


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

class TestVersion:
    def test_version_is_string(self) -> None:
        assert isinstance(__version__, str)

    def test_version_is_semver_like(self) -> None:
        parts = __version__.split(".")
        assert len(parts) == 3
        assert all(part.isdigit() for part in parts)


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------

class TestExceptions:
    @pytest.mark.parametrize(
        "exc_class",
        [
            InvalidURLError,
            TransportError,
            PlatformFormatChangedError,
            NoMatchingFormatError,
            OutputFileError,
            DownloadCancelledError,
            EnvironmentError,
        ],
    )
    def test_all_exceptions_inherit_from_base(
        self, exc_class: type[YtdFetchError]
    ) -> None:
        assert issubclass(exc_class, YtdFetchError)

    @pytest.mark.parametrize(
        "exc_class",
        [ConnectionFailedError, ProtocolParseError, RedirectLimitExceededError, HttpStatusError],
    )
    def test_transport_family(self, exc_class: type[YtdFetchError]) -> None:
        assert issubclass(exc_class, TransportError)

    @pytest.mark.parametrize(
        "exc_class",
        [
            NoFormatsFoundError,
            VideoUnavailableError,
            PlayerNotFoundError,
            CipherFunctionNameNotFoundError,
            CipherFunctionBodyNotFoundError,
            HelperFunctionNotFoundError,
            UnparsableInstructionError,
        ],
    )
    def test_platform_family(self, exc_class: type[YtdFetchError]) -> None:
        assert issubclass(exc_class, PlatformFormatChangedError)

    def test_base_inherits_from_exception(self) -> None:
        assert issubclass(YtdFetchError, Exception)

    def test_hint_is_stored(self) -> None:
        err = YtdFetchError("boom", hint="try this")
        assert str(err) == "boom"
        assert err.hint == "try this"

    def test_hint_defaults_to_none(self) -> None:
        err = YtdFetchError("boom")
        assert err.hint is None

    def test_platform_errors_carry_default_hint(self) -> None:
        assert PlayerNotFoundError("gone").hint is not None

    def test_structured_fields(self) -> None:
        assert HttpStatusError(404, "http://a/").status == 404
        assert VideoUnavailableError("removed").reason == "removed"
        assert UnparsableInstructionError("a=b()").statement == "a=b()"


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_success_is_zero(self) -> None:
        assert exit_codes.SUCCESS == 0

    def test_general_error_is_one(self) -> None:
        assert exit_codes.GENERAL_ERROR == 1

    def test_keyboard_interrupt_is_130(self) -> None:
        assert exit_codes.KEYBOARD_INTERRUPT == 130

    def test_unexpected_error_is_two(self) -> None:
        assert exit_codes.UNEXPECTED_ERROR == 2

    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (InvalidURLError("x"), exit_codes.GENERAL_ERROR),
            (NoMatchingFormatError("x"), exit_codes.GENERAL_ERROR),
            (PlayerNotFoundError("x"), exit_codes.PLATFORM_CHANGED),
            (VideoUnavailableError("x"), exit_codes.PLATFORM_CHANGED),
            (ConnectionFailedError("x"), exit_codes.NETWORK_ERROR),
            (HttpStatusError(403, "u"), exit_codes.NETWORK_ERROR),
        ],
    )
    def test_for_error(self, exc: YtdFetchError, code: int) -> None:
        assert exit_codes.for_error(exc) == code


# ---------------------------------------------------------------------------
# CLI routing
# ---------------------------------------------------------------------------

class TestCLIRouting:
    def test_no_args_returns_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No arguments should print help and exit 0."""
        code = main([])
        assert code == exit_codes.SUCCESS
        assert "ytd-fetch" in capsys.readouterr().out

    def test_version_flag(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    def test_url_routes_to_download(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from ytd_fetch.cli import app as app_module

        seen: dict[str, object] = {}

        def fake_download(url: str, settings: object, **kwargs: object) -> int:
            seen.update(url=url, settings=settings, **kwargs)
            return exit_codes.SUCCESS

        monkeypatch.setattr(app_module, "_handle_download", fake_download)
        code = main(["https://www.youtube.com/watch?v=dQw4w9WgXcQ"])

        assert code == exit_codes.SUCCESS
        assert seen["url"] == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert seen["itag"] is None
        assert seen["interactive"] is False

    def test_backend_flag(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from ytd_fetch.cli import app as app_module

        captured: list[object] = []
        monkeypatch.setattr(
            app_module,
            "_handle_list_formats",
            lambda url, settings: captured.append(settings) or exit_codes.SUCCESS,
        )
        main(["-l", "--backend", "socket", "https://youtu.be/abc"])
        assert captured[0].backend == "socket"  # type: ignore[attr-defined]

    def test_print_cipher_without_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from ytd_fetch.cli import app as app_module

        calls: list[object] = []
        monkeypatch.setattr(
            app_module,
            "_handle_print_cipher",
            lambda url, settings: calls.append(url) or exit_codes.SUCCESS,
        )
        assert main(["-c"]) == exit_codes.SUCCESS
        assert calls == [None]

    def test_unknown_backend_rejected(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--backend", "curl", "https://youtu.be/abc"])
        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (InvalidURLError("bad"), exit_codes.GENERAL_ERROR),
            (UnparsableInstructionError("a=a.x(y)"), exit_codes.PLATFORM_CHANGED),
            (RedirectLimitExceededError("loop"), exit_codes.NETWORK_ERROR),
            (KeyboardInterrupt(), exit_codes.KEYBOARD_INTERRUPT),
            (ValueError("bug"), exit_codes.UNEXPECTED_ERROR),
        ],
    )
    def test_exit_codes(self, error: BaseException, code: int) -> None:
        with patch("ytd_fetch.cli.app.main", side_effect=error):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == code

    def test_success_exit(self) -> None:
        with patch("ytd_fetch.cli.app.main", return_value=exit_codes.SUCCESS):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == 0
