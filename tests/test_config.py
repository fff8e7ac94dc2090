"""Tests for runtime settings (config.py)."""

from __future__ import annotations

import dataclasses

import pytest

from ytd_fetch.config import Settings
from ytd_fetch.exceptions import EnvironmentError


class TestSettingsDefaults:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.backend == "requests"
        assert settings.chunk_size == 128
        assert settings.max_redirects == 10
        assert settings.connect_timeout == 5.0
        assert settings.read_timeout == 30.0
        assert settings.verify_tls is False
        assert "{player_id}" in settings.player_url_template

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            Settings().chunk_size = 1  # type: ignore[misc]

    def test_replace(self) -> None:
        settings = dataclasses.replace(Settings(), backend="socket")
        assert settings.backend == "socket"


class TestSettingsValidation:
    def test_unknown_backend(self) -> None:
        with pytest.raises(EnvironmentError) as exc_info:
            Settings(backend="curl")
        assert exc_info.value.hint is not None

    @pytest.mark.parametrize("size", [0, -1])
    def test_chunk_size_must_be_positive(self, size: int) -> None:
        with pytest.raises(EnvironmentError):
            Settings(chunk_size=size)

    def test_negative_redirect_cap(self) -> None:
        with pytest.raises(EnvironmentError):
            Settings(max_redirects=-1)

    def test_zero_redirect_cap_allowed(self) -> None:
        assert Settings(max_redirects=0).max_redirects == 0


class TestSettingsFromEnv:
    def test_empty_environment_gives_defaults(self) -> None:
        assert Settings.from_env({}) == Settings()

    def test_overrides(self) -> None:
        settings = Settings.from_env(
            {
                "YTD_FETCH_BACKEND": " Socket ",
                "YTD_FETCH_CHUNK_SIZE": "4096",
                "YTD_FETCH_MAX_REDIRECTS": "3",
                "YTD_FETCH_TIMEOUT": "12",
            }
        )
        assert settings.backend == "socket"
        assert settings.chunk_size == 4096
        assert settings.max_redirects == 3
        assert settings.read_timeout == 12.0

    def test_blank_values_ignored(self) -> None:
        assert Settings.from_env({"YTD_FETCH_CHUNK_SIZE": "  "}).chunk_size == 128

    def test_non_integer(self) -> None:
        with pytest.raises(EnvironmentError, match="YTD_FETCH_CHUNK_SIZE"):
            Settings.from_env({"YTD_FETCH_CHUNK_SIZE": "big"})

    def test_fractional_timeout(self) -> None:
        assert Settings.from_env({"YTD_FETCH_TIMEOUT": "2.5"}).read_timeout == 2.5

    @pytest.mark.parametrize("raw", ["soon", "0", "-1", "nan"])
    def test_invalid_timeout(self, raw: str) -> None:
        with pytest.raises(EnvironmentError, match="YTD_FETCH_TIMEOUT"):
            Settings.from_env({"YTD_FETCH_TIMEOUT": raw})

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YTD_FETCH_MAX_REDIRECTS", "2")
        assert Settings.from_env().max_redirects == 2
