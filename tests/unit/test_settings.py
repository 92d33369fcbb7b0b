"""Tests for argform/lib/settings.py - .argform.yaml and localization."""

from __future__ import annotations

from pathlib import Path

import pytest

from argform.lib.errors import ArgformError
from argform.lib.settings import SETTINGS_FILE, Localization, Settings


class TestLocalization:
    def test_is_required(self) -> None:
        assert Localization().is_required("--name") == "Argument '--name' is required"

    def test_from_dict(self) -> None:
        loc = Localization.from_dict({"run": "Uruchom", "error_is_required": ["Pole ", " brak"]})
        assert loc.run == "Uruchom"
        assert loc.kill == "Kill"
        assert loc.is_required("x") == "Pole x brak"

    def test_unknown_key(self) -> None:
        with pytest.raises(ArgformError) as exc_info:
            Localization.from_dict({"rnu": "typo"})
        assert exc_info.value.details == {"keys": "rnu"}

    def test_required_pair_shape(self) -> None:
        with pytest.raises(ArgformError, match="pair"):
            Localization.from_dict({"error_is_required": "just one"})


class TestSettings:
    def test_defaults_hide_extra_tabs(self) -> None:
        settings = Settings()
        assert settings.enable_env is None
        assert settings.enable_stdin is None
        assert settings.enable_working_dir is None

    def test_load_without_file(self, tmp_path: Path) -> None:
        assert Settings.load(tmp_path) == Settings()

    def test_load_file(self, tmp_path: Path) -> None:
        (tmp_path / SETTINGS_FILE).write_text(
            "argform:\n"
            "  enable_env: ''\n"
            "  enable_stdin: Data piped in\n"
            "  localization:\n"
            "    run: Go\n",
            encoding="utf-8",
        )
        settings = Settings.load(tmp_path)
        assert settings.enable_env == ""
        assert settings.enable_stdin == "Data piped in"
        assert settings.enable_working_dir is None
        assert settings.localization.run == "Go"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / SETTINGS_FILE).write_text("argform: [", encoding="utf-8")
        with pytest.raises(ArgformError, match="Could not parse"):
            Settings.load(tmp_path)

    def test_missing_section(self, tmp_path: Path) -> None:
        (tmp_path / SETTINGS_FILE).write_text("other: 1\n", encoding="utf-8")
        # An absent section means defaults
        assert Settings.load(tmp_path) == Settings()

    def test_section_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / SETTINGS_FILE).write_text("argform: [1, 2]\n", encoding="utf-8")
        with pytest.raises(ArgformError, match="'argform' mapping"):
            Settings.load(tmp_path)
