from __future__ import annotations

"""
Unit tests for the layered configuration (CLI → environment → settings → defaults).
"""

import json
from pathlib import Path

import pytest

from dci_icon_theme.config import AppConfig
from dci_icon_theme.models import ScaleEntry
from dci_icon_theme.settings import UserSettings, load_user_settings


def test_defaults() -> None:
    config = AppConfig.from_env(settings=UserSettings())
    assert config.match == []
    assert config.scales == (ScaleEntry(2, 100), ScaleEntry(3, 90))
    assert config.base_size == 256
    assert config.image_format == "webp"
    assert config.log_path is None


def test_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = UserSettings(match=["*.svg"], scales=["1:50"], base_size=64, image_format="png")
    monkeypatch.setenv("DCI_ICON_THEME_SCALES", "4:80, 2")
    monkeypatch.setenv("DCI_ICON_THEME_BASE_SIZE", "128")

    config = AppConfig.from_env(match=["*.png"], image_format="JPEG", settings=settings)

    assert config.match == ["*.png"]
    assert config.scales == (ScaleEntry(2, 100), ScaleEntry(4, 80))
    assert config.base_size == 128
    assert config.image_format == "jpeg"


def test_settings_are_used_last(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "dci_icon_theme.config.load_user_settings",
        lambda: UserSettings(match=["*.svg"], base_size=32),
    )
    config = AppConfig.from_env()
    assert config.match == ["*.svg"]
    assert config.base_size == 32


@pytest.mark.parametrize(
    "kwargs",
    [
        {"scales": ["x:10"]},
        {"scales": ["0:10"]},
        {"scales": ["2:101"]},
        {"scales": ["2:90", "2:80"]},
        {"base_size": 0},
        {"image_format": "tga"},
    ],
)
def test_invalid_values(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        AppConfig.from_env(settings=UserSettings(), **kwargs)


def test_invalid_env_integer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DCI_ICON_THEME_BASE_SIZE", "big")
    with pytest.raises(ValueError, match="DCI_ICON_THEME_BASE_SIZE"):
        AppConfig.from_env(settings=UserSettings())


def test_load_user_settings(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"match": "*.png, *.jpg", "scales": ["2:100", " "], "base_size": "64", "extra": 1}),
        encoding="utf-8",
    )
    settings = load_user_settings(path)
    assert settings.match == ["*.png", "*.jpg"]
    assert settings.scales == ["2:100"]
    assert settings.base_size == 64
    assert settings.image_format is None


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_bad_settings_fall_back_to_defaults(tmp_path: Path, content: str) -> None:
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")
    assert load_user_settings(path) == UserSettings()


def test_missing_settings_file(tmp_path: Path) -> None:
    assert load_user_settings(tmp_path / "missing.json") == UserSettings()
