from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

Puts the 'src' directory on the import path, isolates the configuration
layers from the developer's environment and provides factories for real
image files generated with Pillow.
"""

import os
import sys
from pathlib import Path
from typing import Callable, Tuple

import pytest
from PIL import Image

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)

from dci_icon_theme.config import AppConfig  # noqa: E402
from dci_icon_theme.models import ScaleEntry  # noqa: E402
from dci_icon_theme.settings import UserSettings  # noqa: E402


# -----------------------------------------------------------------------------
# Environment Isolation
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ignore DCI_ICON_THEME_* variables and the user settings file."""
    for name in list(os.environ):
        if name.startswith("DCI_ICON_THEME_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("dci_icon_theme.config.load_user_settings", lambda: UserSettings())


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def small_config() -> AppConfig:
    """Config with a tiny base size so encodes stay fast."""
    return AppConfig(
        match=["*.png"],
        scales=(ScaleEntry(2, 100), ScaleEntry(3, 90)),
        base_size=16,
        image_format="webp",
    )


@pytest.fixture
def make_icon() -> Callable[..., Path]:
    """Return a factory writing a square image file, creating parent dirs."""

    def _make(
        path: Path,
        size: int = 64,
        color: Tuple[int, int, int, int] = (200, 40, 40, 255),
        image_format: str = "PNG",
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        mode = "RGB" if image_format == "JPEG" else "RGBA"
        Image.new(mode, (size, size), color[: len(mode)]).save(path, format=image_format)
        return path

    return _make
