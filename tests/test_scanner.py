from __future__ import annotations

"""
Unit tests for source tree discovery and classification.
"""

import os
from pathlib import Path

import pytest

from dci_icon_theme.scanner import collect_source_candidates, matches


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    root = tmp_path / "icons"
    (root / "apps" / "dark").mkdir(parents=True)
    (root / "apps" / "firefox.png").write_bytes(b"light")
    (root / "apps" / "dark" / "firefox.png").write_bytes(b"dark")
    (root / "apps" / "readme.txt").write_text("skip", encoding="utf-8")
    (root / "apps" / "web-browser.png").symlink_to("firefox.png")
    (root / "zeta.png").write_bytes(b"z")
    (tmp_path / "elsewhere").mkdir()
    (tmp_path / "elsewhere" / "hidden.png").write_bytes(b"h")
    (root / "linked-dir").symlink_to(tmp_path / "elsewhere", target_is_directory=True)
    return root


def test_matches_is_case_sensitive() -> None:
    assert matches("icon.png", ["*.svg", "*.png"])
    assert not matches("icon.PNG", ["*.png"])


def test_candidates_are_classified(source_tree: Path) -> None:
    candidates = collect_source_candidates([source_tree], ["*.png"])
    by_name = {(c.path.parent.name, c.path.name): c for c in candidates}

    assert set(by_name) == {
        ("apps", "firefox.png"),
        ("dark", "firefox.png"),
        ("apps", "web-browser.png"),
        ("icons", "zeta.png"),
    }
    assert by_name[("dark", "firefox.png")].in_dark_directory
    assert by_name[("apps", "web-browser.png")].is_symlink
    light = by_name[("apps", "firefox.png")]
    assert not light.in_dark_directory and not light.is_symlink
    assert light.base_name == "firefox"
    assert light.dark_path == light.path.parent / "dark" / "firefox.png"


def test_walk_order_is_sorted(source_tree: Path) -> None:
    names = [c.path.name for c in collect_source_candidates([source_tree], ["*.png"])]
    assert names == ["zeta.png", "firefox.png", "web-browser.png", "firefox.png"]


def test_missing_source_directory_is_skipped(tmp_path: Path, source_tree: Path) -> None:
    candidates = collect_source_candidates([tmp_path / "nope", source_tree], ["zeta.png"])
    assert [c.path.name for c in candidates] == ["zeta.png"]
    assert os.path.isabs(candidates[0].path)
