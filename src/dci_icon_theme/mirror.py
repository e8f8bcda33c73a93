from __future__ import annotations

import logging
from typing import List

from .dci_file import DciFile, NodeType
from .models import DARK_SUFFIX, LIGHT_SUFFIX


logger = logging.getLogger(__name__)


def _child(path: str, name: str) -> str:
    return path.rstrip("/") + "/" + name


def mirror(dci: DciFile, from_path: str, to_path: str) -> int:
    """Recreate the tree under ``from_path`` at ``to_path`` using links.

    Directories are created, every other entry becomes a link to the
    original path. ``to_path`` is created when missing. Returns the number
    of links made; any failure raises ``DciFileError``.
    """
    if not dci.exists(to_path):
        dci.mkdir(to_path)

    links = 0
    for name in dci.list(from_path):
        source = _child(from_path, name)
        target = _child(to_path, name)
        if dci.file_type(source) is NodeType.DIRECTORY:
            dci.mkdir(target)
            links += mirror(dci, source, target)
        else:
            dci.link(source, target)
            links += 1
    return links


def dark_tone_name(light_name: str) -> str:
    return light_name[: -len(LIGHT_SUFFIX)] + DARK_SUFFIX


def fill_missing_dark(dci: DciFile) -> List[str]:
    """Mirror every light tone directory that has no dark sibling.

    Existing dark tone directories are never touched. Returns the dark
    paths that were created.
    """
    created: List[str] = []
    for size_dir in dci.list("/", full_path=True):
        if dci.file_type(size_dir) is not NodeType.DIRECTORY:
            continue
        for name in dci.list(size_dir):
            light_path = _child(size_dir, name)
            if not name.endswith(LIGHT_SUFFIX):
                continue
            if dci.file_type(light_path) is not NodeType.DIRECTORY:
                continue
            dark_path = _child(size_dir, dark_tone_name(name))
            if dci.exists(dark_path):
                logger.debug("Keep existing dark tone %s", dark_path)
                continue
            mirror(dci, light_path, dark_path)
            created.append(dark_path)
    return created
