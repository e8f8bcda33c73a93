from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from .models import DARK_DIRECTORY, SourceCandidate


logger = logging.getLogger(__name__)


def matches(name: str, patterns: Sequence[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def iter_source_candidates(
    source_dirs: Iterable[Path], patterns: Sequence[str]
) -> Iterator[SourceCandidate]:
    """Walk each source directory and yield files whose names match ``patterns``.

    Directories are visited in sorted order and symlinked directories are not
    followed. Symlinked files are yielded too, flagged with ``is_symlink``.
    """
    for source_dir in source_dirs:
        root = Path(source_dir).expanduser()
        if not root.is_dir():
            logger.warning("Ignore the non-exists directory: %s", root)
            continue

        for dirpath, dirnames, filenames in os.walk(root.resolve()):
            dirnames.sort()
            current = Path(dirpath)
            in_dark = current.name == DARK_DIRECTORY
            for filename in sorted(filenames):
                if not matches(filename, patterns):
                    continue
                path = current / filename
                is_link = path.is_symlink()
                if not is_link and not path.is_file():
                    continue
                yield SourceCandidate(path=path, in_dark_directory=in_dark, is_symlink=is_link)


def collect_source_candidates(
    source_dirs: Iterable[Path], patterns: Sequence[str]
) -> list[SourceCandidate]:
    candidates = list(iter_source_candidates(source_dirs, patterns))
    logger.info(
        "Source scan → files=%d symlinks=%d dark=%d",
        len(candidates),
        sum(1 for item in candidates if item.is_symlink),
        sum(1 for item in candidates if item.in_dark_directory),
    )
    return candidates
