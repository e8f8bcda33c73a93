from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .aliases import AliasMap, harvest_symlinks, parse_alias_file
from .builder import build_icon
from .config import AppConfig
from .dci_file import DciFile, DciFileError
from .file_ops import create_alias_symlink, dci_destination
from .mirror import fill_missing_dark
from .models import BuildResult, SourceCandidate
from .scanner import collect_source_candidates


logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    built: int = 0
    mirrored: int = 0
    skipped_existing: int = 0
    skipped_invalid: int = 0
    aliases: int = 0
    alias_failures: int = 0


def load_aliases(candidates: Iterable[SourceCandidate], alias_file: Optional[Path] = None) -> AliasMap:
    """Merge the alias file and symlinked sources into a frozen alias map."""
    alias_map = AliasMap()
    if alias_file is not None:
        parse_alias_file(alias_file, alias_map)
    harvest_symlinks(candidates, alias_map)
    logger.info("Got symlinks: %d", len(alias_map))
    return alias_map.freeze()


def _existing(path: Path) -> bool:
    return path.exists() or path.is_symlink()


def package_icons(
    source_dirs: Sequence[Path],
    output_dir: Path,
    config: AppConfig,
    alias_file: Optional[Path] = None,
) -> RunSummary:
    """Build one container per source icon and materialize its aliases.

    Symlinks are harvested into the alias map before any container is
    built, and alias symlinks are created once every container is written.
    ``ImageEncodeError`` and ``DciFileError`` propagate to the caller.
    """
    candidates = collect_source_candidates(source_dirs, config.match)
    aliases = load_aliases(candidates, alias_file)
    summary = RunSummary()
    built: List[BuildResult] = []

    for candidate in candidates:
        if candidate.in_dark_directory:
            logger.info("Ignore the dark icon file: %s", candidate.path)
            continue
        if candidate.is_symlink:
            logger.debug("Ignore the symlink icon file: %s", candidate.path)
            continue

        destination = dci_destination(output_dir, candidate.base_name)
        if _existing(destination):
            logger.warning("Skip exists dci file: %s", destination)
            summary.skipped_existing += 1
            continue

        result = build_icon(candidate, destination, config)
        if result is None:
            summary.skipped_invalid += 1
            continue
        summary.built += 1
        if result.dark_mirrored:
            summary.mirrored += 1
        built.append(result)

    # Aliases are created only after every container of this run is written.
    for result in built:
        for alias in aliases.aliases(result.name):
            if _existing(dci_destination(output_dir, alias)):
                logger.warning("Alias %s of %s clashes with an existing dci file", alias, result.name)
                summary.alias_failures += 1
            elif create_alias_symlink(result, alias):
                summary.aliases += 1
            else:
                summary.alias_failures += 1

    return summary


def fix_dark_themes(
    source_dirs: Sequence[Path],
    output_dir: Path,
    patterns: Sequence[str],
) -> RunSummary:
    """Rewrite each matched container into ``output_dir`` with missing dark tones mirrored."""
    summary = RunSummary()
    for candidate in collect_source_candidates(source_dirs, patterns):
        if candidate.is_symlink:
            logger.debug("Ignore the symlink dci file: %s", candidate.path)
            continue

        destination = output_dir / candidate.path.name
        if _existing(destination):
            logger.warning("Skip exists dci file: %s", destination)
            summary.skipped_existing += 1
            continue

        try:
            dci = DciFile.from_file(candidate.path)
        except DciFileError as exc:
            logger.warning("Ignore the invalid dci file: %s (%s)", candidate.path, exc)
            summary.skipped_invalid += 1
            continue

        created = fill_missing_dark(dci)
        for dark_path in created:
            logger.info("Mirrored %s in %s", dark_path, candidate.path.name)
        logger.info("Writing to dci file: %s", destination)
        dci.write_to_file(destination)
        summary.built += 1
        if created:
            summary.mirrored += 1

    return summary
