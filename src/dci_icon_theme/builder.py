from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import AppConfig
from .dci_file import DciFile
from .encoder import ImageDecodeError, encode_scales, format_extension
from .mirror import mirror
from .models import DARK_TONE, LIGHT_TONE, BuildResult, SourceCandidate


logger = logging.getLogger(__name__)


def _write_scales(dci: DciFile, source: Path, tone_dir: str, config: AppConfig) -> None:
    # Decode and encode everything before touching the tree so a bad source
    # leaves no partial tone directory behind.
    encoded = encode_scales(source, config.scales, config.base_size, config.image_format)
    extension = format_extension(config.image_format)
    dci.mkdir(tone_dir)
    for entry, payload in encoded:
        scale_dir = f"{tone_dir}/{entry.factor}"
        dci.mkdir(scale_dir)
        dci.write_file(f"{scale_dir}/1.{extension}", payload)


def build_container(candidate: SourceCandidate, config: AppConfig) -> Optional[tuple[DciFile, bool]]:
    """Build the container tree for one icon.

    Returns the tree and whether the dark tone was mirrored from the light
    one, or None when the light source cannot be decoded.
    """
    dci = DciFile()
    size_dir = f"/{config.base_size}"
    light_dir = f"{size_dir}/{LIGHT_TONE}"
    dark_dir = f"{size_dir}/{DARK_TONE}"

    dci.mkdir(size_dir)
    try:
        _write_scales(dci, candidate.path, light_dir, config)
    except ImageDecodeError as exc:
        logger.warning("Ignore the null image file: %s (%s)", candidate.path, exc)
        return None

    dark_source = candidate.dark_path
    if dark_source.is_file():
        try:
            _write_scales(dci, dark_source, dark_dir, config)
            return dci, False
        except ImageDecodeError as exc:
            logger.warning("Ignore the null dark image file: %s (%s)", dark_source, exc)

    links = mirror(dci, light_dir, dark_dir)
    logger.debug("Mirrored %d light tone entries of %s", links, candidate.base_name)
    return dci, True


def build_icon(candidate: SourceCandidate, output_path: Path, config: AppConfig) -> Optional[BuildResult]:
    """Build and write ``output_path``; None when the icon is skipped."""
    built = build_container(candidate, config)
    if built is None:
        return None
    dci, dark_mirrored = built
    logger.info("Writing to dci file: %s", output_path)
    dci.write_to_file(output_path)
    return BuildResult(name=candidate.base_name, output_path=output_path, dark_mirrored=dark_mirrored)
