from __future__ import annotations

import logging
import os
from pathlib import Path

from .models import BuildResult


logger = logging.getLogger(__name__)

DCI_SUFFIX = ".dci"


class FileOperationError(Exception):
    pass


class OutputExistsError(FileOperationError):
    pass


def prepare_output_dir(path: Path, require_fresh: bool = False) -> Path:
    output = Path(path).expanduser().absolute()
    if output.exists():
        if require_fresh:
            raise OutputExistsError(f"The output directory already exists: {output}")
        if not output.is_dir():
            raise FileOperationError(f"The output path is not a directory: {output}")
        return output
    try:
        output.mkdir(parents=True)
    except OSError as exc:
        raise FileOperationError(f"Can't create the {output} directory: {exc}") from exc
    return output


def dci_destination(output_dir: Path, name: str) -> Path:
    return output_dir / f"{name}{DCI_SUFFIX}"


def valid_alias_name(alias: str) -> bool:
    if not alias or alias in (".", ".."):
        return False
    return os.sep not in alias and "/" not in alias and "\0" not in alias


def create_alias_symlink(result: BuildResult, alias: str) -> bool:
    """Link ``<alias>.dci`` to the built container, next to it.

    The link target is the bare container file name so the output
    directory stays relocatable. Failures are logged and reported as False.
    """
    if not valid_alias_name(alias):
        logger.warning("Ignore invalid alias name %r for %s", alias, result.output_path.name)
        return False
    link_path = dci_destination(result.output_path.parent, alias)
    target = result.output_path.name
    logger.info("Create symlink from %s to %s", target, link_path)
    try:
        os.symlink(target, link_path)
    except OSError as exc:
        logger.warning("Failed on create symlink from %s to %s: %s", target, link_path, exc)
        return False
    return True
