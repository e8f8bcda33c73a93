from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .aliases import AliasFileError
from .config import AppConfig
from .dci_file import DciFileError
from .encoder import ImageEncodeError
from .file_ops import FileOperationError, OutputExistsError, prepare_output_dir
from .packager import RunSummary, fix_dark_themes, package_icons


VERSION = "0.1.0"

EXIT_NO_ARGUMENTS = -1
EXIT_NO_SOURCE = -2
EXIT_NO_MATCH = -3
EXIT_NO_OUTPUT = -4
EXIT_OUTPUT_UNCREATABLE = -5
EXIT_WRITE_FAILED = -6
EXIT_ALIAS_FILE = -7
EXIT_OUTPUT_EXISTS = -8
EXIT_BAD_CONFIG = -9


def _configure_logging(log_path: str | None, verbose: bool) -> None:
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_path:
        log_file = Path(log_path).expanduser()
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))
        except OSError as exc:  # pragma: no cover - filesystem permissions
            print(f"Warning: failed to open log file {log_file}: {exc}", file=sys.stderr)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=handlers,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dci-icon-theme",
        description="Package icon files into DCI icon theme files.",
    )
    parser.add_argument(
        "sources",
        nargs="*",
        metavar="source",
        help="Search the given directories and their subdirectories for files matching --match.",
    )
    parser.add_argument(
        "-m",
        "--match",
        dest="match",
        action="append",
        metavar="wildcard",
        help=(
            "Wildcard rule for icon files; repeatable. Each eligible icon is packaged into a "
            "dci file. A dark variant is read from the \"dark/\" directory next to the icon "
            "file, with the same file name."
        ),
    )
    parser.add_argument(
        "-o", "--output", dest="output", metavar="directory", help="Save the *.dci files to this directory."
    )
    parser.add_argument(
        "-s",
        "--symlink",
        dest="symlink_map",
        metavar="csv file",
        help="Alias declarations (\"name, alias\" per line) used to create symlinks to the output files.",
    )
    parser.add_argument(
        "--fix-dark-theme",
        dest="fix_dark_theme",
        action="store_true",
        help="Treat matched files as dci files and add the missing dark tones by linking the light ones.",
    )
    parser.add_argument(
        "--scale",
        dest="scales",
        action="append",
        metavar="FACTOR:QUALITY",
        help="Scale factor and encode quality; repeatable (default 2:100 and 3:90).",
    )
    parser.add_argument("--base-size", dest="base_size", type=int, help="Base icon size (default 256).")
    parser.add_argument("--format", dest="image_format", help="Payload image format (default webp).")
    parser.add_argument("--log-file", dest="log_file", help="Write detailed logs to this file.")
    parser.add_argument(
        "--verbose", dest="verbose", action="store_true", help="Enable verbose logging."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def _log_summary(summary: RunSummary) -> None:
    logging.info(
        "Done → built=%d mirrored=%d skipped_existing=%d skipped_invalid=%d aliases=%d alias_failures=%d",
        summary.built,
        summary.mirrored,
        summary.skipped_existing,
        summary.skipped_invalid,
        summary.aliases,
        summary.alias_failures,
    )


def main(argv: list[str] | None = None) -> int:
    args_list = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    if not args_list:
        parser.print_help(sys.stderr)
        return EXIT_NO_ARGUMENTS
    args = parser.parse_args(args_list)

    try:
        config = AppConfig.from_env(
            match=args.match,
            scales=args.scales,
            base_size=args.base_size,
            image_format=args.image_format,
            log_path=args.log_file,
        )
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    _configure_logging(config.log_path, args.verbose)

    if not args.sources:
        logging.warning("Not give a source directory.")
        parser.print_help(sys.stderr)
        return EXIT_NO_SOURCE
    if not config.match:
        logging.warning("Not give -m argument")
        parser.print_help(sys.stderr)
        return EXIT_NO_MATCH
    if not args.output:
        logging.warning("Not give -o argument")
        parser.print_help(sys.stderr)
        return EXIT_NO_OUTPUT

    try:
        output_dir = prepare_output_dir(Path(args.output), require_fresh=args.fix_dark_theme)
    except OutputExistsError as exc:
        logging.error("%s", exc)
        return EXIT_OUTPUT_EXISTS
    except FileOperationError as exc:
        logging.error("%s", exc)
        return EXIT_OUTPUT_UNCREATABLE

    sources = [Path(item) for item in args.sources]
    logging.info(
        "Effective settings → match=%s scales=%s base_size=%d format=%s",
        ",".join(config.match),
        ",".join(f"{entry.factor}:{entry.quality}" for entry in config.scales),
        config.base_size,
        config.image_format,
    )

    try:
        if args.fix_dark_theme:
            summary = fix_dark_themes(sources, output_dir, config.match)
        else:
            alias_file = Path(args.symlink_map).expanduser() if args.symlink_map else None
            summary = package_icons(sources, output_dir, config, alias_file)
    except AliasFileError as exc:
        logging.error("%s", exc)
        return EXIT_ALIAS_FILE
    except (DciFileError, ImageEncodeError) as exc:
        logging.error("Failed on writing dci file: %s", exc)
        return EXIT_WRITE_FAILED

    _log_summary(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
