from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .models import SourceCandidate


logger = logging.getLogger(__name__)

QUOTE = '"'
SEPARATOR = ","
LINE_END = "\n"


class AliasFileError(Exception):
    pass


class AliasMap:
    """Canonical icon name to alias names, with set semantics per key."""

    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, None]] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "AliasMap":
        self._frozen = True
        return self

    def add(self, canonical: str, alias: str) -> bool:
        if self._frozen:
            raise RuntimeError("Alias map is frozen.")
        if not canonical or not alias:
            return False
        if canonical == alias:
            logger.debug("Ignore self alias: %s", canonical)
            return False
        aliases = self._entries.setdefault(canonical, {})
        if alias in aliases:
            return False
        aliases[alias] = None
        return True

    def merge(self, pairs: Iterable[Tuple[str, str]]) -> int:
        return sum(1 for canonical, alias in pairs if self.add(canonical, alias))

    def aliases(self, canonical: str) -> Tuple[str, ...]:
        return tuple(self._entries.get(canonical, ()))

    def __contains__(self, canonical: object) -> bool:
        return canonical in self._entries

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        for canonical, aliases in self._entries.items():
            for alias in aliases:
                yield canonical, alias

    def __len__(self) -> int:
        return sum(len(aliases) for aliases in self._entries.values())


class _RecordReader:
    """Splits alias declarations into ``(key, value)`` records.

    A field is either unquoted, ending at the first separator or line end,
    or quoted, ending at the last quote on its line. Line ends inside a
    quoted field are kept, other quotes are dropped, and anything after the
    value field is discarded up to the next line end.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _peek(self) -> Optional[str]:
        if self._pos < len(self._text):
            return self._text[self._pos]
        return None

    def _skip_blanks(self) -> None:
        while self._peek() in (" ", "\t"):
            self._pos += 1

    def read_field(self) -> Tuple[str, Optional[str]]:
        """Return the field and what ended it (separator, line end, closing quote or None)."""
        self._skip_blanks()
        if self._peek() == QUOTE:
            self._pos += 1
            return self._read_quoted()
        return self._read_unquoted()

    def _read_unquoted(self) -> Tuple[str, Optional[str]]:
        start = self._pos
        while True:
            ch = self._peek()
            if ch is None:
                return self._text[start:self._pos].strip(), None
            if ch in (SEPARATOR, LINE_END):
                field = self._text[start:self._pos].strip()
                self._pos += 1
                return field, ch
            self._pos += 1

    def _closes_field(self) -> bool:
        # A quote closes the field when no other quote follows it on its line.
        next_quote = self._text.find(QUOTE, self._pos)
        line_end = self._text.find(LINE_END, self._pos)
        return next_quote < 0 or 0 <= line_end < next_quote

    def _read_quoted(self) -> Tuple[str, Optional[str]]:
        collected: list[str] = []
        while True:
            ch = self._peek()
            if ch is None:
                return "".join(collected), None
            self._pos += 1
            if ch != QUOTE:
                collected.append(ch)
                continue
            if not self._closes_field():
                continue
            self._skip_blanks()
            following = self._peek()
            if following in (SEPARATOR, LINE_END):
                self._pos += 1
                return "".join(collected), following
            # Leftovers after the closing quote are dropped with the rest of the line.
            return "".join(collected), QUOTE

    def discard_line(self) -> None:
        end = self._text.find(LINE_END, self._pos)
        self._pos = len(self._text) if end < 0 else end + 1

    def records(self) -> Iterator[Tuple[str, str]]:
        while not self.at_end():
            key, ended_by = self.read_field()
            if ended_by != SEPARATOR:
                if ended_by == QUOTE:
                    self.discard_line()
                if key:
                    logger.debug("Ignore alias record without value: %s", key)
                continue
            value, ended_by = self.read_field()
            if ended_by != LINE_END:
                self.discard_line()
            yield key, value


def parse_alias_text(text: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(canonical, alias)`` pairs, one per line of each value field."""
    for key, value in _RecordReader(text).records():
        if not key:
            continue
        for line in value.split(LINE_END):
            alias = line.strip()
            if alias:
                yield key, alias


def parse_alias_file(path: Path, alias_map: Optional[AliasMap] = None) -> AliasMap:
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise AliasFileError(f"Failed on open symlink map file {path}: {exc}") from exc

    if alias_map is None:
        alias_map = AliasMap()
    added = alias_map.merge(parse_alias_text(text))
    logger.info("Got aliases from %s: %d", path, added)
    return alias_map


def harvest_symlinks(candidates: Iterable[SourceCandidate], alias_map: AliasMap) -> int:
    """Record every symlinked source icon as an alias of its link target."""
    added = 0
    for candidate in candidates:
        if not candidate.is_symlink or candidate.in_dark_directory:
            continue
        try:
            target = os.readlink(candidate.path)
        except OSError as exc:
            logger.warning("Failed to read symlink %s: %s", candidate.path, exc)
            continue
        canonical = Path(target).stem
        if alias_map.add(canonical, candidate.base_name):
            logger.debug("Alias from symlink: %s -> %s", candidate.base_name, canonical)
            added += 1
    logger.info("Got aliases from symlinks: %d", added)
    return added
