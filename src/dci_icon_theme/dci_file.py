"""In-memory DCI icon container with reading and writing of the binary format.

Binary layout (all integers little-endian):

    Header (8 bytes):
        [0..4]   magic "DCI\\0"
        [4]      version u8 = 1
        [5..8]   root entry count u24

    Entry:
        [0]      type u8 (1 = directory, 2 = file, 3 = link)
        [1..64]  name, UTF-8, NUL padded
        [64..72] content size u64
        [72..]   content

    A directory's content is the concatenation of its child entries, a
    file's content is its payload and a link's content is the UTF-8 path
    of the node it points at.
"""
from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union


logger = logging.getLogger(__name__)

MAGIC = b"DCI\0"
VERSION = 1
NAME_LENGTH = 63
MAX_ROOT_ENTRIES = (1 << 24) - 1

HEADER = struct.Struct("<4sB3s")
ENTRY_HEADER = struct.Struct(f"<B{NAME_LENGTH}sQ")


class DciFileError(Exception):
    pass


class NodeType(IntEnum):
    DIRECTORY = 1
    FILE = 2
    LINK = 3


@dataclass
class _Node:
    type: NodeType
    data: bytes = b""
    target: str = ""
    children: Dict[str, "_Node"] = field(default_factory=dict)


def _split(path: str) -> List[str]:
    if not path.startswith("/"):
        raise DciFileError(f"Path must be absolute: {path!r}")
    parts = [part for part in path.split("/") if part]
    for part in parts:
        if part in (".", ".."):
            raise DciFileError(f"Relative segments are not allowed: {path!r}")
    return parts


def _join(parts: List[str]) -> str:
    return "/" + "/".join(parts)


def _natural_key(name: str) -> Tuple[int, int, str]:
    if name.isdigit():
        return (0, int(name), name)
    return (1, 0, name)


def _check_name(name: str) -> bytes:
    encoded = name.encode("utf-8")
    if not encoded or len(encoded) > NAME_LENGTH:
        raise DciFileError(f"Invalid entry name length ({len(encoded)} bytes): {name!r}")
    if b"\0" in encoded:
        raise DciFileError(f"Entry name contains NUL: {name!r}")
    return encoded


class DciFile:
    """A tree of directories, files and links rooted at ``/``."""

    def __init__(self) -> None:
        self._root = _Node(NodeType.DIRECTORY)

    @classmethod
    def from_bytes(cls, data: bytes) -> "DciFile":
        if len(data) < HEADER.size:
            raise DciFileError("Data is too short for a DCI header.")
        magic, version, raw_count = HEADER.unpack_from(data, 0)
        if magic != MAGIC:
            raise DciFileError(f"Bad magic: {magic!r}")
        if version != VERSION:
            raise DciFileError(f"Unsupported DCI version: {version}")

        count = int.from_bytes(raw_count, "little")
        dci = cls()
        offset = HEADER.size
        for _ in range(count):
            name, node, offset = _decode_entry(data, offset, len(data))
            if name in dci._root.children:
                raise DciFileError(f"Duplicate root entry: {name!r}")
            dci._root.children[name] = node
        if offset != len(data):
            raise DciFileError(f"Trailing data after {count} root entries.")
        return dci

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "DciFile":
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise DciFileError(f"Failed to read DCI file {path}: {exc}") from exc
        return cls.from_bytes(data)

    def _find(self, path: str) -> Optional[_Node]:
        node = self._root
        for part in _split(path):
            if node.type is not NodeType.DIRECTORY:
                return None
            child = node.children.get(part)
            if child is None:
                return None
            node = child
        return node

    def _get(self, path: str) -> _Node:
        node = self._find(path)
        if node is None:
            raise DciFileError(f"No such entry: {path}")
        return node

    def _new_entry(self, path: str, node: _Node) -> None:
        parts = _split(path)
        if not parts:
            raise DciFileError("Cannot replace the root directory.")
        name = parts[-1]
        _check_name(name)
        parent = self._find(_join(parts[:-1]))
        if parent is None or parent.type is not NodeType.DIRECTORY:
            raise DciFileError(f"Parent directory does not exist: {path}")
        if name in parent.children:
            raise DciFileError(f"Entry already exists: {path}")
        if parent is self._root and len(parent.children) >= MAX_ROOT_ENTRIES:
            raise DciFileError("Too many root entries.")
        parent.children[name] = node

    def exists(self, path: str) -> bool:
        return self._find(path) is not None

    def file_type(self, path: str) -> NodeType:
        return self._get(path).type

    def list(self, path: str = "/", full_path: bool = False) -> List[str]:
        node = self._get(path)
        if node.type is not NodeType.DIRECTORY:
            raise DciFileError(f"Not a directory: {path}")
        names = sorted(node.children, key=_natural_key)
        if not full_path:
            return names
        base = _split(path)
        return [_join(base + [name]) for name in names]

    def data(self, path: str) -> bytes:
        node = self._get(path)
        if node.type is not NodeType.FILE:
            raise DciFileError(f"Not a regular file: {path}")
        return node.data

    def link_target(self, path: str) -> str:
        node = self._get(path)
        if node.type is not NodeType.LINK:
            raise DciFileError(f"Not a link: {path}")
        return node.target

    def mkdir(self, path: str) -> None:
        self._new_entry(path, _Node(NodeType.DIRECTORY))

    def write_file(self, path: str, data: bytes) -> None:
        self._new_entry(path, _Node(NodeType.FILE, data=bytes(data)))

    def link(self, target: str, link_path: str) -> None:
        """Create ``link_path`` pointing at the existing entry ``target``."""
        if not self.exists(target):
            raise DciFileError(f"Link target does not exist: {target}")
        self._new_entry(link_path, _Node(NodeType.LINK, target=_join(_split(target))))

    def to_bytes(self) -> bytes:
        count = len(self._root.children).to_bytes(3, "little")
        return HEADER.pack(MAGIC, VERSION, count) + _encode_children(self._root.children)

    def write_to_file(self, output: Union[str, Path]) -> None:
        output_path = Path(output)
        tmp_path = output_path.with_name(output_path.name + ".tmp")
        payload = self.to_bytes()
        try:
            tmp_path.write_bytes(payload)
            tmp_path.replace(output_path)
        except OSError as exc:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_exc:
                logger.warning("Failed to remove %s: %s", tmp_path, cleanup_exc)
            raise DciFileError(f"Failed to write DCI file {output_path}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(payload), output_path)


def _encode_children(children: Dict[str, _Node]) -> bytes:
    chunks: list[bytes] = []
    for name in sorted(children, key=_natural_key):
        node = children[name]
        if node.type is NodeType.DIRECTORY:
            content = _encode_children(node.children)
        elif node.type is NodeType.FILE:
            content = node.data
        else:
            content = node.target.encode("utf-8")
        chunks.append(ENTRY_HEADER.pack(node.type, _check_name(name), len(content)))
        chunks.append(content)
    return b"".join(chunks)


def _decode_entry(data: bytes, offset: int, end: int) -> Tuple[str, _Node, int]:
    if offset + ENTRY_HEADER.size > end:
        raise DciFileError(f"Truncated entry header at offset {offset}.")
    raw_type, raw_name, size = ENTRY_HEADER.unpack_from(data, offset)
    offset += ENTRY_HEADER.size
    if offset + size > end:
        raise DciFileError(f"Truncated entry content at offset {offset}.")

    try:
        node_type = NodeType(raw_type)
    except ValueError as exc:
        raise DciFileError(f"Unknown entry type {raw_type} at offset {offset}.") from exc
    try:
        name = raw_name.split(b"\0", 1)[0].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DciFileError(f"Entry name is not UTF-8 at offset {offset}.") from exc
    if not name or "/" in name:
        raise DciFileError(f"Invalid entry name {name!r} at offset {offset}.")

    content_end = offset + size
    if node_type is NodeType.DIRECTORY:
        node = _Node(NodeType.DIRECTORY)
        while offset < content_end:
            child_name, child, offset = _decode_entry(data, offset, content_end)
            if child_name in node.children:
                raise DciFileError(f"Duplicate entry {child_name!r} in directory {name!r}.")
            node.children[child_name] = child
    elif node_type is NodeType.FILE:
        node = _Node(NodeType.FILE, data=bytes(data[offset:content_end]))
    else:
        node = _Node(NodeType.LINK, target=data[offset:content_end].decode("utf-8", errors="replace"))
    return name, node, content_end
