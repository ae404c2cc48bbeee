"""Node Inspector: uniform descriptors for single filesystem entries."""

from __future__ import annotations

import asyncio
import hashlib
import os
import stat
from dataclasses import dataclass
from enum import Enum

from ._mode import normalize_file_mode

__all__ = [
    "Node", "NodeType", "InspectOptions", "SUPPORTED_CHECKSUMS",
    "inspect", "inspect_async", "list_dir", "list_dir_async",
    "exists", "exists_async", "file_checksum",
]

SUPPORTED_CHECKSUMS = ("md5", "sha1", "sha256", "sha512")

_HASH_CHUNK_SIZE = 65536


class NodeType(str, Enum):
    """Kind of filesystem entry.

    Members: ``FILE``, ``DIR``, ``SYMLINK``, ``OTHER``.
    """
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"

    def __str__(self) -> str:          # noqa: D105
        return self.value

    @classmethod
    def from_stat(cls, st: os.stat_result) -> NodeType:
        """Classify a stat result."""
        if stat.S_ISREG(st.st_mode):
            return cls.FILE
        if stat.S_ISDIR(st.st_mode):
            return cls.DIR
        if stat.S_ISLNK(st.st_mode):
            return cls.SYMLINK
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class Node:
    """Immutable snapshot of one filesystem entry.

    Attributes:
        name: Base name of the entry.
        type: :class:`NodeType` of the entry.
        size: Size in bytes for files; for directories only set by
            :func:`~fsjet.tree.inspect_tree` (sum of the children).
        access_time: ``st_atime`` (only with ``times=True``).
        modify_time: ``st_mtime`` (only with ``times=True``).
        change_time: ``st_ctime`` (only with ``times=True``).
        mode: Permission bits as a 3-digit octal string (only with ``mode=True``).
        absolute_path: Full path (only with ``absolute_path=True``).
        points_at: Symlink target, for symlinks.
        checksum: Hex digest (only with ``checksum=<algo>``).
        relative_path: Path relative to a tree root (tree inspection only).
        children: Child descriptors (tree inspection only).
    """
    name: str
    type: NodeType
    size: int | None = None
    access_time: float | None = None
    modify_time: float | None = None
    change_time: float | None = None
    mode: str | None = None
    absolute_path: str | None = None
    points_at: str | None = None
    checksum: str | None = None
    relative_path: str | None = None
    children: tuple[Node, ...] = ()

    @property
    def is_dir(self) -> bool:
        return self.type is NodeType.DIR

    def to_dict(self) -> dict:
        """Return a JSON-friendly dict without unset fields."""
        result: dict = {"name": self.name, "type": str(self.type)}
        for key in ("size", "access_time", "modify_time", "change_time", "mode",
                    "absolute_path", "points_at", "checksum", "relative_path"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


@dataclass(frozen=True, slots=True)
class InspectOptions:
    """Which optional fields :func:`inspect` fills in.

    *symlinks* selects ``lstat`` (report links as links) over ``stat``.
    """
    mode: bool = False
    times: bool = False
    checksum: str | None = None
    absolute_path: bool = False
    symlinks: bool = False

    def __post_init__(self):
        if self.checksum is not None and self.checksum not in SUPPORTED_CHECKSUMS:
            raise ValueError(
                f"Unsupported checksum {self.checksum!r}; "
                f"must be one of: {', '.join(SUPPORTED_CHECKSUMS)}"
            )


def file_checksum(path: str, algo: str) -> str:
    """Stream *path* through *algo* and return the hex digest."""
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_HASH_CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def _node_from_stat(path: str, st: os.stat_result, options: InspectOptions) -> Node:
    node_type = NodeType.from_stat(st)
    fields: dict = {}
    if node_type is NodeType.FILE:
        fields["size"] = st.st_size
        if options.checksum:
            fields["checksum"] = file_checksum(path, options.checksum)
    elif node_type is NodeType.SYMLINK:
        fields["points_at"] = os.readlink(path)
    if options.mode:
        fields["mode"] = normalize_file_mode(st.st_mode)
    if options.times:
        fields["access_time"] = st.st_atime
        fields["modify_time"] = st.st_mtime
        fields["change_time"] = st.st_ctime
    if options.absolute_path:
        fields["absolute_path"] = path
    return Node(name=os.path.basename(path), type=node_type, **fields)


def inspect(path: str, options: InspectOptions | None = None) -> Node | None:
    """Describe the entry at *path*, or return ``None`` if it does not exist."""
    options = options or InspectOptions()
    try:
        st = os.lstat(path) if options.symlinks else os.stat(path)
    except FileNotFoundError:
        return None
    return _node_from_stat(path, st, options)


async def inspect_async(path: str, options: InspectOptions | None = None) -> Node | None:
    return await asyncio.to_thread(inspect, path, options)


def list_dir(path: str) -> list[str] | None:
    """Return the sorted entry names of *path*, or ``None`` if it does not exist."""
    try:
        return sorted(os.listdir(path))
    except FileNotFoundError:
        return None


async def list_dir_async(path: str) -> list[str] | None:
    return await asyncio.to_thread(list_dir, path)


def exists(path: str) -> NodeType | None:
    """Return the :class:`NodeType` at *path* (following links), or ``None``."""
    try:
        st = os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return None
    return NodeType.from_stat(st)


async def exists_async(path: str) -> NodeType | None:
    return await asyncio.to_thread(exists, path)
