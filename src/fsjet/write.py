"""Single-entry operations: write, append, read, dir, file, symlink."""

from __future__ import annotations

import asyncio
import json
import logging
import os

from ._mode import mode_bits, normalize_file_mode
from ._paths import ATOMIC_SUFFIX, with_parent
from .copy._io import empty_dir
from .exceptions import NotDirectoryError, NotFileError
from .node import NodeType, exists

logger = logging.getLogger(__name__)

RETURN_TYPES = ("utf8", "bytes", "json")

Data = str | bytes | dict | list


def serialize(data: Data, json_indent: int = 2) -> bytes:
    """Turn *data* into the bytes written to disk (``dict``/``list`` as JSON)."""
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=json_indent).encode("utf-8")
    raise TypeError(f"cannot write {type(data).__name__}; expected str, bytes, dict or list")


def _write_bytes(path: str, payload: bytes, flag: str) -> None:
    with open(path, flag) as f:
        f.write(payload)


def _chmod(path: str, mode: int | str | None) -> None:
    bits = mode_bits(mode)
    if bits is not None:
        os.chmod(path, bits)


# ---------------------------------------------------------------------------
# Write / append / read
# ---------------------------------------------------------------------------

def write(path: str, data: Data, *, atomic: bool = False, json_indent: int = 2,
          mode: int | str | None = None) -> None:
    """Write *data* to *path*, creating missing parent directories.

    With *atomic*, the payload is written to ``path + ".__new__"`` and then
    renamed over *path*, so readers never see a half-written file.
    """
    payload = serialize(data, json_indent)
    target = path + ATOMIC_SUFFIX if atomic else path
    with_parent(_write_bytes, target, target, payload, "wb")
    _chmod(target, mode)
    if atomic:
        os.replace(target, path)


def append(path: str, data: str | bytes, *, mode: int | str | None = None) -> None:
    """Append *data* to *path*, creating the file and its parents if needed."""
    created = not os.path.lexists(path)
    with_parent(_write_bytes, path, path, serialize(data), "ab")
    if created:
        _chmod(path, mode)


def read(path: str, return_as: str = "utf8"):
    """Return the content of *path*, or ``None`` if it does not exist.

    Args:
        return_as: ``"utf8"`` (str), ``"bytes"`` or ``"json"`` (parsed).
    """
    if return_as not in RETURN_TYPES:
        raise ValueError(f"return_as must be one of: {', '.join(RETURN_TYPES)}")
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        return None
    if return_as == "bytes":
        return raw
    text = raw.decode("utf-8")
    if return_as == "json":
        return json.loads(text)
    return text


async def write_async(path: str, data: Data, *, atomic: bool = False,
                      json_indent: int = 2, mode: int | str | None = None) -> None:
    await asyncio.to_thread(write, path, data, atomic=atomic,
                            json_indent=json_indent, mode=mode)


async def append_async(path: str, data: str | bytes, *, mode: int | str | None = None) -> None:
    await asyncio.to_thread(append, path, data, mode=mode)


async def read_async(path: str, return_as: str = "utf8"):
    return await asyncio.to_thread(read, path, return_as)


# ---------------------------------------------------------------------------
# Ensure dir / file, symlink
# ---------------------------------------------------------------------------

def ensure_dir(path: str, *, empty: bool = False, mode: int | str | None = None) -> None:
    """Make sure *path* is a directory (``mkdir -p``).

    Raises:
        NotDirectoryError: If something other than a directory is at *path*.
    """
    kind = exists(path)
    if kind is not None and kind is not NodeType.DIR:
        raise NotDirectoryError.for_path("Path exists but is not a directory", path)
    if kind is None:
        os.makedirs(path, exist_ok=True)
        _chmod(path, mode)
        return
    if mode is not None and normalize_file_mode(os.stat(path).st_mode) != normalize_file_mode(mode):
        _chmod(path, mode)
    if empty:
        logger.debug("emptying %s", path)
        empty_dir(path)


def ensure_file(path: str, *, content: Data | None = None, json_indent: int = 2,
                mode: int | str | None = None) -> None:
    """Make sure *path* is a file, writing *content* if given.

    Raises:
        NotFileError: If a directory is at *path*.
    """
    kind = exists(path)
    if kind is NodeType.DIR:
        raise NotFileError.for_path("Path exists but is not a file", path)
    if kind is None or content is not None:
        write(path, b"" if content is None else content, json_indent=json_indent, mode=mode)
    elif mode is not None:
        _chmod(path, mode)


def symlink(target: str, path: str) -> None:
    """Create a symlink at *path* pointing to *target*; parents are created once."""
    with_parent(os.symlink, path, target, path)


async def ensure_dir_async(path: str, *, empty: bool = False,
                           mode: int | str | None = None) -> None:
    await asyncio.to_thread(ensure_dir, path, empty=empty, mode=mode)


async def ensure_file_async(path: str, *, content: Data | None = None,
                            json_indent: int = 2, mode: int | str | None = None) -> None:
    await asyncio.to_thread(ensure_file, path, content=content,
                            json_indent=json_indent, mode=mode)


async def symlink_async(target: str, path: str) -> None:
    await asyncio.to_thread(symlink, target, path)
