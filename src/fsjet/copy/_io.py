"""Per-item I/O primitives for the copy engine: directories, files, links."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from typing import Iterable

from .._mode import mode_bits
from .._paths import with_parent
from ..node import Node, NodeType, list_dir
from ._types import CHUNK_SIZE, LARGE_FILE_THRESHOLD, CopyTask, WriteProgressCallback

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Destination clearing
# ---------------------------------------------------------------------------

def clear_path(path: str) -> None:
    """Remove whatever occupies *path* (directory trees included)."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.unlink(path)


def empty_dir(path: str) -> None:
    """Delete every entry inside the directory *path*, keeping *path* itself."""
    for name in list_dir(path) or []:
        clear_path(os.path.join(path, name))


def kinds_differ(source: Node, destination: Node) -> bool:
    """True if one side is a directory and the other is not."""
    return (source.type is NodeType.DIR) != (destination.type is NodeType.DIR)


def needs_clearing(source: Node, destination: Node) -> bool:
    """True if *destination* must be removed before *source* can take its place."""
    if kinds_differ(source, destination):
        return True
    return destination.type is NodeType.SYMLINK and source.type is not NodeType.SYMLINK


# ---------------------------------------------------------------------------
# Directories, links, timestamps
# ---------------------------------------------------------------------------

def make_dir(path: str, mode: str | None = None) -> None:
    """``mkdir -p`` *path* and apply *mode* to the leaf."""
    os.makedirs(path, exist_ok=True)
    bits = mode_bits(mode)
    if bits is not None:
        os.chmod(path, bits)


def copy_symlink(source: str, destination: str) -> None:
    """Recreate the link at *source* at *destination* (same target)."""
    target = os.readlink(source)
    try:
        os.symlink(target, destination)
    except FileExistsError:
        os.unlink(destination)
        os.symlink(target, destination)


def preserve_times(destination: str, node: Node) -> None:
    """Copy access and modify times recorded in *node* onto *destination*."""
    if node.access_time is None or node.modify_time is None:
        return
    times = (node.access_time, node.modify_time)
    if node.type is NodeType.SYMLINK:
        if os.utime in os.supports_follow_symlinks:
            os.utime(destination, times, follow_symlinks=False)
        return
    os.utime(destination, times)


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

def _write_file(source: str, destination: str, append: bool) -> None:
    with open(source, "rb") as fsrc, open(destination, "ab" if append else "wb") as fdst:
        shutil.copyfileobj(fsrc, fdst, CHUNK_SIZE)


def copy_file(source: str, destination: str, mode: str | None = None,
              *, append: bool = False) -> None:
    """Copy the bytes of *source* to *destination* and apply *mode*.

    With *append* the bytes are added to the end of an existing file and
    its permission bits are left alone.
    """
    with_parent(_write_file, destination, source, destination, append)
    bits = mode_bits(mode)
    if bits is not None and not append:
        os.chmod(destination, bits)


async def _write_file_chunked(
    source: str,
    destination: str,
    size: int,
    append: bool,
    write_progress: WriteProgressCallback,
    throttle: float | None,
) -> None:
    fsrc = await asyncio.to_thread(open, source, "rb")
    try:
        fdst = await asyncio.to_thread(open, destination, "ab" if append else "wb")
        try:
            written = 0
            while True:
                chunk = await asyncio.to_thread(fsrc.read, CHUNK_SIZE)
                if not chunk:
                    break
                await asyncio.to_thread(fdst.write, chunk)
                written += len(chunk)
                write_progress(destination, written, size)
                if throttle:
                    await asyncio.sleep(throttle)
        finally:
            await asyncio.to_thread(fdst.close)
    finally:
        await asyncio.to_thread(fsrc.close)


async def copy_file_async(
    source: str,
    destination: str,
    node: Node,
    *,
    append: bool = False,
    write_progress: WriteProgressCallback | None = None,
    throttle: float | None = None,
) -> None:
    """Asynchronous :func:`copy_file`.

    Files larger than :data:`LARGE_FILE_THRESHOLD` are streamed chunk by
    chunk when *write_progress* is given, reporting ``(path, written, total)``
    after every chunk and sleeping *throttle* seconds in between.
    """
    size = node.size or 0
    if write_progress is None or size <= LARGE_FILE_THRESHOLD:
        await asyncio.to_thread(copy_file, source, destination, node.mode, append=append)
        return
    try:
        await _write_file_chunked(source, destination, size, append, write_progress, throttle)
    except FileNotFoundError:
        parent = os.path.dirname(destination)
        logger.debug("parent of %s missing; creating it and retrying", destination)
        await asyncio.to_thread(os.makedirs, parent, exist_ok=True)
        await _write_file_chunked(source, destination, size, append, write_progress, throttle)
    bits = mode_bits(node.mode)
    if bits is not None and not append:
        await asyncio.to_thread(os.chmod, destination, bits)


# ---------------------------------------------------------------------------
# Item dispatch
# ---------------------------------------------------------------------------

def copy_item(task: CopyTask, *, append: bool = False, times: bool = False) -> None:
    """Copy one walked item to ``task.target`` according to its node type."""
    node = task.node
    target = task.target
    if node.type is NodeType.DIR:
        make_dir(target, node.mode)
    elif node.type is NodeType.FILE:
        copy_file(task.source, target, node.mode, append=append)
    elif node.type is NodeType.SYMLINK:
        with_parent(copy_symlink, target, task.source, target)
    else:
        logger.debug("skipping %s: not a file, directory or symlink", task.source)
        return
    if times:
        preserve_times(target, node)


async def copy_item_async(
    task: CopyTask,
    *,
    append: bool = False,
    times: bool = False,
    write_progress: WriteProgressCallback | None = None,
    throttle: float | None = None,
) -> None:
    """Asynchronous :func:`copy_item`; large files stream with byte progress.

    Byte progress is reported against ``task.destination`` even while the
    bytes go to a staging path.
    """
    node = task.node
    if node.type is NodeType.FILE:
        report = None
        if write_progress is not None:
            def report(_path, written, total):
                write_progress(task.destination, written, total)
        await copy_file_async(task.source, task.target, node, append=append,
                              write_progress=report, throttle=throttle)
        if times:
            await asyncio.to_thread(preserve_times, task.target, node)
        return
    await asyncio.to_thread(copy_item, task, append=append, times=times)


def commit_staged(task: CopyTask) -> None:
    """Rename the staged copy of *task* over its destination."""
    if task.staging is not None:
        os.replace(task.staging, task.destination)
        task.staging = None


def restore_dir_times(tasks: Iterable[CopyTask]) -> None:
    """Apply recorded times to the copied directories among *tasks*, deepest first.

    Call once nothing more is written below them.
    """
    for task in reversed(list(tasks)):
        if task.done and task.node.type is NodeType.DIR:
            preserve_times(task.destination, task.node)
