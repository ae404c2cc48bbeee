"""Move and rename, with a copy-and-remove fallback across devices."""

from __future__ import annotations

import asyncio
import errno
import logging
import os

from ..exceptions import os_errors, source_missing
from ._ops import copy_async, copy_sync
from ._remove import remove_async, remove_sync

logger = logging.getLogger(__name__)


def _rename(source: str, destination: str) -> bool:
    """``os.rename`` with one retry after creating a missing parent.

    Returns False if the rename crosses a device boundary.
    """
    try:
        os.rename(source, destination)
    except OSError as exc:
        if exc.errno == errno.EXDEV:
            return False
        if exc.errno != errno.ENOENT:
            raise
        if not os.path.lexists(source):
            raise source_missing(source, "move") from exc
        logger.debug("parent of %s missing; creating it and retrying", destination)
        os.makedirs(os.path.dirname(os.path.abspath(destination)), exist_ok=True)
        os.rename(source, destination)
    return True


def move_sync(source: str, destination: str) -> None:
    """Move *source* to *destination*.

    Raises:
        NotFoundError: If *source* does not exist.
    """
    with os_errors():
        if _rename(source, destination):
            return
        logger.debug("move %s -> %s crosses devices; copying", source, destination)
        copy_sync(source, destination, overwrite=True)
        remove_sync(source)


async def move_async(source: str, destination: str) -> None:
    with os_errors():
        if await asyncio.to_thread(_rename, source, destination):
            return
        logger.debug("move %s -> %s crosses devices; copying", source, destination)
        await copy_async(source, destination, overwrite=True)
        await remove_async(source)


def renamed_path(path: str, new_name: str) -> str:
    """Return the sibling of *path* called *new_name*."""
    if os.sep in new_name or (os.altsep and os.altsep in new_name):
        raise ValueError(f"new name {new_name!r} must not contain a path separator")
    return os.path.join(os.path.dirname(path), new_name)


def rename_sync(path: str, new_name: str) -> None:
    move_sync(path, renamed_path(path, new_name))


async def rename_async(path: str, new_name: str) -> None:
    await move_async(path, renamed_path(path, new_name))
