"""Remove Engine: idempotent deletion, optionally into the platform trash."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from typing import Callable, Sequence

import send2trash

from .._match import PathFilter, compile_filter
from ..exceptions import ErrorKind, os_errors
from ..node import InspectOptions, Node, NodeType, inspect_async, list_dir_async
from ._resolve import ConflictResolver
from ._types import (
    MAX_RETRIES,
    ConflictAction,
    ConflictCallback,
    ConflictSettings,
    ItemProgressCallback,
    NodeReport,
    RunState,
)

logger = logging.getLogger(__name__)

_LSTAT = InspectOptions(symlinks=True)

_RESOLVABLE = frozenset({ErrorKind.PERMISSION_DENIED, ErrorKind.DIRECTORY_NOT_EMPTY})


# ---------------------------------------------------------------------------
# Trash
# ---------------------------------------------------------------------------

def move_to_trash(path: str) -> None:
    """Send *path* to the desktop trash (recycle bin on Windows).

    Directories go as a whole.  The entry can be restored from the
    platform's trash.
    """
    source = os.path.abspath(path)
    send2trash.send2trash(source)
    logger.debug("moved %s to trash", source)


def _delete(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.unlink(path)


# ---------------------------------------------------------------------------
# Blocking remove
# ---------------------------------------------------------------------------

def remove_sync(path: str, *, trash: bool = False) -> None:
    """Delete *path* recursively; a missing path is not an error.

    With *trash*, the entry is sent to the trash instead (see :func:`move_to_trash`).
    """
    with os_errors():
        if not os.path.lexists(path):
            return
        if trash:
            move_to_trash(path)
        else:
            _delete(path)


# ---------------------------------------------------------------------------
# Asynchronous remove
# ---------------------------------------------------------------------------

class _AsyncRemove:
    """State of one :func:`remove_async` call."""

    def __init__(self, *, matches: Callable[..., bool], resolver: ConflictResolver,
                 state: RunState, progress: ItemProgressCallback | None,
                 trash: bool) -> None:
        self.matches = matches
        self.resolver = resolver
        self.state = state
        self.progress = progress
        self.trash = trash

    def abort(self, reason: str) -> None:
        if not self.state.aborted:
            logger.debug("remove aborted: %s", reason)
        self.state.aborted = True

    def _operation(self, node: Node) -> Callable[[str], object]:
        if self.trash:
            return move_to_trash
        if node.type is NodeType.DIR:
            return os.rmdir
        return os.unlink

    async def _attempt(self, path: str, node: Node) -> bool:
        """Run the removal of one entry under the conflict protocol.

        Returns True once *path* is gone, False if it was skipped or the
        call was aborted.
        """
        operation = self._operation(node)
        retries = 0
        while True:
            if self.state.aborted:
                return False
            try:
                await asyncio.to_thread(operation, path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                kind = ErrorKind.of(exc)
                if kind not in _RESOLVABLE or not self.resolver.configured:
                    raise
                settings = await self.resolver.resolve(path, node, kind)
                action = settings.action
                if action.compares_content:
                    raise ValueError(f"{action} cannot resolve a removal error") from exc
                self.resolver.record(path, node, kind, settings)
                if action is ConflictAction.RETRY and retries < MAX_RETRIES:
                    retries += 1
                    logger.debug("retrying removal of %s after %s", path, kind)
                    continue
                if action is ConflictAction.SKIP:
                    logger.debug("skipping %s (%s)", path, kind)
                    return False
                if action is ConflictAction.ABORT:
                    self.abort(f"{kind} at {path}")
                    return False
                raise
            self.state.completed += 1
            if self.progress is not None and not self.progress(
                    path, self.state.completed, -1, node):
                self.abort("progress callback")
            return True

    async def _children(self, path: str, selected: bool) -> list[bool]:
        names = await list_dir_async(path) or []
        paths = [os.path.join(path, name) for name in names]
        nodes = await asyncio.gather(*(inspect_async(p, _LSTAT) for p in paths))
        results = await asyncio.gather(
            *(self.visit(p, n, selected or (n is not None and self.matches(p, is_dir=n.is_dir)))
              for p, n in zip(paths, nodes)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results

    async def visit(self, path: str, node: Node | None, selected: bool) -> bool:
        """Remove *path* if *selected*; descend into directories.

        Returns False only when a selected entry is still present.
        """
        if node is None:
            return True
        if self.state.aborted:
            return not selected
        if selected and (self.trash or node.type is not NodeType.DIR):
            return await self._attempt(path, node)
        if node.type is not NodeType.DIR:
            return True
        self.state.in_flight += 1
        try:
            removed = await self._children(path, selected)
        finally:
            self.state.in_flight -= 1
        if not selected:
            return True
        if not all(removed):
            logger.debug("keeping %s: not all of its entries were removed", path)
            return False
        return await self._attempt(path, node)


async def remove_async(
    path: str,
    *,
    matching: str | Sequence[str] | None = None,
    filter: PathFilter | None = None,
    conflict_callback: ConflictCallback | None = None,
    conflict_settings: ConflictSettings | None = None,
    progress: ItemProgressCallback | None = None,
    trash: bool = False,
    report: bool = False,
) -> list[NodeReport] | None:
    """Delete *path* without blocking the event loop.

    Children are removed concurrently; a directory is only removed after
    every one of its entries has finished.  Permission and "directory not
    empty" errors go through the conflict protocol when a callback or
    settings are given (``SKIP``, ``ABORT``, ``RETRY`` and ``THROW`` apply;
    size or time based actions raise :class:`ValueError`).  A directory
    whose entries were not all removed is kept without a report of its own.

    With *matching* or *filter*, only matching entries below *path* are
    removed: a matching directory goes with all its contents, other
    directories are searched and kept.

    Returns:
        The collected :class:`NodeReport` list when *report* is set,
        otherwise ``None``.
    """
    state = RunState()
    resolver = ConflictResolver(conflict_callback, conflict_settings,
                                state=state, report=report)
    selective = bool(matching) or filter is not None
    run = _AsyncRemove(matches=compile_filter(path, matching, filter), resolver=resolver,
                       state=state, progress=progress, trash=trash)
    with os_errors():
        node = await inspect_async(path, _LSTAT)
        if node is None:
            return [] if report else None
        logger.debug("remove %s (async)", path)
        await run.visit(path, node, not selective)
    return state.reports if report else None
