"""Copy Engine: blocking and asynchronous tree copies."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import aclosing
from typing import Sequence

from .._match import PathFilter, compile_filter
from ..exceptions import ErrorKind, destination_exists, os_errors, source_missing
from ..node import InspectOptions, Node, NodeType, inspect, inspect_async
from ..tree import walk, walk_async
from .._paths import ATOMIC_SUFFIX
from ._io import (
    clear_path,
    commit_staged,
    copy_item,
    copy_item_async,
    empty_dir,
    needs_clearing,
    restore_dir_times,
)
from ._resolve import ConflictResolver, should_copy
from ._types import (
    MAX_RETRIES,
    ConflictAction,
    ConflictCallback,
    ConflictScope,
    ConflictSettings,
    CopyTask,
    ItemProgressCallback,
    NodeReport,
    RunState,
    WriteProgressCallback,
)

logger = logging.getLogger(__name__)

_DESTINATION_OPTIONS = InspectOptions(times=True, symlinks=True)


def _walk_options(follow_symlinks: bool) -> InspectOptions:
    return InspectOptions(mode=True, times=True, symlinks=not follow_symlinks)


def _destination_for(source_root: str, destination_root: str, path: str) -> str:
    rel = os.path.relpath(path, source_root)
    return destination_root if rel == "." else os.path.join(destination_root, rel)


def _check_top_level(source: str, destination: str, options: InspectOptions,
                     allow_existing: bool) -> Node:
    node = inspect(source, options)
    if node is None:
        raise source_missing(source)
    if not allow_existing and os.path.lexists(destination):
        raise destination_exists(destination)
    return node


def _empty_destination(destination: str) -> None:
    if os.path.isdir(destination) and not os.path.islink(destination):
        empty_dir(destination)
    else:
        clear_path(destination)


# ---------------------------------------------------------------------------
# Blocking copy
# ---------------------------------------------------------------------------

def _collect_tasks(source: str, destination: str, options: InspectOptions,
                   matches) -> list[CopyTask]:
    tasks: list[CopyTask] = []

    def visit(path: str, node: Node | None) -> None:
        if node is not None and matches(path, is_dir=node.is_dir):
            tasks.append(CopyTask(path, node, _destination_for(source, destination, path)))

    walk(source, visit, inspect_options=options)
    return tasks


def _copy_task(task: CopyTask, times: bool) -> None:
    existing = inspect(task.destination, _DESTINATION_OPTIONS)
    if existing is not None and needs_clearing(task.node, existing):
        clear_path(task.destination)
    copy_item(task, times=times and task.node.type is not NodeType.DIR)
    task.done = True


def copy_sync(
    source: str,
    destination: str,
    *,
    overwrite: bool = False,
    matching: str | Sequence[str] | None = None,
    filter: PathFilter | None = None,
    progress: ItemProgressCallback | None = None,
    preserve_times: bool = False,
    empty: bool = False,
    follow_symlinks: bool = False,
) -> None:
    """Copy *source* (file, directory or link) onto *destination*.

    All items are collected before the first write, so *progress* receives
    the real total.  A falsy return from *progress* stops the copy; items
    already written stay in place.
    With *preserve_times*, directories get their times once everything
    below them has been written.

    Raises:
        NotFoundError: If *source* does not exist.
        AlreadyExistsError: If *destination* exists and neither
            *overwrite* nor *empty* is set.
    """
    options = _walk_options(follow_symlinks)
    with os_errors():
        _check_top_level(source, destination, options, overwrite or empty)
        if empty:
            _empty_destination(destination)
        tasks = _collect_tasks(source, destination, options,
                               compile_filter(source, matching, filter))
        total = len(tasks)
        logger.debug("copy %s -> %s: %d item(s)", source, destination, total)
        for index, task in enumerate(tasks, 1):
            _copy_task(task, preserve_times)
            if progress is not None and not progress(task.source, index, total, task.node):
                logger.debug("copy aborted by progress callback after %d item(s)", index)
                break
        if preserve_times:
            restore_dir_times(tasks)


# ---------------------------------------------------------------------------
# Asynchronous copy
# ---------------------------------------------------------------------------

class _AsyncCopy:
    """State of one :func:`copy_async` call."""

    def __init__(self, *, progress, preserve_times, write_progress, throttle,
                 concurrency, resolver: ConflictResolver, state: RunState) -> None:
        self.progress = progress
        self.times = preserve_times
        self.write_progress = write_progress
        self.throttle = throttle
        self.slots = asyncio.Semaphore(concurrency) if concurrency else None
        self.resolver = resolver
        self.state = state
        self.error: BaseException | None = None

    def abort(self, reason: str) -> None:
        if not self.state.aborted:
            logger.debug("copy aborted: %s", reason)
        self.state.aborted = True

    async def _on_exists(self, task: CopyTask, existing: Node) -> tuple[bool, bool]:
        """Resolve an occupied destination; return ``(copy, append)``."""
        retries = 0
        while True:
            settings = await self.resolver.resolve(
                task.destination, existing, ErrorKind.ALREADY_EXISTS)
            if settings is None:
                raise destination_exists(task.destination)
            self.resolver.record(task.destination, existing, ErrorKind.ALREADY_EXISTS, settings)
            action = settings.action
            if action is ConflictAction.THROW:
                raise destination_exists(task.destination)
            if action is ConflictAction.ABORT:
                self.abort(f"conflict at {task.destination}")
                return False, False
            if action is ConflictAction.RETRY:
                if retries >= MAX_RETRIES:
                    raise destination_exists(task.destination)
                retries += 1
                existing = await inspect_async(task.destination, _DESTINATION_OPTIONS)
                if existing is None:
                    return True, False
                continue
            if not should_copy(action, task.node, existing):
                logger.debug("skipping %s (%s)", task.destination, action)
                return False, False
            return True, action is ConflictAction.APPEND

    async def _discard(self, task: CopyTask) -> None:
        if task.staging is not None:
            await asyncio.to_thread(clear_path, task.staging)

    async def _write(self, task: CopyTask, append: bool) -> bool:
        """Write one item, resolving I/O errors; True once it is in place.

        Files and links are written to a staging sibling and renamed over the
        destination only if the call is still running at that point.
        """
        is_dir = task.node.type is NodeType.DIR
        if not append and not is_dir:
            task.staging = task.destination + ATOMIC_SUFFIX
        retries = 0
        while True:
            if self.state.aborted:
                await self._discard(task)
                return False
            try:
                await copy_item_async(task, append=append, times=self.times and not is_dir,
                                      write_progress=self.write_progress,
                                      throttle=self.throttle)
            except OSError as exc:
                await self._discard(task)
                if not self.resolver.configured:
                    raise
                kind = ErrorKind.of(exc)
                settings = await self.resolver.resolve(task.destination, task.node, kind)
                self.resolver.record(task.destination, task.node, kind, settings)
                action = settings.action
                if action is ConflictAction.RETRY and retries < MAX_RETRIES:
                    retries += 1
                    logger.debug("retrying %s after %s", task.destination, kind)
                    continue
                if action is ConflictAction.SKIP:
                    return False
                if action is ConflictAction.ABORT:
                    self.abort(f"{kind} at {task.destination}")
                    return False
                raise
            if self.state.aborted:
                await self._discard(task)
                return False
            commit_staged(task)
            return True

    async def item(self, task: CopyTask) -> None:
        """Copy one item, resolving conflicts, then report progress.

        Nothing is awaited between putting the item in place and calling
        *progress*, so a falsy return stops every item not yet in place.
        """
        self.state.in_flight += 1
        try:
            existing = await inspect_async(task.destination, _DESTINATION_OPTIONS)
            append = False
            if existing is not None:
                proceed, append = await self._on_exists(task, existing)
                if not proceed:
                    return
                if needs_clearing(task.node, existing):
                    await asyncio.to_thread(clear_path, task.destination)
                    append = False
            if not await self._write(task, append):
                return
            task.done = True
            self.state.completed += 1
        finally:
            self.state.in_flight -= 1
        if self.progress is not None and not self.state.aborted and not self.progress(
                task.source, self.state.completed, -1, task.node):
            self.abort("progress callback")

    async def _spawned(self, task: CopyTask) -> None:
        try:
            if not self.state.aborted:
                await self.item(task)
        except Exception as exc:
            self.abort(f"{type(exc).__name__} at {task.destination}")
            if self.error is None:
                self.error = exc
        finally:
            if self.slots is not None:
                self.slots.release()

    async def run(self, source: str, destination: str, options: InspectOptions,
                  matches) -> None:
        pending: list[asyncio.Task] = []
        directories: list[CopyTask] = []
        try:
            async with aclosing(walk_async(source, inspect_options=options)) as entries:
                async for path, node in entries:
                    if self.state.aborted:
                        break
                    if node is None or not matches(path, is_dir=node.is_dir):
                        continue
                    task = CopyTask(path, node, _destination_for(source, destination, path))
                    if node.type is NodeType.DIR:
                        directories.append(task)
                        await self.item(task)
                        continue
                    if self.slots is not None:
                        await self.slots.acquire()
                    pending.append(asyncio.create_task(self._spawned(task)))
        except BaseException:
            self.state.aborted = True
            await asyncio.gather(*pending, return_exceptions=True)
            raise
        await asyncio.gather(*pending)
        if self.error is not None:
            raise self.error
        if self.times:
            await asyncio.to_thread(restore_dir_times, directories)


async def copy_async(
    source: str,
    destination: str,
    *,
    overwrite: bool = False,
    matching: str | Sequence[str] | None = None,
    filter: PathFilter | None = None,
    progress: ItemProgressCallback | None = None,
    preserve_times: bool = False,
    empty: bool = False,
    follow_symlinks: bool = False,
    conflict_callback: ConflictCallback | None = None,
    conflict_settings: ConflictSettings | None = None,
    write_progress: WriteProgressCallback | None = None,
    throttle: float | None = None,
    concurrency: int | None = None,
    report: bool = False,
) -> list[NodeReport] | None:
    """Copy *source* onto *destination* without blocking the event loop.

    Directories are created in traversal order; files and links are copied
    as concurrent tasks (at most *concurrency* at a time when given).
    Whenever an item's destination already exists the conflict protocol
    decides: *conflict_settings* if given, else *conflict_callback*, else
    ``overwrite=True`` acts as ``OVERWRITE`` for every item.  The same
    resolver answers I/O errors met while writing an item.

    *progress* is called after each copied item with a total of ``-1``; a
    falsy return aborts: items already in place stay, every other item is
    left out, including files whose bytes were already being written.
    *write_progress* reports bytes for files above
    :data:`~fsjet.copy.LARGE_FILE_THRESHOLD`.

    Returns:
        The collected :class:`NodeReport` list when *report* is set,
        otherwise ``None``.  An aborted copy returns normally.

    Raises:
        NotFoundError: If *source* does not exist.
        AlreadyExistsError: If *destination* exists and no conflict policy
            (``overwrite``, ``empty``, settings or callback) is configured,
            or when a conflict resolves to ``THROW``.
    """
    if conflict_settings is None and conflict_callback is None and overwrite:
        conflict_settings = ConflictSettings(ConflictAction.OVERWRITE, ConflictScope.ALWAYS)
    state = RunState()
    resolver = ConflictResolver(conflict_callback, conflict_settings,
                                state=state, report=report)
    options = _walk_options(follow_symlinks)
    with os_errors():
        await asyncio.to_thread(_check_top_level, source, destination, options,
                                empty or resolver.configured)
        if empty:
            await asyncio.to_thread(_empty_destination, destination)
        run = _AsyncCopy(progress=progress, preserve_times=preserve_times,
                         write_progress=write_progress, throttle=throttle,
                         concurrency=concurrency, resolver=resolver, state=state)
        logger.debug("copy %s -> %s (async)", source, destination)
        await run.run(source, destination, options, compile_filter(source, matching, filter))
    return state.reports if report else None
