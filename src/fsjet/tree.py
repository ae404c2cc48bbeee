"""Tree Walker plus the tree-level read operations built on it.

:func:`walk` is the blocking variant (depth-first recursion with a visitor),
:func:`walk_async` the lazily pulled one.  Both yield a directory before any
of its children, starting with the root itself.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from collections import deque
from dataclasses import replace
from typing import AsyncIterator, Callable, NamedTuple, Sequence

from ._match import Matcher
from .exceptions import NotDirectoryError, NotFoundError
from .node import (
    InspectOptions,
    Node,
    NodeType,
    inspect,
    inspect_async,
    list_dir,
    list_dir_async,
)

logger = logging.getLogger(__name__)

Visitor = Callable[[str, "Node | None"], None]


class WalkEntry(NamedTuple):
    """One item produced by the walker."""

    path: str
    node: Node | None


def _descend(node: Node | None, level: int, max_depth: int | None) -> bool:
    return (node is not None and node.type is NodeType.DIR
            and (max_depth is None or level < max_depth))


# ---------------------------------------------------------------------------
# Walker
# ---------------------------------------------------------------------------

def walk(
    path: str,
    visitor: Visitor,
    *,
    inspect_options: InspectOptions | None = None,
    max_depth: int | None = None,
    _level: int = 0,
) -> None:
    """Call ``visitor(path, node)`` for *path* and every descendant, pre-order.

    If *path* does not exist the visitor is called once with ``None``.
    """
    node = inspect(path, inspect_options)
    children: list[str] = []
    if _descend(node, _level, max_depth):
        children = list_dir(path) or []
    visitor(path, node)
    for name in children:
        walk(os.path.join(path, name), visitor,
             inspect_options=inspect_options, max_depth=max_depth,
             _level=_level + 1)


async def walk_async(
    path: str,
    *,
    inspect_options: InspectOptions | None = None,
    max_depth: int | None = None,
) -> AsyncIterator[WalkEntry]:
    """Lazily yield :class:`WalkEntry` items in the same order as :func:`walk`.

    One inspect (plus one listing for directories) is issued per pulled
    item; nothing is read ahead of the consumer.  The cursor is a stack of
    the not-yet-visited siblings at each depth.
    """
    stack: list[tuple[int, deque[str]]] = [(0, deque([path]))]
    while stack:
        level, siblings = stack[-1]
        if not siblings:
            stack.pop()
            continue
        current = siblings.popleft()
        node = await inspect_async(current, inspect_options)
        if _descend(node, level, max_depth):
            names = await list_dir_async(current)
            if names:
                stack.append((level + 1, deque(os.path.join(current, n) for n in names)))
        yield WalkEntry(current, node)


# ---------------------------------------------------------------------------
# Tree inspection
# ---------------------------------------------------------------------------

def _checksum_of_dir(children: Sequence[Node], algo: str) -> str:
    """Hash the names and checksums of *children* in order."""
    h = hashlib.new(algo)
    for child in children:
        h.update((child.name + (child.checksum or "")).encode())
    return h.hexdigest()


def _inspect_tree_node(path: str, options: InspectOptions, relative_path: bool,
                       rel: str) -> Node | None:
    node = inspect(path, options)
    if node is None:
        return None
    extra: dict = {}
    if relative_path:
        extra["relative_path"] = rel
    if node.type is NodeType.DIR:
        children = []
        size = 0
        for name in list_dir(path) or []:
            child = _inspect_tree_node(os.path.join(path, name), options,
                                       relative_path, f"{rel}/{name}")
            if child is None:
                continue
            size += child.size or 0
            children.append(child)
        extra["children"] = tuple(children)
        extra["size"] = size
        if options.checksum:
            extra["checksum"] = _checksum_of_dir(children, options.checksum)
    if not extra:
        return node
    return replace(node, **extra)


def inspect_tree(
    path: str,
    *,
    checksum: str | None = None,
    relative_path: bool = False,
) -> Node | None:
    """Describe *path* and everything under it as a nested :class:`Node`.

    Symlinks are reported as links, never followed.  Directory ``size`` is
    the sum of the children's sizes; with *checksum*, a directory's checksum
    covers the names and checksums of its children.
    """
    options = InspectOptions(checksum=checksum, symlinks=True)
    return _inspect_tree_node(path, options, relative_path, ".")


async def inspect_tree_async(
    path: str,
    *,
    checksum: str | None = None,
    relative_path: bool = False,
) -> Node | None:
    return await asyncio.to_thread(
        inspect_tree, path, checksum=checksum, relative_path=relative_path,
    )


# ---------------------------------------------------------------------------
# Find
# ---------------------------------------------------------------------------

def _check_find_root(path: str, node: Node | None) -> None:
    if node is None:
        raise NotFoundError.for_path("Path you want to find stuff in doesn't exist", path)
    if node.type is not NodeType.DIR:
        raise NotDirectoryError.for_path("Path you want to find stuff in must be a directory", path)


def _wanted(node: Node | None, files: bool, directories: bool) -> bool:
    if node is None:
        return False
    return ((node.type is NodeType.FILE and files)
            or (node.type is NodeType.DIR and directories))


def find(
    path: str,
    *,
    matching: str | Sequence[str] = ("*",),
    files: bool = True,
    directories: bool = False,
    recursive: bool = True,
    cwd: str | None = None,
) -> list[str]:
    """Return paths (relative to *cwd*) of matching entries below *path*."""
    _check_find_root(path, inspect(path))
    matches = Matcher(path, matching)
    found: list[str] = []

    def visit(item_path: str, node: Node | None) -> None:
        if item_path == path:
            return
        is_dir = node is not None and node.type is NodeType.DIR
        if _wanted(node, files, directories) and matches(item_path, is_dir=is_dir):
            found.append(os.path.relpath(item_path, cwd or os.getcwd()))

    walk(path, visit, max_depth=None if recursive else 1)
    logger.debug("find %s: %d match(es)", path, len(found))
    return found


async def find_async(
    path: str,
    *,
    matching: str | Sequence[str] = ("*",),
    files: bool = True,
    directories: bool = False,
    recursive: bool = True,
    cwd: str | None = None,
) -> list[str]:
    _check_find_root(path, await inspect_async(path))
    matches = Matcher(path, matching)
    found: list[str] = []
    async for item_path, node in walk_async(path, max_depth=None if recursive else 1):
        if item_path == path:
            continue
        is_dir = node is not None and node.type is NodeType.DIR
        if _wanted(node, files, directories) and matches(item_path, is_dir=is_dir):
            found.append(os.path.relpath(item_path, cwd or os.getcwd()))
    return found
