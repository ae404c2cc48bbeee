"""FS: an immutable working-directory context bundling every operation."""

from __future__ import annotations

import os
from typing import AsyncIterator, Sequence

from ._match import PathFilter
from .copy import (
    ConflictSettings,
    NodeReport,
    copy_async,
    copy_sync,
    move_async,
    move_sync,
    remove_async,
    remove_sync,
    rename_async,
    rename_sync,
)
from .copy._types import ConflictCallback, ItemProgressCallback, WriteProgressCallback
from .exceptions import os_errors
from .node import (
    InspectOptions,
    Node,
    NodeType,
    exists,
    exists_async,
    inspect,
    inspect_async,
    list_dir,
    list_dir_async,
)
from .tree import (
    Visitor,
    WalkEntry,
    find,
    find_async,
    inspect_tree,
    inspect_tree_async,
    walk,
    walk_async,
)
from .write import (
    Data,
    append,
    append_async,
    ensure_dir,
    ensure_dir_async,
    ensure_file,
    ensure_file_async,
    read,
    read_async,
    symlink,
    symlink_async,
    write,
    write_async,
)

__all__ = ["FS"]

PathArg = str | os.PathLike


class FS:
    """Filesystem operations resolved against a fixed working directory.

    An ``FS`` never changes; :meth:`cwd` and :meth:`dir` return new
    contexts.  Relative paths given to any method are resolved against
    :meth:`path`.  Every ``*_async`` method is the non-blocking twin of the
    method without the suffix.
    """

    def __init__(self, cwd: PathArg | None = None):
        self._cwd = os.path.abspath(os.fspath(cwd) if cwd is not None else os.getcwd())

    def __repr__(self) -> str:
        return f"FS({self._cwd!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FS):
            return NotImplemented
        return self._cwd == other._cwd

    def __hash__(self) -> int:
        return hash(self._cwd)

    def __fspath__(self) -> str:
        return self._cwd

    # -- context -----------------------------------------------------------

    def cwd(self, *parts: PathArg) -> FS:
        """Return a new context rooted at *parts* (relative to this one)."""
        return FS(self.path(*parts))

    def path(self, *parts: PathArg) -> str:
        """Resolve *parts* against the working directory (absolute path)."""
        return os.path.abspath(os.path.join(self._cwd, *(os.fspath(p) for p in parts)))

    # -- inspection --------------------------------------------------------

    def exists(self, path: PathArg) -> NodeType | None:
        """Return the :class:`NodeType` at *path*, or ``None`` if absent."""
        with os_errors():
            return exists(self.path(path))

    async def exists_async(self, path: PathArg) -> NodeType | None:
        with os_errors():
            return await exists_async(self.path(path))

    def list(self, path: PathArg = ".") -> list[str] | None:
        """Return sorted entry names of *path*, or ``None`` if it is missing."""
        with os_errors():
            return list_dir(self.path(path))

    async def list_async(self, path: PathArg = ".") -> list[str] | None:
        with os_errors():
            return await list_dir_async(self.path(path))

    def inspect(
        self,
        path: PathArg,
        *,
        mode: bool = False,
        times: bool = False,
        checksum: str | None = None,
        absolute_path: bool = False,
        symlinks: bool = False,
    ) -> Node | None:
        """Describe one entry.

        Args:
            path: Entry to describe.
            mode: Include permission bits.
            times: Include access, modify and change times.
            checksum: Include a digest (one of ``SUPPORTED_CHECKSUMS``).
            absolute_path: Include the absolute path.
            symlinks: Describe links themselves instead of their targets.

        Returns:
            A :class:`Node`, or ``None`` if *path* does not exist.

        Raises:
            ValueError: If *checksum* is not supported.
        """
        options = InspectOptions(mode=mode, times=times, checksum=checksum,
                                 absolute_path=absolute_path, symlinks=symlinks)
        with os_errors():
            return inspect(self.path(path), options)

    async def inspect_async(
        self,
        path: PathArg,
        *,
        mode: bool = False,
        times: bool = False,
        checksum: str | None = None,
        absolute_path: bool = False,
        symlinks: bool = False,
    ) -> Node | None:
        options = InspectOptions(mode=mode, times=times, checksum=checksum,
                                 absolute_path=absolute_path, symlinks=symlinks)
        with os_errors():
            return await inspect_async(self.path(path), options)

    def inspect_tree(self, path: PathArg, *, checksum: str | None = None,
                     relative_path: bool = False) -> Node | None:
        """Describe *path* and its whole subtree (see :func:`~fsjet.tree.inspect_tree`)."""
        with os_errors():
            return inspect_tree(self.path(path), checksum=checksum, relative_path=relative_path)

    async def inspect_tree_async(self, path: PathArg, *, checksum: str | None = None,
                                 relative_path: bool = False) -> Node | None:
        with os_errors():
            return await inspect_tree_async(self.path(path), checksum=checksum,
                                            relative_path=relative_path)

    def find(
        self,
        path: PathArg = ".",
        *,
        matching: str | Sequence[str] = ("*",),
        files: bool = True,
        directories: bool = False,
        recursive: bool = True,
    ) -> list[str]:
        """Find entries below *path*; returned paths are relative to this context.

        Raises:
            NotFoundError: If *path* does not exist.
            NotDirectoryError: If *path* is not a directory.
        """
        with os_errors():
            return find(self.path(path), matching=matching, files=files,
                        directories=directories, recursive=recursive, cwd=self._cwd)

    async def find_async(
        self,
        path: PathArg = ".",
        *,
        matching: str | Sequence[str] = ("*",),
        files: bool = True,
        directories: bool = False,
        recursive: bool = True,
    ) -> list[str]:
        with os_errors():
            return await find_async(self.path(path), matching=matching, files=files,
                                    directories=directories, recursive=recursive,
                                    cwd=self._cwd)

    def walk(self, path: PathArg, visitor: Visitor, *, max_depth: int | None = None,
             **inspect_options) -> None:
        """Call ``visitor(path, node)`` for *path* and each descendant, parents first.

        Extra keyword arguments are :class:`~fsjet.node.InspectOptions` fields.
        """
        with os_errors():
            walk(self.path(path), visitor, max_depth=max_depth,
                 inspect_options=InspectOptions(**inspect_options))

    async def walk_async(self, path: PathArg, *, max_depth: int | None = None,
                         **inspect_options) -> AsyncIterator[WalkEntry]:
        """Lazily yield :class:`~fsjet.tree.WalkEntry` items, parents first."""
        options = InspectOptions(**inspect_options)
        with os_errors():
            async for entry in walk_async(self.path(path), inspect_options=options,
                                          max_depth=max_depth):
                yield entry

    # -- single entries ----------------------------------------------------

    def read(self, path: PathArg, return_as: str = "utf8"):
        """Return the content of *path* (``"utf8"``, ``"bytes"`` or ``"json"``), or ``None``."""
        with os_errors():
            return read(self.path(path), return_as)

    async def read_async(self, path: PathArg, return_as: str = "utf8"):
        with os_errors():
            return await read_async(self.path(path), return_as)

    def write(self, path: PathArg, data: Data, *, atomic: bool = False,
              json_indent: int = 2, mode: int | str | None = None) -> None:
        """Write *data* to *path*; ``dict`` and ``list`` are stored as JSON.

        Args:
            path: Destination file; missing parents are created.
            data: ``str``, ``bytes``, ``dict`` or ``list``.
            atomic: Write to a temporary sibling and rename it into place.
            json_indent: Indentation for JSON output.
            mode: Permission bits for the file.
        """
        with os_errors():
            write(self.path(path), data, atomic=atomic, json_indent=json_indent, mode=mode)

    async def write_async(self, path: PathArg, data: Data, *, atomic: bool = False,
                          json_indent: int = 2, mode: int | str | None = None) -> None:
        with os_errors():
            await write_async(self.path(path), data, atomic=atomic,
                              json_indent=json_indent, mode=mode)

    def append(self, path: PathArg, data: str | bytes, *,
               mode: int | str | None = None) -> None:
        """Append *data* to *path*, creating it if needed."""
        with os_errors():
            append(self.path(path), data, mode=mode)

    async def append_async(self, path: PathArg, data: str | bytes, *,
                           mode: int | str | None = None) -> None:
        with os_errors():
            await append_async(self.path(path), data, mode=mode)

    def dir(self, path: PathArg, *, empty: bool = False,
            mode: int | str | None = None) -> FS:
        """Ensure *path* is a directory and return a context rooted there.

        Raises:
            NotDirectoryError: If a non-directory occupies *path*.
        """
        target = self.path(path)
        with os_errors():
            ensure_dir(target, empty=empty, mode=mode)
        return FS(target)

    async def dir_async(self, path: PathArg, *, empty: bool = False,
                        mode: int | str | None = None) -> FS:
        target = self.path(path)
        with os_errors():
            await ensure_dir_async(target, empty=empty, mode=mode)
        return FS(target)

    def file(self, path: PathArg, *, content: Data | None = None,
             json_indent: int = 2, mode: int | str | None = None) -> FS:
        """Ensure *path* is a file (writing *content* if given); return ``self``.

        Raises:
            NotFileError: If a directory occupies *path*.
        """
        with os_errors():
            ensure_file(self.path(path), content=content, json_indent=json_indent, mode=mode)
        return self

    async def file_async(self, path: PathArg, *, content: Data | None = None,
                         json_indent: int = 2, mode: int | str | None = None) -> FS:
        with os_errors():
            await ensure_file_async(self.path(path), content=content,
                                    json_indent=json_indent, mode=mode)
        return self

    def symlink(self, target: str, path: PathArg) -> None:
        """Create a link at *path* pointing to *target* (stored as given)."""
        with os_errors():
            symlink(target, self.path(path))

    async def symlink_async(self, target: str, path: PathArg) -> None:
        with os_errors():
            await symlink_async(target, self.path(path))

    # -- engines -----------------------------------------------------------

    def copy(
        self,
        from_path: PathArg,
        to_path: PathArg,
        *,
        overwrite: bool = False,
        matching: str | Sequence[str] | None = None,
        filter: PathFilter | None = None,
        progress: ItemProgressCallback | None = None,
        preserve_times: bool = False,
        empty: bool = False,
        follow_symlinks: bool = False,
    ) -> None:
        """Copy a file or directory tree.

        Args:
            from_path: Source entry.
            to_path: Destination path.
            overwrite: Replace existing destination items.
            matching: Glob pattern(s) selecting what is copied.
            filter: Predicate on source paths, used when *matching* is empty.
            progress: ``(path, current, total, node)``; falsy return aborts.
            preserve_times: Carry access and modify times over.
            empty: Empty the destination directory first.
            follow_symlinks: Copy what links point to instead of the links.

        Raises:
            NotFoundError: If *from_path* does not exist.
            AlreadyExistsError: If *to_path* exists and neither *overwrite*
                nor *empty* is set.
        """
        copy_sync(self.path(from_path), self.path(to_path), overwrite=overwrite,
                  matching=matching, filter=filter, progress=progress,
                  preserve_times=preserve_times, empty=empty,
                  follow_symlinks=follow_symlinks)

    async def copy_async(
        self,
        from_path: PathArg,
        to_path: PathArg,
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
        """Non-blocking :meth:`copy` with the conflict protocol.

        See :func:`fsjet.copy.copy_async` for the conflict, progress and
        reporting options.
        """
        return await copy_async(
            self.path(from_path), self.path(to_path), overwrite=overwrite,
            matching=matching, filter=filter, progress=progress,
            preserve_times=preserve_times, empty=empty,
            follow_symlinks=follow_symlinks, conflict_callback=conflict_callback,
            conflict_settings=conflict_settings, write_progress=write_progress,
            throttle=throttle, concurrency=concurrency, report=report,
        )

    def remove(self, path: PathArg = ".", *, trash: bool = False) -> None:
        """Delete *path* recursively; missing paths are ignored.

        Args:
            path: Entry to delete (defaults to the working directory itself).
            trash: Move into the trash directory instead of deleting.
        """
        remove_sync(self.path(path), trash=trash)

    async def remove_async(
        self,
        path: PathArg = ".",
        *,
        matching: str | Sequence[str] | None = None,
        filter: PathFilter | None = None,
        conflict_callback: ConflictCallback | None = None,
        conflict_settings: ConflictSettings | None = None,
        progress: ItemProgressCallback | None = None,
        trash: bool = False,
        report: bool = False,
    ) -> list[NodeReport] | None:
        """Non-blocking :meth:`remove` with matching and the conflict protocol.

        See :func:`fsjet.copy.remove_async`.
        """
        return await remove_async(
            self.path(path), matching=matching, filter=filter,
            conflict_callback=conflict_callback, conflict_settings=conflict_settings,
            progress=progress, trash=trash, report=report,
        )

    def move(self, from_path: PathArg, to_path: PathArg) -> None:
        """Move an entry, copying across devices when a rename is impossible.

        Raises:
            NotFoundError: If *from_path* does not exist.
        """
        move_sync(self.path(from_path), self.path(to_path))

    async def move_async(self, from_path: PathArg, to_path: PathArg) -> None:
        await move_async(self.path(from_path), self.path(to_path))

    def rename(self, path: PathArg, new_name: str) -> None:
        """Rename *path* within its directory.

        Raises:
            ValueError: If *new_name* contains a path separator.
        """
        rename_sync(self.path(path), new_name)

    async def rename_async(self, path: PathArg, new_name: str) -> None:
        await rename_async(self.path(path), new_name)
