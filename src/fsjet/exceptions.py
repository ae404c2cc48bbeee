"""Exceptions and error kinds for fsjet.

Every native :class:`OSError` that crosses an fsjet entry point is mapped to
one :class:`ErrorKind`.  Classified errors are re-raised as the matching
:class:`FsError` subclass, which also inherits from the builtin exception of
the same meaning (``NotFoundError`` is a ``FileNotFoundError``), so existing
``except`` clauses keep working.  Unclassified errors pass through unchanged.
"""

from __future__ import annotations

import errno
from contextlib import contextmanager
from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of error kinds the engines reason about."""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    NOT_A_DIRECTORY = "not_a_directory"
    NOT_A_FILE = "not_a_file"
    PERMISSION_DENIED = "permission_denied"
    DIRECTORY_NOT_EMPTY = "directory_not_empty"
    CROSS_DEVICE = "cross_device"
    UNKNOWN = "unknown"

    def __str__(self) -> str:          # noqa: D105
        return self.value

    @classmethod
    def of(cls, exc: BaseException) -> ErrorKind:
        """Classify *exc*; anything that is not an errno-carrying error is ``UNKNOWN``."""
        if isinstance(exc, FsError):
            return exc.kind
        if isinstance(exc, OSError) and exc.errno is not None:
            return _ERRNO_TO_KIND.get(exc.errno, cls.UNKNOWN)
        return cls.UNKNOWN


_ERRNO_TO_KIND = {
    errno.ENOENT: ErrorKind.NOT_FOUND,
    errno.EEXIST: ErrorKind.ALREADY_EXISTS,
    errno.ENOTDIR: ErrorKind.NOT_A_DIRECTORY,
    errno.EISDIR: ErrorKind.NOT_A_FILE,
    errno.EACCES: ErrorKind.PERMISSION_DENIED,
    errno.EPERM: ErrorKind.PERMISSION_DENIED,
    errno.ENOTEMPTY: ErrorKind.DIRECTORY_NOT_EMPTY,
    errno.EXDEV: ErrorKind.CROSS_DEVICE,
}


class FsError(OSError):
    """Base class for classified filesystem errors."""
    kind: ErrorKind = ErrorKind.UNKNOWN
    default_errno: int = 0

    @classmethod
    def for_path(cls, message: str, path: str | None = None) -> FsError:
        """Build an instance with the class' errno, *message* and *path*."""
        return cls(cls.default_errno, message, path)


class NotFoundError(FsError, FileNotFoundError):
    """Path does not exist."""
    kind = ErrorKind.NOT_FOUND
    default_errno = errno.ENOENT


class AlreadyExistsError(FsError, FileExistsError):
    """Destination path is already occupied."""
    kind = ErrorKind.ALREADY_EXISTS
    default_errno = errno.EEXIST


class NotDirectoryError(FsError, NotADirectoryError):
    """Path is occupied by something that is not a directory."""
    kind = ErrorKind.NOT_A_DIRECTORY
    default_errno = errno.ENOTDIR


class NotFileError(FsError, IsADirectoryError):
    """Path is occupied by a directory where a file was expected."""
    kind = ErrorKind.NOT_A_FILE
    default_errno = errno.EISDIR


class PermissionDeniedError(FsError, PermissionError):
    """Operation not permitted on the path."""
    kind = ErrorKind.PERMISSION_DENIED
    default_errno = errno.EACCES


class DirectoryNotEmptyError(FsError):
    """Directory could not be removed because it still has entries."""
    kind = ErrorKind.DIRECTORY_NOT_EMPTY
    default_errno = errno.ENOTEMPTY


class CrossDeviceError(FsError):
    """Rename across filesystem boundaries."""
    kind = ErrorKind.CROSS_DEVICE
    default_errno = errno.EXDEV


_KIND_TO_CLASS: dict[ErrorKind, type[FsError]] = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.ALREADY_EXISTS: AlreadyExistsError,
    ErrorKind.NOT_A_DIRECTORY: NotDirectoryError,
    ErrorKind.NOT_A_FILE: NotFileError,
    ErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    ErrorKind.DIRECTORY_NOT_EMPTY: DirectoryNotEmptyError,
    ErrorKind.CROSS_DEVICE: CrossDeviceError,
}


def translate_error(exc: OSError) -> OSError:
    """Return the taxonomy exception for *exc* (or *exc* itself if unclassified)."""
    if isinstance(exc, FsError):
        return exc
    cls = _KIND_TO_CLASS.get(ErrorKind.of(exc))
    if cls is None:
        return exc
    return cls(exc.errno, exc.strerror, exc.filename, None, exc.filename2)


@contextmanager
def os_errors():
    """Re-raise native OS errors as their :class:`FsError` counterparts."""
    try:
        yield
    except FsError:
        raise
    except OSError as exc:
        new = translate_error(exc)
        if new is exc:
            raise
        raise new from exc


def source_missing(path: str, verb: str = "copy") -> NotFoundError:
    return NotFoundError.for_path(f"Path to {verb} doesn't exist", path)


def destination_exists(path: str) -> AlreadyExistsError:
    return AlreadyExistsError.for_path("Destination path already exists", path)
