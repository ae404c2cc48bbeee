from .fs import FS
from .node import Node, NodeType, InspectOptions, SUPPORTED_CHECKSUMS
from .tree import WalkEntry, walk, walk_async
from ._match import Matcher, compile_filter
from .copy import ConflictAction, ConflictScope, ConflictSettings, NodeReport
from .copy import LARGE_FILE_THRESHOLD, CHUNK_SIZE
from .exceptions import (
    ErrorKind,
    FsError,
    NotFoundError,
    AlreadyExistsError,
    NotDirectoryError,
    NotFileError,
    PermissionDeniedError,
    DirectoryNotEmptyError,
    CrossDeviceError,
)

__all__ = [
    "FS", "Node", "NodeType", "InspectOptions", "SUPPORTED_CHECKSUMS",
    "WalkEntry", "walk", "walk_async", "Matcher", "compile_filter",
    "ConflictAction", "ConflictScope", "ConflictSettings", "NodeReport",
    "LARGE_FILE_THRESHOLD", "CHUNK_SIZE",
    "ErrorKind", "FsError", "NotFoundError", "AlreadyExistsError",
    "NotDirectoryError", "NotFileError", "PermissionDeniedError",
    "DirectoryNotEmptyError", "CrossDeviceError",
]
