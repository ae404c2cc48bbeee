"""Copy, remove and move engines.

Both variants of every engine share the per-item primitives in ``_io``; the
asynchronous ones add the conflict protocol (``_resolve``), reporting mode
and cooperative abort.
"""

from ._types import (
    CHUNK_SIZE,
    LARGE_FILE_THRESHOLD,
    MAX_RETRIES,
    ConflictAction,
    ConflictScope,
    ConflictSettings,
    CopyTask,
    NodeReport,
    RunState,
)
from ._resolve import ConflictResolver, should_copy
from ._ops import copy_sync, copy_async
from ._remove import move_to_trash, remove_sync, remove_async
from ._move import move_sync, move_async, rename_sync, rename_async, renamed_path

__all__ = [
    # Public types
    "ConflictAction", "ConflictScope", "ConflictSettings", "NodeReport",
    "CopyTask", "RunState", "ConflictResolver",
    # Constants
    "CHUNK_SIZE", "LARGE_FILE_THRESHOLD", "MAX_RETRIES",
    # Public functions
    "copy_sync", "copy_async",
    "remove_sync", "remove_async", "move_to_trash",
    "move_sync", "move_async", "rename_sync", "rename_async", "renamed_path",
    "should_copy",
]
