"""Data structures shared by the copy, remove and move engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Union

from ..exceptions import ErrorKind
from ..node import Node

LARGE_FILE_THRESHOLD = 5 * 1024 * 1024
CHUNK_SIZE = 65536
MAX_RETRIES = 3


class ConflictAction(str, Enum):
    """How to resolve a conflict or a per-item error.

    Members: ``SKIP``, ``OVERWRITE``, ``IF_NEWER``, ``IF_SIZE_DIFFERS``,
    ``APPEND``, ``THROW``, ``RETRY``, ``ABORT``.
    """
    SKIP = "skip"
    OVERWRITE = "overwrite"
    IF_NEWER = "if_newer"
    IF_SIZE_DIFFERS = "if_size_differs"
    APPEND = "append"
    THROW = "throw"
    RETRY = "retry"
    ABORT = "abort"

    def __str__(self) -> str:          # noqa: D105
        return self.value

    @property
    def compares_content(self) -> bool:
        """True for actions that only make sense when two nodes exist."""
        return self in _CONTENT_ACTIONS


_CONTENT_ACTIONS = frozenset({
    ConflictAction.OVERWRITE,
    ConflictAction.IF_NEWER,
    ConflictAction.IF_SIZE_DIFFERS,
    ConflictAction.APPEND,
})


class ConflictScope(str, Enum):
    """``THIS`` applies a resolution once; ``ALWAYS`` caches it for the call."""
    THIS = "this"
    ALWAYS = "always"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True)
class ConflictSettings:
    """A resolution and its scope.

    Attributes:
        action: :class:`ConflictAction` to apply.
        scope: :class:`ConflictScope`; ``ALWAYS`` suppresses later callbacks.
        error: The :class:`~fsjet.exceptions.ErrorKind` that triggered it.
    """
    action: ConflictAction
    scope: ConflictScope = ConflictScope.THIS
    error: ErrorKind | None = None


@dataclass
class NodeReport:
    """One resolved conflict, collected in reporting mode.

    Attributes:
        path: Path of the conflicting entry.
        node: Descriptor of the conflicting entry (``None`` if unknown).
        error: :class:`~fsjet.exceptions.ErrorKind` of the conflict.
        resolution: The :class:`ConflictSettings` that were applied.
    """
    path: str
    node: Node | None
    error: ErrorKind
    resolution: ConflictSettings


@dataclass
class CopyTask:
    """One unit of work: copy *source* (described by *node*) to *destination*."""
    source: str
    node: Node
    destination: str
    done: bool = False
    staging: str | None = None

    @property
    def target(self) -> str:
        """Path the bytes go to: *staging* when set, else *destination*."""
        return self.staging or self.destination


@dataclass
class RunState:
    """Counters and flags shared by the items of one engine call."""
    in_flight: int = 0
    completed: int = 0
    aborted: bool = False
    reports: list[NodeReport] = field(default_factory=list)


ConflictCallback = Callable[
    [str, "Node | None", ErrorKind],
    Union[Awaitable[ConflictSettings], ConflictSettings],
]
ItemProgressCallback = Callable[[str, int, int, "Node | None"], object]
WriteProgressCallback = Callable[[str, int, int], None]
