"""Conflict resolution: asking the caller, caching ``ALWAYS`` answers, and
deciding whether a conflicting item gets copied."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from inspect import isawaitable

from ..exceptions import ErrorKind
from ..node import Node, NodeType
from ._types import (
    ConflictAction,
    ConflictCallback,
    ConflictScope,
    ConflictSettings,
    NodeReport,
    RunState,
)

logger = logging.getLogger(__name__)


class ConflictResolver:
    """Produces :class:`ConflictSettings` for conflicts of one engine call.

    Pre-supplied *settings* always win and the callback is never called.
    Otherwise *callback* is awaited, one conflict at a time; an answer with
    ``ALWAYS`` scope is cached and answers every later conflict of the call.
    """

    def __init__(
        self,
        callback: ConflictCallback | None = None,
        settings: ConflictSettings | None = None,
        *,
        state: RunState | None = None,
        report: bool = False,
    ) -> None:
        self._callback = callback
        self._cached = settings
        self._lock = asyncio.Lock()
        self._state = state
        self._report = report

    @property
    def configured(self) -> bool:
        """True if conflicts can be resolved without raising."""
        return self._cached is not None or self._callback is not None

    async def resolve(self, path: str, node: Node | None, kind: ErrorKind) -> ConflictSettings | None:
        """Return the settings for this conflict, or ``None`` if unconfigured."""
        if self._cached is not None:
            return self._cached
        if self._callback is None:
            return None
        async with self._lock:
            if self._cached is not None:
                return self._cached
            result = self._callback(path, node, kind)
            if isawaitable(result):
                result = await result
            if not isinstance(result, ConflictSettings):
                raise TypeError(
                    f"conflict callback must return ConflictSettings, got {type(result).__name__}"
                )
            if result.error is None:
                result = replace(result, error=kind)
            if result.scope is ConflictScope.ALWAYS:
                self._cached = result
            logger.debug("conflict %s at %s resolved as %s (%s)",
                         kind, path, result.action, result.scope)
            return result

    def record(self, path: str, node: Node | None, kind: ErrorKind,
               settings: ConflictSettings) -> None:
        """Keep a :class:`NodeReport` when reporting mode is on."""
        if self._report and self._state is not None:
            self._state.reports.append(
                NodeReport(path=path, node=node, error=kind, resolution=settings)
            )


def should_copy(action: ConflictAction, source: Node, destination: Node) -> bool:
    """Decide whether a content action lets *source* replace *destination*.

    Directories always pass so that their children are still visited.
    """
    if action is ConflictAction.SKIP:
        return False
    if action in (ConflictAction.OVERWRITE, ConflictAction.APPEND):
        return True
    if source.type is NodeType.DIR or destination.type is NodeType.DIR:
        return True
    if action is ConflictAction.IF_NEWER:
        return (source.modify_time or 0) >= (destination.modify_time or 0)
    if action is ConflictAction.IF_SIZE_DIFFERS:
        return source.size != destination.size
    raise ValueError(f"{action} does not decide between two nodes")
