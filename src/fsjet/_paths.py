"""Path helpers shared by the single-entry writers and the copy engine."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

# Suffix of the sibling a file is written to before it is renamed into place.
ATOMIC_SUFFIX = ".__new__"


def with_parent(func, destination: str, *args) -> None:
    """Run *func*; on ``FileNotFoundError`` create the parent of *destination* and retry once."""
    try:
        func(*args)
    except FileNotFoundError:
        logger.debug("parent of %s missing; creating it and retrying", destination)
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        func(*args)
