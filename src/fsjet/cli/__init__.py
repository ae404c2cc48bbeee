"""fsjet CLI: copy, move, remove and inspect local files."""

from ._helpers import main  # noqa: F401 (entry point)

# Import command modules to register Click commands with the main group.
from . import _basic, _cp  # noqa: F401
