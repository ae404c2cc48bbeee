"""Permission-bit normalization."""

from __future__ import annotations


def normalize_file_mode(mode: int | str) -> str:
    """Return the last three octal digits of *mode* (``0o100644`` → ``"644"``)."""
    if isinstance(mode, int):
        text = format(mode, "o")
    else:
        text = mode
    return text[-3:].rjust(3, "0")


def mode_bits(mode: int | str | None) -> int | None:
    """Convert a mode (int or octal string) into permission bits, or ``None``."""
    if mode is None:
        return None
    return int(normalize_file_mode(mode), 8)
