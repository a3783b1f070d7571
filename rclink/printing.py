"""Text formatting of vectors, matrices and raw bytes for diagnostics."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TextIO

COLOUR_NONE = "\033[0m"
COLOUR_RED = "\033[0;31m"
COLOUR_RED_LIGHT = "\033[1;31m"
COLOUR_GREEN = "\033[0;32m"
COLOUR_GREEN_LIGHT = "\033[1;32m"
COLOUR_BLUE = "\033[0;34m"
COLOUR_BLUE_LIGHT = "\033[1;34m"
COLOUR_YELLOW = "\033[1;33m"
COLOUR_GRAY = "\033[0;37m"
COLOUR_WHITE = "\033[1;37m"


def _format_item(value: float | int) -> str:
    if isinstance(value, float):
        return f"{value:.3f} "
    return f"{int(value)} "


def format_vector(label: str, values: Iterable[float | int]) -> str:
    """Label followed by each value: floats with three decimals, integers whole."""
    return label + "".join(_format_item(v) for v in values)


def format_hex(label: str, data: bytes) -> str:
    """Label, a space, then each byte as two hex digits and a space."""
    return f"{label} " + "".join(f"{b:02x} " for b in bytes(data))


def format_mat4x4(label: str, matrix: Sequence[Sequence[float]]) -> str:
    """A labelled 4x4 matrix, one row per line."""
    rows = [list(row) for row in matrix]
    if len(rows) != 4 or any(len(row) != 4 for row in rows):
        raise ValueError("matrix must be 4x4")
    body = "".join("".join(f"{v:f} " for v in row) + "\n" for row in rows)
    return f"{label}:\n{body}"


def format_matrix(values: Sequence[float], rows: int, cols: int) -> str:
    """A row-major matrix of ``rows`` x ``cols`` values, then a blank line."""
    items = list(values)
    if rows < 0 or cols < 0 or len(items) != rows * cols:
        raise ValueError(f"expected {rows}x{cols} values, got {len(items)}")
    lines = (
        "".join(f"{v:f} " for v in items[r * cols:(r + 1) * cols]) + "\n"
        for r in range(rows)
    )
    return "".join(lines) + "\n"


def format_fixed_vector(label: str, values: Iterable[float]) -> str:
    """Label followed by each value in an 11-wide, 6-decimal field."""
    return label + "".join(f"{v:11.6f} " for v in values)


def write_fixed_vector(stream: TextIO, label: str, values: Iterable[float]) -> None:
    """Write :func:`format_fixed_vector` output to ``stream``."""
    stream.write(format_fixed_vector(label, values))