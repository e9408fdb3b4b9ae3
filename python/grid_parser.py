"""
Source loading for Uzumaki programs.

A program is a text file whose lines form a square: every line has as many
characters as there are lines.
"""

from __future__ import annotations

from pathlib import Path

from spiral_types import Grid

__all__ = ["GridError", "parse_grid", "load_grid"]


class GridError(ValueError):
    """Raised when source text is not a square grid."""


def split_lines(text: str) -> list[str]:
    """Split source text into lines, ignoring a final newline and CR line endings."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_grid(text: str) -> Grid:
    """
    Parse program text into a Grid.

    Example:
        "#Hi\\n  Q\\nOCP\\n" -> Grid(("#Hi", "  Q", "OCP"))

    Args:
        text: Full contents of the source file

    Returns:
        The validated square Grid

    Raises:
        GridError: If the text is empty or not square
    """
    lines = split_lines(text)

    if not lines:
        raise GridError("Not a perfect spiral\n  The program is empty")

    size = len(lines)
    mismatched = [(i, len(line)) for i, line in enumerate(lines) if len(line) != size]
    if mismatched:
        error_msg = (
            f"Not a perfect spiral\n"
            f"  Expected: {size} characters per line (one per line of the file)\n"
            f"  Mismatched lines:\n"
        )
        for row_idx, actual in mismatched:
            error_msg += f"    Line {row_idx + 1}: {actual} characters - \"{lines[row_idx]}\"\n"
        error_msg += "  Every line must be as long as the file is tall"
        raise GridError(error_msg)

    return Grid(tuple(lines))


def load_grid(path: str | Path) -> Grid:
    """Read and validate a program file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise GridError(f"Cannot read program\n  {path} is not UTF-8 text: {e.reason}") from e
    return parse_grid(text)
