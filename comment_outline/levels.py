"""Mapping between comment runs and outline levels."""

from __future__ import annotations

from collections.abc import Sequence

from .constants import FACE_LEVELS


def _indentation_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def comment_run_length(line: str, comment_char: str) -> int | None:
    """Count the comment characters opening a line.

    Leading spaces and tabs are skipped before counting.

    Args:
        line: Line to inspect, without its trailing newline.
        comment_char: Single comment-start character.

    Returns:
        int | None: Length of the comment run, or None when the line does not
            start with `comment_char` after its indentation.

    Examples:
        comment_run_length("  /// Title", "/")  # 3
        comment_run_length("code()  // note", "/")  # None
    """
    start = _indentation_width(line)
    end = start
    while end < len(line) and line[end] == comment_char:
        end += 1
    if end == start:
        return None
    return end - start


def logical_level(run_length: int | None, base_level: int) -> int | None:
    """Convert a comment run length into a one-based outline level.

    Examples:
        logical_level(3, 3)  # 1
        logical_level(2, 3)  # None
    """
    if run_length is None or run_length < base_level:
        return None
    return run_length - base_level + 1


def run_length_for_level(level: int, base_level: int) -> int:
    """Inverse of `logical_level` on its valid domain."""
    if level < 1:
        raise ValueError(f"Outline levels start at 1, got {level}")
    return level + base_level - 1


def heading_prefix(level: int, comment_char: str, base_level: int) -> str:
    """Comment run that opens a heading of `level`."""
    return comment_char * run_length_for_level(level, base_level)


def bullet_glyph(level: int, glyphs: Sequence[str]) -> str:
    """Pick the bullet for `level`, cycling through `glyphs`."""
    return glyphs[(level - 1) % len(glyphs)]


def display_face(level: int, face: str | None = None) -> str:
    """Face used for a heading of `level`.

    A configured face applies to every level; otherwise faces cycle through
    ``level-1`` .. ``level-8``.
    """
    if face is not None:
        return face
    return f"level-{1 + (level - 1) % FACE_LEVELS}"
