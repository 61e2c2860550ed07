"""Moving point between headings."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

import structlog

from .config import OutlineConfig
from .document import Document
from .models import Point
from .scanner import heading_level, is_blank
from .syntax import require_comment_char

log = structlog.get_logger()

Reporter = Callable[[str], None]


class Viewport(Protocol):
    """Window onto a document, provided by the editor."""

    def is_line_visible(self, line: int) -> bool: ...

    def scroll_to_top(self, line: int) -> None: ...


def section_last_line(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig
) -> int:
    """Last non-blank line before the level-1 heading following `index`.

    Falls back to `index` itself when the section holds nothing but blanks.
    """
    end = len(lines)
    for candidate in range(index + 1, len(lines)):
        if heading_level(lines[candidate], comment_char, config.base_level) == 1:
            end = candidate
            break
    last = end - 1
    while last > index and is_blank(lines[last]):
        last -= 1
    return last


def _move(
    document: Document,
    config: OutlineConfig | None,
    n: int,
    step: int,
    viewport: Viewport | None,
    report: Reporter | None,
) -> bool:
    if n < 1:
        raise ValueError(f"Repeat count must be positive, got {n}")
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    lines = document.lines

    target = document.point.line
    for _ in range(n):
        candidate = target + step
        while 0 <= candidate < len(lines):
            if heading_level(lines[candidate], comment_char, config.base_level) is not None:
                break
            candidate += step
        else:
            message = "No next heading" if step > 0 else "No previous heading"
            log.debug("outline_report", message=message)
            if report is not None:
                report(message)
            return False
        target = candidate

    document.point = Point(target, 0)
    log.debug("moved_to_heading", line=target)

    if viewport is not None and heading_level(lines[target], comment_char, config.base_level) == 1:
        last = section_last_line(lines, target, comment_char, config)
        if not viewport.is_line_visible(last):
            viewport.scroll_to_top(target)
    return True


def next_heading(
    document: Document,
    config: OutlineConfig | None = None,
    n: int = 1,
    viewport: Viewport | None = None,
    report: Reporter | None = None,
) -> bool:
    """Move point forward `n` headings.

    Point does not move at all when fewer than `n` headings follow it. Landing
    on a level-1 heading scrolls it to the top of `viewport` when the end of
    its section would otherwise be out of view.

    Returns:
        bool: True when point moved.

    Raises:
        NoCommentSyntaxError: If the document has no comment syntax.
    """
    return _move(document, config, n, 1, viewport, report)


def previous_heading(
    document: Document,
    config: OutlineConfig | None = None,
    n: int = 1,
    viewport: Viewport | None = None,
    report: Reporter | None = None,
) -> bool:
    """Move point back `n` headings; see `next_heading`."""
    return _move(document, config, n, -1, viewport, report)
