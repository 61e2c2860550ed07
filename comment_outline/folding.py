"""Local and global visibility cycling.

Neither cycle stores anything per heading. The only memory is the
`CycleMemory` left by the immediately preceding command; any other command
clears it, so the next cycle starts over.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence

import structlog

from .config import OutlineConfig
from .constants import GLOBAL_CYCLE, LOCAL_CYCLE
from .document import Document
from .models import CycleMemory, FoldState, GlobalFoldState, TextChange
from .scanner import heading_level, parse_heading, scan, subtree_end
from .syntax import require_comment_char

log = structlog.get_logger()

Reporter = Callable[[str], None]


class FoldView:
    """Hidden lines of one document.

    Stands in for the editor's overlay substrate. It follows edits: lines
    below an insertion or deletion move with the text, replaced lines keep
    their visibility when the line count is unchanged and become visible
    otherwise.
    """

    def __init__(self, document: Document | None = None):
        self._hidden: set[int] = set()
        if document is not None:
            document.add_listener(self.on_change)

    def hide(self, start: int, end: int) -> None:
        """Hide lines ``start`` through ``end`` inclusive."""
        self._hidden.update(range(start, end + 1))

    def show(self, start: int, end: int) -> None:
        """Reveal lines ``start`` through ``end`` inclusive."""
        self._hidden.difference_update(range(start, end + 1))

    def show_all(self) -> None:
        self._hidden.clear()

    def is_hidden(self, line: int) -> bool:
        return line in self._hidden

    @property
    def hidden_lines(self) -> frozenset[int]:
        return frozenset(self._hidden)

    def visible_lines(self, line_count: int) -> list[int]:
        return [line for line in range(line_count) if line not in self._hidden]

    def on_change(self, change: TextChange) -> None:
        if not change.line_delta:
            return
        replaced_end = change.line + change.old_line_count
        hidden = set()
        for line in self._hidden:
            if line < change.line:
                hidden.add(line)
            elif line >= replaced_end:
                hidden.add(line + change.line_delta)
        self._hidden = hidden


def is_empty_heading(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig
) -> bool:
    """True when a heading has no line before the next heading or the end."""
    following = index + 1
    if following >= len(lines):
        return True
    return heading_level(lines[following], comment_char, config.base_level) is not None


def has_children(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig
) -> bool:
    """True when a heading line lies inside the subtree of the heading at `index`."""
    end = subtree_end(lines, index, comment_char, config)
    return any(
        heading_level(lines[line], comment_char, config.base_level) is not None
        for line in range(index + 1, end)
    )


def _child_headings(
    lines: Sequence[str], index: int, end: int, comment_char: str, config: OutlineConfig
) -> Iterable[int]:
    level = heading_level(lines[index], comment_char, config.base_level)
    for line in range(index + 1, end):
        if heading_level(lines[line], comment_char, config.base_level) == level + 1:
            yield line


def fold_subtree(
    view: FoldView,
    lines: Sequence[str],
    index: int,
    comment_char: str,
    config: OutlineConfig,
) -> None:
    """Hide everything below the heading at `index` within its subtree."""
    end = subtree_end(lines, index, comment_char, config)
    view.show(index, index)
    if end - 1 > index:
        view.hide(index + 1, end - 1)


def show_children(
    view: FoldView,
    lines: Sequence[str],
    index: int,
    comment_char: str,
    config: OutlineConfig,
) -> None:
    """Show the heading's own body and its direct child headings only."""
    fold_subtree(view, lines, index, comment_char, config)
    end = subtree_end(lines, index, comment_char, config)
    body_end = end
    for line in range(index + 1, end):
        if heading_level(lines[line], comment_char, config.base_level) is not None:
            body_end = line
            break
    if body_end - 1 > index:
        view.show(index + 1, body_end - 1)
    for child in _child_headings(lines, index, end, comment_char, config):
        view.show(child, child)


def show_subtree(
    view: FoldView,
    lines: Sequence[str],
    index: int,
    comment_char: str,
    config: OutlineConfig,
) -> None:
    """Show the whole subtree of the heading at `index`."""
    end = subtree_end(lines, index, comment_char, config)
    view.show(index, end - 1)


def _report(report: Reporter | None, message: str) -> None:
    log.debug("fold_report", message=message)
    if report is not None:
        report(message)


def cycle_local(
    document: Document,
    view: FoldView,
    config: OutlineConfig | None = None,
    previous: CycleMemory | None = None,
    report: Reporter | None = None,
) -> CycleMemory | None:
    """Advance the visibility of the heading at point.

    Headings with children cycle ``FOLDED -> CHILDREN -> SUBTREE -> FOLDED``;
    headings without children toggle ``FOLDED <-> SUBTREE``. The cycle only
    continues when `previous` was left by this command on the same heading. A
    fresh cycle folds a visible heading, or, when its body is already hidden,
    treats it as folded and advances from there. Empty headings are revealed
    and reported as ``"EMPTY"``.

    Args:
        document: Document holding point.
        view: Visibility of the document's lines.
        config: Outline configuration.
        previous: Memory left by the preceding command, if any.
        report: Callback receiving the new state's name.

    Returns:
        CycleMemory | None: Memory for the next command, or None when nothing
            was cycled.

    Raises:
        NoCommentSyntaxError: If the document has no comment syntax.
    """
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    lines = document.lines
    index = document.point.line
    heading = parse_heading(lines, index, comment_char, config)
    if heading is None:
        _report(report, "Not on a heading")
        return None

    if is_empty_heading(lines, index, comment_char, config):
        view.show(index, index)
        _report(report, "EMPTY")
        return None

    continuing = (
        previous is not None
        and previous.command == LOCAL_CYCLE
        and previous.line == index
        and isinstance(previous.phase, FoldState)
    )
    if continuing:
        phase = previous.phase
    elif view.is_hidden(index + 1):
        phase = FoldState.FOLDED
    else:
        fold_subtree(view, lines, index, comment_char, config)
        return _cycled(FoldState.FOLDED, index, report)

    if phase is FoldState.FOLDED:
        if has_children(lines, index, comment_char, config):
            show_children(view, lines, index, comment_char, config)
            return _cycled(FoldState.CHILDREN, index, report)
        show_subtree(view, lines, index, comment_char, config)
        return _cycled(FoldState.SUBTREE, index, report)

    if phase is FoldState.CHILDREN:
        show_subtree(view, lines, index, comment_char, config)
        return _cycled(FoldState.SUBTREE, index, report)

    fold_subtree(view, lines, index, comment_char, config)
    return _cycled(FoldState.FOLDED, index, report)


def _cycled(phase: FoldState, line: int, report: Reporter | None) -> CycleMemory:
    _report(report, phase.value)
    return CycleMemory(command=LOCAL_CYCLE, phase=phase, line=line)


def overview(
    view: FoldView, lines: Sequence[str], comment_char: str, config: OutlineConfig
) -> None:
    """Leave only the outermost headings visible."""
    view.show_all()
    for index in scan(lines, comment_char, config).positions():
        if not view.is_hidden(index):
            fold_subtree(view, lines, index, comment_char, config)


def contents(
    view: FoldView, lines: Sequence[str], comment_char: str, config: OutlineConfig
) -> None:
    """Show every heading with every body hidden."""
    view.show_all()
    positions = scan(lines, comment_char, config).positions()
    for index, next_index in zip(positions, [*positions[1:], len(lines)]):
        if next_index - 1 > index:
            view.hide(index + 1, next_index - 1)


def cycle_global(
    document: Document,
    view: FoldView,
    config: OutlineConfig | None = None,
    previous: CycleMemory | None = None,
    report: Reporter | None = None,
) -> CycleMemory:
    """Advance the visibility of the whole document.

    Consecutive invocations go ``OVERVIEW -> CONTENTS -> ALL -> OVERVIEW``;
    any other command in between restarts at ``OVERVIEW``.

    Raises:
        NoCommentSyntaxError: If the document has no comment syntax.
    """
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    lines = document.lines

    phase = previous.phase if previous is not None and previous.command == GLOBAL_CYCLE else None
    if phase is GlobalFoldState.OVERVIEW:
        contents(view, lines, comment_char, config)
        phase = GlobalFoldState.CONTENTS
    elif phase is GlobalFoldState.CONTENTS:
        view.show_all()
        phase = GlobalFoldState.ALL
    else:
        overview(view, lines, comment_char, config)
        phase = GlobalFoldState.OVERVIEW

    _report(report, phase.value)
    return CycleMemory(command=GLOBAL_CYCLE, phase=phase)
