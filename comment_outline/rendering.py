"""Rendering requests for headings and block regions.

The editor owns the actual display. This module derives what it should show
(hidden prefix columns, bullet substitutions, faces, block backgrounds) and
keeps that derivation current as the document and configuration change.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from .config import ConfigChannel, OutlineConfig
from .constants import BLOCK_FACE, FOLD_MARKER
from .document import Document
from .levels import bullet_glyph, comment_run_length, display_face
from .models import BlockRegion, HeadingLine, TextChange
from .regions import compute_regions
from .scanner import parse_heading, scan
from .syntax import require_comment_char

log = structlog.get_logger()


@dataclass(frozen=True)
class HeadingDecoration:
    """Display request for one heading line.

    Attributes:
        line: Line number of the heading.
        hidden: Columns ``[start, end)`` to hide.
        glyph_column: Column displayed as `glyph` instead of its character.
        glyph: Bullet shown for the heading's level.
        face: Face applied to `face_range`.
        face_range: Columns ``[start, end)`` painted with `face`.
    """

    line: int
    hidden: tuple[int, int]
    glyph_column: int
    glyph: str
    face: str
    face_range: tuple[int, int]


@dataclass(frozen=True)
class BlockBackground:
    """Background painted over lines ``start`` through ``end`` inclusive."""

    start: int
    end: int
    face: str = BLOCK_FACE


class RenderTarget(Protocol):
    """Display substrate provided by the editor."""

    def clear(self) -> None: ...

    def decorate_heading(self, decoration: HeadingDecoration) -> None: ...

    def paint_background(self, background: BlockBackground) -> None: ...


def decorate(heading: HeadingLine, line: str, config: OutlineConfig) -> HeadingDecoration:
    """Build the display request for `heading`.

    Every comment character but the last is hidden and the last one shows the
    level's bullet. The face covers the heading from its comment run to the
    end of the line.

    Examples:
        decorate(heading, "//// Sub", OutlineConfig())
        # hidden=(0, 3), glyph_column=3, glyph="○", face="level-2"
    """
    start = len(heading.indentation)
    glyph_column = heading.prefix_end - 1
    return HeadingDecoration(
        line=heading.line_index,
        hidden=(start, glyph_column),
        glyph_column=glyph_column,
        glyph=bullet_glyph(heading.logical_level, config.bullet_glyphs),
        face=display_face(heading.logical_level, config.heading_face),
        face_range=(start, len(line)),
    )


def _prefix_limit(line: str, comment_char: str) -> int:
    """Last column whose edit can change how the line renders as a heading."""
    indentation = len(line) - len(line.lstrip(" \t"))
    return indentation + (comment_run_length(line, comment_char) or 0) + 1


class RenderCache:
    """Derived display state of one document.

    Heading decorations are re-derived as soon as an edit touches a heading
    prefix; block regions are dropped on every edit and recomputed on the next
    query. A configuration change drops everything.
    """

    def __init__(self, document: Document, channel: ConfigChannel | None = None):
        self._document = document
        self._channel = channel or ConfigChannel()
        self._decorations: dict[int, HeadingDecoration] | None = None
        self._regions: list[BlockRegion] | None = None
        self._line_count = document.line_count
        document.add_listener(self.on_change)
        self._channel.subscribe(self)

    @property
    def config(self) -> OutlineConfig:
        return self._channel.config

    @property
    def is_stale(self) -> bool:
        return self._decorations is None

    def invalidate(self) -> None:
        """Drop everything derived from the configuration."""
        self._decorations = None
        self._regions = None
        log.debug("render_cache_invalidated", document=self._document.name)

    def close(self) -> None:
        self._document.remove_listener(self.on_change)
        self._channel.unsubscribe(self)

    def _comment_char(self) -> str:
        return require_comment_char(self._document, self.config)

    def _derive_all(self) -> dict[int, HeadingDecoration]:
        lines = self._document.lines
        self._line_count = len(lines)
        return {
            heading.line_index: decorate(heading, lines[heading.line_index], self.config)
            for heading in scan(lines, self._comment_char(), self.config)
        }

    def _derive_line(self, index: int) -> None:
        assert self._decorations is not None
        lines = self._document.lines
        heading = parse_heading(lines, index, self._comment_char(), self.config)
        if heading is None:
            self._decorations.pop(index, None)
        else:
            self._decorations[index] = decorate(heading, lines[index], self.config)

    def decorations(self) -> dict[int, HeadingDecoration]:
        """Decorations keyed by heading line.

        Raises:
            NoCommentSyntaxError: If the document has no comment syntax.
        """
        if self._decorations is None:
            self._decorations = self._derive_all()
        return dict(self._decorations)

    def regions(self) -> list[BlockRegion]:
        if self._regions is None:
            self._regions = compute_regions(
                self._document.lines, self._comment_char(), self.config
            )
        return list(self._regions)

    def backgrounds(self) -> list[BlockBackground]:
        """Block backgrounds, empty for files outside the `block_files` filter."""
        if not self.config.accepts_blocks(self._document.name):
            return []
        return [BlockBackground(region.start, region.end) for region in self.regions()]

    def notify(self, position: int, old_length: int, new_length: int) -> None:
        """Handle an edit reported by the editor as a character range.

        Edits that change the number of lines re-derive every decoration; an
        edit within one line re-derives that line only when it starts inside
        the heading-prefix columns.
        """
        self._regions = None
        if self._decorations is None:
            return

        document = self._document
        if document.line_count != self._line_count:
            self._decorations = self._derive_all()
            return

        start = document.position(position)
        end = document.position(position + new_length)
        if end.line != start.line:
            self._decorations = self._derive_all()
            return

        limit = _prefix_limit(document.line(start.line), self._comment_char())
        previous = self._decorations.get(start.line)
        if previous is not None:
            limit = max(limit, previous.glyph_column + 2)
        if start.column <= limit:
            self._derive_line(start.line)
            log.debug("heading_rederived", line=start.line)

    def on_change(self, change: TextChange) -> None:
        self.notify(change.position, change.old_length, change.new_length)

    def refresh(self, target: RenderTarget) -> None:
        """Push the current display state to `target`."""
        target.clear()
        for _, decoration in sorted(self.decorations().items()):
            target.decorate_heading(decoration)
        for background in self.backgrounds():
            target.paint_background(background)


def render_line(line: str, decoration: HeadingDecoration | None) -> str:
    """Text of `line` as displayed, with the bullet in place of the prefix."""
    if decoration is None:
        return line
    start, _ = decoration.hidden
    return f"{line[:start]}{decoration.glyph}{line[decoration.glyph_column + 1 :]}"


def render_text(
    lines: Sequence[str],
    decorations: dict[int, HeadingDecoration],
    hidden: frozenset[int] = frozenset(),
) -> list[str]:
    """Render lines as displayed, folding hidden runs into an ellipsis.

    A visible line followed by hidden lines ends with the fold marker, the way
    an editor shows a collapsed heading.
    """
    rendered: list[str] = []
    folded = False
    for index, line in enumerate(lines):
        if index in hidden:
            if rendered and not folded:
                rendered[-1] = f"{rendered[-1]} {FOLD_MARKER}"
            folded = True
            continue
        folded = False
        rendered.append(render_line(line, decorations.get(index)))
    return rendered
