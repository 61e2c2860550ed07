"""Interactive outline session for one document.

A session is what an editor binds its commands to. Each public command runs
through `_command`, which hands the cycle memory of the previous command to
the one running now and clears it; only the cycle commands leave a new
memory behind.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

import structlog

from . import folding, mutator, navigator
from .config import ConfigChannel, OutlineConfig
from .constants import GLOBAL_CYCLE, LOCAL_CYCLE
from .document import Document
from .models import BlockRegion, CycleMemory, HeadingLine, Point
from .navigator import Viewport
from .regions import region_containing
from .rendering import RenderCache
from .scanner import scan
from .syntax import require_comment_char

log = structlog.get_logger()

_Method = TypeVar("_Method", bound=Callable[..., Any])


def _command(name: str) -> Callable[[_Method], _Method]:
    def decorator(method: _Method) -> _Method:
        @functools.wraps(method)
        def wrapper(self: OutlineSession, *args: Any, **kwargs: Any) -> Any:
            self._previous, self._memory = self._memory, None
            self.last_command = name
            log.debug("command", name=name, document=self.document.name)
            return method(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


class OutlineSession:
    """Outline commands bound to one document.

    Attributes:
        document: The edited document.
        view: Hidden lines of the document.
        render_cache: Display state derived from the document.
        messages: Informational messages reported by commands, oldest first.
        last_command: Identity of the most recent command.
    """

    def __init__(
        self,
        document: Document,
        channel: ConfigChannel | None = None,
        viewport: Viewport | None = None,
    ):
        self.document = document
        self.channel = channel or ConfigChannel()
        self.viewport = viewport
        self.view = folding.FoldView(document)
        self.render_cache = RenderCache(document, self.channel)
        self.messages: list[str] = []
        self.last_command: str | None = None
        self._memory: CycleMemory | None = None
        self._previous: CycleMemory | None = None

    @property
    def config(self) -> OutlineConfig:
        return self.channel.config

    @property
    def cycle_memory(self) -> CycleMemory | None:
        return self._memory

    def report(self, message: str) -> None:
        self.messages.append(message)

    def note_command(self, name: str) -> None:
        """Record a command run by the editor outside this session."""
        self._previous, self._memory = self._memory, None
        self.last_command = name

    # Queries

    def outline(self) -> list[HeadingLine]:
        comment_char = require_comment_char(self.document, self.config)
        return scan(self.document.lines, comment_char, self.config).headings()

    def region_at_point(self) -> BlockRegion | None:
        return region_containing(self.render_cache.regions(), self.document.point.line)

    def heading_candidates(self) -> list[tuple[int, str]]:
        """Headings as ``(line, label)`` pairs for an external picker.

        Labels show the path of titles from the outermost heading down.
        """
        candidates = []
        path: list[str] = []
        for heading in self.outline():
            del path[heading.logical_level - 1 :]
            path.extend([""] * (heading.logical_level - 1 - len(path)))
            path.append(heading.title)
            label = "/".join(title for title in path if title)
            candidates.append((heading.line_index, label))
        return candidates

    # Commands

    @_command("move-to")
    def move_to(self, line: int, column: int = 0) -> None:
        line = max(0, min(line, self.document.line_count - 1))
        column = max(0, min(column, len(self.document.line(line))))
        self.document.point = Point(line, column)

    @_command("goto-heading")
    def goto_heading(self, line: int) -> None:
        """Jump to a heading chosen from `heading_candidates` and reveal it."""
        line = max(0, min(line, self.document.line_count - 1))
        self.document.point = Point(line, 0)
        self.view.show(line, line)

    @_command(LOCAL_CYCLE)
    def cycle(self) -> None:
        self._memory = folding.cycle_local(
            self.document, self.view, self.config, self._previous, self.report
        )

    @_command(GLOBAL_CYCLE)
    def cycle_global(self) -> None:
        self._memory = folding.cycle_global(
            self.document, self.view, self.config, self._previous, self.report
        )

    @_command("next-heading")
    def next_heading(self, n: int = 1) -> bool:
        return navigator.next_heading(self.document, self.config, n, self.viewport, self.report)

    @_command("previous-heading")
    def previous_heading(self, n: int = 1) -> bool:
        return navigator.previous_heading(
            self.document, self.config, n, self.viewport, self.report
        )

    @_command("insert-heading")
    def insert_heading(self, level: int | None = None, respect_content: bool = False) -> bool:
        return mutator.insert_heading(
            self.document, self.config, level, respect_content, self.report
        )

    @_command("insert-subheading")
    def insert_subheading(self) -> bool:
        return mutator.insert_subheading(self.document, self.config, self.report)

    @_command("promote")
    def promote(self, n: int = 1) -> bool:
        return mutator.promote(self.document, self.config, n, self.report)

    @_command("demote")
    def demote(self, n: int = 1) -> bool:
        return mutator.demote(self.document, self.config, n, self.report)

    @_command("promote-subtree")
    def promote_subtree(self, n: int = 1) -> bool:
        return mutator.promote_subtree(self.document, self.config, n, self.report)

    @_command("demote-subtree")
    def demote_subtree(self, n: int = 1) -> bool:
        return mutator.demote_subtree(self.document, self.config, n, self.report)

    @_command("cycle-todo")
    def cycle_todo(self, direction: int = 1, now: datetime | None = None) -> bool:
        return mutator.cycle_todo(self.document, self.config, direction, now, self.report)

    @_command("set-todo")
    def set_todo(self, keyword: str | None, now: datetime | None = None) -> bool:
        return mutator.set_todo(self.document, self.config, keyword, now, self.report)
