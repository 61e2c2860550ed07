from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from comment_outline.config import ConfigChannel, OutlineConfig
from comment_outline.models import BlockRegion
from comment_outline.rendering import (
    BlockBackground,
    HeadingDecoration,
    RenderCache,
    decorate,
    render_line,
    render_text,
)
from comment_outline.scanner import parse_heading

LINES = ("/// Title", "content", "//// Sub", "more")


class RecordingTarget:
    def __init__(self):
        self.calls: list[tuple[str, object]] = []

    def clear(self) -> None:
        self.calls.append(("clear", None))

    def decorate_heading(self, decoration: HeadingDecoration) -> None:
        self.calls.append(("heading", decoration.line))

    def paint_background(self, background: BlockBackground) -> None:
        self.calls.append(("background", (background.start, background.end)))


@pytest.fixture()
def document(c_document):
    return c_document(*LINES)


def test_decorate_hides_all_but_the_last_comment_character():
    heading = parse_heading(LINES, 2, "/")

    decoration = decorate(heading, LINES[2], OutlineConfig())

    assert decoration == HeadingDecoration(
        line=2,
        hidden=(0, 3),
        glyph_column=3,
        glyph="○",
        face="level-2",
        face_range=(0, 8),
    )


def test_decorate_indented_heading_with_fixed_face():
    line = "    /// Method"
    heading = parse_heading([line], 0, "/")

    decoration = decorate(heading, line, OutlineConfig(heading_face="outline"))

    assert decoration.hidden == (4, 6)
    assert decoration.glyph_column == 6
    assert decoration.face == "outline"
    assert decoration.face_range == (4, 14)


def test_glyphs_cycle_past_the_configured_list():
    heading = parse_heading(["/////// Deep"], 0, "/")

    assert decorate(heading, "/////// Deep", OutlineConfig()).glyph == "◉"


def test_render_line():
    heading = parse_heading(["  //// Sub"], 0, "/")
    decoration = decorate(heading, "  //// Sub", OutlineConfig())

    assert render_line("  //// Sub", decoration) == "  ○ Sub"
    assert render_line("code", None) == "code"


def test_render_text_marks_folds(document):
    cache = RenderCache(document)

    rendered = render_text(document.lines, cache.decorations(), frozenset({1, 3}))

    assert rendered == ["◉ Title ...", "○ Sub ..."]


def test_cache_decorates_every_heading(document):
    cache = RenderCache(document)

    assert cache.is_stale
    assert sorted(cache.decorations()) == [0, 2]
    assert not cache.is_stale


def test_edit_inside_prefix_rederives_the_line(document):
    cache = RenderCache(document)
    cache.decorations()

    document.set_line(1, "//// content")

    assert sorted(cache.decorations()) == [0, 1, 2]


def test_edit_removing_heading_drops_decoration(document):
    cache = RenderCache(document)
    cache.decorations()

    document.set_line(2, "// Sub")

    assert sorted(cache.decorations()) == [0]


def test_edit_past_prefix_keeps_decoration(document):
    cache = RenderCache(document)
    cache.decorations()
    document.remove_listener(cache.on_change)
    document.set_line(0, "/// Title changed")

    cache.notify(document.offset(0, 9), 0, 8)
    assert cache.decorations()[0].face_range == (0, 9)

    cache.notify(document.offset(0, 3), 0, 1)
    assert cache.decorations()[0].face_range == (0, 17)


def test_line_count_change_rederives_everything(document):
    cache = RenderCache(document)
    cache.decorations()

    document.insert_lines(0, ["/// New"])

    assert sorted(cache.decorations()) == [0, 1, 3]


def test_regions_follow_edits(document):
    cache = RenderCache(document)
    assert cache.regions() == [BlockRegion(0, 1, 1), BlockRegion(2, 3, 3)]

    document.insert_lines(2, ["more content"])

    assert cache.regions() == [BlockRegion(0, 1, 2), BlockRegion(3, 4, 4)]


def test_config_change_invalidates_subscribed_caches(c_document):
    channel = ConfigChannel()
    first = RenderCache(c_document(*LINES), channel)
    second = RenderCache(c_document(*LINES), channel)
    first.decorations()
    second.decorations()

    with capture_logs() as logs:
        channel.update(base_level=4)

    assert first.is_stale
    assert second.is_stale
    assert sorted(first.decorations()) == [2]
    assert first.decorations()[2].glyph == "◉"
    assert any(entry["event"] == "config_updated" for entry in logs)


def test_unchanged_config_does_not_invalidate(document):
    channel = ConfigChannel()
    cache = RenderCache(document, channel)
    cache.decorations()

    channel.update(base_level=3)

    assert not cache.is_stale


def test_closed_cache_stops_listening(document):
    channel = ConfigChannel()
    cache = RenderCache(document, channel)
    cache.decorations()
    cache.close()

    channel.update(base_level=4)
    document.insert_lines(0, ["/// New"])

    assert sorted(cache.decorations()) == [0, 2]


def test_backgrounds_respect_block_files(document):
    channel = ConfigChannel(OutlineConfig(block_files=("other.c",)))
    cache = RenderCache(document, channel)

    assert cache.backgrounds() == []

    channel.update(block_files=("main.c",))

    assert cache.backgrounds() == [BlockBackground(1, 1), BlockBackground(3, 3)]


def test_refresh_pushes_display_state(document):
    cache = RenderCache(document)
    target = RecordingTarget()

    cache.refresh(target)

    assert target.calls == [
        ("clear", None),
        ("heading", 0),
        ("heading", 2),
        ("background", (1, 1)),
        ("background", (3, 3)),
    ]
