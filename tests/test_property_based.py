from __future__ import annotations

import string

from hypothesis import given
from hypothesis import strategies as st

from comment_outline.config import OutlineConfig
from comment_outline.document import Document
from comment_outline.folding import FoldView, cycle_global
from comment_outline.levels import logical_level, run_length_for_level
from comment_outline.models import Point
from comment_outline.mutator import cycle_todo, demote, promote
from comment_outline.navigator import next_heading
from comment_outline.regions import compute_regions
from comment_outline.scanner import scan
from comment_outline.syntax import LANGUAGES

line_strategy = st.sampled_from(
    [
        "/// A",
        "//// B",
        "///// C",
        "  /// Indented",
        "/// TODO Task",
        "  // CLOSED: [2024-01-02 Tue 10:00]",
        "// comment",
        "code();",
        "",
        "   ",
    ]
)
document_strategy = st.lists(line_strategy, min_size=1, max_size=30)
title_strategy = st.text(alphabet=string.ascii_lowercase + " ", max_size=20)


def _document(lines) -> Document:
    return Document(lines, syntax=LANGUAGES["c"], name="main.c")


@given(st.integers(min_value=1, max_value=8), st.integers(min_value=0, max_value=20))
def test_levels_and_run_lengths_are_inverse(base_level: int, extra: int):
    run = base_level + extra

    level = logical_level(run, base_level)

    assert level == extra + 1
    assert run_length_for_level(level, base_level) == run


@given(st.integers(min_value=1, max_value=8), st.integers(min_value=0, max_value=7))
def test_short_runs_are_not_headings(base_level: int, run: int):
    if run < base_level:
        assert logical_level(run, base_level) is None


@given(st.integers(min_value=3, max_value=10), st.integers(min_value=1, max_value=5), title_strategy)
def test_promote_undoes_demote(run: int, count: int, title: str):
    document = _document([f"{'/' * run} {title}"])
    before = document.text

    demote(document, n=count)
    promote(document, n=count)

    assert document.text == before


@given(document_strategy, st.integers(min_value=0, max_value=3))
def test_regions_are_disjoint_and_stay_below_their_heading(lines, padding: int):
    config = OutlineConfig(block_padding=padding)
    positions = scan(lines, "/", config).positions()

    regions = compute_regions(lines, "/", config)

    previous_end = -1
    for region in regions:
        assert region.heading in positions
        assert region.heading < region.start <= region.end
        assert region.start > previous_end
        following = [position for position in positions if position > region.heading]
        limit = following[0] if following else len(lines)
        assert region.end < limit
        previous_end = region.end


@given(
    st.lists(
        st.text(alphabet=string.ascii_uppercase, min_size=1, max_size=6),
        min_size=1,
        max_size=5,
        unique=True,
    )
)
def test_todo_ring_returns_to_start(keywords):
    config = OutlineConfig(todo_keywords=tuple(keywords))
    document = _document(["/// Title", "body"])
    before = document.text

    for _ in range(len(keywords) + 1):
        assert cycle_todo(document, config)

    assert document.text == before


@given(document_strategy)
def test_next_heading_visits_every_heading(lines):
    document = _document(lines)
    positions = scan(lines, "/").positions()
    document.point = Point(0, 0)
    visited = [0] if positions[:1] == [0] else []

    while next_heading(document):
        visited.append(document.point.line)

    assert visited == positions


@given(document_strategy)
def test_global_cycle_returns_to_everything_visible(lines):
    document = _document(lines)
    view = FoldView(document)
    positions = scan(lines, "/").positions()
    memory = None

    preamble = set(range(min(positions, default=len(lines))))

    memory = cycle_global(document, view, previous=memory)
    assert set(view.visible_lines(len(lines))) <= set(positions) | preamble

    memory = cycle_global(document, view, previous=memory)
    assert set(positions) <= set(view.visible_lines(len(lines)))

    cycle_global(document, view, previous=memory)
    assert view.hidden_lines == frozenset()
