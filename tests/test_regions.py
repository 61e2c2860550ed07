from __future__ import annotations

from comment_outline.config import OutlineConfig
from comment_outline.models import BlockRegion
from comment_outline.regions import compute_regions, region_containing


def test_regions_for_simple_outline():
    lines = ["/// Title", "content", "//// Sub", "more"]

    assert compute_regions(lines, "/") == [
        BlockRegion(heading=0, start=1, end=1),
        BlockRegion(heading=2, start=3, end=3),
    ]


def test_trailing_blank_lines_trimmed_to_padding():
    lines = ["/// A", "body", "", "", "", "/// B", "tail"]

    assert compute_regions(lines, "/", OutlineConfig(block_padding=0))[0] == BlockRegion(0, 1, 1)
    assert compute_regions(lines, "/", OutlineConfig(block_padding=2))[0] == BlockRegion(0, 1, 3)


def test_padding_never_reaches_the_next_heading():
    lines = ["/// A", "body", "/// B"]

    assert compute_regions(lines, "/", OutlineConfig(block_padding=5))[0] == BlockRegion(0, 1, 1)


def test_heading_followed_by_heading_has_no_region():
    lines = ["/// A", "//// B", "body"]

    assert compute_regions(lines, "/") == [BlockRegion(1, 2, 2)]


def test_only_blank_lines_without_padding_has_no_region():
    lines = ["/// A", "", "", "/// B"]

    assert compute_regions(lines, "/", OutlineConfig(block_padding=0)) == []
    assert compute_regions(lines, "/", OutlineConfig(block_padding=1)) == [BlockRegion(0, 1, 1)]


def test_closed_line_is_skipped():
    lines = ["/// DONE A", "  // CLOSED: [2024-01-02 Tue 10:00]", "body", "/// B"]

    assert compute_regions(lines, "/")[0] == BlockRegion(0, 2, 2)


def test_closed_line_alone_yields_no_region():
    lines = ["/// DONE A", "  // CLOSED: [2024-01-02 Tue 10:00]", "/// B"]

    assert compute_regions(lines, "/", OutlineConfig(block_padding=0)) == []


def test_last_region_extends_to_document_end():
    lines = ["/// A", "x", "y", "", ""]

    assert compute_regions(lines, "/", OutlineConfig(block_padding=1)) == [BlockRegion(0, 1, 3)]


def test_preamble_is_not_a_region():
    lines = ["#include <stdio.h>", "", "/// A", "body"]

    assert compute_regions(lines, "/") == [BlockRegion(2, 3, 3)]


def test_region_containing():
    regions = [BlockRegion(0, 1, 2), BlockRegion(3, 4, 6)]

    assert region_containing(regions, 1) == BlockRegion(0, 1, 2)
    assert region_containing(regions, 5) == BlockRegion(3, 4, 6)
    assert region_containing(regions, 3) is None
    assert region_containing([], 0) is None
