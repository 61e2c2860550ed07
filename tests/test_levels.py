from __future__ import annotations

import pytest

from comment_outline.levels import (
    bullet_glyph,
    comment_run_length,
    display_face,
    heading_prefix,
    logical_level,
    run_length_for_level,
)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("/// Title", 3),
        ("  //// Indented", 4),
        ("\t// note", 2),
        ("/", 1),
        ("code(); // trailing", None),
        ("", None),
        ("   ", None),
    ],
)
def test_comment_run_length(line: str, expected: int | None):
    assert comment_run_length(line, "/") == expected


def test_comment_run_length_treats_regex_metacharacters_literally():
    assert comment_run_length("*** Title", "*") == 3
    assert comment_run_length("... Title", ".") == 3
    assert comment_run_length("abc", ".") is None


def test_logical_level_below_base_is_none():
    assert logical_level(2, 3) is None
    assert logical_level(None, 3) is None


def test_logical_level_starts_at_one():
    assert logical_level(3, 3) == 1
    assert logical_level(5, 3) == 3
    assert logical_level(1, 1) == 1


def test_run_length_for_level_rejects_level_zero():
    with pytest.raises(ValueError):
        run_length_for_level(0, 3)


def test_heading_prefix():
    assert heading_prefix(1, "#", 3) == "###"
    assert heading_prefix(2, ";", 2) == ";;;"


def test_bullet_glyph_cycles():
    glyphs = ("a", "b", "c")

    assert [bullet_glyph(level, glyphs) for level in range(1, 7)] == ["a", "b", "c", "a", "b", "c"]


def test_display_face_cycles_over_eight_levels():
    assert display_face(1) == "level-1"
    assert display_face(8) == "level-8"
    assert display_face(9) == "level-1"
    assert display_face(12) == "level-4"


def test_display_face_uses_configured_face():
    assert display_face(3, "heading") == "heading"
