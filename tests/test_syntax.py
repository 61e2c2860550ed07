from __future__ import annotations

import pytest

from comment_outline.config import OutlineConfig
from comment_outline.constants import COMMENT_STARTER
from comment_outline.document import Document
from comment_outline.exceptions import NoCommentSyntaxError
from comment_outline.syntax import (
    LANGUAGES,
    LanguageSyntax,
    detect_comment_char,
    language_for_path,
    require_comment_char,
)


def test_detect_uses_trimmed_comment_start():
    assert detect_comment_char(LANGUAGES["c"]) == "/"
    assert detect_comment_char(LANGUAGES["python"]) == "#"
    assert detect_comment_char(LanguageSyntax("custom", "   -- ")) == "-"


def test_detect_falls_back_to_syntax_table():
    syntax = LanguageSyntax(
        "custom", None, {"a": "word", "%": COMMENT_STARTER, "#": COMMENT_STARTER}
    )

    assert detect_comment_char(syntax) == "%"
    assert detect_comment_char(LANGUAGES["ini"]) == ";"


def test_detect_blank_comment_start_falls_back_to_table():
    syntax = LanguageSyntax("custom", "  ", {"!": COMMENT_STARTER})

    assert detect_comment_char(syntax) == "!"


def test_detect_returns_none_without_comment_syntax():
    assert detect_comment_char(LANGUAGES["text"]) is None
    assert detect_comment_char(None) is None


def test_language_for_path():
    assert language_for_path("src/app.PY").name == "python"
    assert language_for_path("main.rs").name == "rust"
    assert language_for_path("README") is None


def test_require_comment_char_fails_fast_for_plain_text():
    document = Document.from_text("/// Title\n", syntax=LANGUAGES["text"])

    with pytest.raises(NoCommentSyntaxError, match="text"):
        require_comment_char(document)


def test_require_comment_char_prefers_configured_override():
    document = Document.from_text("%%% Title\n", syntax=LANGUAGES["text"])

    assert require_comment_char(document, OutlineConfig(comment_char=" % ")) == "%"


def test_comment_char_is_cached_until_syntax_reset():
    document = Document.from_text("# Title\n", syntax=LANGUAGES["python"])
    assert document.comment_char == "#"

    document.set_line(0, "// Title")
    assert document.comment_char == "#"

    document.reset_syntax(LANGUAGES["c"])
    assert document.comment_char == "/"
