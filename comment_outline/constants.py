"""Constants used across the comment-outline package."""

from __future__ import annotations

import re

# Syntax class marking a comment starter in a language syntax table
COMMENT_STARTER = "comment-start"

# CLOSED lines carry exactly two comment characters and this label
CLOSED_LABEL = "CLOSED:"
CLOSED_INDENT = "  "
CLOSED_TIMESTAMP_PATTERN = re.compile(
    r"\[(?P<date>\d{4}-\d{2}-\d{2}) (?P<day>[^\s\]]+) (?P<time>\d{2}:\d{2})\]"
)

DEFAULT_BULLET_GLYPHS = ("◉", "○", "✸", "✿")
DEFAULT_TODO_KEYWORDS = ("TODO", "DONE")
BLANK_LINE_POLICIES = ("always", "never", "auto")
ALL_FILES = "all"

FACE_LEVELS = 8
BLOCK_FACE = "block"
FOLD_MARKER = "..."

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_FILE_SIZE_ENV_VAR = "COMMENT_OUTLINE_MAX_FILE_SIZE"

# Cycle command identities
LOCAL_CYCLE = "cycle"
GLOBAL_CYCLE = "cycle-global"
