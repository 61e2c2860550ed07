"""
comment-outline: org-style outlines for source files.

Lines opening with enough comment characters act as headings, so any
language with a line comment can be folded, navigated and restructured like
an outline.

CLI Usage:
    comment-outline outline src/main.c

Library Usage:
    from comment_outline import Document, OutlineSession, LANGUAGES

    document = Document.from_text("/// Title\\nbody\\n", syntax=LANGUAGES["c"])
    session = OutlineSession(document)
    session.cycle_global()
"""

from .config import ConfigChannel, ConfigError, OutlineConfig, build_config
from .document import Document
from .exceptions import NoCommentSyntaxError, OutlineError
from .models import BlockRegion, FoldState, GlobalFoldState, HeadingLine
from .regions import compute_regions, region_containing
from .scanner import current_level, scan
from .session import OutlineSession
from .syntax import LANGUAGES, LanguageSyntax, detect_comment_char, language_for_path

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "scan",
    "current_level",
    "compute_regions",
    "region_containing",
    "detect_comment_char",
    "language_for_path",
    # Data models
    "Document",
    "OutlineSession",
    "HeadingLine",
    "BlockRegion",
    "FoldState",
    "GlobalFoldState",
    "LanguageSyntax",
    "LANGUAGES",
    # Configuration
    "OutlineConfig",
    "ConfigChannel",
    "build_config",
    # Exceptions
    "ConfigError",
    "NoCommentSyntaxError",
    "OutlineError",
    # Version
    "__version__",
]
