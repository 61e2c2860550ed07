"""Comment syntax detection."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

from .constants import COMMENT_STARTER
from .exceptions import NoCommentSyntaxError

if TYPE_CHECKING:
    from .config import OutlineConfig
    from .document import Document


@dataclass(frozen=True)
class LanguageSyntax:
    """Comment syntax declared by a language.

    Attributes:
        name: Language name.
        comment_start: Token that opens a line comment, possibly padded with
            whitespace (``"// "``), or None when the language declares none.
        syntax_table: Characters mapped to their syntax class; the
            ``"comment-start"`` class marks comment starters.
    """

    name: str
    comment_start: str | None = None
    syntax_table: Mapping[str, str] = field(default_factory=dict)


def _table(classes: dict[str, str]) -> Mapping[str, str]:
    return MappingProxyType(classes)


LANGUAGES: Mapping[str, LanguageSyntax] = MappingProxyType(
    {
        syntax.name: syntax
        for syntax in (
            LanguageSyntax("python", "# "),
            LanguageSyntax("shell", "# "),
            LanguageSyntax("ruby", "# "),
            LanguageSyntax("toml", "# "),
            LanguageSyntax("yaml", "# "),
            LanguageSyntax("c", "// "),
            LanguageSyntax("cpp", "// "),
            LanguageSyntax("java", "// "),
            LanguageSyntax("javascript", "// "),
            LanguageSyntax("typescript", "// "),
            LanguageSyntax("go", "// "),
            LanguageSyntax("rust", "// "),
            LanguageSyntax("lisp", "; "),
            LanguageSyntax("elisp", ";; "),
            LanguageSyntax("sql", "-- "),
            LanguageSyntax("lua", "-- "),
            LanguageSyntax("haskell", "-- "),
            LanguageSyntax("tex", "% "),
            LanguageSyntax("erlang", "% "),
            LanguageSyntax("vim", '" '),
            # Declares no comment token, only a syntax table
            LanguageSyntax("conf", None, _table({"#": COMMENT_STARTER, "\n": "comment-end"})),
            LanguageSyntax("ini", None, _table({"=": "punctuation", ";": COMMENT_STARTER})),
            LanguageSyntax("text"),
        )
    }
)

EXTENSIONS: Mapping[str, str] = MappingProxyType(
    {
        ".py": "python",
        ".pyi": "python",
        ".sh": "shell",
        ".bash": "shell",
        ".zsh": "shell",
        ".rb": "ruby",
        ".toml": "toml",
        ".yaml": "yaml",
        ".yml": "yaml",
        ".c": "c",
        ".h": "c",
        ".cc": "cpp",
        ".cpp": "cpp",
        ".hpp": "cpp",
        ".java": "java",
        ".js": "javascript",
        ".mjs": "javascript",
        ".ts": "typescript",
        ".go": "go",
        ".rs": "rust",
        ".lisp": "lisp",
        ".scm": "lisp",
        ".el": "elisp",
        ".sql": "sql",
        ".lua": "lua",
        ".hs": "haskell",
        ".tex": "tex",
        ".erl": "erlang",
        ".vim": "vim",
        ".conf": "conf",
        ".cfg": "conf",
        ".ini": "ini",
        ".txt": "text",
    }
)


def language_for_path(path: str | Path) -> LanguageSyntax | None:
    """Resolve the language of a file from its extension.

    Examples:
        language_for_path("setup.py").name  # "python"
        language_for_path("notes.unknown")  # None
    """
    name = EXTENSIONS.get(Path(path).suffix.lower())
    return LANGUAGES[name] if name is not None else None


def detect_comment_char(syntax: LanguageSyntax | None) -> str | None:
    """Determine the comment character of a language.

    The trimmed comment-start token wins; otherwise the first character whose
    syntax class is a comment starter is used.

    Args:
        syntax: Language hint, or None when the language is unknown.

    Returns:
        str | None: The comment character, or None when the language has no
            comment syntax.

    Examples:
        detect_comment_char(LANGUAGES["c"])  # "/"
        detect_comment_char(LANGUAGES["text"])  # None
    """
    if syntax is None:
        return None

    token = (syntax.comment_start or "").strip()
    if token:
        return token[0]

    for character, syntax_class in syntax.syntax_table.items():
        if syntax_class == COMMENT_STARTER:
            return character

    return None


def require_comment_char(document: Document, config: OutlineConfig | None = None) -> str:
    """Return the comment character of `document` or fail.

    A configured `comment_char` overrides detection.

    Raises:
        NoCommentSyntaxError: If neither the configuration nor the document's
            language provides a comment character.
    """
    if config is not None and config.comment_char is not None:
        return config.comment_char.strip()[0]

    comment_char = document.comment_char
    if comment_char is None:
        raise NoCommentSyntaxError(document.syntax.name if document.syntax else None)
    return comment_char
