"""Configuration loading and management."""

from __future__ import annotations

import weakref
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Protocol
import tomllib

import structlog

from .constants import (
    ALL_FILES,
    BLANK_LINE_POLICIES,
    DEFAULT_BULLET_GLYPHS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_TODO_KEYWORDS,
)

log = structlog.get_logger()


@dataclass
class OutlineConfig:
    """Configuration for comment-prefixed outlines.

    Attributes:
        base_level: Comment run length that maps to outline level 1.
        bullet_glyphs: Glyphs substituted for heading prefixes, cycled by level.
        todo_keywords: Keywords recognised at the start of a heading title, in
            cycling order.
        done_keyword: Keyword that records a CLOSED timestamp. Defaults to the
            last entry of `todo_keywords` when None.
        blank_line_policy: Whether a blank line precedes inserted headings
            (``"always"``, ``"never"`` or ``"auto"``).
        block_padding: Trailing blank lines kept inside a block region.
        block_files: ``"all"`` or the file names whose block regions are painted.
        heading_face: Single face applied to every heading; computed per level
            when None.
        comment_char: Comment character overriding language detection.
        max_file_size: Maximum file size in bytes that will be processed.

    Examples:
        OutlineConfig(base_level=2, todo_keywords=("TODO", "WAIT", "DONE"))
    """

    # Headings
    base_level: int = 3
    comment_char: str | None = None

    # Rendering
    bullet_glyphs: tuple[str, ...] = DEFAULT_BULLET_GLYPHS
    heading_face: str | None = None
    block_padding: int = 1
    block_files: str | tuple[str, ...] = ALL_FILES

    # Editing
    todo_keywords: tuple[str, ...] = DEFAULT_TODO_KEYWORDS
    done_keyword: str | None = None
    blank_line_policy: str = "auto"

    # Limits
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    @property
    def effective_done_keyword(self) -> str | None:
        """Keyword whose arrival records a CLOSED timestamp."""
        if self.done_keyword is not None:
            return self.done_keyword
        return self.todo_keywords[-1] if self.todo_keywords else None

    def accepts_blocks(self, filename: str | None) -> bool:
        """Whether block backgrounds are painted for `filename`."""
        if self.block_files == ALL_FILES:
            return True
        return filename is not None and Path(filename).name in self.block_files


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`base_level` must be a positive integer")
    """


def load_config(search_path: Path) -> OutlineConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.comment-outline]`` table from `pyproject.toml` and the
    ``[comment-outline]`` or ``[tool.comment-outline]`` table from
    `.comment-outline.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        OutlineConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If a config table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("src"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "comment-outline")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".comment-outline.toml",
            table_paths=[("comment-outline",), ("tool", "comment-outline")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return OutlineConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> OutlineConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        log.warning("config_file_skipped", path=str(config_file))
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        log.debug("config_file_loaded", path=str(config_file), table=".".join(table_path))
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> OutlineConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return OutlineConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return OutlineConfig()

    try:
        return OutlineConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: OutlineConfig) -> OutlineConfig:
    """Convert list-valued settings (as read from TOML) into tuples."""
    changes: dict[str, object] = {}
    for key in ("bullet_glyphs", "todo_keywords"):
        value = getattr(config, key)
        if isinstance(value, list):
            changes[key] = tuple(value)
    if isinstance(config.block_files, list):
        changes["block_files"] = tuple(config.block_files)
    if not changes:
        return config
    return replace(config, **changes)


def validate_config(config: OutlineConfig) -> None:
    """Validate an `OutlineConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If the base level or padding are not valid integers, glyph
            or keyword lists are malformed, the done keyword is not configured,
            the blank-line policy is unknown, or the comment character is blank.

    Examples:
        validate_config(OutlineConfig(base_level=2))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "base_level": config.base_level,
            "block_padding": config.block_padding,
            "max_file_size": config.max_file_size,
        }
    )
    _ensure_positive({"base_level": config.base_level, "max_file_size": config.max_file_size})
    if config.block_padding < 0:
        raise ConfigError("`block_padding` must be a non-negative integer")

    if not isinstance(config.bullet_glyphs, tuple) or not config.bullet_glyphs:
        raise ConfigError("`bullet_glyphs` must be a non-empty list")
    if not all(isinstance(glyph, str) and len(glyph) == 1 for glyph in config.bullet_glyphs):
        raise ConfigError("`bullet_glyphs` entries must be single characters")

    if not isinstance(config.todo_keywords, tuple):
        raise ConfigError("`todo_keywords` must be a list")
    for keyword in config.todo_keywords:
        if not isinstance(keyword, str) or not keyword.isascii() or not keyword.isalpha():
            raise ConfigError("`todo_keywords` entries must be uppercase words")
        if not keyword.isupper():
            raise ConfigError("`todo_keywords` entries must be uppercase words")
    if len(set(config.todo_keywords)) != len(config.todo_keywords):
        raise ConfigError("`todo_keywords` must not contain duplicates")
    if config.done_keyword is not None and config.done_keyword not in config.todo_keywords:
        raise ConfigError("`done_keyword` must be one of `todo_keywords`")

    if config.blank_line_policy not in BLANK_LINE_POLICIES:
        raise ConfigError(
            f"`blank_line_policy` must be one of: {', '.join(BLANK_LINE_POLICIES)}"
        )

    if config.block_files != ALL_FILES:
        if not isinstance(config.block_files, tuple) or not all(
            isinstance(name, str) and name for name in config.block_files
        ):
            raise ConfigError('`block_files` must be "all" or a list of file names')

    if config.heading_face is not None and not isinstance(config.heading_face, str):
        raise ConfigError("`heading_face` must be a string")

    if config.comment_char is not None:
        if not isinstance(config.comment_char, str) or not config.comment_char.strip():
            raise ConfigError("`comment_char` must not be blank")


def apply_overrides(config: OutlineConfig, **overrides: object) -> OutlineConfig:
    """Apply override values to an `OutlineConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        OutlineConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `OutlineConfig`.

    Examples:
        updated = apply_overrides(config, base_level=2, block_padding=0)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> OutlineConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        OutlineConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), base_level=2)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


class ConfigSubscriber(Protocol):
    """Anything holding state derived from the configuration."""

    def invalidate(self) -> None: ...


class ConfigChannel:
    """Live configuration shared by every open document.

    Subscribers are held weakly; an update validates the new configuration and
    then tells each subscriber to drop what it derived from the old one.
    Subscribers re-derive lazily on their next access.
    """

    def __init__(self, config: OutlineConfig | None = None):
        config = normalize_config(config or OutlineConfig())
        validate_config(config)
        self._config = config
        self._subscribers: weakref.WeakSet[ConfigSubscriber] = weakref.WeakSet()

    @property
    def config(self) -> OutlineConfig:
        return self._config

    def subscribe(self, subscriber: ConfigSubscriber) -> None:
        self._subscribers.add(subscriber)

    def unsubscribe(self, subscriber: ConfigSubscriber) -> None:
        self._subscribers.discard(subscriber)

    def update(self, **changes: object) -> OutlineConfig:
        """Validate and publish a configuration change.

        Raises:
            ConfigError: If the resulting configuration is invalid; subscribers
                are not notified in that case.
        """
        try:
            config = normalize_config(apply_overrides(self._config, **changes))
        except TypeError as error:
            raise ConfigError(f"Unknown setting in {sorted(changes)}") from error
        validate_config(config)
        if config == self._config:
            return config
        self._config = config
        subscribers = list(self._subscribers)
        log.debug("config_updated", changes=sorted(changes), subscribers=len(subscribers))
        for subscriber in subscribers:
            subscriber.invalidate()
        return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
