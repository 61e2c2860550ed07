"""
Command-line access to comment-prefixed outlines.
Lists, renders and edits the headings of a source file in place.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
import structlog

from .config import ConfigChannel, ConfigError, build_config
from .document import Document
from .exceptions import OutlineError
from .filesystem import SourceFile, max_file_size, read_source, resolve_source_path, write_source
from .levels import bullet_glyph
from .rendering import render_text
from .session import OutlineSession

__all__ = ["cli"]

# Consecutive global cycles needed to reach each view
VIEWS = {"overview": 1, "contents": 2, "all": 0}


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog to write console records to stderr."""
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def _outline_options(command: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the file argument and the configuration overrides shared by commands."""
    decorators = [
        click.argument("filepath", type=click.Path(exists=True, dir_okay=False)),
        click.option("--base-level", type=int, help="Comment run length of level-1 headings"),
        click.option("--comment-char", help="Comment character overriding language detection"),
        click.option("--padding", type=int, help="Trailing blank lines kept in block regions"),
    ]
    for decorator in reversed(decorators):
        command = decorator(command)
    return command


def _open_session(
    filepath: str,
    base_level: int | None,
    comment_char: str | None,
    padding: int | None,
) -> tuple[SourceFile, OutlineSession]:
    """Validate, read and wrap a file in an outline session.

    Raises:
        click.BadParameter: If the path or configuration is invalid.
        click.ClickException: If the file is too large or cannot be read.
    """
    base_dir = Path.cwd().resolve()
    try:
        path = resolve_source_path(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(
            path.parent,
            base_level=base_level,
            comment_char=comment_char,
            block_padding=padding,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        source = read_source(path, max_file_size(default=config.max_file_size))
    except (ValueError, IOError) as error:
        raise click.ClickException(str(error)) from error

    document = Document.from_path(path, source.text)
    return source, OutlineSession(document, ConfigChannel(config))


def _goto_line(session: OutlineSession, line: int) -> None:
    if not 1 <= line <= session.document.line_count:
        raise click.BadParameter(
            f"Line {line} is outside of the document (1-{session.document.line_count})"
        )
    session.move_to(line - 1)


def _finish(source: SourceFile, session: OutlineSession, changed: bool) -> None:
    for message in session.messages:
        click.echo(message, err=True)
    if not changed:
        return
    try:
        write_source(
            source,
            session.document.text,
            warn=lambda message: click.echo(message, err=True),
        )
    except IOError as error:
        raise click.ClickException(str(error)) from error


@click.group()
@click.version_option(package_name="comment-outline")
@click.option("-v", "--verbose", is_flag=True, help="Log debug records to stderr")
def cli(verbose: bool = False):
    """
    Outline source files through comment-prefixed headings.

    A heading is a line opening with at least `base_level` comment characters
    (``///`` in C, ``###`` in Python with the default base level of 3).

    Examples:
        comment-outline outline src/main.c
        comment-outline todo src/main.c 12
    """
    configure_logging(verbose)


@cli.command()
@_outline_options
def outline(
    filepath: str,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """List the headings of FILEPATH."""
    _, session = _open_session(filepath, base_level, comment_char, padding)
    try:
        headings = session.outline()
    except OutlineError as error:
        raise click.ClickException(str(error)) from error

    glyphs = session.config.bullet_glyphs
    for heading in headings:
        indent = "  " * (heading.logical_level - 1)
        keyword = f"{heading.keyword} " if heading.keyword else ""
        closed = ""
        if heading.closed_timestamp is not None:
            closed = f" (closed {heading.closed_timestamp:%Y-%m-%d %H:%M})"
        glyph = bullet_glyph(heading.logical_level, glyphs)
        click.echo(f"{heading.line_index + 1}: {indent}{glyph} {keyword}{heading.title}{closed}")


@cli.command()
@_outline_options
def regions(
    filepath: str,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """List the block region owned by each heading of FILEPATH."""
    _, session = _open_session(filepath, base_level, comment_char, padding)
    try:
        block_regions = session.render_cache.regions()
    except OutlineError as error:
        raise click.ClickException(str(error)) from error

    for region in block_regions:
        click.echo(f"{region.heading + 1}: {region.start + 1}-{region.end + 1}")


@cli.command()
@_outline_options
@click.option(
    "--view", type=click.Choice(list(VIEWS)), default="all", show_default=True, help="Fold view"
)
def render(
    filepath: str,
    view: str,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """Print FILEPATH with bullets in place of heading prefixes."""
    _, session = _open_session(filepath, base_level, comment_char, padding)
    try:
        for _ in range(VIEWS[view]):
            session.cycle_global()
        decorations = session.render_cache.decorations()
    except OutlineError as error:
        raise click.ClickException(str(error)) from error

    lines = render_text(session.document.lines, decorations, session.view.hidden_lines)
    for line in lines:
        click.echo(line)


def _edit_command(
    filepath: str,
    line: int,
    base_level: int | None,
    comment_char: str | None,
    padding: int | None,
    edit: Callable[[OutlineSession], bool],
) -> None:
    source, session = _open_session(filepath, base_level, comment_char, padding)
    _goto_line(session, line)
    try:
        changed = edit(session)
    except OutlineError as error:
        raise click.ClickException(str(error)) from error
    _finish(source, session, changed)


@cli.command()
@_outline_options
@click.argument("line", type=int)
@click.option("-n", "count", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--subtree", is_flag=True, help="Promote every heading of the subtree")
def promote(
    filepath: str,
    line: int,
    count: int,
    subtree: bool,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """Remove comment characters from the heading on LINE."""
    _edit_command(
        filepath,
        line,
        base_level,
        comment_char,
        padding,
        lambda session: session.promote_subtree(count) if subtree else session.promote(count),
    )


@cli.command()
@_outline_options
@click.argument("line", type=int)
@click.option("-n", "count", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--subtree", is_flag=True, help="Demote every heading of the subtree")
def demote(
    filepath: str,
    line: int,
    count: int,
    subtree: bool,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """Add comment characters to the heading on LINE."""
    _edit_command(
        filepath,
        line,
        base_level,
        comment_char,
        padding,
        lambda session: session.demote_subtree(count) if subtree else session.demote(count),
    )


@cli.command()
@_outline_options
@click.argument("line", type=int)
@click.option("--backward", is_flag=True, help="Cycle to the previous keyword")
@click.option("--set", "keyword", help="Set this keyword instead of cycling")
@click.option("--clear", is_flag=True, help="Remove the keyword")
def todo(
    filepath: str,
    line: int,
    backward: bool,
    keyword: str | None,
    clear: bool,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """Cycle or set the TODO keyword of the heading on LINE."""
    if keyword is not None and clear:
        raise click.BadParameter("`--set` and `--clear` are mutually exclusive")

    def edit(session: OutlineSession) -> bool:
        if clear:
            return session.set_todo(None)
        if keyword is not None:
            return session.set_todo(keyword)
        return session.cycle_todo(-1 if backward else 1)

    _edit_command(filepath, line, base_level, comment_char, padding, edit)


@cli.command()
@_outline_options
@click.argument("line", type=int)
@click.option("--column", type=click.IntRange(min=0), default=0, help="Column of point")
@click.option("--level", type=click.IntRange(min=1), help="Level of the new heading")
@click.option("--respect-content", is_flag=True, help="Insert after the current subtree")
def insert(
    filepath: str,
    line: int,
    column: int,
    level: int | None,
    respect_content: bool,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """Insert a heading at LINE."""

    def edit(session: OutlineSession) -> bool:
        session.move_to(line - 1, column)
        return session.insert_heading(level, respect_content)

    _edit_command(filepath, line, base_level, comment_char, padding, edit)


@cli.command()
@_outline_options
@click.argument("line", type=int)
def subheading(
    filepath: str,
    line: int,
    base_level: int | None = None,
    comment_char: str | None = None,
    padding: int | None = None,
):
    """Insert a subheading below the heading on LINE."""
    _edit_command(
        filepath,
        line,
        base_level,
        comment_char,
        padding,
        lambda session: session.insert_subheading(),
    )


if __name__ == "__main__":
    cli()
