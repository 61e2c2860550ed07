"""Reading and rewriting source files for the command line.

Files are read and written without newline translation, so an edit only
touches the lines it changes and CRLF files stay CRLF.
"""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_MAX_FILE_SIZE, MAX_FILE_SIZE_ENV_VAR

Warn = Callable[[str], None]


@dataclass(frozen=True)
class SourceFile:
    """Text of a source file and the stat captured before it was read.

    Attributes:
        path: Resolved path of the file.
        text: Decoded content with its original line endings.
        stat: Metadata used to detect concurrent changes and to restore
            permissions, ownership and access time on rewrite.
    """

    path: Path
    text: str
    stat: os.stat_result


def max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Largest file the CLI accepts, in bytes.

    ``COMMENT_OUTLINE_MAX_FILE_SIZE`` overrides `default`.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["COMMENT_OUTLINE_MAX_FILE_SIZE"] = "204800"
        limit = max_file_size(default=config.max_file_size)
    """
    raw = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw is None:
        return default
    try:
        size = int(raw)
    except ValueError as error:
        raise ValueError(
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {raw} (expected positive integer)"
        ) from error
    if size <= 0:
        raise ValueError(f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {size}.")
    return size


def _traverses_symlink(path: Path) -> bool:
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def resolve_source_path(raw_path: str, base_dir: Path) -> Path:
    """Resolve a user-supplied path to a regular file inside `base_dir`.

    Raises:
        ValueError: If the path traverses a symlink, does not exist, is not a
            regular file, or lies outside `base_dir`.

    Examples:
        resolve_source_path("src/main.c", Path.cwd())
    """
    path = Path(raw_path).expanduser()
    if _traverses_symlink(path):
        raise ValueError(f"Symlinks are not supported for security reasons: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Error resolving {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    if not resolved.is_relative_to(base_dir):
        raise ValueError(f"{resolved} is outside of the working directory {base_dir}.")
    return resolved


def stat_source(path: Path) -> os.stat_result:
    """Stat `path` without following symlinks.

    Raises:
        IOError: If the path is inaccessible, a symlink, or not a regular file.
    """
    try:
        result = os.stat(path, follow_symlinks=False)
    except OSError as error:
        raise IOError(f"Error accessing {path}: {error}") from error
    if stat.S_ISLNK(result.st_mode):
        raise IOError(f"Symlinks are not supported: {path}.")
    if not stat.S_ISREG(result.st_mode):
        raise IOError(f"{path} is not a regular file.")
    return result


def _fingerprint(result: os.stat_result) -> tuple:
    return (
        getattr(result, "st_ino", None),
        getattr(result, "st_dev", None),
        result.st_size,
        result.st_mtime_ns,
    )


def ensure_unchanged(source: SourceFile) -> None:
    """Raise IOError when the file on disk no longer matches `source.stat`."""
    if _fingerprint(stat_source(source.path)) != _fingerprint(source.stat):
        raise IOError(f"{source.path} changed during processing; refusing to overwrite.")


def read_source(path: Path, max_size: int) -> SourceFile:
    """Read a UTF-8 source file of at most `max_size` bytes.

    Raises:
        IOError: If the file is inaccessible, too large, or not valid UTF-8.

    Examples:
        source = read_source(path, max_file_size())
        document = Document.from_path(source.path, source.text)
    """
    before = stat_source(path)
    if before.st_size > max_size:
        raise IOError(f"{path} exceeds the maximum allowed size of {max_size} bytes.")
    try:
        with open(path, encoding="utf-8", newline="") as handle:
            text = handle.read()
    except UnicodeDecodeError as error:
        raise IOError(f"Invalid UTF-8 sequence in {path}: {error}") from error
    except OSError as error:
        raise IOError(f"Error accessing {path}: {error}") from error
    return SourceFile(path, text, before)


def write_source(source: SourceFile, text: str, warn: Warn | None = None) -> None:
    """Atomically replace the file behind `source` with `text`.

    The new content goes to a temporary file in the same directory which then
    replaces the original. Permissions and access time are restored; ownership
    is restored when the process is allowed to, otherwise `warn` is told.

    Raises:
        IOError: If the file changed since it was read or cannot be replaced.

    Examples:
        write_source(source, document.text, warn=print)
    """
    ensure_unchanged(source)
    path = source.path
    original = source.stat

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", newline="", delete=False, dir=path.parent
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
            os.chmod(temp_path, stat.S_IMODE(original.st_mode))
            _copy_ownership(temp_path, original, warn, path.name)

        os.replace(temp_path, path)
        # keep the original access time; the modification time reflects the edit
        os.utime(path, ns=(original.st_atime_ns, path.stat().st_mtime_ns))
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass


def _copy_ownership(
    target: Path, original: os.stat_result, warn: Warn | None, name: str
) -> None:
    uid = getattr(original, "st_uid", None)
    gid = getattr(original, "st_gid", None)
    if uid is None or gid is None or not hasattr(os, "chown"):
        return
    try:
        os.chown(target, uid, gid)
    except PermissionError:
        if warn is not None:
            warn(
                f"Warning: Could not preserve file ownership for {name} "
                "(requires elevated privileges)"
            )
