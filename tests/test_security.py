from __future__ import annotations

import os
import textwrap
import uuid
from pathlib import Path

import pytest

import comment_outline.cli as cli_module
from comment_outline.filesystem import (
    ensure_unchanged,
    max_file_size,
    read_source,
    resolve_source_path,
    write_source,
)


def _write(tmp_path: Path, name: str, content: str) -> Path:
    target = tmp_path / name
    target.write_text(textwrap.dedent(content), encoding="utf-8")
    return target


def _error_text(result) -> str:
    """Return combined output and exception text for assertions."""
    return f"{result.output}{result.exception}"


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="Symlink support is required")
def test_symlink_rejected(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = _write(tmp_path, "source.c", "/// Heading\n")
    link = tmp_path / "alias.c"
    try:
        os.symlink(source, link, target_is_directory=False)
    except OSError as error:  # pragma: no cover - platform dependent
        pytest.skip(f"Unable to create symlink: {error}")

    result = cli_runner.invoke(cli_module.cli, ["outline", str(link)])
    assert result.exit_code != 0
    assert "Symlinks" in result.output


def test_path_traversal_prevented(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    outside = tmp_path.parent / f"outside-{uuid.uuid4().hex}.c"
    outside.write_text("/// Outside\n", encoding="utf-8")

    try:
        result = cli_runner.invoke(cli_module.cli, ["outline", str(outside)])
        assert result.exit_code != 0
        assert "outside of the working directory" in result.output
    finally:
        outside.unlink(missing_ok=True)


def test_file_size_limit_enforced(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("COMMENT_OUTLINE_MAX_FILE_SIZE", "10")
    target = _write(tmp_path, "large.c", "/// Heading\n" + "x" * 20)

    result = cli_runner.invoke(cli_module.cli, ["outline", str(target)])
    assert result.exit_code != 0
    assert "maximum allowed size" in _error_text(result)


def test_file_size_limit_from_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".comment-outline.toml").write_text(
        "[comment-outline]\nmax_file_size = 5\n", encoding="utf-8"
    )
    target = _write(tmp_path, "large.c", "/// Heading\n")

    result = cli_runner.invoke(cli_module.cli, ["outline", str(target)])
    assert result.exit_code != 0
    assert "maximum allowed size" in _error_text(result)


def test_invalid_size_environment_value(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("COMMENT_OUTLINE_MAX_FILE_SIZE", "lots")
    target = _write(tmp_path, "main.c", "/// Heading\n")

    result = cli_runner.invoke(cli_module.cli, ["outline", str(target)])
    assert result.exit_code != 0
    assert "expected positive integer" in _error_text(result)


def test_invalid_utf8_rejected(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "binary.c"
    target.write_bytes(b"/// \xff\xfe\n")

    result = cli_runner.invoke(cli_module.cli, ["outline", str(target)])
    assert result.exit_code != 0
    assert "Invalid UTF-8" in _error_text(result)


@pytest.mark.parametrize("value", ["0", "-5"])
def test_max_file_size_rejects_non_positive(monkeypatch, value):
    monkeypatch.setenv("COMMENT_OUTLINE_MAX_FILE_SIZE", value)

    with pytest.raises(ValueError, match="positive integer"):
        max_file_size()


def test_max_file_size_default(monkeypatch):
    monkeypatch.delenv("COMMENT_OUTLINE_MAX_FILE_SIZE", raising=False)

    assert max_file_size(default=42) == 42


def test_resolve_source_path_rejects_directories(tmp_path):
    with pytest.raises(ValueError, match="not a regular file"):
        resolve_source_path(str(tmp_path), tmp_path)


def test_resolve_source_path_rejects_missing(tmp_path):
    with pytest.raises(ValueError, match="does not exist"):
        resolve_source_path(str(tmp_path / "missing.c"), tmp_path)


def test_read_source_rejects_oversized_files(tmp_path):
    target = _write(tmp_path, "main.c", "/// A\nbody\n")

    with pytest.raises(IOError, match="maximum allowed size"):
        read_source(target, 4)


def test_read_source_keeps_line_endings(tmp_path):
    target = tmp_path / "main.c"
    target.write_bytes(b"/// A\r\nbody\r\n")

    assert read_source(target, 100).text == "/// A\r\nbody\r\n"


def test_ensure_unchanged_detects_modification(tmp_path):
    target = _write(tmp_path, "main.c", "/// A\n")
    source = read_source(target, 100)
    target.write_text("/// A\n/// B\n", encoding="utf-8")

    with pytest.raises(IOError, match="changed during processing"):
        ensure_unchanged(source)


def test_write_source_refuses_concurrent_change(tmp_path):
    target = _write(tmp_path, "main.c", "/// A\n")
    source = read_source(target, 100)
    target.write_text("/// Changed elsewhere\n", encoding="utf-8")

    with pytest.raises(IOError):
        write_source(source, "/// Mine\n")

    assert target.read_text(encoding="utf-8") == "/// Changed elsewhere\n"


def test_write_source_preserves_permissions(tmp_path):
    target = _write(tmp_path, "main.c", "/// A\n")
    os.chmod(target, 0o640)
    source = read_source(target, 100)

    write_source(source, "/// B\n")

    assert target.read_text(encoding="utf-8") == "/// B\n"
    assert os.stat(target).st_mode & 0o777 == 0o640
    assert [path.name for path in tmp_path.iterdir()] == ["main.c"]


def test_write_source_does_not_translate_newlines(tmp_path):
    target = tmp_path / "main.c"
    target.write_bytes(b"/// A\r\n")
    source = read_source(target, 100)

    write_source(source, "/// B\r\nbody\r\n")

    assert target.read_bytes() == b"/// B\r\nbody\r\n"
