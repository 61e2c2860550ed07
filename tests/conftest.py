import pytest
import structlog
from click.testing import CliRunner

from comment_outline.document import Document
from comment_outline.syntax import LANGUAGES


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


@pytest.fixture()
def c_document():
    """Builds a C document from lines."""

    def build(*lines: str) -> Document:
        return Document(lines, syntax=LANGUAGES["c"], name="main.c")

    return build


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()
