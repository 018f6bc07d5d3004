from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures import (  # noqa: E402
    OpenAIStub,
    OpenAIStubFactory,
    ScriptedConverter,
    WorkspaceBuilder,
)
from uniconvert.core import workspace as workspace_mod  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_workspace(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    """Keep every test away from the real ~/.uniconvert-data."""

    home = tmp_path / "uniconvert-home"
    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(home))
    for key in ("UNICONVERT_CONFIG", "UNICONVERT_TARGET", "UNICONVERT_MODEL"):
        monkeypatch.delenv(key, raising=False)
    yield home


@pytest.fixture(autouse=True)
def _reset_command_loggers() -> Iterator[None]:
    """Drop handlers configure_logger attached so each test gets fresh files."""

    yield
    logger = logging.getLogger("uniconvert.convert")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def openai_client() -> OpenAIStub:
    """A fresh chat-completions stub to inject as ``client=``."""

    return OpenAIStub()


@pytest.fixture
def openai_factory() -> OpenAIStubFactory:
    return OpenAIStubFactory()


@pytest.fixture
def converter() -> ScriptedConverter:
    return ScriptedConverter()


@pytest.fixture(name="logger")
def _logger_fixture() -> logging.Logger:
    logger = logging.getLogger("uniconvert.tests")
    logger.handlers.clear()
    logger.propagate = False
    logger.addHandler(logging.NullHandler())
    return logger


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path / "inputs")
