"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

# Fixture scripts and in-memory fakes
FIXTURES_DIR = Path(__file__).parent / "fixtures"
if str(FIXTURES_DIR) not in sys.path:
    sys.path.insert(0, str(FIXTURES_DIR))

FAKE_CLI = FIXTURES_DIR / "fake_cli.py"

from streamcmd.config import Config  # noqa: E402
from streamcmd.context import ExecutionContext  # noqa: E402
from streamcmd.runner import CommandRunner  # noqa: E402
from streamcmd.sink import RecordingSink  # noqa: E402


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Create temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def fake_cli() -> list[str]:
    """argv prefix that runs the fake CLI with the current interpreter."""
    return [sys.executable, str(FAKE_CLI)]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def config() -> Config:
    """Configuration independent of the test environment."""
    return Config(term_timeout=0.5, kill_timeout=0.3)


@pytest.fixture
def runner(sink: RecordingSink, config: Config) -> CommandRunner:
    """Runner backed by real processes and a recording sink."""
    return CommandRunner(ExecutionContext(sink=sink), config)
