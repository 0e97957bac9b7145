"""
Shared pytest fixtures and configuration for taskspine tests.

This module provides:
- Settings cache reset and environment isolation
- structlog context cleanup between tests
- Auto-marking of tests by location
"""

import os
from pathlib import Path
from typing import Generator

import pytest

from taskspine.core.logging import clear_context
from taskspine.core.settings import TaskSpineSettings, reset_settings


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "orchestration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """
    Drop cached settings and any TASKSPINE_* variables around each test.

    Tests run from a temporary directory so a developer's ``.env`` never
    leaks into halt policy.
    """
    for key in list(os.environ):
        if key.startswith("TASKSPINE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def clean_log_context() -> Generator[None, None, None]:
    """Clear structlog contextvars before and after each test."""
    clear_context()
    yield
    clear_context()


@pytest.fixture
def halt_on_skip() -> TaskSpineSettings:
    """Settings where both tasks and workflows halt on skipped and failed."""
    return TaskSpineSettings(task_halt="failed,skipped", workflow_halt="failed,skipped")
