"""
pytest configuration and shared fixtures for makeit tests.

This module provides fixtures and configuration used across all test modules.
Fixtures defined here are automatically available to all tests.

Fixtures
--------
storage_root : Path
    An empty template storage root inside a temporary directory.

source_dir : Path
    A small project skeleton to store as a template.

stored_template : Callable
    Stores a skeleton under a name with a given record.

hook_runner : RecordingHookRunner
    A hook runner that records calls instead of spawning processes.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from makeit.hooks import HookStage
from makeit.models import TemplateRecord
from makeit.template import create_template, write_record


class RecordingHookRunner:
    """Hook runner that remembers every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, HookStage, Path, dict[str, str]]] = []

    def run(self, command, stage, cwd, variables) -> None:
        self.calls.append((command, stage, cwd, dict(variables)))


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """
    Provide an empty template storage root.

    Returns
    -------
    Path
        Path to the (existing) storage directory.
    """
    root = tmp_path / "templates"
    root.mkdir()
    return root


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """
    Provide a small skeleton project.

    Layout::

        skeleton/
        ├── README.md         contains a block
        ├── setup.cfg         contains a block
        ├── notes.txt
        └── src/
            └── main.py       contains a block
    """
    root = tmp_path / "skeleton"
    (root / "src").mkdir(parents=True)
    (root / "README.md").write_text("# {{ _PNAME }}\n\nBy {{ author ?? \"nobody\" }}\n")
    (root / "setup.cfg").write_text("[metadata]\nname = {{ _PNAME }}\n")
    (root / "notes.txt").write_text("private notes\n")
    (root / "src" / "main.py").write_text('print("{{ greeting }}")\n')
    return root


@pytest.fixture
def hook_runner() -> RecordingHookRunner:
    """Provide a hook runner that does not spawn processes."""
    return RecordingHookRunner()


@pytest.fixture
def stored_template(storage_root: Path, source_dir: Path):
    """
    Provide a factory that stores ``source_dir`` with a custom record.

    Returns
    -------
    Callable[[str, TemplateRecord], Path]
        Takes a template name and record, returns the template directory.
    """
    def factory(name: str = "skeleton", record: TemplateRecord | None = None) -> Path:
        result = create_template(storage_root, source_dir, name)
        if record is not None:
            write_record(result.template_path, record)
        return result.template_path

    return factory


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "integration: marks tests that spawn real processes"
    )
