"""Shared test fixtures for the teamwerx test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from teamwerx.config import TeamwerxConfig
from teamwerx.merge.merger import SpecMerger
from teamwerx.storage.changes import FileChangeStore
from teamwerx.storage.memory import MemorySpecStore
from teamwerx.storage.specs import FileSpecStore

AUTH_SPEC = (
    "# Auth Spec\n"
    "\n"
    "Intro text.\n"
    "\n"
    "### Requirement: User Login\n"
    "Users MUST log in.\n"
    "\n"
    "#### Scenario: ok\n"
    "- works\n"
    "\n"
    "### Requirement: Password Reset\n"
    "Users MAY reset.\n"
    "\n"
    "## Appendix\n"
    "\n"
    "Notes.\n"
)


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def names(self) -> list[str]:
        return [c["name"] for c in self.increments] + [c["name"] for c in self.timings]


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Workspace directory inside the test's tmp dir."""
    return tmp_path / ".teamwerx"


@pytest.fixture
def config(root: Path) -> TeamwerxConfig:
    """Default configuration rooted in a temporary directory."""
    return TeamwerxConfig(root_dir=str(root))


@pytest.fixture
def memory_store(config: TeamwerxConfig) -> MemorySpecStore:
    """Empty in-memory spec store."""
    return MemorySpecStore(config=config)


@pytest.fixture
def merger(memory_store: MemorySpecStore, config: TeamwerxConfig) -> SpecMerger:
    """Merger over the in-memory store."""
    return SpecMerger(memory_store, config)


@pytest.fixture
def spec_store(config: TeamwerxConfig) -> FileSpecStore:
    return FileSpecStore(config)


@pytest.fixture
def change_store(config: TeamwerxConfig) -> FileChangeStore:
    return FileChangeStore(config)


def write_spec_file(root: Path, domain: str, content: str) -> Path:
    """Write ``<root>/specs/<domain>/spec.md`` directly, bypassing the store."""
    path = root / "specs" / domain / "spec.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def auth_spec() -> str:
    """A spec with a title section, two requirements and an appendix."""
    return AUTH_SPEC


@pytest.fixture
def write_spec(root: Path):
    """Return a helper that writes a spec file under the workspace root."""

    def _write(domain: str, content: str) -> Path:
        return write_spec_file(root, domain, content)

    return _write


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()
