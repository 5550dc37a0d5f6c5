"""Pytest configuration and fixtures for vibe-code tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from vibecode_cli.config import ScanConfig
from vibecode_cli.graph_builder import GraphBuilder
from vibecode_cli.models import DependencyGraph
from vibecode_cli.scanner import scan_repository


@pytest.fixture(autouse=True)
def _no_llm_env(monkeypatch):
    """Keep real API keys and endpoints out of the tests."""
    for var in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "LLM_API_ENDPOINT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp()).resolve()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample JS/TS/Vue project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def sample_project(temp_dir: Path, sample_project_path: Path) -> Path:
    """Writable copy of the sample project."""
    project = temp_dir / "sample_project"
    shutil.copytree(sample_project_path, project)
    return project


@pytest.fixture
def sample_graph(sample_project: Path) -> DependencyGraph:
    """Dependency graph of the sample project with default settings."""
    config = ScanConfig()
    return GraphBuilder(sample_project, config).build(scan_repository(sample_project, config))


@pytest.fixture
def write_files():
    """Return a helper that creates ``{relative_path: content}`` under a root."""

    def _write(root: Path, files: dict) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _write
