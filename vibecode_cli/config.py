"""Configuration constants and the per-project scan configuration."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

CONFIG_DIR_NAME = ".vibe-code"
CONFIG_FILE_NAME = "config.toml"
BACKUP_DIR_NAME = "backups"

# Extensions the path resolver probes, in priority order
RESOLVE_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx", ".vue")

DEFAULT_EXCLUDE_DIRS: List[str] = ["node_modules", ".git", CONFIG_DIR_NAME, "dist", "build"]
DEFAULT_FILE_TYPES: List[str] = list(RESOLVE_EXTENSIONS)
TOP_N = 5

# Default output files used by the CLI commands
GRAPH_FILE = "vibe-graph.json"
SELECTION_FILE = "vibe-selection.json"
PROMPT_FILE = "vibe-prompt.md"
SUGGESTIONS_FILE = "vibe-suggestions.json"
APPLIED_CHANGES_FILE = "vibe-applied-changes.json"

# LLM defaults; overridden by the [llm] section of config.toml
LLM_PROVIDER = os.environ.get("VIBECODE_LLM_PROVIDER", "generic")
LLM_MODEL = os.environ.get("VIBECODE_LLM_MODEL", "gpt-4")
LLM_ENDPOINT = os.environ.get("LLM_API_ENDPOINT", "")
LLM_RESPONSE_FIELD = os.environ.get("VIBECODE_LLM_RESPONSE_FIELD", "")
OPENAI_ENDPOINT = os.environ.get(
    "VIBECODE_OPENAI_ENDPOINT", "https://api.openai.com/v1/chat/completions"
)


def config_dir(root: Path) -> Path:
    return root / CONFIG_DIR_NAME


def config_file(root: Path) -> Path:
    return config_dir(root) / CONFIG_FILE_NAME


def backup_dir(root: Path) -> Path:
    return config_dir(root) / BACKUP_DIR_NAME


@dataclass
class MetadataOptions:
    show_line_count: bool = True
    show_file_size: bool = True
    show_last_modified: bool = True


@dataclass
class ScanConfig:
    """Settings threaded explicitly into the scanner and the graph builder."""
    exclude_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))
    file_types: List[str] = field(default_factory=lambda: list(DEFAULT_FILE_TYPES))
    debug_mode: bool = False
    metadata: MetadataOptions = field(default_factory=MetadataOptions)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanConfig":
        """Merge *data* over the defaults, ignoring unknown keys."""
        defaults = cls()
        meta = data.get("metadata") or {}
        return cls(
            exclude_dirs=list(data.get("exclude_dirs", defaults.exclude_dirs)),
            file_types=list(data.get("file_types", defaults.file_types)),
            debug_mode=bool(data.get("debug_mode", defaults.debug_mode)),
            metadata=MetadataOptions(
                show_line_count=bool(meta.get("show_line_count", True)),
                show_file_size=bool(meta.get("show_file_size", True)),
                show_last_modified=bool(meta.get("show_last_modified", True)),
            ),
        )
