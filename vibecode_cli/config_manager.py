"""Configuration manager for vibe-code using a per-project TOML file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import toml

from .config import (
    LLM_ENDPOINT,
    LLM_MODEL,
    LLM_PROVIDER,
    LLM_RESPONSE_FIELD,
    OPENAI_ENDPOINT,
    ScanConfig,
    config_dir,
    config_file,
)

logger = logging.getLogger(__name__)


DEFAULT_LLM_CONFIG: Dict[str, Any] = {
    "provider": LLM_PROVIDER,
    "model": LLM_MODEL,
    "endpoint": LLM_ENDPOINT,
    "response_field": LLM_RESPONSE_FIELD,
    "openai_endpoint": OPENAI_ENDPOINT,
    "api_key": "",
}


def load_full_config(root: Path) -> Dict[str, Any]:
    """Load the entire TOML config (all sections), or ``{}`` if absent or invalid."""
    path = config_file(root)
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Failed to parse config %s: %s", path, exc)
        return {}


def _save_full_config(root: Path, config: Dict[str, Any]) -> Path:
    """Write the config dict to TOML, creating the config directory if needed."""
    config_dir(root).mkdir(parents=True, exist_ok=True)
    path = config_file(root)
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(config, f)
    return path


def load_config(root: Path) -> ScanConfig:
    """Load the scan configuration for *root*.

    Falls back to defaults when no config file exists.
    """
    full = load_full_config(root)
    if not full:
        logger.info("No config file found, using default settings")
    scan = dict(full.get("scan", {}))
    scan["metadata"] = full.get("metadata", {})
    return ScanConfig.from_dict(scan)


def save_config(root: Path, scan_config: ScanConfig) -> Path:
    """Save the scan configuration, preserving other sections (e.g. ``[llm]``)."""
    full = load_full_config(root)
    data = scan_config.to_dict()
    full["metadata"] = data.pop("metadata")
    full["scan"] = data
    return _save_full_config(root, full)


def init_config(root: Path) -> Path:
    """Write a default config file for *root* and return its path."""
    full = ScanConfig().to_dict()
    metadata = full.pop("metadata")
    return _save_full_config(root, {"scan": full, "metadata": metadata, "llm": dict(DEFAULT_LLM_CONFIG)})


def toggle_debug(root: Path) -> bool:
    """Flip ``debug_mode`` and persist it. Returns the new value."""
    scan_config = load_config(root)
    scan_config.debug_mode = not scan_config.debug_mode
    save_config(root, scan_config)
    return scan_config.debug_mode


def load_llm_config(root: Path) -> Dict[str, Any]:
    """Load the ``[llm]`` section merged over the environment defaults."""
    merged = dict(DEFAULT_LLM_CONFIG)
    merged.update(load_full_config(root).get("llm", {}))
    return merged
