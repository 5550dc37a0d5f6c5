"""Graph export helpers for the JSON graph contract and file selections."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from .models import DependencyGraph, GraphNode


def export_json(graph: DependencyGraph, output_file: Path) -> Path:
    """Write ``{nodes, links, metadata}`` for downstream tooling."""
    output_file.write_text(json.dumps(graph.to_dict(), indent=2), encoding="utf-8")
    return output_file


def select_nodes(graph: DependencyGraph, file_ids: Sequence[int]) -> List[GraphNode]:
    """Nodes for *file_ids* in the given order; unknown ids are dropped."""
    nodes = (graph.node_by_id(i) for i in file_ids)
    return [n for n in nodes if n is not None]


def export_selection(
    graph: DependencyGraph,
    file_ids: Sequence[int],
    base_dir: Path,
    output_file: Path,
) -> Path:
    selection = {
        "files": [{"id": n.id, "path": n.name} for n in select_nodes(graph, file_ids)],
        "repoName": Path(base_dir).resolve().name,
        "timestamp": datetime.now().isoformat(),
    }
    output_file.write_text(json.dumps(selection, indent=2), encoding="utf-8")
    return output_file


def load_selection(path: Path) -> List[int]:
    """Read the file ids from a selection file (``{"files": [{"id": ...}]}``)."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    return [int(entry["id"]) for entry in payload.get("files", []) if "id" in entry]
