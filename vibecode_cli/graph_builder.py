"""Build the file dependency graph from scanned file records."""

from __future__ import annotations

import logging
import posixpath
from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import TOP_N, ScanConfig
from .imports import ImportExtractor, RegexImportExtractor
from .models import (
    DependencyGraph,
    FileRecord,
    GraphEdge,
    GraphMetadata,
    GraphNode,
    RankedFile,
)
from .resolver import PathResolver, normalize_path
from .scanner import format_file_size

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Two-pass builder: assign ids to every record, then resolve imports into edges.

    Unreadable files are logged and collected in :attr:`errors`; they keep
    their node but contribute no edges.
    """

    def __init__(
        self,
        base_dir: Path,
        config: Optional[ScanConfig] = None,
        extractor: Optional[ImportExtractor] = None,
    ) -> None:
        self.base_dir = Path(base_dir).resolve()
        self.config = config or ScanConfig()
        self.extractor = extractor or RegexImportExtractor()
        self.errors: Dict[str, str] = {}

    def build(self, records: Sequence[FileRecord]) -> DependencyGraph:
        self.errors = {}
        nodes, lookup = self._create_nodes(records)

        if self.config.debug_mode:
            for key in lookup:
                logger.debug("Lookup key: %s", key)

        resolver = PathResolver(str(self.base_dir), lookup)
        links: List[GraphEdge] = []
        for source_id, record in enumerate(records):
            links.extend(self._file_edges(source_id, record, resolver))

        graph = DependencyGraph(nodes=nodes, links=links)
        graph.metadata = compute_metadata(records, graph)
        return graph

    # ------------------------------------------------------------------
    # Pass 1
    # ------------------------------------------------------------------

    @staticmethod
    def _create_nodes(records: Sequence[FileRecord]):
        nodes: List[GraphNode] = []
        lookup: Dict[str, int] = {}

        for index, record in enumerate(records):
            name = normalize_path(record.relative_path)
            lookup[name] = index
            lookup[normalize_path(record.path)] = index

            directory = posixpath.dirname(name) or "."
            extension = posixpath.splitext(name)[1]
            nodes.append(GraphNode(
                id=index,
                name=name,
                path=record.path,
                basename=posixpath.basename(name),
                directory=directory,
                group=len(directory.split("/")),
                extension=extension,
                language=extension.lstrip("."),
                size=record.size,
                size_formatted=format_file_size(record.size) if record.size else None,
                line_count=record.line_count,
                last_modified=record.last_modified,
                last_modified_formatted=(
                    record.last_modified.isoformat() if record.last_modified else None
                ),
            ))
        return nodes, lookup

    # ------------------------------------------------------------------
    # Pass 2
    # ------------------------------------------------------------------

    def _file_edges(self, source_id: int, record: FileRecord, resolver: PathResolver) -> List[GraphEdge]:
        try:
            content = Path(record.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Error analyzing file %s: %s", record.path, exc)
            self.errors[record.relative_path] = str(exc)
            return []

        extension = posixpath.splitext(record.path.replace("\\", "/"))[1]
        specifiers = self.extractor.extract(content, extension)
        if self.config.debug_mode:
            logger.debug("File: %s imports: %s", record.relative_path, ", ".join(specifiers))

        edges: List[GraphEdge] = []
        for specifier in specifiers:
            target = resolver.resolve(specifier, record.path)
            if target is None:
                if self.config.debug_mode:
                    logger.debug("  Could not resolve %s", specifier)
                continue
            edges.append(GraphEdge(source=source_id, target=target))
            if self.config.debug_mode:
                logger.debug("  Added link: %s -> %s", record.relative_path, target)
        return edges


def build_graph(
    records: Sequence[FileRecord],
    base_dir: Path,
    config: Optional[ScanConfig] = None,
) -> DependencyGraph:
    return GraphBuilder(base_dir, config).build(records)


def compute_metadata(records: Sequence[FileRecord], graph: DependencyGraph) -> GraphMetadata:
    """Aggregate file and dependency statistics for *graph*."""
    by_type: Dict[str, int] = {}
    by_directory: Dict[str, int] = {}
    sizes = [r.size for r in records if r.size]
    line_counts = [r.line_count for r in records if r.line_count]

    for node in graph.nodes:
        by_type[node.extension] = by_type.get(node.extension, 0) + 1
        by_directory[node.directory] = by_directory.get(node.directory, 0) + 1

    file_count = len(graph.nodes)
    return GraphMetadata(
        total_files=file_count,
        files_by_type=by_type,
        files_by_directory=by_directory,
        average_file_size=sum(sizes) / len(sizes) if sizes else 0.0,
        average_line_count=sum(line_counts) / len(line_counts) if line_counts else 0.0,
        total_imports=len(graph.links),
        average_imports_per_file=len(graph.links) / file_count if file_count else 0.0,
        most_imported=top_nodes(Counter(e.target for e in graph.links), graph, TOP_N),
        most_importing=top_nodes(Counter(e.source for e in graph.links), graph, TOP_N),
    )


def top_nodes(counts: Counter, graph: DependencyGraph, limit: int) -> List[RankedFile]:
    """Highest counts first; equal counts keep ascending node id order."""
    ranked = sorted(sorted(counts.items()), key=lambda item: item[1], reverse=True)
    return [RankedFile(file=graph.nodes[node_id].name, count=count) for node_id, count in ranked[:limit]]
