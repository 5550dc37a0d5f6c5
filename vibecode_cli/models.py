"""Core data models shared by graph building, suggestion parsing and change application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Union


# ===================================================================
# Dependency graph
# ===================================================================

@dataclass(frozen=True)
class FileRecord:
    """One tracked file as produced by the repository scanner."""
    path: str
    relative_path: str
    size: Optional[int] = None
    line_count: Optional[int] = None
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class GraphNode:
    id: int
    name: str
    path: str
    basename: str
    directory: str
    group: int
    extension: str
    language: str
    size: Optional[int] = None
    size_formatted: Optional[str] = None
    line_count: Optional[int] = None
    last_modified: Optional[datetime] = None
    last_modified_formatted: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "basename": self.basename,
            "directory": self.directory,
            "group": self.group,
            "extension": self.extension,
            "language": self.language,
        }
        # Optional metadata is only emitted when present
        if self.size:
            payload["size"] = self.size
        if self.size_formatted:
            payload["sizeFormatted"] = self.size_formatted
        if self.last_modified:
            payload["lastModified"] = self.last_modified.isoformat()
        if self.last_modified_formatted:
            payload["lastModifiedFormatted"] = self.last_modified_formatted
        if self.line_count:
            payload["lineCount"] = self.line_count
        return payload


@dataclass(frozen=True)
class GraphEdge:
    source: int
    target: int
    type: str = "import"
    value: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "value": self.value,
        }


@dataclass
class RankedFile:
    file: str
    count: int


@dataclass
class GraphMetadata:
    total_files: int = 0
    files_by_type: Dict[str, int] = field(default_factory=dict)
    files_by_directory: Dict[str, int] = field(default_factory=dict)
    average_file_size: float = 0.0
    average_line_count: float = 0.0
    total_imports: int = 0
    average_imports_per_file: float = 0.0
    most_imported: List[RankedFile] = field(default_factory=list)
    most_importing: List[RankedFile] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "filesByType": dict(self.files_by_type),
            "filesByDirectory": dict(self.files_by_directory),
            "averageFileSize": self.average_file_size,
            "averageLineCount": self.average_line_count,
            "totalImports": self.total_imports,
            "averageImportsPerFile": self.average_imports_per_file,
            "mostImported": [{"file": r.file, "count": r.count} for r in self.most_imported],
            "mostImporting": [{"file": r.file, "count": r.count} for r in self.most_importing],
        }


@dataclass
class DependencyGraph:
    """File-level dependency graph. ``nodes[i].id == i`` always holds."""
    nodes: List[GraphNode] = field(default_factory=list)
    links: List[GraphEdge] = field(default_factory=list)
    metadata: GraphMetadata = field(default_factory=GraphMetadata)

    def node_by_id(self, node_id: int) -> Optional[GraphNode]:
        if 0 <= node_id < len(self.nodes):
            return self.nodes[node_id]
        return None

    def imports_of(self, node_id: int) -> List[str]:
        """Names of files imported by *node_id*, in edge order."""
        return [self.nodes[e.target].name for e in self.links if e.source == node_id]

    def importers_of(self, node_id: int) -> List[str]:
        """Names of files importing *node_id*, in edge order."""
        return [self.nodes[e.source].name for e in self.links if e.target == node_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [e.to_dict() for e in self.links],
            "metadata": self.metadata.to_dict(),
        }


# ===================================================================
# Line-addressed changes
# ===================================================================

@dataclass
class _LineChange:
    """Fields shared by every change variant.

    Line numbers are 1-based and inclusive, and refer to the file as it was
    before any change of the same batch was applied.
    """
    change_type: ClassVar[str] = ""

    line_start: int
    line_end: Optional[int] = None
    original: str = ""
    reason: str = ""

    @property
    def end(self) -> int:
        return self.line_end or self.line_start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.change_type,
            "lineStart": self.line_start,
            "lineEnd": self.end,
            "original": self.original,
            "suggested": getattr(self, "suggested", ""),
            "reason": self.reason,
        }


@dataclass
class ReplaceChange(_LineChange):
    change_type: ClassVar[str] = "replace"

    suggested: str = ""


@dataclass
class InsertChange(_LineChange):
    change_type: ClassVar[str] = "insert"

    suggested: str = ""


@dataclass
class DeleteChange(_LineChange):
    change_type: ClassVar[str] = "delete"


Change = Union[ReplaceChange, InsertChange, DeleteChange]

CHANGE_TYPES: Dict[str, type] = {
    "replace": ReplaceChange,
    "insert": InsertChange,
    "delete": DeleteChange,
}


def to_line_number(value: Any) -> Optional[int]:
    """Read *value* as a whole line number.

    Integers, integral floats (``2.0``) and numeric strings (``"2"``) are
    accepted. Returns ``None`` for anything else, booleans included.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, str)):
        try:
            number = float(value)
        except ValueError:
            return None
        if number.is_integer():
            return int(number)
    return None


def change_from_dict(payload: Dict[str, Any]) -> Change:
    """Build a typed change from its JSON form.

    Raises ``ValueError`` for an unknown ``type`` or a ``lineStart`` that is
    not a whole number.
    """
    kind = payload.get("type")
    cls = CHANGE_TYPES.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise ValueError(f"unknown change type: {kind!r}")

    line_start = to_line_number(payload.get("lineStart"))
    if line_start is None:
        raise ValueError(f"lineStart is not a line number: {payload.get('lineStart')!r}")
    line_end = to_line_number(payload.get("lineEnd"))

    common = {
        "line_start": line_start,
        "line_end": line_end,
        "original": payload.get("original") or "",
        "reason": payload.get("reason") or "",
    }
    if cls is DeleteChange:
        return DeleteChange(**common)
    return cls(suggested=payload.get("suggested") or "", **common)


@dataclass
class PendingChange:
    """A change together with the repository-relative file it targets."""
    file: str
    change: Change

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "change": self.change.to_dict()}


@dataclass
class FileSuggestion:
    path: str
    changes: List[Change] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "changes": [c.to_dict() for c in self.changes]}


@dataclass
class Suggestions:
    """Validated suggestion set produced from raw LLM output."""
    files: List[FileSuggestion] = field(default_factory=list)
    summary: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def num_changes(self) -> int:
        return sum(len(f.changes) for f in self.files)

    def flatten(self) -> List[PendingChange]:
        """Flatten into ``{file, change}`` pairs, preserving order."""
        return [PendingChange(file=f.path, change=c) for f in self.files for c in f.changes]

    def to_dict(self) -> Dict[str, Any]:
        return {"files": [f.to_dict() for f in self.files], "summary": self.summary}


@dataclass
class ApplyResult:
    """Result of applying a batch of changes."""
    files_changed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    backup_id: Optional[str] = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.errors

    def __str__(self) -> str:
        if self.success:
            return f"Applied changes to {len(self.files_changed)} files"
        return f"Applied changes to {len(self.files_changed)} files, {len(self.errors)} failed"
