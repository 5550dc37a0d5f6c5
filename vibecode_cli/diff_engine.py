"""DiffEngine for previewing and applying line-addressed changes."""

from __future__ import annotations

import difflib
import json
import logging
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from . import config
from .models import ApplyResult, Change, DeleteChange, InsertChange, PendingChange

logger = logging.getLogger(__name__)


def group_by_file(pending: Iterable[PendingChange]) -> Dict[str, List[Change]]:
    """Group changes per file, keeping first-seen file order and input change order."""
    grouped: Dict[str, List[Change]] = {}
    for item in pending:
        grouped.setdefault(item.file, []).append(item.change)
    return grouped


def apply_line_changes(lines: List[str], changes: Iterable[Change]) -> List[str]:
    """Apply *changes* to a copy of *lines* and return the result.

    Changes are applied bottom-up (descending ``line_start``) so that the
    line numbers of changes still pending keep pointing at the original
    text. The sort is stable: changes sharing a ``line_start`` are applied
    in input order.
    """
    result = list(lines)
    ordered = sorted(changes, key=lambda c: c.line_start, reverse=True)

    starts = [c.line_start for c in ordered]
    if len(set(starts)) != len(starts):
        logger.warning("Multiple changes share a start line; applying them in input order")

    for change in ordered:
        start = max(change.line_start - 1, 0)
        end = max(change.end - 1, start)

        if isinstance(change, DeleteChange):
            del result[start:end + 1]
        elif isinstance(change, InsertChange):
            result[start:start] = change.suggested.split("\n")
        else:
            result[start:end + 1] = change.suggested.split("\n")
    return result


class DiffEngine:
    """Handles previewing and applying suggested changes to a repository."""

    def __init__(self, base_dir: Path, backup_dir: Optional[Path] = None):
        """Initialize DiffEngine.

        Args:
            base_dir: Repository root that change file paths are relative to
            backup_dir: Directory to store backups. Defaults to .vibe-code/backups/
        """
        self.base_dir = Path(base_dir)
        self.backup_dir = backup_dir or config.backup_dir(self.base_dir)

    def resolve_target(self, file_path: str) -> Path:
        """Absolute path of *file_path* under ``base_dir``.

        Raises ``ValueError`` for paths that escape the repository (absolute
        paths elsewhere, ``..`` segments) and for paths containing NUL bytes.
        """
        root = self.base_dir.resolve()
        target = (root / file_path).resolve()
        if root not in target.parents:
            raise ValueError(f"path is outside the repository: {file_path}")
        return target

    def create_diff(self, original: str, modified: str, filename: str = "file") -> str:
        """Create unified diff between two versions.

        Args:
            original: Original content
            modified: Modified content
            filename: Name of file for diff header

        Returns:
            Unified diff string
        """
        diff = difflib.unified_diff(
            original.split("\n"),
            modified.split("\n"),
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
            lineterm="",
        )
        return "\n".join(diff)

    def preview_changes(self, pending: Iterable[PendingChange]) -> str:
        """Render the unified diff every affected file would receive."""
        sections = []
        for file_path, changes in group_by_file(pending).items():
            try:
                original = self.resolve_target(file_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                sections.append(f"[ERROR] {file_path}: {exc}")
                continue
            modified = "\n".join(apply_line_changes(original.split("\n"), changes))
            sections.append(self.create_diff(original, modified, file_path))
        return "\n\n".join(sections)

    def apply_changes(
        self,
        pending: Iterable[PendingChange],
        backup: bool = False,
        dry_run: bool = False,
    ) -> ApplyResult:
        """Apply changes to the files under ``base_dir``.

        Each file is an independent read-modify-write; a failure on one file
        is recorded in ``ApplyResult.errors`` and the remaining files are
        still processed. Nothing is rolled back across files.

        Args:
            pending: Changes to apply, each addressed by repository-relative path
            backup: Whether to copy every touched file to a backup first
            dry_run: If True, compute the results but don't write anything

        Returns:
            ApplyResult listing the files that were (or would be) modified
        """
        grouped = group_by_file(pending)
        result = ApplyResult(dry_run=dry_run)

        if backup and not dry_run and grouped:
            result.backup_id = self._create_backup(list(grouped))

        for file_path, changes in grouped.items():
            try:
                full_path = self.resolve_target(file_path)
                content = full_path.read_text(encoding="utf-8")
                lines = apply_line_changes(content.split("\n"), changes)
                if not dry_run:
                    full_path.write_text("\n".join(lines), encoding="utf-8")
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                logger.error("Error modifying file %s: %s", file_path, exc)
                result.errors[file_path] = str(exc)
                continue

            result.files_changed.append(file_path)
            logger.info("Modified file: %s", file_path)

        return result

    def _create_backup(self, file_paths: List[str]) -> str:
        """Copy existing files to a new backup directory.

        Returns:
            Backup ID for rollback
        """
        backup_id = f"{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        backup_path = self.backup_dir / backup_id
        backup_path.mkdir(parents=True, exist_ok=True)

        metadata = {
            "timestamp": datetime.now().isoformat(),
            "files": [],
        }
        for index, file_path in enumerate(file_paths):
            try:
                source = self.resolve_target(file_path)
            except ValueError:
                continue
            if not source.is_file():
                continue
            # Index prefix keeps same-named files from different directories apart
            backup_file = backup_path / f"{index}_{source.name}"
            shutil.copy2(source, backup_file)
            metadata["files"].append({"original": file_path, "backup": backup_file.name})

        (backup_path / "metadata.json").write_text(json.dumps(metadata, indent=2), encoding="utf-8")
        return backup_id

    def rollback(self, backup_id: str) -> bool:
        """Restore the files saved under *backup_id*.

        Returns:
            True if successful, False otherwise
        """
        backup_path = self.backup_dir / backup_id
        metadata_file = backup_path / "metadata.json"
        if not metadata_file.exists():
            return False

        try:
            metadata = json.loads(metadata_file.read_text(encoding="utf-8"))
            for info in metadata["files"]:
                backup_file = backup_path / info["backup"]
                if backup_file.exists():
                    shutil.copy2(backup_file, self.resolve_target(info["original"]))
        except (OSError, KeyError, ValueError) as exc:
            logger.error("Rollback of %s failed: %s", backup_id, exc)
            return False
        return True

    def list_backups(self) -> List[dict]:
        """List all available backups, newest first."""
        if not self.backup_dir.exists():
            return []

        backups = []
        for entry in self.backup_dir.iterdir():
            metadata_file = entry / "metadata.json"
            if entry.is_dir() and metadata_file.exists():
                metadata = json.loads(metadata_file.read_text(encoding="utf-8"))
                metadata["backup_id"] = entry.name
                backups.append(metadata)
        return sorted(backups, key=lambda x: x["timestamp"], reverse=True)
