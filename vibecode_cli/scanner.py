"""Repository scanner producing one ``FileRecord`` per tracked file."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List

from .config import ScanConfig
from .models import FileRecord

logger = logging.getLogger(__name__)


def scan_repository(base_dir: Path, config: ScanConfig) -> List[FileRecord]:
    """Walk *base_dir* and return records for every file matching ``config.file_types``.

    Directories are visited depth-first in sorted name order, so the result
    (and therefore node id assignment) is stable between runs.
    """
    base_dir = Path(base_dir).resolve()
    paths = _scan_directory(base_dir, config.exclude_dirs, config.file_types)
    return [_make_record(base_dir, p, config) for p in paths]


def _scan_directory(directory: Path, exclude_dirs: List[str], file_types: List[str]) -> List[Path]:
    found: List[Path] = []
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as exc:
        logger.warning("Error scanning directory %s: %s", directory, exc)
        return found

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            if entry.name not in exclude_dirs:
                found.extend(_scan_directory(Path(entry.path), exclude_dirs, file_types))
        elif os.path.splitext(entry.name)[1] in file_types:
            found.append(Path(entry.path))
    return found


def _make_record(base_dir: Path, file_path: Path, config: ScanConfig) -> FileRecord:
    relative = file_path.relative_to(base_dir).as_posix()
    options = config.metadata
    size = line_count = last_modified = None

    try:
        stats = file_path.stat()
    except OSError as exc:
        logger.warning("Could not stat %s: %s", file_path, exc)
        return FileRecord(path=str(file_path), relative_path=relative)

    if options.show_file_size:
        size = stats.st_size
    if options.show_last_modified:
        last_modified = datetime.fromtimestamp(stats.st_mtime)
    if options.show_line_count:
        try:
            line_count = len(file_path.read_text(encoding="utf-8").split("\n"))
        except (OSError, UnicodeDecodeError):
            line_count = 0

    return FileRecord(
        path=str(file_path),
        relative_path=relative,
        size=size,
        line_count=line_count,
        last_modified=last_modified,
    )


def format_file_size(size: float) -> str:
    units = ["B", "KB", "MB", "GB"]
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    return f"{size:.1f} {units[index]}"
