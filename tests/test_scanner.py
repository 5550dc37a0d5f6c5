"""Tests for the repository scanner."""

from pathlib import Path

from vibecode_cli.config import ScanConfig
from vibecode_cli.scanner import format_file_size, scan_repository


def test_scan_filters_and_sorts(temp_dir: Path, write_files):
    """Test only tracked extensions are returned, in sorted walk order."""
    write_files(temp_dir, {
        "z.js": "",
        "a.ts": "",
        "README.md": "# readme",
        "lib/b.vue": "",
        "node_modules/pkg/index.js": "",
        ".git/hooks/pre-commit.js": "",
    })
    records = scan_repository(temp_dir, ScanConfig())

    assert [r.relative_path for r in records] == ["a.ts", "lib/b.vue", "z.js"]
    assert all(Path(r.path).is_absolute() for r in records)


def test_custom_file_types_and_excludes(temp_dir: Path, write_files):
    """Test the scan honors configured extensions and excluded directories."""
    write_files(temp_dir, {"a.js": "", "b.mjs": "", "gen/c.mjs": ""})
    config = ScanConfig(file_types=[".mjs"], exclude_dirs=["gen"])

    assert [r.relative_path for r in scan_repository(temp_dir, config)] == ["b.mjs"]


def test_metadata_collected(temp_dir: Path, write_files):
    """Test size, line count and modification time."""
    write_files(temp_dir, {"a.js": "one\ntwo\n"})
    record = scan_repository(temp_dir, ScanConfig())[0]

    assert record.size == 8
    assert record.line_count == 3
    assert record.last_modified is not None


def test_metadata_disabled(temp_dir: Path, write_files):
    """Test disabled toggles leave metadata unset."""
    write_files(temp_dir, {"a.js": "one\n"})
    config = ScanConfig()
    config.metadata.show_file_size = False
    config.metadata.show_line_count = False
    config.metadata.show_last_modified = False
    record = scan_repository(temp_dir, config)[0]

    assert record.size is None
    assert record.line_count is None
    assert record.last_modified is None


def test_format_file_size():
    """Test human-readable sizes."""
    assert format_file_size(512) == "512.0 B"
    assert format_file_size(2048) == "2.0 KB"
    assert format_file_size(3 * 1024 * 1024) == "3.0 MB"
