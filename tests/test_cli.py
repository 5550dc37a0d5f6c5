"""Integration tests for CLI commands."""

import json
from pathlib import Path

from typer.testing import CliRunner

from vibecode_cli.cli import app
from vibecode_cli.config import config_file

runner = CliRunner()


class TestConfigCommands:
    """Tests for 'vibe init' and 'vibe debug'."""

    def test_init(self, temp_dir: Path):
        """Test init creates the config file."""
        result = runner.invoke(app, ["init", "--root", str(temp_dir)])

        assert result.exit_code == 0
        assert config_file(temp_dir).exists()

    def test_debug_toggle(self, temp_dir: Path):
        """Test debug flips on then off."""
        first = runner.invoke(app, ["debug", "--root", str(temp_dir)])
        second = runner.invoke(app, ["debug", "--root", str(temp_dir)])

        assert "ON" in first.stdout
        assert "OFF" in second.stdout


class TestGraphCommand:
    """Tests for 'vibe graph'."""

    def test_graph_writes_json(self, sample_project: Path):
        """Test the graph file is written with nodes and links."""
        result = runner.invoke(app, ["graph", "--root", str(sample_project)])

        assert result.exit_code == 0
        assert "Files: 5 | Dependencies: 6" in result.stdout
        data = json.loads((sample_project / "vibe-graph.json").read_text())
        assert len(data["nodes"]) == 5
        assert len(data["links"]) == 6

    def test_nonexistent_root(self):
        """Test a missing root is rejected."""
        result = runner.invoke(app, ["graph", "--root", "/nonexistent/path"])
        assert result.exit_code != 0


def test_stats(sample_project: Path):
    """Test stats prints the summary tables."""
    result = runner.invoke(app, ["stats", "--root", str(sample_project)])

    assert result.exit_code == 0
    assert "Total Files" in result.stdout
    assert "src/utils.js" in result.stdout


def test_version():
    """Test --version prints and exits."""
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "vibe-code v" in result.stdout


class TestLLMWorkflow:
    """Tests for select, export, process and apply."""

    def test_select_and_export(self, sample_project: Path):
        """Test selecting files and exporting a prompt."""
        select = runner.invoke(app, ["select", "2", "4", "--root", str(sample_project)])
        assert select.exit_code == 0

        export = runner.invoke(app, ["export", "--root", str(sample_project)])
        assert export.exit_code == 0
        prompt = (sample_project / "vibe-prompt.md").read_text(encoding="utf-8")
        assert "### src/index.js" in prompt

    def test_export_missing_selection(self, sample_project: Path):
        """Test export fails without a selection file."""
        result = runner.invoke(app, ["export", "--root", str(sample_project)])
        assert result.exit_code == 1

    def test_process_with_mock(self, sample_project: Path):
        """Test process saves parsed suggestions from the mock provider."""
        (sample_project / "vibe-prompt.md").write_text("prompt")
        result = runner.invoke(app, ["process", "--api", "mock", "--root", str(sample_project)])

        assert result.exit_code == 0
        data = json.loads((sample_project / "vibe-suggestions.json").read_text())
        assert data["files"][0]["path"] == "src/index.js"

    def test_process_missing_prompt(self, sample_project: Path):
        """Test process fails without a prompt file."""
        result = runner.invoke(app, ["process", "--api", "mock", "--root", str(sample_project)])
        assert result.exit_code == 1

    def test_process_without_endpoint(self, sample_project: Path):
        """Test process fails when the generic provider has no endpoint."""
        (sample_project / "vibe-prompt.md").write_text("prompt")
        result = runner.invoke(app, ["process", "--api", "generic", "--root", str(sample_project)])
        assert result.exit_code == 1

    def test_apply_suggestions(self, sample_project: Path):
        """Test applying a suggestions file edits the target file."""
        (sample_project / "vibe-prompt.md").write_text("prompt")
        runner.invoke(app, ["process", "--api", "mock", "--root", str(sample_project)])

        result = runner.invoke(
            app, ["apply", "--suggestions", "vibe-suggestions.json", "--root", str(sample_project)]
        )

        assert result.exit_code == 0
        assert "src/index.js" in result.stdout
        first_line = (sample_project / "src" / "index.js").read_text().split("\n")[0]
        assert first_line == "'use strict';"

    def test_apply_dry_run(self, sample_project: Path):
        """Test dry run shows a diff and keeps the file."""
        original = (sample_project / "src" / "utils.js").read_text()
        (sample_project / "vibe-applied-changes.json").write_text(json.dumps({
            "changes": [{"file": "src/utils.js", "change": {
                "type": "delete", "lineStart": 5, "lineEnd": 7,
            }}],
        }))

        result = runner.invoke(app, ["apply", "--dry-run", "--root", str(sample_project)])

        assert result.exit_code == 0
        assert "-export function multiply(a, b) {" in result.stdout
        assert "Would apply" in result.stdout
        assert (sample_project / "src" / "utils.js").read_text() == original

    def test_apply_backup_and_rollback(self, sample_project: Path):
        """Test apply --backup followed by rollback restores the file."""
        target = sample_project / "src" / "legacy.js"
        original = target.read_text()
        (sample_project / "vibe-applied-changes.json").write_text(json.dumps({
            "changes": [{"file": "src/legacy.js", "change": {
                "type": "replace", "lineStart": 2, "lineEnd": 2, "suggested": "  base: 41,",
            }}],
        }))

        applied = runner.invoke(app, ["apply", "--backup", "--root", str(sample_project)])
        assert applied.exit_code == 0
        assert "base: 41" in target.read_text()

        backup_id = applied.stdout.split("Backup created: ")[1].split()[0]
        listed = runner.invoke(app, ["backups", "--root", str(sample_project)])
        assert backup_id in listed.stdout

        rolled = runner.invoke(app, ["rollback", backup_id, "--root", str(sample_project)])
        assert rolled.exit_code == 0
        assert target.read_text() == original

    def test_apply_invalid_changes_file(self, sample_project: Path):
        """Test a malformed changes file is reported."""
        (sample_project / "vibe-applied-changes.json").write_text("{not json")
        result = runner.invoke(app, ["apply", "--root", str(sample_project)])
        assert result.exit_code == 1

    def test_rollback_unknown(self, sample_project: Path):
        """Test rollback of an unknown backup fails."""
        result = runner.invoke(app, ["rollback", "nope", "--root", str(sample_project)])
        assert result.exit_code == 1
