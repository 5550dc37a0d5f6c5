"""Pack selected files into a refactoring prompt for an LLM."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .graph_export import select_nodes
from .models import DependencyGraph

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = """```json
{
  "files": [
    {
      "path": "path/to/file.js",
      "changes": [
        {
          "type": "replace",  // replace, insert, or delete
          "lineStart": 42,    // line number where change begins
          "lineEnd": 42,      // line number where change ends (same as lineStart for single line)
          "original": "const oldCode = 'before';",  // original code
          "suggested": "const newCode = 'after';",  // suggested replacement code
          "reason": "Improved variable naming for clarity"  // brief explanation
        }
      ]
    }
  ],
  "summary": "Brief overview of suggestions and their rationale"
}
```"""

GUIDELINES = [
    "Make meaningful improvements (not just style changes)",
    "Provide a clear reason for each change",
    "Preserve the overall functionality of the code",
    "Consider dependencies between files",
    "Return strictly valid JSON in the format shown above",
]


@dataclass
class PromptFile:
    id: int
    path: str
    content: str
    imports: List[str] = field(default_factory=list)
    importers: List[str] = field(default_factory=list)
    line_count: Optional[int] = None
    size: Optional[int] = None
    last_modified: Optional[str] = None


def collect_prompt_files(graph: DependencyGraph, file_ids: Sequence[int], base_dir: Path) -> List[PromptFile]:
    """Read every selected file; unreadable files are logged and skipped."""
    files: List[PromptFile] = []
    for node in select_nodes(graph, file_ids):
        try:
            content = (Path(base_dir) / node.name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Error reading file %s: %s", node.name, exc)
            continue
        files.append(PromptFile(
            id=node.id,
            path=node.name,
            content=content,
            imports=graph.imports_of(node.id),
            importers=graph.importers_of(node.id),
            line_count=node.line_count,
            size=node.size,
            last_modified=node.last_modified_formatted,
        ))
    return files


def format_llm_prompt(files: Sequence[PromptFile], repo_name: str) -> str:
    parts = [
        "# Code Refactoring Request",
        "",
        f"You're analyzing {len(files)} files from the {repo_name} repository.",
        "",
        "## Instructions",
        "",
        "Please analyze these files and suggest improvements. "
        "Return your suggestions in this JSON format:",
        "",
        RESPONSE_FORMAT,
        "",
        "Please follow these guidelines:",
    ]
    parts.extend(f"{i}. {line}" for i, line in enumerate(GUIDELINES, start=1))
    parts.extend(["", "## Files for Analysis", ""])

    for f in files:
        parts.extend([f"### {f.path}", ""])

        details = []
        if f.line_count:
            details.append(f"{f.line_count} lines")
        if f.size:
            details.append(f"{_format_size(f.size)} bytes")
        if f.last_modified:
            details.append(f"Last modified: {f.last_modified}")
        if details:
            parts.extend([f"*{' • '.join(details)}*", ""])

        if f.imports:
            parts.extend([f"**Imports:** {', '.join(f.imports)}", ""])
        if f.importers:
            parts.extend([f"**Imported by:** {', '.join(f.importers)}", ""])

        # Line numbers let the model address changes by lineStart/lineEnd
        parts.append("```javascript")
        parts.extend(f"{i:>4}| {line}" for i, line in enumerate(f.content.split("\n"), start=1))
        parts.extend(["```", ""])

    return "\n".join(parts)


def export_files_for_llm(
    graph: DependencyGraph,
    file_ids: Sequence[int],
    base_dir: Path,
    output_file: Optional[Path] = None,
) -> Optional[str]:
    """Build the prompt for *file_ids*; write it to *output_file* when given.

    Returns the prompt text, or ``None`` when none of the ids could be read.
    """
    files = collect_prompt_files(graph, file_ids, base_dir)
    if not files:
        logger.warning("No valid files selected for export")
        return None

    prompt = format_llm_prompt(files, Path(base_dir).resolve().name)
    if output_file is not None:
        output_file.write_text(prompt, encoding="utf-8")
        logger.info("Exported prompt to %s", output_file)
    return prompt


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size}"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"
