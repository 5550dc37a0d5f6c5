"""Parse, validate and persist LLM change suggestions.

Raw model output is free text that may or may not contain the JSON payload
we asked for. :func:`parse_suggestions` never raises: anything it cannot
turn into a valid :class:`~vibecode_cli.models.Suggestions` becomes an empty
suggestion set whose ``summary`` explains what went wrong.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    CHANGE_TYPES,
    FileSuggestion,
    PendingChange,
    Suggestions,
    change_from_dict,
)

logger = logging.getLogger(__name__)

JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n```")
ANY_BLOCK_RE = re.compile(r"```[\w+-]*\s*\n([\s\S]*?)\n```")
BRACE_SPAN_RE = re.compile(r"{[\s\S]*}")

UNPARSEABLE_SUMMARY = "Could not parse LLM response"


class SuggestionFormatError(ValueError):
    """Raised when a decoded payload does not match the suggestions schema."""


def extract_json(text: str) -> Optional[str]:
    """Return the JSON candidate in *text*: a json/untagged fenced block, else a brace span."""
    block = JSON_BLOCK_RE.search(text)
    if block and block.group(1):
        return block.group(1).strip()

    span = BRACE_SPAN_RE.search(text)
    if span:
        return span.group(0)
    return None


def extract_code_blocks(text: str) -> Optional[str]:
    """Join the interiors of every fenced block, whatever its tag."""
    blocks = [m.group(1).strip() for m in ANY_BLOCK_RE.finditer(text)]
    return "\n".join(blocks) if blocks else None


def parse_suggestions(response: str) -> Suggestions:
    """Turn raw model output into validated suggestions."""
    candidate = extract_json(response)
    if candidate is None:
        logger.info("No JSON found in the response, trying code blocks")
        candidate = extract_code_blocks(response)

    if candidate is None:
        logger.warning("Could not parse LLM response, using empty suggestions")
        return Suggestions(files=[], summary=UNPARSEABLE_SUMMARY)

    try:
        payload = json.loads(candidate)
        return validate_suggestions(payload)
    except (ValueError, TypeError) as exc:
        logger.warning("Error parsing suggestions: %s", exc)
        return Suggestions(files=[], summary=f"Error parsing LLM response: {exc}")


def validate_suggestions(payload: Any) -> Suggestions:
    """Validate a decoded payload and build typed suggestions.

    Raises :class:`SuggestionFormatError` on the first schema violation.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("files"), list):
        raise SuggestionFormatError('Invalid suggestions format: missing or invalid "files" array')

    files: List[FileSuggestion] = []
    for entry in payload["files"]:
        if not isinstance(entry, dict) or not isinstance(entry.get("path"), str) or not entry["path"]:
            raise SuggestionFormatError('Invalid file format: missing or invalid "path"')
        path = entry["path"]

        raw_changes = entry.get("changes")
        if not isinstance(raw_changes, list):
            raise SuggestionFormatError(
                f'Invalid file format for {path}: missing or invalid "changes" array'
            )

        changes = []
        for raw in raw_changes:
            kind = raw.get("type") if isinstance(raw, dict) else None
            if not isinstance(kind, str) or kind not in CHANGE_TYPES:
                raise SuggestionFormatError(
                    f'Invalid change format for {path}: missing or invalid "type"'
                )
            # Only absence is rejected; lineStart 0 is accepted as written
            if "lineStart" not in raw:
                raise SuggestionFormatError(f'Invalid change format for {path}: missing "lineStart"')
            try:
                changes.append(change_from_dict(raw))
            except ValueError as exc:
                raise SuggestionFormatError(f"Invalid change format for {path}: {exc}") from exc

        files.append(FileSuggestion(path=path, changes=changes))

    summary = payload.get("summary")
    return Suggestions(files=files, summary=summary if isinstance(summary, str) else "")


# ------------------------------------------------------------------
# Persistence
# ------------------------------------------------------------------

def save_suggestions(suggestions: Suggestions, output_file: Path) -> Path:
    output_file.write_text(json.dumps(suggestions.to_dict(), indent=2), encoding="utf-8")
    logger.info("Saved suggestions to %s", output_file)
    return output_file


def load_suggestions(path: Path) -> Suggestions:
    """Load a suggestions file written by :func:`save_suggestions`.

    Raises ``json.JSONDecodeError`` or :class:`SuggestionFormatError` for
    invalid files; the caller decides how to report them.
    """
    return validate_suggestions(json.loads(path.read_text(encoding="utf-8")))


def load_applied_changes(path: Path) -> List[PendingChange]:
    """Load ``{"changes": [{"file": ..., "change": {...}}]}``."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    entries = payload.get("changes") if isinstance(payload, dict) else None
    if not isinstance(entries, list):
        raise SuggestionFormatError('Invalid applied changes: missing or invalid "changes" array')

    pending: List[PendingChange] = []
    for entry in entries:
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("file"), str)
            or not entry["file"]
            or not isinstance(entry.get("change"), dict)
        ):
            raise SuggestionFormatError('Invalid applied change: expected "file" and "change"')
        try:
            change = change_from_dict(entry["change"])
        except ValueError as exc:
            raise SuggestionFormatError(f"Invalid applied change for {entry['file']}: {exc}") from exc
        pending.append(PendingChange(file=entry["file"], change=change))
    return pending


def save_applied_changes(pending: Iterable[PendingChange], output_file: Path) -> Path:
    payload: Dict[str, Any] = {"changes": [p.to_dict() for p in pending]}
    output_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return output_file
