"""Resolve raw import specifiers to tracked files."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Sequence

from .config import RESOLVE_EXTENSIONS
from .imports import is_local_specifier

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    return path.replace("\\", "/")


class PathResolver:
    """Maps import specifiers to node ids using the builder's lookup table.

    *lookup* is keyed by both the absolute path and the repository-relative
    path of every tracked file (forward slashes in both cases).
    """

    def __init__(
        self,
        base_dir: str,
        lookup: Dict[str, int],
        extensions: Sequence[str] = RESOLVE_EXTENSIONS,
    ) -> None:
        self.base_dir = os.path.abspath(base_dir)
        self.lookup = lookup
        self.extensions = tuple(extensions)

    def resolve_path(self, specifier: str, importer: str) -> Optional[str]:
        """Resolve *specifier* imported from *importer* to an absolute file path.

        Returns ``None`` for package specifiers and for local specifiers that
        match no file on disk.
        """
        if not is_local_specifier(specifier):
            return None

        if specifier.startswith("."):
            candidate = os.path.join(os.path.dirname(os.path.abspath(importer)), specifier)
        else:
            candidate = os.path.join(self.base_dir, specifier[1:])
        candidate = os.path.normpath(candidate)

        if os.path.splitext(candidate)[1] in self.extensions:
            return candidate

        try:
            for ext in self.extensions:
                if os.path.exists(candidate + ext):
                    return candidate + ext
            for ext in self.extensions:
                index_path = os.path.join(candidate, f"index{ext}")
                if os.path.exists(index_path):
                    return index_path
        except (OSError, ValueError) as exc:
            logger.debug("Probe failed for %s: %s", candidate, exc)
        return None

    def resolve(self, specifier: str, importer: str) -> Optional[int]:
        """Resolve *specifier* to a node id, or ``None`` if it is not a tracked file."""
        resolved = self.resolve_path(specifier, importer)
        if resolved is None:
            return None

        absolute_key = normalize_path(resolved)
        target = self.lookup.get(absolute_key)
        if target is None:
            try:
                relative_key = normalize_path(os.path.relpath(resolved, self.base_dir))
            except ValueError:
                # Different drive on Windows
                return None
            target = self.lookup.get(relative_key)
        return target
