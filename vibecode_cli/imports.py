"""Import extraction from JavaScript, TypeScript and Vue sources.

Extraction is intentionally pattern based (no lexer, no AST): it can miss
unusual syntax and can match inside comments or strings. The graph builder
only depends on the :class:`ImportExtractor` interface, so a syntax-aware
extractor can be swapped in without touching resolution.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Dict, List

SCRIPT_EXTENSIONS = {".js", ".jsx", ".ts", ".tsx"}
TEMPLATE_EXTENSIONS = {".vue"}

ES_IMPORT_RE = re.compile(r"""import\s+.*\s+from\s+['"]([^'"]+)['"]""")
REQUIRE_RE = re.compile(r"""require\s*\(\s*['"]([^'"]+)['"]\s*\)""")
SCRIPT_BLOCK_RE = re.compile(r"<script[^>]*>([\s\S]*?)</script>")


class ImportExtractor(ABC):
    """Abstract base class for import extractors."""

    @abstractmethod
    def extract(self, content: str, extension: str) -> List[str]:
        """Return the distinct raw import specifiers found in *content*."""
        ...

    @abstractmethod
    def supports_extension(self, extension: str) -> bool:
        ...


class RegexImportExtractor(ImportExtractor):
    """ES ``import ... from`` and CommonJS ``require()`` extraction.

    Both patterns feed one ordered set: a module that is both imported and
    required contributes a single specifier. First-seen order is kept so the
    resulting edge list is reproducible.
    """

    def supports_extension(self, extension: str) -> bool:
        return extension in SCRIPT_EXTENSIONS or extension in TEMPLATE_EXTENSIONS

    def extract(self, content: str, extension: str) -> List[str]:
        found: Dict[str, None] = {}
        if extension in SCRIPT_EXTENSIONS:
            _collect(content, found)
        elif extension in TEMPLATE_EXTENSIONS:
            for block in SCRIPT_BLOCK_RE.finditer(content):
                _collect(block.group(1), found)
        return list(found)


def _collect(source: str, found: Dict[str, None]) -> None:
    for pattern in (ES_IMPORT_RE, REQUIRE_RE):
        for match in pattern.finditer(source):
            found.setdefault(match.group(1), None)


def extract_imports(content: str, extension: str) -> List[str]:
    """Convenience wrapper around :class:`RegexImportExtractor`."""
    return RegexImportExtractor().extract(content, extension)


def is_local_specifier(specifier: str) -> bool:
    """True for relative (``./``, ``../``) and root-absolute (``/``) specifiers."""
    return specifier.startswith((".", "/"))
