"""
Lexical import scanner.

Two patterns are recognized independently and their results unioned:

    import <clause> from "<path>"      (any clause, any quote style)
    require("<path>")

Only relative paths (``./`` or ``../``) are kept. Package and alias imports
are out of reach of a lexical pass, as are dynamic ``import()`` calls; these
are known limitations rather than defects.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, Optional, Set

# `import X from "./a"`, `import { a, b } from '../b'`, `import type T from "./t"`
_IMPORT_FROM_RE = re.compile(
    r"""\bimport\s+(?:type\s+)?[^'"`;]*?\s*\bfrom\s*(['"`])([^'"`\r\n]+?)\1""",
    re.MULTILINE,
)

# `require("./a")`, `require( '../b' )`
_REQUIRE_RE = re.compile(r"""\brequire\s*\(\s*(['"`])([^'"`\r\n]+?)\1\s*\)""")

CODE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue", ".svelte")


def is_relative_import(path: str) -> bool:
    return path.startswith("./") or path.startswith("../")


def is_code_file(path: str) -> bool:
    return path.lower().endswith(CODE_EXTENSIONS)


def _as_text(content: Any) -> Optional[str]:
    """Decode content to text; None for binary or undecodable input."""
    if content is None:
        return None
    if isinstance(content, (bytes, bytearray)):
        try:
            content = bytes(content).decode("utf-8")
        except UnicodeDecodeError:
            return None
    if not isinstance(content, str) or "\x00" in content:
        return None
    return content


class ImportScan:
    """
    Finite, restartable sequence of raw relative import paths.

    Every iteration re-scans the text lazily, so the object can be iterated
    any number of times with identical results.
    """

    __slots__ = ("_text",)

    def __init__(self, text: Optional[str]) -> None:
        self._text = text

    def __iter__(self) -> Iterator[str]:
        if not self._text:
            return
        seen: Set[str] = set()
        for pattern in (_IMPORT_FROM_RE, _REQUIRE_RE):
            for match in pattern.finditer(self._text):
                path = match.group(2).strip()
                if path in seen or not is_relative_import(path):
                    continue
                seen.add(path)
                yield path

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def __repr__(self) -> str:
        return f"ImportScan({list(self)!r})"


def extract_imports(content: Any, path: Optional[str] = None) -> ImportScan:
    """
    Scan ``content`` for relative imports.

    Parameters
    ----------
    content : str or bytes or None
        Raw file text.
    path : str, optional
        File path; when given, non-code files yield an empty scan.

    Returns
    -------
    ImportScan
        Empty for non-code, binary, undecodable or missing content.
    """
    if path is not None and not is_code_file(path):
        return ImportScan(None)
    return ImportScan(_as_text(content))


__all__ = [
    "CODE_EXTENSIONS",
    "ImportScan",
    "extract_imports",
    "is_code_file",
    "is_relative_import",
]
