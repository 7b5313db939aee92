"""
Relative import resolution.

Turns a raw import string (``../utils/helpers``) written inside a file
(``src/components/Header.tsx``) into a canonical repository-relative path
(``src/utils/helpers.ts``).

Resolution is purely lexical: the resolver never touches the filesystem.
Existence checking belongs to the caller (GraphBuilder drops targets that
are not known nodes). Directory-index ("barrel") imports are not expanded
to ``index.*`` files.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .errors import InvalidPath
from .presets import DEFAULT_EXTENSIONS

# Extensions that are accepted as-is even if they are not in the preference list
_ALWAYS_RECOGNIZED = (".mjs", ".cjs", ".json", ".vue", ".svelte")


def normalize_path(path: str) -> str:
    """
    Canonical repository-relative form: forward slashes, no leading ``./``
    or ``/``, no trailing or doubled slashes.
    """
    p = path.replace("\\", "/")
    parts = [seg for seg in p.split("/") if seg and seg != "."]
    if not parts:
        raise InvalidPath(f"Empty repository path: {path!r}", importer=path)
    return "/".join(parts)


def has_source_extension(path: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> bool:
    name = path.rsplit("/", 1)[-1]
    return any(name.endswith(ext) and len(name) > len(ext) for ext in (*extensions, *_ALWAYS_RECOGNIZED))


def _walk(importer_path: str, raw: str) -> Optional[str]:
    """
    Apply ``raw``'s segments to the importer's directory.

    Returns None when the walk ends at the repository root (a directory
    import with nothing to name).
    """
    if not raw.startswith(("./", "../")) and raw not in (".", ".."):
        raise InvalidPath(
            f"Not a relative import: {raw!r} (in {importer_path})",
            importer=importer_path,
            raw=raw,
        )

    stack: List[str] = normalize_path(importer_path).split("/")[:-1]

    for seg in raw.replace("\\", "/").split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if not stack:
                raise InvalidPath(
                    f"Import {raw!r} in {importer_path} walks above the repository root",
                    importer=importer_path,
                    raw=raw,
                )
            stack.pop()
            continue
        stack.append(seg)

    if not stack:
        return None
    return "/".join(stack)


def candidate_paths(
    importer_path: str,
    raw: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> List[str]:
    """
    All paths ``raw`` may refer to, in preference order.

    A path that already carries a recognized extension has exactly one
    candidate: itself. An import of the repository root has none.
    """
    base = _walk(importer_path, raw)
    if base is None:
        return []
    if has_source_extension(base, extensions):
        return [base]
    return [base + ext for ext in extensions]


def resolve_import(
    importer_path: str,
    raw: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    exists: Optional[Callable[[str], bool]] = None,
) -> Optional[str]:
    """
    Resolve ``raw`` relative to ``importer_path``.

    Parameters
    ----------
    importer_path : str
        Repository-relative path of the importing file.
    raw : str
        Import string starting with ``./`` or ``../``.
    extensions : sequence of str
        Ordered extension preference list used when ``raw`` has none.
    exists : callable, optional
        Predicate used to pick the first existing candidate. Without it the
        first extension is always chosen.

    Returns
    -------
    str or None
        Canonical repository-relative path (not verified to exist), or None
        for an import of the repository root directory.

    Raises
    ------
    InvalidPath
        If ``..`` walks above the repository root.
    """
    candidates = candidate_paths(importer_path, raw, extensions)
    if not candidates:
        return None
    if exists is not None:
        for cand in candidates:
            if exists(cand):
                return cand
    return candidates[0]


__all__ = [
    "normalize_path",
    "has_source_extension",
    "candidate_paths",
    "resolve_import",
]
