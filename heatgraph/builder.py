"""
Dependency graph builder.

Responsibilities:
  - Normalise incoming file records and create one ``file`` node per path
  - Derive ``folder`` nodes and ``parent-child`` edges from path prefixes
  - Scan every file for relative imports and resolve them to node IDs
  - Keep only edges whose target is a known node (no dangling edges)
  - Recompute ``dependencies`` / ``dependents`` in full from the final edges

The builder is deterministic: files are processed in sorted path order and
edges are accumulated in a map keyed by ``(source, target)``, so the result
does not depend on the order of the input list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .errors import InvalidPath
from .events import EmitFn, log_event
from .imports import extract_imports
from .models import FileRecord, Graph, Node
from .presets import BuildSettings
from .resolver import resolve_import

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Counts gathered while building one graph."""

    files: int = 0
    folders: int = 0
    imports_seen: int = 0
    dependency_edges: int = 0
    hierarchy_edges: int = 0
    dropped_imports: int = 0
    duplicate_paths: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "files": self.files,
            "folders": self.folders,
            "imports_seen": self.imports_seen,
            "dependency_edges": self.dependency_edges,
            "hierarchy_edges": self.hierarchy_edges,
            "dropped_imports": self.dropped_imports,
            "duplicate_paths": self.duplicate_paths,
        }


# ============================================================================ #
# Helpers
# ============================================================================ #

def _raw_path(item: Any) -> str:
    if isinstance(item, FileRecord):
        return item.path
    return str(item["path"]) if isinstance(item, Mapping) and "path" in item else ""


def _record_key(raw: str, rec: FileRecord) -> Tuple[str, str, int, str]:
    content = "" if rec.content is None else str(rec.content)
    return (raw, content, rec.size, str(rec.last_modified))


def _collect_records(files: Iterable[Any], report: BuildReport) -> Dict[str, FileRecord]:
    """
    Coerce inputs to FileRecord, one per normalized path.

    Records that normalize to the same path (``a.ts`` and ``./a.ts``) are
    settled by the largest ``(raw path, content, size)`` key, so the winner
    does not depend on input order.
    """
    keyed: Dict[str, Tuple[Tuple[str, str, int, str], FileRecord]] = {}
    for item in files:
        rec = FileRecord.coerce(item)
        key = _record_key(_raw_path(item), rec)
        held = keyed.get(rec.path)
        if held is not None:
            report.duplicate_paths += 1
            if held[0] >= key:
                continue
        keyed[rec.path] = (key, rec)
    return {path: rec for path, (_, rec) in keyed.items()}


def _folder_chain(path: str) -> List[str]:
    """``a/b/c.ts`` -> ``["a", "a/b"]``."""
    parts = path.split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


def _add_hierarchy(graph: Graph, settings: BuildSettings, report: BuildReport) -> None:
    folders = set()
    for path in list(graph.nodes):
        folders.update(_folder_chain(path))

    for folder in sorted(folders):
        if folder in graph.nodes:
            # A file record shadows a folder of the same name; keep the file
            continue
        graph.add_node(Node(id=folder, kind="folder"))
        report.folders += 1

    root = graph.root_path
    if root is not None and root not in graph.nodes:
        graph.add_node(Node(id=root, kind="folder"))
        report.folders += 1

    for node_id in sorted(graph.nodes):
        if node_id == root:
            continue
        parent = node_id.rsplit("/", 1)[0] if "/" in node_id else root
        if parent is None:
            continue
        if graph.add_edge(parent, node_id, kind="parent-child",
                          strength=settings.hierarchy_strength) is not None:
            report.hierarchy_edges += 1


# ============================================================================ #
# Public API
# ============================================================================ #

def build_graph(
    files: Iterable[Any],
    *,
    settings: Optional[BuildSettings] = None,
    root_path: Optional[str] = None,
    emit: Optional[EmitFn] = None,
    report: Optional[BuildReport] = None,
) -> Graph:
    """
    Build the repository graph from file records.

    Parameters
    ----------
    files : iterable
        ``FileRecord`` objects or mappings ``{path, content, size, lastModified}``.
    settings : BuildSettings, optional
        Hierarchy toggle, edge strengths and resolver preferences.
    root_path : str, optional
        ID of a folder node that parents all top-level entries. Without it,
        top-level files and folders have no parent edge.
    emit : callable, optional
        Structured event emitter.
    report : BuildReport, optional
        Filled in with build counts when supplied.

    Returns
    -------
    Graph

    Raises
    ------
    InvalidPath
        If any import walks above the repository root.
    """
    settings = settings or BuildSettings()
    report = report if report is not None else BuildReport()
    resolver = settings.resolver

    records = _collect_records(files, report)
    graph = Graph(root_path=root_path)

    for path in sorted(records):
        rec = records[path]
        graph.add_node(Node(id=path, kind="file", size=rec.size, last_modified=rec.last_modified))
    report.files = len(records)

    if settings.include_hierarchy:
        _add_hierarchy(graph, settings, report)

    exists = graph.nodes.__contains__ if resolver.probe_extensions else None

    for path in sorted(records):
        for raw in extract_imports(records[path].content, path):
            report.imports_seen += 1
            try:
                target = resolve_import(path, raw, resolver.extensions, exists=exists)
            except InvalidPath as exc:
                log_event(emit, "error", f"Unresolvable import in {path}: {exc}",
                          logger=logger, importer=path, raw=raw)
                raise

            # Root-directory imports resolve to None
            node = None if target is None else graph.nodes.get(target)
            if node is None or node.kind != "file":
                report.dropped_imports += 1
                continue
            if graph.add_edge(path, target, kind="dependency",
                              strength=settings.dependency_strength) is None:
                # Self import
                report.dropped_imports += 1

    report.dependency_edges = sum(1 for e in graph.edges.values() if e.kind == "dependency")
    graph.recompute_adjacency()

    log_event(
        emit,
        "info",
        f"Built graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges",
        logger=logger,
        **report.as_dict(),
    )
    return graph


__all__ = ["BuildReport", "build_graph"]
