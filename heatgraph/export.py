"""
Graph export for the presentation layer.

Produces JSON-compatible dictionaries only; nothing is written to disk.

    {
      "nodes": [{id, kind, name, size, heat, heat_class, position, fixed,
                 dependencies, dependents, metrics}, ...],
      "links": [{source, target, kind, strength}, ...],
      "meta":  {n_nodes, n_links, root_path, version}
    }
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .analytics import classify_heat
from .heat import AGGREGATE_FIELDS
from .models import Graph, Node

EXPORT_VERSION = "heatgraph.export.v1"


def _node_dict(node: Node) -> Dict[str, Any]:
    return {
        "id": node.id,
        "kind": node.kind,
        "name": node.name,
        "size": node.size,
        "last_modified": node.last_modified,
        "heat": round(float(node.heat_score), 6),
        "heat_class": classify_heat(node.heat_score),
        "position": None if node.position is None else [float(c) for c in node.position],
        "fixed": node.fixed,
        "dependencies": sorted(node.dependencies),
        "dependents": sorted(node.dependents),
        "metrics": {name: int(getattr(node, name)) for name in AGGREGATE_FIELDS},
    }


def graph_to_payload(graph: Graph, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    nodes = [_node_dict(graph.nodes[nid]) for nid in sorted(graph.nodes)]
    links: List[Dict[str, Any]] = [
        {"source": e.source, "target": e.target, "kind": e.kind, "strength": e.strength}
        for e in graph.edge_list()
    ]
    info = {
        "n_nodes": len(nodes),
        "n_links": len(links),
        "root_path": graph.root_path,
        "version": EXPORT_VERSION,
    }
    if meta:
        info.update(meta)
    return {"nodes": nodes, "links": links, "meta": info}


def positions_payload(graph: Graph) -> Dict[str, List[float]]:
    """``{id: [x, y, z]}`` for every positioned node (the TICK shape)."""
    return {
        nid: [float(c) for c in node.position]
        for nid, node in sorted(graph.nodes.items())
        if node.position is not None
    }


def apply_pins(graph: Graph, pins: Dict[str, bool]) -> int:
    """
    Apply user pin/unpin toggles coming back from the presentation layer.
    Unknown IDs are ignored; returns the number of nodes changed.
    """
    changed = 0
    for nid, fixed in pins.items():
        node = graph.nodes.get(nid)
        if node is not None and node.fixed != bool(fixed):
            node.fixed = bool(fixed)
            changed += 1
    return changed


__all__ = ["EXPORT_VERSION", "graph_to_payload", "positions_payload", "apply_pins"]
