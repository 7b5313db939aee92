"""
Analytic layer: graph statistics, dependency cycles and hot-zone ranking.

These read the Graph without mutating it and feed reporting and the
presentation layer's summaries.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Dict, List, Optional

import networkx as nx
import numpy as np

from .models import Graph, Node

HOT_ZONE_THRESHOLD = 0.5


# =========================================================================== #
# Data classes
# =========================================================================== #

@dataclass
class GraphStats:
    n_nodes: int
    n_files: int
    n_folders: int
    n_edges: int
    n_dependency_edges: int
    density: float
    avg_degree: float
    mean_heat: float
    max_heat: float

    def as_dict(self) -> Dict[str, float]:
        return dict(self.__dict__)


# =========================================================================== #
# Statistics
# =========================================================================== #

def compute_graph_stats(graph: Graph) -> GraphStats:
    G = graph.to_networkx(kinds=("dependency",))
    n = G.number_of_nodes()
    files = [node for node in graph.nodes.values() if node.kind == "file"]

    if n == 0:
        return GraphStats(0, 0, 0, 0, 0, 0.0, 0.0, 0.0, 0.0)

    density = float(nx.density(G)) if n > 1 else 0.0
    avg_degree = float(np.mean([d for _, d in G.degree()]))
    heats = np.array([f.heat_score for f in files], dtype=float)

    return GraphStats(
        n_nodes=n,
        n_files=len(files),
        n_folders=n - len(files),
        n_edges=len(graph.edges),
        n_dependency_edges=G.number_of_edges(),
        density=density,
        avg_degree=avg_degree,
        mean_heat=float(heats.mean()) if len(heats) else 0.0,
        max_heat=float(heats.max()) if len(heats) else 0.0,
    )


# =========================================================================== #
# Structure
# =========================================================================== #

def find_dependency_cycles(graph: Graph, limit: int = 50) -> List[List[str]]:
    """
    Import cycles among file nodes, at most ``limit`` of them.

    Each cycle is rotated to start at its smallest node ID; the list is
    sorted by (length, IDs) so output is stable across runs.
    """
    G = graph.to_networkx(kinds=("dependency",))
    cycles = []
    for cyc in itertools.islice(nx.simple_cycles(G), limit):
        start = cyc.index(min(cyc))
        cycles.append(cyc[start:] + cyc[:start])
    cycles.sort(key=lambda c: (len(c), c))
    return cycles


def most_depended_on(graph: Graph, top_n: int = 10) -> List[Node]:
    """Files with the most dependents (fan-in)."""
    files = [n for n in graph.file_nodes()]
    files.sort(key=lambda n: (-len(n.dependents), n.id))
    return files[:top_n]


# =========================================================================== #
# Hot zones
# =========================================================================== #

def classify_heat(score: float) -> str:
    if score >= 0.7:
        return "critical"
    if score >= HOT_ZONE_THRESHOLD:
        return "hot"
    if score >= 0.2:
        return "warm"
    return "cold"


def rank_hot_zones(
    graph: Graph,
    threshold: float = HOT_ZONE_THRESHOLD,
    top_n: Optional[int] = 10,
) -> List[Node]:
    """Return the top file nodes with heat at or above ``threshold``, hottest first."""
    above = [n for n in graph.file_nodes() if n.heat_score >= threshold]
    above.sort(key=lambda n: (-n.heat_score, n.id))
    return above if top_n is None else above[:top_n]


__all__ = [
    "HOT_ZONE_THRESHOLD",
    "GraphStats",
    "compute_graph_stats",
    "find_dependency_cycles",
    "most_depended_on",
    "classify_heat",
    "rank_hot_zones",
]
