"""
Core data model: file records, commit records, nodes, edges and the Graph
aggregate.

The Graph is a single mutable aggregate owned by the pipeline driver:
GraphBuilder constructs it once, HeatScorer and the layout write-back mutate
node fields in place. ``dependents`` is derived state and is only ever
written by ``Graph.recompute_adjacency``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Literal, Mapping, Optional, Tuple

import networkx as nx

from .resolver import normalize_path

NodeKind = Literal["file", "folder"]
EdgeKind = Literal["dependency", "parent-child"]

Vec3 = Tuple[float, float, float]


# ============================================================================ #
# Input records (shape of the repository-access collaborator)
# ============================================================================ #

@dataclass(frozen=True)
class FileRecord:
    path: str
    content: Any = None
    size: int = 0
    last_modified: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FileRecord":
        """Accept ``{path, content, size, lastModified}`` (camel or snake case)."""
        if "path" not in data:
            raise KeyError("File record is missing 'path'")
        last_modified = data.get("last_modified", data.get("lastModified"))
        return cls(
            path=normalize_path(str(data["path"])),
            content=data.get("content"),
            size=int(data.get("size") or 0),
            last_modified=last_modified,
        )

    @classmethod
    def coerce(cls, item: Any) -> "FileRecord":
        if isinstance(item, FileRecord):
            return cls(normalize_path(item.path), item.content, item.size, item.last_modified)
        if isinstance(item, Mapping):
            return cls.from_mapping(item)
        raise TypeError(f"Cannot interpret {type(item).__name__} as a file record")


@dataclass(frozen=True)
class CommitRecord:
    message: str = ""
    date: Any = None
    author_id: Optional[str] = None

    @classmethod
    def coerce(cls, item: Any) -> "CommitRecord":
        if isinstance(item, CommitRecord):
            return item
        if isinstance(item, Mapping):
            author = item.get("author_id", item.get("authorId", item.get("author")))
            return cls(
                message=str(item.get("message") or ""),
                date=item.get("date"),
                author_id=None if author is None else str(author),
            )
        raise TypeError(f"Cannot interpret {type(item).__name__} as a commit record")


# ============================================================================ #
# Graph elements
# ============================================================================ #

@dataclass
class Node:
    """
    A file or folder of the repository snapshot.

    Commit aggregates default to zero, meaning "no recorded history".
    ``position`` stays None until the layout seeds it.
    """

    id: str
    kind: NodeKind = "file"
    size: int = 0
    last_modified: Any = None

    commit_count: int = 0
    bug_fix_count: int = 0
    recent_commits: int = 0
    contributor_count: int = 0
    heat_score: float = 0.0

    position: Optional[Vec3] = None
    velocity: Vec3 = (0.0, 0.0, 0.0)
    fixed: bool = False

    dependencies: FrozenSet[str] = field(default_factory=frozenset)
    dependents: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def name(self) -> str:
        return self.id.rsplit("/", 1)[-1]

    @property
    def parent_id(self) -> Optional[str]:
        if "/" not in self.id:
            return None
        return self.id.rsplit("/", 1)[0]


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    kind: EdgeKind = "dependency"
    strength: float = 1.0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.source, self.target)


# ============================================================================ #
# Graph aggregate
# ============================================================================ #

@dataclass
class Graph:
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: Dict[Tuple[str, str], Edge] = field(default_factory=dict)
    root_path: Optional[str] = None

    # ------------------------------------------------------------------ #
    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def add_node(self, node: Node) -> Node:
        self.nodes[node.id] = node
        return node

    def add_edge(
        self,
        source: str,
        target: str,
        kind: EdgeKind = "dependency",
        strength: float = 1.0,
    ) -> Optional[Edge]:
        """
        Insert or overwrite the edge ``source -> target``.

        Returns None (and stores nothing) when either endpoint is unknown or
        the edge would be a self-loop. Adjacency is not touched; call
        ``recompute_adjacency`` once all edges are in place.
        """
        if source == target or source not in self.nodes or target not in self.nodes:
            return None
        strength = float(strength)
        if not 0.0 < strength <= 1.0:
            raise ValueError(f"Edge strength must be in (0, 1], got {strength}")
        edge = Edge(source=source, target=target, kind=kind, strength=strength)
        self.edges[edge.key] = edge
        return edge

    def recompute_adjacency(self) -> None:
        """Rebuild ``dependencies`` and ``dependents`` of every node from the edge list."""
        outgoing: Dict[str, set] = {nid: set() for nid in self.nodes}
        incoming: Dict[str, set] = {nid: set() for nid in self.nodes}

        # Prune edges whose endpoints disappeared
        for key in [k for k in self.edges if k[0] not in self.nodes or k[1] not in self.nodes]:
            del self.edges[key]

        for source, target in self.edges:
            outgoing[source].add(target)
            incoming[target].add(source)

        for nid, node in self.nodes.items():
            node.dependencies = frozenset(outgoing[nid])
            node.dependents = frozenset(incoming[nid])

    # ------------------------------------------------------------------ #
    def edge_list(self, kind: Optional[EdgeKind] = None) -> List[Edge]:
        """Edges sorted by (source, target), optionally filtered by kind."""
        return [
            self.edges[k]
            for k in sorted(self.edges)
            if kind is None or self.edges[k].kind == kind
        ]

    def file_nodes(self) -> Iterator[Node]:
        return (n for n in self.nodes.values() if n.kind == "file")

    def folder_nodes(self) -> Iterator[Node]:
        return (n for n in self.nodes.values() if n.kind == "folder")

    def children_of(self, node_id: str) -> List[str]:
        return sorted(
            e.target for e in self.edges.values()
            if e.source == node_id and e.kind == "parent-child"
        )

    def to_networkx(self, kinds: Optional[Iterable[EdgeKind]] = None) -> nx.DiGraph:
        """
        Directed networkx view of the graph.

        Node attributes mirror the Node fields used by analytics; edge
        attributes carry ``kind`` and ``weight`` (= strength).
        """
        wanted = None if kinds is None else set(kinds)
        G = nx.DiGraph()
        for nid in sorted(self.nodes):
            n = self.nodes[nid]
            G.add_node(
                nid,
                kind=n.kind,
                size=n.size,
                heat=n.heat_score,
                commit_count=n.commit_count,
                fixed=n.fixed,
            )
        for e in self.edge_list():
            if wanted is None or e.kind in wanted:
                G.add_edge(e.source, e.target, kind=e.kind, weight=e.strength)
        return G


__all__ = [
    "NodeKind",
    "EdgeKind",
    "Vec3",
    "FileRecord",
    "CommitRecord",
    "Node",
    "Edge",
    "Graph",
]
