"""
Layout worker protocol
======================

Typed message containers exchanged with a LayoutWorker. Each produces the
JSON-compatible payload of the wire protocol:

    inbound   {"type": "START", "nodes": [...], "edges": [...]}
              {"type": "STOP"}
    outbound  {"type": "TICK", "positions": {id: [x, y, z]}, ...}
              {"type": "ERROR", "error": "...", ...}

Commands copy node and edge data into plain tuples/dicts so the worker never
shares mutable state with the caller's Graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..models import Graph


def _node_payload(item: Any) -> Dict[str, Any]:
    get = item.get if isinstance(item, Mapping) else (lambda k, d=None: getattr(item, k, d))
    pos = get("position")
    vel = get("velocity")
    return {
        "id": str(get("id")),
        "position": None if pos is None else [float(c) for c in pos],
        "velocity": None if vel is None else [float(c) for c in vel],
        "fixed": bool(get("fixed", False)),
    }


def _edge_payload(item: Any) -> Dict[str, Any]:
    get = item.get if isinstance(item, Mapping) else (lambda k, d=None: getattr(item, k, d))
    return {
        "source": str(get("source")),
        "target": str(get("target")),
        "strength": float(get("strength", 1.0) or 1.0),
    }


# ---------------------------------------------------------------------------
# Commands (into the worker)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StartCommand:
    """
    Begin a new layout run over the given snapshot.
    """

    nodes: Tuple[Dict[str, Any], ...]
    edges: Tuple[Dict[str, Any], ...] = ()
    run_id: int = 0

    type = "START"

    @classmethod
    def create(cls, nodes: Any, edges: Any = (), run_id: int = 0) -> "StartCommand":
        return cls(
            nodes=tuple(_node_payload(n) for n in nodes),
            edges=tuple(_edge_payload(e) for e in edges),
            run_id=run_id,
        )

    @classmethod
    def from_graph(cls, graph: Graph, run_id: int = 0) -> "StartCommand":
        return cls.create(graph.nodes.values(), graph.edges.values(), run_id=run_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "nodes": [dict(n) for n in self.nodes],
            "edges": [dict(e) for e in self.edges],
            "run_id": self.run_id,
        }


@dataclass(frozen=True)
class StopCommand:
    type = "STOP"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class ShutdownCommand:
    """Terminates the worker thread."""

    type = "SHUTDOWN"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


Command = Union[StartCommand, StopCommand, ShutdownCommand]


def parse_command(payload: Union[Command, Mapping[str, Any]]) -> Command:
    """
    Convert a wire dict into a command object.

    Raises
    ------
    ValueError
        For an unknown or missing ``type``.
    """
    if isinstance(payload, (StartCommand, StopCommand, ShutdownCommand)):
        return payload

    kind = str(payload.get("type", "")).upper()
    if kind == "START":
        return StartCommand.create(
            payload.get("nodes") or (),
            payload.get("edges") or (),
            run_id=int(payload.get("run_id", 0)),
        )
    if kind == "STOP":
        return StopCommand()
    if kind == "SHUTDOWN":
        return ShutdownCommand()
    raise ValueError(f"Unknown layout command type: {payload.get('type')!r}")


# ---------------------------------------------------------------------------
# Results (out of the worker)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TickMessage:
    positions: Dict[str, List[float]]
    iteration: int
    alpha: float
    converged: bool = False
    run_id: int = 0

    type = "TICK"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "positions": {k: list(v) for k, v in self.positions.items()},
            "iteration": self.iteration,
            "alpha": self.alpha,
            "converged": self.converged,
            "run_id": self.run_id,
        }


@dataclass(frozen=True)
class ErrorMessage:
    """
    Emitted once when a run dies (e.g. SimulationDiverged).
    """

    error: str
    iteration: int = 0
    node_ids: Tuple[str, ...] = field(default_factory=tuple)
    run_id: int = 0

    type = "ERROR"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "error": self.error,
            "iteration": self.iteration,
            "node_ids": list(self.node_ids),
            "run_id": self.run_id,
        }


Message = Union[TickMessage, ErrorMessage]


def is_final(message: Optional[Message]) -> bool:
    """True for the last message of a run (convergence or error)."""
    if message is None:
        return False
    return isinstance(message, ErrorMessage) or bool(message.converged)


__all__ = [
    "StartCommand",
    "StopCommand",
    "ShutdownCommand",
    "Command",
    "parse_command",
    "TickMessage",
    "ErrorMessage",
    "Message",
    "is_final",
]
