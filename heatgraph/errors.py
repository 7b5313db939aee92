"""
Error types raised across the heatgraph package.

Only conditions that corrupt the graph are surfaced as exceptions:

    InvalidPath          – an import walks above the repository root
    InvalidMetrics       – commit aggregates are missing or negative
    SimulationDiverged   – the layout produced non-finite coordinates

Everything else (unparseable imports, unresolved targets) degrades silently
and is only visible through node / edge counts.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class HeatGraphError(Exception):
    """Base class for all heatgraph errors."""


class InvalidPath(HeatGraphError, ValueError):
    """
    Raised when an import cannot be resolved to a repository-relative path.

    Attributes
    ----------
    importer : str
        Path of the file containing the import.
    raw : str
        The raw import string as written in the source.
    """

    def __init__(self, message: str, *, importer: str = "", raw: str = "") -> None:
        super().__init__(message)
        self.importer = importer
        self.raw = raw


class InvalidMetrics(HeatGraphError, ValueError):
    """Raised when commit-history aggregates cannot be scored."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class SimulationDiverged(HeatGraphError, RuntimeError):
    """
    Raised when the force layout produces NaN or infinite state.

    Attributes
    ----------
    iteration : int
        Tick at which the divergence was detected.
    node_ids : list[str]
        Nodes whose position or velocity became non-finite.
    """

    def __init__(self, iteration: int, node_ids: Sequence[str]) -> None:
        self.iteration = int(iteration)
        self.node_ids: List[str] = list(node_ids)
        preview = ", ".join(self.node_ids[:5])
        if len(self.node_ids) > 5:
            preview += ", ..."
        super().__init__(
            f"Layout diverged at iteration {self.iteration}: "
            f"non-finite state for {len(self.node_ids)} node(s) [{preview}]"
        )


__all__ = [
    "HeatGraphError",
    "InvalidPath",
    "InvalidMetrics",
    "SimulationDiverged",
]
