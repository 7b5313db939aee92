"""
3D force-directed layout engine.

Each tick applies, in order:

  1. all-pairs repulsion (charge), magnitude ``charge * alpha / d^2``
  2. spring attraction along every edge toward ``link_distance``,
     scaled by ``edge.strength``
  3. a centering pull of the unfixed centroid toward the origin
  4. damped velocity / position integration and geometric alpha decay

Fixed (pinned) nodes are not integrated but still exert forces. The engine
owns numpy copies of node state; positions reach a Graph only through
``write_back`` or through emitted snapshots.

Public API:
    - LayoutEngine
    - TickSnapshot
    - seed_positions
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..errors import SimulationDiverged
from ..events import EmitFn, log_event
from ..models import Graph, Vec3
from ..presets import LayoutSettings

logger = logging.getLogger(__name__)

# Rows per block in the all-pairs charge computation
_CHUNK = 256

_ROLL = math.pi * (3.0 - math.sqrt(5.0))
_YAW = math.pi * 20.0 / (9.0 + math.sqrt(221.0))


@dataclass(frozen=True)
class TickSnapshot:
    iteration: int
    alpha: float
    positions: Dict[str, Vec3]
    converged: bool = False


# ============================================================================ #
# Helpers
# ============================================================================ #

def seed_positions(count: int, initial_radius: float = 10.0) -> np.ndarray:
    """
    Deterministic 3D phyllotaxis spiral: node ``i`` sits at radius
    ``initial_radius * cbrt(0.5 + i)``, rotated by golden-angle roll and yaw.
    """
    i = np.arange(count, dtype=float)
    radius = initial_radius * np.cbrt(0.5 + i)
    roll = i * _ROLL
    yaw = i * _YAW
    return np.column_stack([
        radius * np.sin(roll) * np.cos(yaw),
        radius * np.cos(roll),
        radius * np.sin(roll) * np.sin(yaw),
    ])


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def _vec(value: Any) -> Optional[np.ndarray]:
    if value is None:
        return None
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got {value!r}")
    return arr


# ============================================================================ #
# Engine
# ============================================================================ #

class LayoutEngine:
    """
    Iterative force simulation over a snapshot of nodes and edges.

    Parameters
    ----------
    settings : LayoutSettings, optional
        Physics constants and the alpha schedule.
    emit : callable, optional
        Structured event emitter.
    """

    def __init__(self, settings: Optional[LayoutSettings] = None, emit: Optional[EmitFn] = None) -> None:
        self.settings = settings or LayoutSettings()
        self.emit = emit

        self.ids: List[str] = []
        self._index: Dict[str, int] = {}
        self.pos = np.zeros((0, 3))
        self.vel = np.zeros((0, 3))
        self.fixed = np.zeros(0, dtype=bool)

        self._src = np.zeros(0, dtype=int)
        self._dst = np.zeros(0, dtype=int)
        self._strength = np.zeros(0)
        self._bias = np.zeros(0)

        self.alpha = self.settings.alpha
        self.iteration = 0
        self._rng = np.random.default_rng(self.settings.seed)

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #

    def start(self, nodes: Iterable[Any], edges: Iterable[Any] = ()) -> None:
        """
        Load a fresh node / edge snapshot and restart the schedule.

        ``nodes`` are Node objects or mappings ``{id, position?, velocity?,
        fixed?}``; ``edges`` are Edge objects or mappings ``{source, target,
        strength?}``. Nodes without a position are seeded on a spiral;
        edges with unknown endpoints or self-loops are ignored.
        """
        by_id: Dict[str, Any] = {}
        for item in nodes:
            by_id[str(_field(item, "id"))] = item

        self.ids = sorted(by_id)
        self._index = {nid: i for i, nid in enumerate(self.ids)}
        n = len(self.ids)

        seeded = seed_positions(n, self.settings.initial_radius)
        self.pos = np.zeros((n, 3))
        self.vel = np.zeros((n, 3))
        self.fixed = np.zeros(n, dtype=bool)
        for i, nid in enumerate(self.ids):
            item = by_id[nid]
            p = _vec(_field(item, "position"))
            self.pos[i] = seeded[i] if p is None else p
            v = _vec(_field(item, "velocity"))
            if v is not None:
                self.vel[i] = v
            self.fixed[i] = bool(_field(item, "fixed", False))

        links: Dict[Tuple[int, int], float] = {}
        for e in edges:
            s = self._index.get(str(_field(e, "source")))
            t = self._index.get(str(_field(e, "target")))
            if s is None or t is None or s == t:
                continue
            links[(s, t)] = float(_field(e, "strength", 1.0) or 1.0)

        keys = sorted(links)
        self._src = np.array([k[0] for k in keys], dtype=int)
        self._dst = np.array([k[1] for k in keys], dtype=int)
        self._strength = np.array([links[k] for k in keys], dtype=float)

        degree = np.zeros(n)
        np.add.at(degree, self._src, 1.0)
        np.add.at(degree, self._dst, 1.0)
        if len(keys):
            self._bias = degree[self._src] / (degree[self._src] + degree[self._dst])
        else:
            self._bias = np.zeros(0)

        self.alpha = self.settings.alpha
        self.iteration = 0
        self._rng = np.random.default_rng(self.settings.seed)

        log_event(self.emit, "info", f"Layout started: {n} nodes, {len(keys)} links",
                  logger=logger, nodes=n, links=len(keys))

    def start_graph(self, graph: Graph) -> None:
        self.start(graph.nodes.values(), graph.edges.values())

    def reset(self) -> None:
        """Zero velocities and restore alpha; node identity and positions are kept."""
        self.vel[:] = 0.0
        self.alpha = self.settings.alpha
        self.iteration = 0
        self._rng = np.random.default_rng(self.settings.seed)

    # ------------------------------------------------------------------ #
    # Forces
    # ------------------------------------------------------------------ #

    def _apply_charge(self, forces: np.ndarray) -> None:
        n = len(self.ids)
        if n < 2 or self.settings.charge_strength == 0.0:
            return

        k = self.settings.charge_strength * self.alpha
        dmin2 = self.settings.distance_min ** 2

        for start in range(0, n, _CHUNK):
            rows = slice(start, min(start + _CHUNK, n))
            delta = self.pos[None, :, :] - self.pos[rows, None, :]   # j - i
            d2 = np.einsum("ijk,ijk->ij", delta, delta)

            own = np.arange(rows.start, rows.stop)
            coincident = d2 == 0.0
            coincident[np.arange(len(own)), own] = False
            if coincident.any():
                delta[coincident] = self._rng.uniform(-1e-6, 1e-6, size=(int(coincident.sum()), 3))
                d2 = np.einsum("ijk,ijk->ij", delta, delta)

            dist = np.sqrt(d2)
            with np.errstate(divide="ignore", invalid="ignore"):
                mag = k / np.maximum(d2, dmin2)
                unit = delta / dist[..., None]
            mag[np.arange(len(own)), own] = 0.0
            unit[np.arange(len(own)), own] = 0.0

            # Push node i away from every j
            forces[rows] -= np.einsum("ij,ijk->ik", mag, unit)

    def _apply_links(self, forces: np.ndarray) -> None:
        if len(self._src) == 0:
            return
        s = self.settings
        src, dst = self._src, self._dst

        delta = (self.pos[dst] + self.vel[dst]) - (self.pos[src] + self.vel[src])
        length = np.linalg.norm(delta, axis=1)
        zero = length == 0.0
        if zero.any():
            delta[zero] = self._rng.uniform(-1e-6, 1e-6, size=(int(zero.sum()), 3))
            length = np.linalg.norm(delta, axis=1)

        scale = (length - s.link_distance) / length * self.alpha * s.link_strength * self._strength
        pull = delta * scale[:, None]

        np.add.at(forces, dst, -pull * self._bias[:, None])
        np.add.at(forces, src, pull * (1.0 - self._bias)[:, None])

    def _apply_center(self, forces: np.ndarray) -> None:
        free = ~self.fixed
        if not free.any() or self.settings.center_strength == 0.0:
            return
        # Centroid of free nodes only
        centroid = self.pos[free].mean(axis=0)
        forces -= centroid * self.settings.center_strength * self.alpha

    def compute_forces(self) -> np.ndarray:
        """Force vectors the next tick would add to each velocity (no integration)."""
        forces = np.zeros_like(self.pos)
        self._apply_charge(forces)
        self._apply_links(forces)
        self._apply_center(forces)
        return forces

    # ------------------------------------------------------------------ #
    # Integration
    # ------------------------------------------------------------------ #

    @property
    def converged(self) -> bool:
        return self.alpha < self.settings.alpha_min or self.iteration >= self.settings.max_iterations

    def tick(self) -> TickSnapshot:
        """
        Advance the simulation by one step.

        Raises
        ------
        SimulationDiverged
            If any position or velocity became non-finite.
        """
        s = self.settings
        forces = self.compute_forces()
        free = ~self.fixed

        self.vel[free] = (self.vel[free] + forces[free]) * (1.0 - s.velocity_decay)
        self.vel[self.fixed] = 0.0
        self.pos[free] += self.vel[free]

        self.iteration += 1

        bad = ~(np.isfinite(self.pos).all(axis=1) & np.isfinite(self.vel).all(axis=1))
        if bad.any():
            ids = [self.ids[i] for i in np.flatnonzero(bad)]
            log_event(self.emit, "error", f"Layout diverged at iteration {self.iteration}",
                      logger=logger, iteration=self.iteration, nodes=len(ids))
            raise SimulationDiverged(self.iteration, ids)

        self.alpha += (s.alpha_target - self.alpha) * s.alpha_decay
        return self.snapshot()

    def run(self, max_iterations: Optional[int] = None) -> Iterator[TickSnapshot]:
        """
        Tick until convergence, yielding a snapshot every ``tick_stride`` ticks
        and always on the final tick.
        """
        stride = self.settings.tick_stride
        remaining = max_iterations
        while not self.converged and (remaining is None or remaining > 0):
            snap = self.tick()
            if remaining is not None:
                remaining -= 1
            last = snap.converged or (remaining is not None and remaining == 0)
            if last or self.iteration % stride == 0:
                yield snap

        if self.converged:
            log_event(self.emit, "info", f"Layout converged after {self.iteration} ticks",
                      logger=logger, iterations=self.iteration, alpha=self.alpha)

    def run_to_convergence(self) -> TickSnapshot:
        snap = self.snapshot()
        for snap in self.run():
            pass
        return snap

    # ------------------------------------------------------------------ #
    # Read-out
    # ------------------------------------------------------------------ #

    def positions(self) -> Dict[str, Vec3]:
        return {
            nid: (float(self.pos[i, 0]), float(self.pos[i, 1]), float(self.pos[i, 2]))
            for i, nid in enumerate(self.ids)
        }

    def snapshot(self) -> TickSnapshot:
        return TickSnapshot(
            iteration=self.iteration,
            alpha=float(self.alpha),
            positions=self.positions(),
            converged=self.converged,
        )

    def kinetic_energy(self) -> float:
        return 0.5 * float(np.einsum("ij,ij->", self.vel, self.vel))

    def max_speed(self) -> float:
        if len(self.ids) == 0:
            return 0.0
        return float(np.linalg.norm(self.vel, axis=1).max())

    def write_back(self, graph: Graph) -> int:
        """Copy positions and velocities into the graph's nodes; returns the count written."""
        written = 0
        for i, nid in enumerate(self.ids):
            node = graph.nodes.get(nid)
            if node is None:
                continue
            node.position = (float(self.pos[i, 0]), float(self.pos[i, 1]), float(self.pos[i, 2]))
            node.velocity = (float(self.vel[i, 0]), float(self.vel[i, 1]), float(self.vel[i, 2]))
            written += 1
        return written

    # ------------------------------------------------------------------ #
    # Pinning
    # ------------------------------------------------------------------ #

    def pin(self, node_id: str, position: Optional[Sequence[float]] = None) -> None:
        i = self._index[node_id]
        if position is not None:
            self.pos[i] = _vec(position)
        self.vel[i] = 0.0
        self.fixed[i] = True

    def unpin(self, node_id: str) -> None:
        self.fixed[self._index[node_id]] = False


def layout_graph(
    graph: Graph,
    settings: Optional[LayoutSettings] = None,
    emit: Optional[EmitFn] = None,
) -> TickSnapshot:
    """Run a layout to convergence and write positions back into ``graph``."""
    engine = LayoutEngine(settings, emit)
    engine.start_graph(graph)
    snap = engine.run_to_convergence()
    engine.write_back(graph)
    return snap


__all__ = ["LayoutEngine", "TickSnapshot", "seed_positions", "layout_graph"]
