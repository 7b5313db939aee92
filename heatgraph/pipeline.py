"""
Ingestion pipeline driver
=========================

Owns the Graph for one repository snapshot and runs the stages in order:

    build    – file records -> nodes, hierarchy and dependency edges
    history  – commit records -> per-file aggregates
    heat     – aggregates -> heat_score (folders roll up)
    layout   – force simulation to convergence, positions written back

Every stage is logged through the injected emitter with its duration.
Fatal errors (InvalidPath, SimulationDiverged) mark the stage failed and
propagate to the caller.

External users should import:

    from heatgraph import ingest_repository, load_config
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Literal, Mapping, Optional

from .builder import BuildReport, build_graph
from .events import EmitFn, log_event
from .heat import score_graph
from .history import aggregate_history, apply_history
from .layout.force3d import layout_graph
from .models import Graph
from .presets import HeatGraphConfig

logger = logging.getLogger(__name__)

STAGES = ("build", "history", "heat", "layout")


# ============================================================================
# Stage Runtime State
# ============================================================================

@dataclass
class StageState:
    """Status, timing and counters of one ingestion stage."""

    key: str
    status: Literal["pending", "running", "ok", "skipped", "failed"] = "pending"
    start_ts: Optional[float] = None
    end_ts: Optional[float] = None
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> Optional[float]:
        """Elapsed time for the stage, or None if incomplete."""
        if self.start_ts is None or self.end_ts is None:
            return None
        return self.end_ts - self.start_ts


@dataclass
class IngestionContext:
    """
    State shared by the stages of one ingestion run.

    Parameters
    ----------
    config : HeatGraphConfig
        Settings for every stage.
    emit : callable
        Structured event emitter: ``emit(kind: str, payload: dict)``.
    """

    config: HeatGraphConfig
    emit: Optional[EmitFn] = None
    stages: Dict[str, StageState] = field(default_factory=dict)
    graph: Optional[Graph] = None

    def log(self, level: str, msg: str, **fields: Any) -> None:
        log_event(self.emit, level, msg, logger=logger, **fields)

    # ------------------------------------------------------------------
    # Stage lifecycle
    # ------------------------------------------------------------------

    def begin_stage(self, key: str) -> StageState:
        st = StageState(key=key, status="running", start_ts=time.time())
        self.stages[key] = st
        self.log("info", f"Stage {key} starting", stage=key)
        return st

    def end_stage_ok(self, key: str, meta: Optional[Dict[str, Any]] = None) -> None:
        st = self.stages[key]
        st.status = "ok"
        st.end_ts = time.time()
        if meta:
            st.meta.update(meta)
        self.log("info", f"Stage {key} completed", stage=key, duration=st.duration)

    def end_stage_failed(self, key: str, error: str) -> None:
        st = self.stages[key]
        st.status = "failed"
        st.error = error
        st.end_ts = time.time()
        self.log("error", f"Stage {key} failed: {error}", stage=key, duration=st.duration)

    def end_stage_skipped(self, key: str, reason: str) -> None:
        now = time.time()
        self.stages[key] = StageState(key=key, status="skipped", start_ts=now, end_ts=now, error=reason)
        self.log("info", f"Stage {key} skipped ({reason})", stage=key)

    def summary(self) -> Dict[str, Any]:
        return {
            "config": self.config.as_dict(),
            "stages": {
                key: {
                    "status": st.status,
                    "error": st.error,
                    "duration": st.duration,
                    "meta": dict(st.meta),
                }
                for key, st in self.stages.items()
            },
        }


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

def _run_stage(ctx: IngestionContext, key: str, func) -> Any:
    ctx.begin_stage(key)
    try:
        result, meta = func()
    except Exception as exc:
        ctx.end_stage_failed(key, f"{type(exc).__name__}: {exc}")
        raise
    ctx.end_stage_ok(key, meta)
    return result


def ingest_repository(
    files: Iterable[Any],
    commits: Optional[Mapping[str, Iterable[Any]]] = None,
    *,
    config: Optional[HeatGraphConfig] = None,
    emit: Optional[EmitFn] = None,
    now: Any = None,
    layout: bool = True,
    context: Optional[IngestionContext] = None,
) -> Graph:
    """
    Build, score and lay out the graph of one repository snapshot.

    Parameters
    ----------
    files : iterable
        ``{path, content, size, lastModified}`` records.
    commits : mapping, optional
        ``{path: [{message, date, authorId}, ...]}``; files without an entry
        have zero history.
    config : HeatGraphConfig, optional
    emit : callable, optional
        Structured event emitter.
    now : datetime or str, optional
        Reference time for the recent-commit window.
    layout : bool
        Run the force layout to convergence (positions written back).
    context : IngestionContext, optional
        Pre-built context, e.g. to inspect stage states afterwards.

    Returns
    -------
    Graph
    """
    if config is None:
        config = context.config if context is not None else HeatGraphConfig()
    ctx = context or IngestionContext(config=config, emit=emit)

    def _build():
        report = BuildReport()
        graph = build_graph(
            files,
            settings=config.build,
            root_path=config.root_path,
            emit=ctx.emit,
            report=report,
        )
        return graph, report.as_dict()

    graph = _run_stage(ctx, "build", _build)
    ctx.graph = graph

    def _history():
        frame = aggregate_history(commits or {}, policy=config.heat, now=now)
        updated = apply_history(graph, frame, emit=ctx.emit)
        return frame, {"paths": int(len(frame)), "updated": updated}

    _run_stage(ctx, "history", _history)

    def _heat():
        scores = score_graph(graph, config.heat, emit=ctx.emit)
        return scores, {"scored": len(scores)}

    _run_stage(ctx, "heat", _heat)

    if layout:
        def _layout():
            snap = layout_graph(graph, config.layout, emit=ctx.emit)
            return snap, {"iterations": snap.iteration, "alpha": snap.alpha}

        _run_stage(ctx, "layout", _layout)
    else:
        ctx.end_stage_skipped("layout", "disabled")

    return graph


def refresh_heat(
    graph: Graph,
    commits: Mapping[str, Iterable[Any]],
    *,
    config: Optional[HeatGraphConfig] = None,
    emit: Optional[EmitFn] = None,
    now: Any = None,
) -> Dict[str, float]:
    """Recompute aggregates and heat after commit history was refreshed."""
    config = config or HeatGraphConfig()
    frame = aggregate_history(commits, policy=config.heat, now=now)
    apply_history(graph, frame, emit=emit)
    return score_graph(graph, config.heat, emit=emit)


__all__ = [
    "STAGES",
    "StageState",
    "IngestionContext",
    "ingest_repository",
    "refresh_heat",
]
