"""
heatgraph package.

Dependency graph construction, commit-history heat scoring and 3D force
layout for repository exploration.
"""

# ---------------------------------------------------------------------------
# Errors and events
# ---------------------------------------------------------------------------
from .errors import (
    HeatGraphError,
    InvalidPath,
    InvalidMetrics,
    SimulationDiverged,
)
from .events import DEFAULT_EMIT, EventRecorder, log_event

# ---------------------------------------------------------------------------
# Configuration and presets
# ---------------------------------------------------------------------------
from .presets import (
    ResolverSettings,
    BuildSettings,
    HeatPolicy,
    LayoutSettings,
    HeatGraphConfig,
    DEFAULT_CONFIG,
)
from .config import load_config

# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------
from .models import FileRecord, CommitRecord, Node, Edge, Graph

# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------
from .imports import ImportScan, extract_imports
from .resolver import resolve_import, candidate_paths, normalize_path
from .builder import BuildReport, build_graph

# ---------------------------------------------------------------------------
# History and heat
# ---------------------------------------------------------------------------
from .heat import (
    HotZoneMetrics,
    compute_metrics,
    heat_score,
    detect_bug_fix,
    score_graph,
)
from .history import aggregate_history, aggregate_commits, apply_history

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------
from .layout import (
    LayoutEngine,
    LayoutWorker,
    TickSnapshot,
    layout_graph,
    StartCommand,
    StopCommand,
    TickMessage,
    ErrorMessage,
)

# ---------------------------------------------------------------------------
# Analytics, export and driver
# ---------------------------------------------------------------------------
from .analytics import (
    GraphStats,
    compute_graph_stats,
    find_dependency_cycles,
    rank_hot_zones,
)
from .export import graph_to_payload, positions_payload, apply_pins
from .pipeline import IngestionContext, ingest_repository, refresh_heat

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
__all__ = [
    # Errors / events
    "HeatGraphError",
    "InvalidPath",
    "InvalidMetrics",
    "SimulationDiverged",
    "DEFAULT_EMIT",
    "EventRecorder",
    "log_event",

    # Config
    "ResolverSettings",
    "BuildSettings",
    "HeatPolicy",
    "LayoutSettings",
    "HeatGraphConfig",
    "DEFAULT_CONFIG",
    "load_config",

    # Model
    "FileRecord",
    "CommitRecord",
    "Node",
    "Edge",
    "Graph",

    # Graph construction
    "ImportScan",
    "extract_imports",
    "resolve_import",
    "candidate_paths",
    "normalize_path",
    "BuildReport",
    "build_graph",

    # History / heat
    "HotZoneMetrics",
    "compute_metrics",
    "heat_score",
    "detect_bug_fix",
    "score_graph",
    "aggregate_history",
    "aggregate_commits",
    "apply_history",

    # Layout
    "LayoutEngine",
    "LayoutWorker",
    "TickSnapshot",
    "layout_graph",
    "StartCommand",
    "StopCommand",
    "TickMessage",
    "ErrorMessage",

    # Analytics / export / driver
    "GraphStats",
    "compute_graph_stats",
    "find_dependency_cycles",
    "rank_hot_zones",
    "graph_to_payload",
    "positions_payload",
    "apply_pins",
    "IngestionContext",
    "ingest_repository",
    "refresh_heat",
]

__version__ = "0.1.0"
