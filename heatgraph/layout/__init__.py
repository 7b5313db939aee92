# heatgraph/layout/__init__.py

"""
Layout subpackage for heatgraph.

Provides:
  - the iterative 3D force-directed engine
  - the worker protocol messages
  - a threaded worker streaming tick snapshots
"""

from __future__ import annotations

from .force3d import (
    LayoutEngine,
    TickSnapshot,
    layout_graph,
    seed_positions,
)
from .messages import (
    ErrorMessage,
    ShutdownCommand,
    StartCommand,
    StopCommand,
    TickMessage,
    parse_command,
)
from .worker import LayoutWorker

__all__ = [
    "LayoutEngine",
    "TickSnapshot",
    "layout_graph",
    "seed_positions",
    "StartCommand",
    "StopCommand",
    "ShutdownCommand",
    "TickMessage",
    "ErrorMessage",
    "parse_command",
    "LayoutWorker",
]
