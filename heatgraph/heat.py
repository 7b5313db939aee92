"""
Hot-zone scoring.

Each raw commit-history metric is clipped to a saturation ceiling before
weighting, so a file with 500 commits scores the same commit component as a
file with 100:

    commit  = min(commit_count      / 100, 1)
    bug     = min(bug_fix_count     /  20, 1)
    recency = min(recent_commits    /  10, 1)
    churn   = min(contributor_count /  10, 1)

    heat    = 0.3*commit + 0.4*bug + 0.2*recency + 0.1*churn

Scores depend only on a node's own aggregates (no cross-node
normalisation), so runs are comparable while the HeatPolicy is unchanged.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from .errors import InvalidMetrics
from .events import EmitFn, log_event
from .models import Graph
from .presets import BUG_FIX_KEYWORDS, HeatPolicy

logger = logging.getLogger(__name__)

AGGREGATE_FIELDS = ("commit_count", "bug_fix_count", "recent_commits", "contributor_count")

_CAMEL = {
    "commit_count": "commitCount",
    "bug_fix_count": "bugFixCount",
    "recent_commits": "recentCommits",
    "contributor_count": "contributorCount",
}

_DEFAULT_POLICY = HeatPolicy()


@dataclass(frozen=True)
class HotZoneMetrics:
    """Clipped sub-scores, each in [0, 1]."""

    commit_frequency: float
    bug_density: float
    recency_score: float
    churn_rate: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "commit_frequency": self.commit_frequency,
            "bug_density": self.bug_density,
            "recency_score": self.recency_score,
            "churn_rate": self.churn_rate,
        }


# ============================================================================ #
# Input boundary
# ============================================================================ #

def _read_field(source: Any, name: str) -> Any:
    if isinstance(source, Mapping):
        if name in source:
            return source[name]
        if _CAMEL[name] in source:
            return source[_CAMEL[name]]
        raise InvalidMetrics(f"Missing commit aggregate '{name}'", field=name)
    if hasattr(source, name):
        return getattr(source, name)
    raise InvalidMetrics(f"Missing commit aggregate '{name}'", field=name)


def _validated(source: Any) -> Dict[str, float]:
    """Extract the four aggregates, rejecting anything that is not a finite count >= 0."""
    out: Dict[str, float] = {}
    for name in AGGREGATE_FIELDS:
        raw = _read_field(source, name)
        if raw is None or isinstance(raw, bool):
            raise InvalidMetrics(f"Commit aggregate '{name}' is {raw!r}", field=name)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise InvalidMetrics(
                f"Commit aggregate '{name}' is not numeric: {raw!r}", field=name
            ) from None
        if not math.isfinite(value):
            raise InvalidMetrics(f"Commit aggregate '{name}' is not finite", field=name)
        if value < 0:
            raise InvalidMetrics(f"Commit aggregate '{name}' is negative: {raw!r}", field=name)
        out[name] = value
    return out


# ============================================================================ #
# Scoring
# ============================================================================ #

def compute_metrics(aggregates: Any, policy: Optional[HeatPolicy] = None) -> HotZoneMetrics:
    """
    Clip the raw aggregates to their saturation ceilings.

    Parameters
    ----------
    aggregates : Node, object or mapping
        Anything exposing ``commit_count``, ``bug_fix_count``,
        ``recent_commits`` and ``contributor_count`` (mappings may use the
        camelCase keys of the external interface).
    policy : HeatPolicy, optional

    Raises
    ------
    InvalidMetrics
        If a field is missing, non-numeric, non-finite or negative.
    """
    policy = policy or _DEFAULT_POLICY
    v = _validated(aggregates)
    return HotZoneMetrics(
        commit_frequency=min(v["commit_count"] / policy.commit_ceiling, 1.0),
        bug_density=min(v["bug_fix_count"] / policy.bug_ceiling, 1.0),
        recency_score=min(v["recent_commits"] / policy.recency_ceiling, 1.0),
        churn_rate=min(v["contributor_count"] / policy.churn_ceiling, 1.0),
    )


def combine(metrics: HotZoneMetrics, policy: Optional[HeatPolicy] = None) -> float:
    policy = policy or _DEFAULT_POLICY
    score = (
        policy.commit_weight * metrics.commit_frequency
        + policy.bug_weight * metrics.bug_density
        + policy.recency_weight * metrics.recency_score
        + policy.churn_weight * metrics.churn_rate
    )
    # Guard against float drift past the bounds
    return min(max(score, 0.0), 1.0)


def heat_score(aggregates: Any, policy: Optional[HeatPolicy] = None) -> float:
    """Heat score in [0, 1] for one node's commit aggregates."""
    return combine(compute_metrics(aggregates, policy), policy)


def detect_bug_fix(message: Optional[str], keywords: Iterable[str] = BUG_FIX_KEYWORDS) -> bool:
    """
    Heuristic bug-fix classifier: case-insensitive substring match.

    Substring matching means "prefix" counts as a fix; good enough for a
    weighting signal, not for auditing.
    """
    if not message:
        return False
    text = message.lower()
    return any(k in text for k in keywords)


# ============================================================================ #
# Graph-level application
# ============================================================================ #

def score_graph(
    graph: Graph,
    policy: Optional[HeatPolicy] = None,
    emit: Optional[EmitFn] = None,
) -> Dict[str, float]:
    """
    Score every file node in place and return ``{node_id: heat}``.

    A node with invalid aggregates is logged and degrades to heat 0. When
    ``policy.rollup_folders`` is set, folders take the maximum heat of the
    files below them; otherwise they stay at 0.
    """
    policy = policy or _DEFAULT_POLICY
    scores: Dict[str, float] = {}
    invalid = 0

    for node in graph.file_nodes():
        try:
            node.heat_score = heat_score(node, policy)
        except InvalidMetrics as exc:
            invalid += 1
            node.heat_score = 0.0
            log_event(emit, "warn", f"Invalid commit aggregates for {node.id}: {exc}",
                      logger=logger, node=node.id, field=exc.field)
        scores[node.id] = node.heat_score

    for folder in graph.folder_nodes():
        folder.heat_score = 0.0

    if policy.rollup_folders:
        for node_id in sorted(scores):
            heat = scores[node_id]
            parent = graph.nodes[node_id].parent_id
            while parent is not None and parent in graph.nodes:
                pnode = graph.nodes[parent]
                if pnode.kind == "folder" and heat > pnode.heat_score:
                    pnode.heat_score = heat
                parent = pnode.parent_id
            root = graph.root_path
            if root is not None and root in graph.nodes and graph.nodes[root].kind == "folder":
                rnode = graph.nodes[root]
                rnode.heat_score = max(rnode.heat_score, heat)

    for folder in graph.folder_nodes():
        scores[folder.id] = folder.heat_score

    log_event(
        emit,
        "info",
        f"Scored {len(scores)} nodes ({invalid} invalid)",
        logger=logger,
        scored=len(scores),
        invalid=invalid,
    )
    return scores


__all__ = [
    "AGGREGATE_FIELDS",
    "HotZoneMetrics",
    "compute_metrics",
    "combine",
    "heat_score",
    "detect_bug_fix",
    "score_graph",
]
