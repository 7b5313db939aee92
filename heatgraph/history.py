"""
Commit-history aggregation.

Converts per-file commit records ``{message, date, authorId}`` into the four
aggregates the heat scorer consumes:

    commit_count       – number of commits touching the file
    bug_fix_count      – commits whose message looks like a bug fix
    recent_commits     – commits inside the recent window (default 30 days)
    contributor_count  – distinct authors

Aggregation is a pandas group-by over one flat commit table. Commits with an
unparseable date still count as commits, never as recent.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from .events import EmitFn, log_event
from .heat import AGGREGATE_FIELDS, detect_bug_fix
from .models import CommitRecord, Graph
from .presets import HeatPolicy
from .resolver import normalize_path

logger = logging.getLogger(__name__)


def _parse_date(value: Any) -> pd.Timestamp:
    """UTC timestamp or NaT. Bare numbers are epoch milliseconds (JS style) or seconds."""
    if value is None:
        return pd.NaT
    try:
        if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
            if not np.isfinite(value):
                return pd.NaT
            unit = "ms" if abs(value) > 1e11 else "s"
            return pd.Timestamp(value, unit=unit, tz="UTC")
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return pd.NaT
    if ts is pd.NaT:
        return ts
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def _resolve_now(now: Any) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz="UTC")
    ts = _parse_date(now)
    if ts is pd.NaT:
        raise ValueError(f"Cannot interpret reference time: {now!r}")
    return ts


def _empty_frame() -> pd.DataFrame:
    frame = pd.DataFrame(columns=list(AGGREGATE_FIELDS), dtype="int64")
    frame.index.name = "path"
    return frame


def commits_frame(
    commits_by_path: Mapping[str, Iterable[Any]],
    *,
    policy: Optional[HeatPolicy] = None,
    now: Any = None,
) -> pd.DataFrame:
    """
    Flatten commit records into one row per (path, commit).

    Columns: path, message, author_id, date, is_bug_fix, is_recent.
    """
    policy = policy or HeatPolicy()
    rows = []
    for path, commits in commits_by_path.items():
        key = normalize_path(str(path))
        for item in commits or ():
            rec = CommitRecord.coerce(item)
            rows.append(
                {
                    "path": key,
                    "message": rec.message,
                    "author_id": rec.author_id,
                    "date": _parse_date(rec.date),
                }
            )

    columns = ["path", "message", "author_id", "date", "is_bug_fix", "is_recent"]
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"], utc=True)
    cutoff = _resolve_now(now) - pd.Timedelta(days=policy.recent_window_days)

    df["is_bug_fix"] = df["message"].map(lambda m: detect_bug_fix(m, policy.bug_keywords))
    df["is_recent"] = df["date"].notna() & (df["date"] >= cutoff)
    return df[columns]


def aggregate_history(
    commits_by_path: Mapping[str, Iterable[Any]],
    *,
    policy: Optional[HeatPolicy] = None,
    now: Any = None,
) -> pd.DataFrame:
    """
    Per-path commit aggregates.

    Parameters
    ----------
    commits_by_path : mapping
        ``{path: [commit, ...]}`` where each commit is a ``CommitRecord`` or a
        ``{message, date, authorId}`` mapping.
    policy : HeatPolicy, optional
        Supplies the bug-fix keywords and the recent window.
    now : datetime or str, optional
        Reference time for the recent window; defaults to the current time.

    Returns
    -------
    pandas.DataFrame
        Indexed by path, integer columns ``commit_count``, ``bug_fix_count``,
        ``recent_commits``, ``contributor_count``. Paths with an empty commit
        list appear with zeros.
    """
    paths = sorted({normalize_path(str(p)) for p in commits_by_path})
    df = commits_frame(commits_by_path, policy=policy, now=now)
    if df.empty:
        return _empty_frame().reindex(paths, fill_value=0).astype("int64")

    agg = df.groupby("path").agg(
        commit_count=("message", "count"),
        bug_fix_count=("is_bug_fix", "sum"),
        recent_commits=("is_recent", "sum"),
        contributor_count=("author_id", "nunique"),
    )
    agg = agg.reindex(paths, fill_value=0).astype("int64")
    agg.index.name = "path"
    return agg[list(AGGREGATE_FIELDS)]


def aggregate_commits(
    commits: Iterable[Any],
    *,
    policy: Optional[HeatPolicy] = None,
    now: Any = None,
) -> Dict[str, int]:
    """Aggregates for a single file's commit list."""
    frame = aggregate_history({"_": list(commits)}, policy=policy, now=now)
    row = frame.loc["_"]
    return {name: int(row[name]) for name in AGGREGATE_FIELDS}


def apply_history(
    graph: Graph,
    aggregates: pd.DataFrame,
    emit: Optional[EmitFn] = None,
) -> int:
    """
    Copy aggregates onto the matching file nodes.

    File nodes without history are reset to zero counts. Returns the number
    of nodes updated; history for paths that are not file nodes is ignored
    and logged.
    """
    for node in graph.file_nodes():
        for name in AGGREGATE_FIELDS:
            setattr(node, name, 0)

    updated = 0
    unknown = 0
    for path, row in aggregates.iterrows():
        node = graph.nodes.get(str(path))
        if node is None or node.kind != "file":
            unknown += 1
            continue
        for name in AGGREGATE_FIELDS:
            setattr(node, name, int(row[name]))
        updated += 1

    if unknown:
        log_event(emit, "warn", f"History for {unknown} unknown path(s) ignored",
                  logger=logger, unknown=unknown)
    log_event(emit, "info", f"Applied history to {updated} file node(s)",
              logger=logger, updated=updated)
    return updated


__all__ = [
    "commits_frame",
    "aggregate_history",
    "aggregate_commits",
    "apply_history",
]
