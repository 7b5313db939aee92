"""
Preset configuration for the heatgraph pipeline.

Every setting the pipeline reads lives here, grouped per stage. Heat scores
are only comparable between runs that share the same HeatPolicy.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Tuple


# --------------------------------------------------------------------------- #
# Import resolution
# --------------------------------------------------------------------------- #

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")


@dataclass
class ResolverSettings:
    # Ordered preference list used for extension inference
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS

    # When True, the builder probes its node set for each candidate extension
    # instead of always taking the first one.
    probe_extensions: bool = False

    def __post_init__(self) -> None:
        self.extensions = tuple(self.extensions)
        if not self.extensions:
            raise ValueError("ResolverSettings.extensions must not be empty")
        for ext in self.extensions:
            if not ext.startswith("."):
                raise ValueError(f"Extension must start with '.': {ext!r}")


# --------------------------------------------------------------------------- #
# Graph construction
# --------------------------------------------------------------------------- #

@dataclass
class BuildSettings:
    include_hierarchy: bool = True
    dependency_strength: float = 1.0
    hierarchy_strength: float = 0.5
    resolver: ResolverSettings = field(default_factory=ResolverSettings)

    def __post_init__(self) -> None:
        for name in ("dependency_strength", "hierarchy_strength"):
            v = float(getattr(self, name))
            if not 0.0 < v <= 1.0:
                raise ValueError(f"BuildSettings.{name} must be in (0, 1], got {v}")
            setattr(self, name, v)
        if self.resolver is None:
            self.resolver = ResolverSettings()


# --------------------------------------------------------------------------- #
# Heat scoring
# --------------------------------------------------------------------------- #

BUG_FIX_KEYWORDS: Tuple[str, ...] = ("fix", "bug", "patch", "hotfix", "resolve", "issue")


@dataclass
class HeatPolicy:
    """
    Saturation ceilings and weights of the heat score.

    Scores from different runs are only comparable while these stay fixed,
    so they are recorded with every run (see ``HeatGraphConfig.as_dict``).
    """

    commit_ceiling: float = 100.0
    bug_ceiling: float = 20.0
    recency_ceiling: float = 10.0
    churn_ceiling: float = 10.0

    commit_weight: float = 0.3
    bug_weight: float = 0.4
    recency_weight: float = 0.2
    churn_weight: float = 0.1

    bug_keywords: Tuple[str, ...] = BUG_FIX_KEYWORDS
    recent_window_days: int = 30
    rollup_folders: bool = True

    def __post_init__(self) -> None:
        for name in ("commit_ceiling", "bug_ceiling", "recency_ceiling", "churn_ceiling"):
            if float(getattr(self, name)) <= 0.0:
                raise ValueError(f"HeatPolicy.{name} must be positive")

        weights = self.weights
        if any(w < 0.0 for w in weights):
            raise ValueError("HeatPolicy weights must be non-negative")
        if abs(sum(weights) - 1.0) > 1e-9:
            raise ValueError(f"HeatPolicy weights must sum to 1, got {sum(weights):.6f}")

        if self.recent_window_days <= 0:
            raise ValueError("HeatPolicy.recent_window_days must be positive")
        self.bug_keywords = tuple(k.lower() for k in self.bug_keywords)

    @property
    def weights(self) -> Tuple[float, float, float, float]:
        return (self.commit_weight, self.bug_weight, self.recency_weight, self.churn_weight)


# --------------------------------------------------------------------------- #
# Force layout
# --------------------------------------------------------------------------- #

@dataclass
class LayoutSettings:
    """
    Physics constants of the force-directed layout.

    The alpha schedule follows the usual force-simulation convention:
    alpha starts at 1 and decays geometrically toward ``alpha_target``;
    the default decay reaches ``alpha_min`` after roughly 300 ticks.
    """

    charge_strength: float = 900.0
    distance_min: float = 5.0
    link_distance: float = 30.0
    link_strength: float = 1.0
    center_strength: float = 1.0
    velocity_decay: float = 0.4

    alpha: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 0.0228
    alpha_target: float = 0.0

    max_iterations: int = 300
    tick_stride: int = 1

    initial_radius: float = 10.0
    seed: int = 13

    def __post_init__(self) -> None:
        if not 0.0 <= self.velocity_decay < 1.0:
            raise ValueError("LayoutSettings.velocity_decay must be in [0, 1)")
        if not 0.0 < self.alpha_decay < 1.0:
            raise ValueError("LayoutSettings.alpha_decay must be in (0, 1)")
        if self.max_iterations < 1:
            raise ValueError("LayoutSettings.max_iterations must be >= 1")
        if self.tick_stride < 1:
            raise ValueError("LayoutSettings.tick_stride must be >= 1")
        if self.distance_min <= 0.0:
            raise ValueError("LayoutSettings.distance_min must be positive")


# --------------------------------------------------------------------------- #
# Aggregate configuration
# --------------------------------------------------------------------------- #

@dataclass
class HeatGraphConfig:
    """
    High-level configuration handed to the pipeline driver.
    """

    build: BuildSettings = field(default_factory=BuildSettings)
    heat: HeatPolicy = field(default_factory=HeatPolicy)
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    root_path: str | None = None

    version: str = "heatgraph.config.v1"

    def as_dict(self) -> Dict[str, Any]:
        """Return settings in JSON-serializable form."""
        out = asdict(self)
        out["build"]["resolver"]["extensions"] = list(self.build.resolver.extensions)
        out["heat"]["bug_keywords"] = list(self.heat.bug_keywords)
        return out


DEFAULT_CONFIG = HeatGraphConfig()


__all__ = [
    "DEFAULT_EXTENSIONS",
    "BUG_FIX_KEYWORDS",
    "ResolverSettings",
    "BuildSettings",
    "HeatPolicy",
    "LayoutSettings",
    "HeatGraphConfig",
    "DEFAULT_CONFIG",
]
