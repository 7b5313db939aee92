"""
Environment-driven configuration for heatgraph.

It provides:
    load_config()  – build a HeatGraphConfig from environment variables,
                     falling back to the presets in ``heatgraph.presets``.

Recognized variables:
    HEATGRAPH_ROOT_PATH            (folder node anchoring top-level entries)
    HEATGRAPH_EXTENSIONS           (comma separated, e.g. ".ts,.tsx,.js")
    HEATGRAPH_PROBE_EXTENSIONS     ("true" / "false" / "1" / "0")
    HEATGRAPH_INCLUDE_HIERARCHY    ("true" / "false" / "1" / "0")
    HEATGRAPH_RECENT_WINDOW_DAYS   (int)
    HEATGRAPH_ROLLUP_FOLDERS       ("true" / "false" / "1" / "0")
    HEATGRAPH_MAX_ITERATIONS       (int)
    HEATGRAPH_TICK_STRIDE          (int)
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from .presets import (
    BuildSettings,
    HeatGraphConfig,
    HeatPolicy,
    LayoutSettings,
    ResolverSettings,
    DEFAULT_EXTENSIONS,
)


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    val = env.get(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    val = env.get(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {val!r}") from None


def load_config(env: Optional[Mapping[str, str]] = None) -> HeatGraphConfig:
    """
    Load HeatGraphConfig from environment variables, falling back to defaults.

    Parameters
    ----------
    env : mapping, optional
        Environment to read; defaults to ``os.environ``.

    Returns
    -------
    HeatGraphConfig
    """
    env = os.environ if env is None else env

    raw_ext = env.get("HEATGRAPH_EXTENSIONS")
    if raw_ext and raw_ext.strip():
        extensions = tuple(e.strip() for e in raw_ext.split(",") if e.strip())
    else:
        extensions = DEFAULT_EXTENSIONS

    resolver = ResolverSettings(
        extensions=extensions,
        probe_extensions=_env_flag(env, "HEATGRAPH_PROBE_EXTENSIONS", False),
    )

    return HeatGraphConfig(
        build=BuildSettings(
            include_hierarchy=_env_flag(env, "HEATGRAPH_INCLUDE_HIERARCHY", True),
            resolver=resolver,
        ),
        heat=HeatPolicy(
            recent_window_days=_env_int(env, "HEATGRAPH_RECENT_WINDOW_DAYS", 30),
            rollup_folders=_env_flag(env, "HEATGRAPH_ROLLUP_FOLDERS", True),
        ),
        layout=LayoutSettings(
            max_iterations=_env_int(env, "HEATGRAPH_MAX_ITERATIONS", 300),
            tick_stride=_env_int(env, "HEATGRAPH_TICK_STRIDE", 1),
        ),
        root_path=env.get("HEATGRAPH_ROOT_PATH") or None,
    )


__all__ = ["load_config"]
