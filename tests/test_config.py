import json

import pytest

from heatgraph import DEFAULT_CONFIG, HeatGraphConfig, ResolverSettings, load_config
from heatgraph.presets import DEFAULT_EXTENSIONS


def test_defaults_from_empty_environment():
    cfg = load_config({})
    assert cfg.root_path is None
    assert cfg.build.include_hierarchy
    assert cfg.build.resolver.extensions == DEFAULT_EXTENSIONS
    assert not cfg.build.resolver.probe_extensions
    assert cfg.heat.recent_window_days == 30
    assert cfg.layout.max_iterations == 300
    assert cfg.as_dict() == DEFAULT_CONFIG.as_dict()


def test_environment_overrides():
    cfg = load_config(
        {
            "HEATGRAPH_ROOT_PATH": "repo",
            "HEATGRAPH_EXTENSIONS": ".tsx, .ts",
            "HEATGRAPH_PROBE_EXTENSIONS": "true",
            "HEATGRAPH_INCLUDE_HIERARCHY": "0",
            "HEATGRAPH_RECENT_WINDOW_DAYS": "14",
            "HEATGRAPH_ROLLUP_FOLDERS": "no",
            "HEATGRAPH_MAX_ITERATIONS": "120",
            "HEATGRAPH_TICK_STRIDE": "4",
        }
    )
    assert cfg.root_path == "repo"
    assert cfg.build.resolver.extensions == (".tsx", ".ts")
    assert cfg.build.resolver.probe_extensions
    assert not cfg.build.include_hierarchy
    assert cfg.heat.recent_window_days == 14
    assert not cfg.heat.rollup_folders
    assert cfg.layout.max_iterations == 120
    assert cfg.layout.tick_stride == 4


def test_bad_integer():
    with pytest.raises(ValueError, match="HEATGRAPH_MAX_ITERATIONS"):
        load_config({"HEATGRAPH_MAX_ITERATIONS": "lots"})


def test_bad_extension():
    with pytest.raises(ValueError):
        load_config({"HEATGRAPH_EXTENSIONS": "ts"})
    with pytest.raises(ValueError):
        ResolverSettings(extensions=())


def test_as_dict_is_json_compatible():
    out = HeatGraphConfig().as_dict()
    assert json.loads(json.dumps(out))["build"]["resolver"]["extensions"] == list(DEFAULT_EXTENSIONS)
    assert out["version"] == "heatgraph.config.v1"
