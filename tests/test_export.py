import json

from heatgraph import apply_pins, build_graph, graph_to_payload, layout_graph, positions_payload, LayoutSettings
from heatgraph.export import EXPORT_VERSION


def test_payload_shape(sample_files):
    graph = build_graph(sample_files)
    payload = graph_to_payload(graph, meta={"repository": "demo"})

    assert [n["id"] for n in payload["nodes"]] == sorted(graph.nodes)
    assert len(payload["links"]) == 11
    assert payload["meta"]["n_nodes"] == 9
    assert payload["meta"]["version"] == EXPORT_VERSION
    assert payload["meta"]["repository"] == "demo"
    json.dumps(payload)

    helpers = next(n for n in payload["nodes"] if n["id"] == "src/utils/helpers.ts")
    assert helpers["name"] == "helpers.ts"
    assert helpers["heat_class"] == "cold"
    assert helpers["position"] is None
    assert helpers["dependents"] == ["src/components/Header.tsx", "src/index.ts", "src/utils"]
    assert helpers["metrics"]["commit_count"] == 0


def test_positions_payload(sample_files):
    graph = build_graph(sample_files)
    assert positions_payload(graph) == {}

    layout_graph(graph, LayoutSettings(max_iterations=5))
    positions = positions_payload(graph)
    assert set(positions) == set(graph.nodes)
    assert all(len(p) == 3 for p in positions.values())


def test_apply_pins(sample_files):
    graph = build_graph(sample_files)
    changed = apply_pins(graph, {"src/App.ts": True, "config.js": False, "ghost.ts": True})
    assert changed == 1
    assert graph.nodes["src/App.ts"].fixed
    assert apply_pins(graph, {"src/App.ts": True}) == 0
