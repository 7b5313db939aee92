import math

import numpy as np
import pytest

from heatgraph import Graph, LayoutEngine, LayoutSettings, Node, SimulationDiverged, build_graph, layout_graph
from heatgraph.layout import seed_positions


def _pair_engine(settings=None, **node_b):
    engine = LayoutEngine(settings)
    engine.start(
        [{"id": "a"}, dict({"id": "b"}, **node_b)],
        [{"source": "a", "target": "b", "strength": 1.0}],
    )
    return engine


def _distance(positions, a, b):
    return math.dist(positions[a], positions[b])


class TestSeeding:
    def test_deterministic(self):
        np.testing.assert_array_equal(seed_positions(20), seed_positions(20))

    def test_distinct_positions(self):
        pts = seed_positions(50)
        assert len({tuple(np.round(p, 9)) for p in pts}) == 50

    def test_missing_positions_are_seeded(self):
        engine = LayoutEngine()
        engine.start([{"id": "b"}, {"id": "a", "position": [1.0, 2.0, 3.0]}])
        assert engine.ids == ["a", "b"]
        assert engine.positions()["a"] == (1.0, 2.0, 3.0)
        assert all(math.isfinite(c) for c in engine.positions()["b"])


class TestConvergence:
    def test_two_node_equilibrium(self):
        engine = _pair_engine()
        snap = engine.run_to_convergence()

        assert snap.converged
        assert engine.converged
        assert engine.max_speed() < 1e-2
        assert 20.0 < _distance(snap.positions, "a", "b") < 45.0

    def test_centroid_is_pulled_to_origin(self):
        engine = _pair_engine()
        engine.run_to_convergence()
        assert np.linalg.norm(engine.pos.mean(axis=0)) < 1.0

    def test_centering_ignores_pinned_nodes(self):
        engine = LayoutEngine(LayoutSettings(charge_strength=0.0))
        engine.start(
            [
                {"id": "anchor", "position": [100.0, 0.0, 0.0], "fixed": True},
                {"id": "free", "position": [0.0, 0.0, 0.0]},
            ]
        )
        # The free node already sits at the origin, so no centering pull acts on it
        np.testing.assert_allclose(engine.compute_forces()[engine.ids.index("free")], 0.0)

    def test_all_pinned_has_no_centering(self):
        engine = LayoutEngine(LayoutSettings(charge_strength=0.0))
        engine.start([{"id": "a", "position": [3.0, 0.0, 0.0], "fixed": True}])
        np.testing.assert_array_equal(engine.compute_forces(), 0.0)

    def test_alpha_decays_geometrically(self):
        settings = LayoutSettings()
        engine = _pair_engine(settings)
        engine.tick()
        assert engine.alpha == pytest.approx(1.0 - settings.alpha_decay)
        engine.tick()
        assert engine.alpha == pytest.approx((1.0 - settings.alpha_decay) ** 2)

    def test_iteration_cap(self):
        engine = _pair_engine(LayoutSettings(max_iterations=10))
        snap = engine.run_to_convergence()
        assert snap.iteration == 10
        assert snap.converged

    def test_sample_repository_layout(self, sample_files):
        graph = build_graph(sample_files)
        snap = layout_graph(graph)
        assert snap.converged
        for node in graph.nodes.values():
            assert node.position is not None
            assert all(math.isfinite(c) for c in node.position)


class TestStreaming:
    def test_stride_and_final_snapshot(self):
        engine = _pair_engine(LayoutSettings(tick_stride=5, max_iterations=23))
        iterations = [snap.iteration for snap in engine.run()]
        assert iterations == [5, 10, 15, 20, 23]

    def test_capped_run_can_resume(self):
        engine = _pair_engine(LayoutSettings(max_iterations=50))
        first = list(engine.run(max_iterations=7))
        assert first[-1].iteration == 7
        assert not first[-1].converged
        rest = list(engine.run())
        assert rest[-1].iteration == 50
        assert rest[-1].converged


class TestReset:
    def test_reset_reproduces_fresh_forces(self, sample_files):
        graph = build_graph(sample_files)

        fresh = LayoutEngine()
        fresh.start_graph(graph)
        expected = fresh.compute_forces()

        engine = LayoutEngine()
        engine.start_graph(graph)
        for _ in range(10):
            engine.tick()
        engine.reset()
        engine.start_graph(graph)

        np.testing.assert_allclose(engine.compute_forces(), expected)

    def test_reset_keeps_identity_and_positions(self):
        engine = _pair_engine()
        for _ in range(5):
            engine.tick()
        before = engine.positions()
        engine.reset()

        assert engine.ids == ["a", "b"]
        assert engine.positions() == before
        assert engine.iteration == 0
        assert engine.alpha == engine.settings.alpha
        assert engine.kinetic_energy() == 0.0


class TestFixedNodes:
    def test_pinned_node_does_not_move(self):
        engine = _pair_engine()
        engine.pin("a", (0.0, 0.0, 0.0))
        for _ in range(20):
            engine.tick()
        assert engine.positions()["a"] == (0.0, 0.0, 0.0)
        assert _distance(engine.positions(), "a", "b") > 0.0

    def test_fixed_flag_from_input(self):
        engine = LayoutEngine()
        engine.start(
            [{"id": "a", "position": [5.0, 5.0, 5.0], "fixed": True}, {"id": "b"}],
            [{"source": "a", "target": "b"}],
        )
        before = engine.positions()["b"]
        engine.tick()
        assert engine.positions()["a"] == (5.0, 5.0, 5.0)
        assert engine.positions()["b"] != before

    def test_unpin(self):
        engine = _pair_engine()
        engine.pin("a")
        engine.unpin("a")
        start = engine.positions()["a"]
        engine.tick()
        assert engine.positions()["a"] != start


class TestEdgesAndDegenerateInput:
    def test_unknown_and_self_edges_are_ignored(self):
        engine = LayoutEngine()
        engine.start(
            [{"id": "a"}, {"id": "b"}],
            [
                {"source": "a", "target": "b"},
                {"source": "a", "target": "a"},
                {"source": "a", "target": "ghost"},
            ],
        )
        assert len(engine._src) == 1

    def test_coincident_nodes_separate(self):
        engine = LayoutEngine()
        engine.start([{"id": "a", "position": [0, 0, 0]}, {"id": "b", "position": [0, 0, 0]}])
        for _ in range(5):
            engine.tick()
        assert _distance(engine.positions(), "a", "b") > 0.0

    def test_empty_graph(self):
        engine = LayoutEngine()
        engine.start([])
        snap = engine.run_to_convergence()
        assert snap.positions == {}
        assert engine.max_speed() == 0.0

    def test_bad_vector_is_rejected(self):
        engine = LayoutEngine()
        with pytest.raises(ValueError):
            engine.start([{"id": "a", "position": [1.0, 2.0]}])


class TestDivergence:
    def test_non_finite_position_raises(self):
        engine = _pair_engine(position=[float("nan"), 0.0, 0.0])
        with pytest.raises(SimulationDiverged) as info:
            engine.tick()
        assert info.value.iteration == 1
        assert "b" in info.value.node_ids

    def test_layout_graph_propagates(self):
        g = Graph()
        g.add_node(Node(id="a.ts", position=(float("inf"), 0.0, 0.0)))
        g.add_node(Node(id="b.ts"))
        with pytest.raises(SimulationDiverged):
            layout_graph(g)


def test_write_back():
    g = Graph()
    g.add_node(Node(id="a.ts"))
    g.add_node(Node(id="b.ts"))
    g.add_edge("a.ts", "b.ts")
    g.recompute_adjacency()

    engine = LayoutEngine(LayoutSettings(max_iterations=5))
    engine.start_graph(g)
    engine.run_to_convergence()
    assert engine.write_back(g) == 2
    assert g.nodes["a.ts"].position == engine.positions()["a.ts"]
    assert len(g.nodes["b.ts"].velocity) == 3


def test_settings_validation():
    with pytest.raises(ValueError):
        LayoutSettings(velocity_decay=1.0)
    with pytest.raises(ValueError):
        LayoutSettings(alpha_decay=0.0)
    with pytest.raises(ValueError):
        LayoutSettings(tick_stride=0)
