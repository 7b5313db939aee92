import pytest

from heatgraph import Graph, Node, build_graph, compute_graph_stats, find_dependency_cycles, rank_hot_zones
from heatgraph.analytics import classify_heat, most_depended_on


def _graph(edges, heat=None):
    heat = heat or {}
    g = Graph()
    for nid in sorted({n for e in edges for n in e} | set(heat)):
        g.add_node(Node(id=nid, heat_score=heat.get(nid, 0.0)))
    for s, t in edges:
        g.add_edge(s, t)
    g.recompute_adjacency()
    return g


class TestStats:
    def test_sample_repository(self, sample_files):
        stats = compute_graph_stats(build_graph(sample_files))
        assert stats.n_nodes == 9
        assert stats.n_files == 6
        assert stats.n_folders == 3
        assert stats.n_edges == 11
        assert stats.n_dependency_edges == 5
        assert stats.density == pytest.approx(5 / 72)
        assert stats.avg_degree == pytest.approx(10 / 9)

    def test_empty_graph(self):
        stats = compute_graph_stats(Graph())
        assert stats.as_dict()["n_nodes"] == 0

    def test_heat_summary(self):
        stats = compute_graph_stats(_graph([("a", "b")], heat={"a": 0.2, "b": 0.6}))
        assert stats.mean_heat == pytest.approx(0.4)
        assert stats.max_heat == pytest.approx(0.6)


class TestCycles:
    def test_cycles_are_normalized(self):
        g = _graph([("c", "a"), ("a", "b"), ("b", "c"), ("e", "d"), ("d", "e"), ("x", "y")])
        assert find_dependency_cycles(g) == [["d", "e"], ["a", "b", "c"]]

    def test_acyclic(self, sample_files):
        assert find_dependency_cycles(build_graph(sample_files)) == []

    def test_limit(self):
        g = _graph([("a", "b"), ("b", "a"), ("c", "d"), ("d", "c")])
        assert len(find_dependency_cycles(g, limit=1)) == 1


class TestHotZones:
    def test_rank_above_threshold(self):
        g = _graph([], heat={"a": 0.9, "b": 0.5, "c": 0.7, "d": 0.7, "e": 0.1})
        assert [n.id for n in rank_hot_zones(g)] == ["a", "c", "d", "b"]
        assert [n.id for n in rank_hot_zones(g, threshold=0.0, top_n=2)] == ["a", "c"]
        assert len(rank_hot_zones(g, threshold=0.0, top_n=None)) == 5

    def test_threshold_matches_hot_label(self):
        g = _graph([], heat={"edge": 0.5, "below": 0.4999})
        ranked = rank_hot_zones(g)
        assert [n.id for n in ranked] == ["edge"]
        assert all(classify_heat(n.heat_score) in ("hot", "critical") for n in ranked)

    def test_folders_are_not_ranked(self):
        g = _graph([], heat={"a": 0.9})
        g.add_node(Node(id="dir", kind="folder", heat_score=0.95))
        assert [n.id for n in rank_hot_zones(g)] == ["a"]

    @pytest.mark.parametrize(
        "score, label",
        [(0.0, "cold"), (0.19, "cold"), (0.2, "warm"), (0.5, "hot"), (0.69, "hot"), (0.7, "critical"), (1.0, "critical")],
    )
    def test_classify_heat(self, score, label):
        assert classify_heat(score) == label


def test_most_depended_on(sample_files):
    top = most_depended_on(build_graph(sample_files), top_n=1)
    # helpers.ts: index.ts, Header.tsx and its folder point at it
    assert [n.id for n in top] == ["src/utils/helpers.ts"]
