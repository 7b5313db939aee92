import pytest

from heatgraph import HeatPolicy, Graph, Node, aggregate_commits, aggregate_history, apply_history
from heatgraph.history import commits_frame

NOW = "2024-06-30T00:00:00Z"


def _commit(message, date, author="alice"):
    return {"message": message, "date": date, "authorId": author}


class TestAggregateCommits:
    def test_counts(self):
        commits = [
            _commit("fix null deref", "2024-06-25T10:00:00Z", "alice"),
            _commit("Add helper", "2024-01-10T10:00:00Z", "bob"),
            _commit("resolve issue #4", "2024-06-29T08:00:00Z", "alice"),
        ]
        assert aggregate_commits(commits, now=NOW) == {
            "commit_count": 3,
            "bug_fix_count": 2,
            "recent_commits": 2,
            "contributor_count": 2,
        }

    def test_empty_history(self):
        assert aggregate_commits([], now=NOW) == {
            "commit_count": 0,
            "bug_fix_count": 0,
            "recent_commits": 0,
            "contributor_count": 0,
        }

    def test_unparseable_date_counts_but_is_never_recent(self):
        got = aggregate_commits([_commit("tweak", "not a date")], now=NOW)
        assert got["commit_count"] == 1
        assert got["recent_commits"] == 0

    def test_epoch_dates(self):
        commits = [
            _commit("a", 1719532800000),  # 2024-06-28 in milliseconds
            _commit("b", 1719532800),     # same instant in seconds
            _commit("c", 1577836800000),  # 2020-01-01
        ]
        got = aggregate_commits(commits, now=NOW)
        assert got["recent_commits"] == 2

    def test_recent_window_from_policy(self):
        commits = [_commit("a", "2024-05-15T00:00:00Z"), _commit("b", "2024-06-29T00:00:00Z")]
        assert aggregate_commits(commits, now=NOW)["recent_commits"] == 1
        wide = HeatPolicy(recent_window_days=60)
        assert aggregate_commits(commits, policy=wide, now=NOW)["recent_commits"] == 2

    def test_missing_author_is_not_a_contributor(self):
        commits = [_commit("a", "2024-06-29", None), _commit("b", "2024-06-29", "bob")]
        assert aggregate_commits(commits, now=NOW)["contributor_count"] == 1

    def test_naive_dates_are_utc(self):
        got = aggregate_commits([_commit("a", "2024-06-20 12:00:00")], now=NOW)
        assert got["recent_commits"] == 1

    def test_bad_reference_time(self):
        with pytest.raises(ValueError):
            aggregate_commits([_commit("a", "2024-06-29")], now="whenever")


class TestAggregateHistory:
    def test_frame_shape(self, sample_commits):
        frame = aggregate_history(sample_commits, now=NOW)
        assert list(frame.columns) == ["commit_count", "bug_fix_count", "recent_commits", "contributor_count"]
        assert list(frame.index) == ["src/App.ts", "src/utils/helpers.ts"]
        assert frame.loc["src/utils/helpers.ts"].tolist() == [3, 2, 2, 2]
        assert frame.loc["src/App.ts"].tolist() == [1, 0, 0, 1]

    def test_paths_with_empty_lists_are_zero(self):
        frame = aggregate_history({"a.ts": [], "./b.ts": [_commit("fix", "2024-06-29")]}, now=NOW)
        assert frame.loc["a.ts"].tolist() == [0, 0, 0, 0]
        assert frame.loc["b.ts", "bug_fix_count"] == 1

    def test_commits_frame_columns(self, sample_commits):
        df = commits_frame(sample_commits, now=NOW)
        assert list(df.columns) == ["path", "message", "author_id", "date", "is_bug_fix", "is_recent"]
        assert len(df) == 4
        assert int(df["is_bug_fix"].sum()) == 2


class TestApplyHistory:
    def _graph(self):
        g = Graph()
        g.add_node(Node(id="src", kind="folder"))
        g.add_node(Node(id="src/App.ts", commit_count=99))
        g.add_node(Node(id="src/utils/helpers.ts"))
        return g

    def test_updates_file_nodes(self, sample_commits):
        g = self._graph()
        updated = apply_history(g, aggregate_history(sample_commits, now=NOW))
        assert updated == 2
        helpers = g.nodes["src/utils/helpers.ts"]
        assert (helpers.commit_count, helpers.bug_fix_count, helpers.recent_commits, helpers.contributor_count) == (
            3, 2, 2, 2,
        )
        assert g.nodes["src/App.ts"].commit_count == 1

    def test_files_without_history_are_reset(self):
        g = self._graph()
        apply_history(g, aggregate_history({}, now=NOW))
        assert g.nodes["src/App.ts"].commit_count == 0

    def test_unknown_paths_are_logged(self, recorder):
        g = self._graph()
        frame = aggregate_history({"gone.ts": [_commit("a", "2024-06-29")], "src": []}, now=NOW)
        assert apply_history(g, frame, emit=recorder) == 0
        assert any("2 unknown" in m for m in recorder.messages("warn"))
