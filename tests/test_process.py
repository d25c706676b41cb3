"""Tests for process.py and main.py — pipeline, report and CLI."""

import json

import pytest

from email_graph import Graph
from main import main
from process import EmailNetworkAnalyzer, degree_histogram, partition_modularity, top_by

from conftest import TRIANGLES


def _triangle_rows():
    # addresses are lower-cased on ingest
    return [f"{i},2001-01-01,{u.lower()},{v.lower()},s,t" for i, (u, v) in enumerate(TRIANGLES)]


class TestHelpers:
    def test_degree_histogram(self, example_graph):
        assert degree_histogram(example_graph.calculate_out_degrees()) == [(0, 3), (1, 1), (3, 2)]
        assert degree_histogram(example_graph.calculate_in_degrees()) == [(0, 1), (1, 4), (3, 1)]

    def test_top_by_orders_ties_by_key(self):
        assert top_by({"b": 2, "a": 2, "c": 5, "d": 1}, 3) == [("c", 5), ("a", 2), ("b", 2)]

    def test_modularity_of_two_triangles(self, triangles_graph):
        labels = {n: ("A" if n in "ABC" else "D") for n in triangles_graph.nodes()}
        assert partition_modularity(triangles_graph, labels) == pytest.approx(0.5)

    def test_modularity_without_edges(self):
        assert partition_modularity(Graph(), {}) == 0.0


class TestAnalyzer:
    def test_run_on_triangles(self, write_csv, capsys):
        path = write_csv(_triangle_rows() + ["99,2001-01-01,,A,s,t"])
        summary = EmailNetworkAnalyzer(path, seed=0, show_progress=False).run()

        stats = summary["stats"]
        assert stats["total_emails"] == 12
        assert stats["failed_records"] == 1
        assert stats["total_nodes"] == 6
        assert stats["total_edges"] == 12
        assert stats["n_communities"] == 2
        assert stats["converged"] is True
        assert [c["size"] for c in summary["communities"]] == [3, 3]
        assert summary["top_senders"][0] == ("a", 2)

        out = capsys.readouterr().out
        assert "Largest community" in out
        assert "Smallest community" in out
        assert "Out-degree distribution" in out

    def test_sent_counts_emails_not_contacts(self, write_csv):
        path = write_csv([
            '0,d,a@x.com,"b@x.com,c@x.com",s,t',
            "1,d,a@x.com,b@x.com,s,t",
        ])
        analyzer = EmailNetworkAnalyzer(path, seed=1, show_progress=False)
        summary = analyzer.run()
        assert analyzer.sent_ctr["a@x.com"] == 2
        assert analyzer.out_degrees["a@x.com"] == 2
        assert summary["top_in_degree"][0] == ("b@x.com", 1)

    def test_export_writes_json(self, write_csv, tmp_path):
        out_dir = tmp_path / "out"
        path = write_csv(_triangle_rows())
        EmailNetworkAnalyzer(path, output_dir=str(out_dir), seed=2, show_progress=False).run()

        for name in ("degree_dist.json", "communities.json", "top_nodes.json", "stats.json"):
            assert (out_dir / name).exists()

        communities = json.loads((out_dir / "communities.json").read_text())
        assert sorted(sorted(c["members"]) for c in communities) == [
            ["a", "b", "c"], ["d", "e", "f"],
        ]
        degree_dist = json.loads((out_dir / "degree_dist.json").read_text())
        assert degree_dist["out_degree"] == [{"degree": 2, "count": 6}]
        stats = json.loads((out_dir / "stats.json").read_text())
        assert stats["n_communities"] == 2


class TestCli:
    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.csv")]) == 1
        assert "not found" in capsys.readouterr().out

    def test_bad_iteration_cap(self, write_csv, capsys):
        assert main([write_csv(_triangle_rows()), "--max-iterations", "0"]) == 1
        assert "--max-iterations" in capsys.readouterr().out

    def test_missing_columns(self, write_csv, capsys):
        path = write_csv(["0,d,a@x.com"], header=",date,sender\n")
        assert main([path, "--no-progress"]) == 1
        assert "missing required columns" in capsys.readouterr().out

    def test_full_run(self, write_csv, tmp_path):
        out_dir = tmp_path / "report"
        args = [write_csv(_triangle_rows()), "--output-dir", str(out_dir),
                "--seed", "5", "--top", "3", "--no-progress"]
        assert main(args) == 0
        assert (out_dir / "stats.json").exists()
