#!/usr/bin/env python
# coding: utf-8
"""
============================================================
EMAIL COMMUNICATION NETWORK — DEGREES & COMMUNITIES
============================================================
Purpose: Turn a CSV of (sender, recipients) email records into
         a directed communication graph, then report:
  - who sends the most mail (volume + distinct contacts)
  - in/out degree distributions
  - label-propagation communities (largest / smallest)

Optional JSON exports mirror the console report so the
numbers can be charted without re-running the pipeline.
============================================================
"""

import json
import os
from collections import Counter
from typing import Dict, List, Optional, Tuple

import networkx as nx

from communities import (
    DEFAULT_MAX_ITERATIONS,
    CommunityDetector,
    PropagationResult,
    community_sizes,
    group_communities,
)
from email_graph import Graph
from parse import CHUNK_SIZE, IngestResult, iter_pairs, read_emails


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOP_N = 10


# ---------------------------------------------------------------------------
# Helper utilities
# ---------------------------------------------------------------------------

def degree_histogram(degrees: Dict[str, int]) -> List[Tuple[int, int]]:
    """(degree, number of nodes with that degree), ascending by degree."""
    return sorted(Counter(degrees.values()).items())


def top_by(values: Dict[str, int], n: int) -> List[Tuple[str, int]]:
    """Highest n entries; equal values ordered by key."""
    return sorted(values.items(), key=lambda x: (-x[1], x[0]))[:n]


def partition_modularity(graph: Graph, labels: Dict[str, str]) -> float:
    """Modularity of the label partition on the undirected projection."""
    if graph.edge_count == 0:
        return 0.0
    UG = graph.to_networkx().to_undirected()
    parts = [set(members) for members in group_communities(labels).values()]
    return float(nx.community.modularity(UG, parts))


# ---------------------------------------------------------------------------
# Main analyzer
# ---------------------------------------------------------------------------

class EmailNetworkAnalyzer:
    """
    End-to-end pipeline:
      1. stream_and_parse   — read CSV into validated (sender, recipients)
      2. build_graph        — directed adjacency graph
      3. compute_metrics    — in/out degrees, label propagation
      4. report             — console summary
      5. export_results     — JSON outputs (only with an output dir)
    """

    def __init__(
        self,
        input_csv: str,
        output_dir: Optional[str] = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        seed: Optional[int] = None,
        chunk_size: int = CHUNK_SIZE,
        top_n: int = TOP_N,
        show_progress: bool = True,
    ):
        self.input_csv  = input_csv
        self.output_dir = output_dir
        self.seed       = seed
        self.chunk_size = chunk_size
        self.top_n      = top_n
        self.show_progress = show_progress
        self.detector   = CommunityDetector(max_iterations=max_iterations)

        # ── Populated by the stages ───────────────────────────────────────
        self.ingest: Optional[IngestResult] = None
        self.G: Optional[Graph] = None
        self.sent_ctr = Counter()   # emails sent (volume, not distinct contacts)
        self.out_degrees: Dict[str, int] = {}
        self.in_degrees: Dict[str, int] = {}
        self.propagation: Optional[PropagationResult] = None

    # ------------------------------------------------------------------
    # Stage 1: Streaming parse
    # ------------------------------------------------------------------

    def stream_and_parse(self):
        print("⚙️  Streaming CSV …")
        self.ingest = read_emails(
            self.input_csv, chunk_size=self.chunk_size, show_progress=self.show_progress
        )
        print(f"   {len(self.ingest.emails):,} valid emails from {self.ingest.total_rows:,} rows")
        if self.ingest.failed:
            print(f"   {self.ingest.failed:,} records skipped")

    # ------------------------------------------------------------------
    # Stage 2: Graph construction
    # ------------------------------------------------------------------

    def build_graph(self):
        print("📊 Building graph …")
        self.G = Graph.build_from_pairs(iter_pairs(self.ingest.emails))
        self.sent_ctr = Counter(email.sender for email in self.ingest.emails)
        print(f"   {self.G.vertex_count:,} nodes, {self.G.edge_count:,} edges")

    # ------------------------------------------------------------------
    # Stage 3: Degrees & communities
    # ------------------------------------------------------------------

    def compute_metrics(self):
        print("📐 Computing degrees …")
        self.out_degrees = self.G.calculate_out_degrees()
        self.in_degrees  = self.G.calculate_in_degrees()

        print("🏘️  Label propagation …")
        self.propagation = self.detector.propagate(self.G, rng=self.seed)
        status = "converged" if self.propagation.converged else "hit iteration cap"
        print(
            f"   {self.propagation.n_communities:,} communities "
            f"after {self.propagation.iterations} iterations ({status})"
        )

    # ------------------------------------------------------------------
    # Summary (shared by report + export)
    # ------------------------------------------------------------------

    def summary(self) -> dict:
        labels = self.propagation.labels
        groups = group_communities(labels)
        sizes  = community_sizes(labels)

        communities = [
            {
                "community_id": label,
                "size":         size,
                "members":      sorted(
                    groups[label], key=lambda n: (-self.out_degrees.get(n, 0), n)
                ),
            }
            for label, size in sizes
        ]

        stats = {
            "total_emails":   len(self.ingest.emails),
            "total_rows":     self.ingest.total_rows,
            "failed_records": self.ingest.failed,
            "total_nodes":    self.G.vertex_count,
            "total_edges":    self.G.edge_count,
            "n_communities":  len(sizes),
            "iterations":     self.propagation.iterations,
            "converged":      self.propagation.converged,
            "modularity":     round(partition_modularity(self.G, labels), 4),
        }

        return {
            "stats":           stats,
            "top_senders":     top_by(dict(self.sent_ctr), self.top_n),
            "top_out_degree":  top_by(self.out_degrees, self.top_n),
            "top_in_degree":   top_by(self.in_degrees, self.top_n),
            "out_degree_hist": degree_histogram(self.out_degrees),
            "in_degree_hist":  degree_histogram(self.in_degrees),
            "communities":     communities,
        }

    # ------------------------------------------------------------------
    # Stage 4: Console report
    # ------------------------------------------------------------------

    def report(self, summary: dict):
        stats = summary["stats"]
        print()
        _col_w = max(len(k) for k in stats) + 2
        for k, v in stats.items():
            print(f"   {k:<{_col_w}} {v}")

        def _ranked(title, rows, unit):
            print(f"\n{title}")
            for i, (node, value) in enumerate(rows, 1):
                print(f"   {i:>3}. {node:<40} {value:>6} {unit}")

        _ranked(f"📨 Top {self.top_n} senders:", summary["top_senders"], "emails")
        _ranked(f"➡️  Top {self.top_n} by out-degree:", summary["top_out_degree"], "contacts")
        _ranked(f"⬅️  Top {self.top_n} by in-degree:", summary["top_in_degree"], "senders")

        comms = summary["communities"]
        if comms:
            for title, c in (("Largest", comms[0]), ("Smallest", comms[-1])):
                shown = c["members"][: self.top_n]
                more = len(c["members"]) - len(shown)
                print(f"\n🏘️  {title} community ({c['community_id']}): {c['size']} members")
                for m in shown:
                    print(f"   - {m}")
                if more > 0:
                    print(f"   … and {more} more")

        for title, hist in (
            ("Out-degree", summary["out_degree_hist"]),
            ("In-degree", summary["in_degree_hist"]),
        ):
            print(f"\n📈 {title} distribution (degree: nodes):")
            for degree, count in hist:
                print(f"   {degree:>5}: {count}")

    # ------------------------------------------------------------------
    # Stage 5: Export
    # ------------------------------------------------------------------

    def export_results(self, summary: dict):
        """Write the summary as JSON files into output_dir."""
        print("💾 Exporting …")
        out = self.output_dir
        os.makedirs(out, exist_ok=True)

        sep = (",", ":")

        degree_dist = {
            "out_degree": [{"degree": d, "count": c} for d, c in summary["out_degree_hist"]],
            "in_degree":  [{"degree": d, "count": c} for d, c in summary["in_degree_hist"]],
        }

        top_nodes = [
            {
                "id":         n,
                "sent":       self.sent_ctr.get(n, 0),
                "out_degree": self.out_degrees.get(n, 0),
                "in_degree":  self.in_degrees.get(n, 0),
                "community":  self.propagation.labels.get(n),
            }
            for n, _ in summary["top_senders"]
        ]

        with open(f"{out}/degree_dist.json", "w") as f:
            json.dump(degree_dist, f, separators=sep)

        with open(f"{out}/communities.json", "w") as f:
            json.dump(summary["communities"], f, separators=sep)

        with open(f"{out}/top_nodes.json", "w") as f:
            json.dump(top_nodes, f, separators=sep)

        with open(f"{out}/stats.json", "w") as f:
            json.dump(summary["stats"], f, indent=2)

        print(f"\n✅  Done! Files in: {out}/")
        for fname in sorted(os.listdir(out)):
            size = os.path.getsize(f"{out}/{fname}")
            print(f"   {fname:<35} {size/1024:>8.1f} KB")

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    def run(self) -> dict:
        """Execute the full pipeline and return the summary."""
        self.stream_and_parse()
        self.build_graph()
        self.compute_metrics()
        summary = self.summary()
        self.report(summary)
        if self.output_dir:
            self.export_results(summary)
        return summary
