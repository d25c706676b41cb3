"""
============================================================
EMAIL NETWORK — DIRECTED COMMUNICATION GRAPH
============================================================
Directed, unweighted, simple graph over email addresses.

Nodes are never added on their own: an address exists once it
has appeared as either end of an edge. Recipients that never
send anything still get an (empty) adjacency entry so degree
queries see every participant, not just senders.
============================================================
"""

from types import MappingProxyType
from typing import Dict, Iterable, Optional, Set, Tuple

import networkx as nx


class Graph:
    """
    Adjacency-set graph:
      adjacency[node] -> set of out-neighbours

    Duplicate edges collapse (set semantics). Self-loops are kept
    and count towards both degrees of the node.
    """

    def __init__(self):
        self._adjacency: Dict[str, Set[str]] = {}
        self._vertex_count = 0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _ensure_node(self, node: str):
        if node not in self._adjacency:
            self._adjacency[node] = set()
            self._vertex_count += 1

    def add_edge(self, src: str, dst: str):
        """Insert src → dst, materialising either endpoint if unseen."""
        self._ensure_node(src)
        self._ensure_node(dst)
        self._adjacency[src].add(dst)

    @classmethod
    def build_from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "Graph":
        """Fold add_edge over (sender, recipient) pairs in arrival order."""
        graph = cls()
        for src, dst in pairs:
            graph.add_edge(src, dst)
        return graph

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def adjacency(self):
        return MappingProxyType(self._adjacency)

    @property
    def vertex_count(self) -> int:
        return self._vertex_count

    @property
    def edge_count(self) -> int:
        # Each distinct ordered pair lives in exactly one neighbour set
        return sum(len(nbrs) for nbrs in self._adjacency.values())

    def nodes(self):
        return list(self._adjacency)

    def get_neighbors(self, node: str) -> Optional[Set[str]]:
        return self._adjacency.get(node)

    def __contains__(self, node) -> bool:
        return node in self._adjacency

    def __len__(self) -> int:
        return self._vertex_count

    def __repr__(self) -> str:
        return f"Graph(nodes={self._vertex_count}, edges={self.edge_count})"

    # ------------------------------------------------------------------
    # Degree aggregation
    # ------------------------------------------------------------------

    def calculate_out_degrees(self) -> Dict[str, int]:
        return {node: len(nbrs) for node, nbrs in self._adjacency.items()}

    def calculate_in_degrees(self) -> Dict[str, int]:
        """
        Count, for every node, how many adjacency sets contain it.
        Nodes nobody writes to are reported with 0.
        """
        in_degrees = {node: 0 for node in self._adjacency}
        for nbrs in self._adjacency.values():
            for nbr in nbrs:
                in_degrees[nbr] += 1
        return in_degrees

    # ------------------------------------------------------------------
    # Interop
    # ------------------------------------------------------------------

    def to_networkx(self) -> nx.DiGraph:
        """Copy into a NetworkX DiGraph (isolated recipients included)."""
        G = nx.DiGraph()
        G.add_nodes_from(self._adjacency)
        G.add_edges_from(
            (src, dst) for src, nbrs in self._adjacency.items() for dst in nbrs
        )
        return G
