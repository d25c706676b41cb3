"""
============================================================
EMAIL NETWORK — LABEL PROPAGATION COMMUNITIES
============================================================
Asynchronous label propagation over the directed email graph.

  1. every address starts as its own label
  2. each pass visits all nodes in a fresh random order
  3. a node adopts the most common label among its OUT-neighbours
     (ties → lexicographically smallest label)
  4. stop after a pass with no changes, or at the iteration cap

Updates are applied in place, so a node visited later in a pass
already sees labels changed earlier in the same pass. Nodes with
no out-neighbours are never updated and stay singletons.
============================================================
"""

from collections import Counter, defaultdict
from typing import Dict, List, Tuple, Union

import numpy as np
from pydantic import BaseModel

from email_graph import Graph

# Safety bound: LPA is not guaranteed to converge (label swapping on
# bipartite-like structure), so every run is capped.
DEFAULT_MAX_ITERATIONS = 100

RandomLike = Union[None, int, np.random.Generator]


class PropagationResult(BaseModel):
    labels: Dict[str, str]
    iterations: int
    converged: bool

    @property
    def n_communities(self) -> int:
        return len(set(self.labels.values()))


def _pick_label(tally: Counter) -> str:
    best = max(tally.values())
    return min(label for label, count in tally.items() if count == best)


class CommunityDetector:
    """Label-propagation community detection on a `Graph`."""

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")
        self.max_iterations = max_iterations

    def propagate(self, graph: Graph, rng: RandomLike = None) -> PropagationResult:
        """
        Run label propagation and report how it terminated.

        `rng` may be a numpy Generator, an int seed, or None for a fresh
        OS-seeded generator. Nothing is shared between calls.
        """
        rng = np.random.default_rng(rng)

        nodes = graph.nodes()
        labels = {node: node for node in nodes}

        iterations = 0
        converged = False
        while iterations < self.max_iterations:
            iterations += 1
            changed = False

            for idx in rng.permutation(len(nodes)):
                node = nodes[idx]
                nbrs = graph.get_neighbors(node)
                if not nbrs:
                    continue

                tally = Counter(labels[nbr] for nbr in nbrs)
                winner = _pick_label(tally)
                if winner != labels[node]:
                    labels[node] = winner
                    changed = True

            if not changed:
                converged = True
                break

        return PropagationResult(labels=labels, iterations=iterations, converged=converged)

    def detect(self, graph: Graph, rng: RandomLike = None) -> Dict[str, str]:
        """Return the final node → label assignment."""
        return self.propagate(graph, rng).labels


# ---------------------------------------------------------------------------
# Grouping helpers (for reporting)
# ---------------------------------------------------------------------------

def group_communities(labels: Dict[str, str]) -> Dict[str, List[str]]:
    """label -> sorted member list."""
    groups: Dict[str, List[str]] = defaultdict(list)
    for node, label in labels.items():
        groups[label].append(node)
    return {label: sorted(members) for label, members in groups.items()}


def community_sizes(labels: Dict[str, str]) -> List[Tuple[str, int]]:
    """(label, size) pairs, biggest first; equal sizes ordered by label."""
    sizes = Counter(labels.values())
    return sorted(sizes.items(), key=lambda x: (-x[1], x[0]))
