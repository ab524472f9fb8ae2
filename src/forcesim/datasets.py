"""
Synthetic datasets for demos and tests.

Stand-ins for the fetched datasets of the charting gallery: each generator
returns plain nodes plus links, ready to wrap in entities and a Links force.
"""

from __future__ import annotations
from dataclasses import dataclass, field

import numpy as np

from forcesim.core.entities import Entity, entity
from forcesim.core.links import Link


@dataclass
class Graph:
    """Nodes (as entities on the phyllotaxis spiral) plus links."""

    nodes: list[Entity] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)

    @property
    def edges(self) -> list[tuple]:
        return [(link.source, link.target) for link in self.links]

    def degree(self) -> dict:
        counts = {node.id: 0 for node in self.nodes}
        for link in self.links:
            counts[link.source] += 1
            counts[link.target] += 1
        return counts


def random_graph(
    n_nodes: int,
    n_links: int,
    rng: np.random.Generator | None = None,
    n_groups: int = 1,
) -> Graph:
    """
    Random connected graph.

    A random spanning tree guarantees connectivity; the remaining links are
    drawn uniformly among unused pairs. Node payload is {"group": g}.

    Raises:
        ValueError: if n_links cannot fit (must be in [n_nodes - 1, n(n-1)/2])
    """
    if rng is None:
        rng = np.random.default_rng()

    max_links = n_nodes * (n_nodes - 1) // 2
    if n_nodes > 0 and not n_nodes - 1 <= n_links <= max_links:
        raise ValueError(
            f"n_links must be in [{n_nodes - 1}, {max_links}], got {n_links}"
        )

    groups = rng.integers(0, n_groups, size=n_nodes)
    nodes = [entity(i, {"group": int(groups[i])}) for i in range(n_nodes)]

    pairs: set[tuple[int, int]] = set()
    for i in range(1, n_nodes):
        j = int(rng.integers(0, i))
        pairs.add((j, i))

    while len(pairs) < n_links:
        a, b = sorted(int(v) for v in rng.choice(n_nodes, size=2, replace=False))
        pairs.add((a, b))

    links = [Link(a, b) for a, b in sorted(pairs)]
    return Graph(nodes, links)


def balanced_tree(branching: int, depth: int) -> Graph:
    """
    Complete tree with the given branching factor.

    Node 0 is the root; payload is {"depth": d}.
    """
    if branching < 1 or depth < 0:
        raise ValueError("branching must be >= 1 and depth >= 0")

    nodes = [entity(0, {"depth": 0})]
    links = []
    frontier = [0]
    for d in range(1, depth + 1):
        next_frontier = []
        for parent in frontier:
            for _ in range(branching):
                child = len(nodes)
                nodes.append(entity(child, {"depth": d}))
                links.append(Link(parent, child))
                next_frontier.append(child)
        frontier = next_frontier

    return Graph(nodes, links)


def beeswarm_values(
    n: int, rng: np.random.Generator | None = None, loc: float = 0.0, scale: float = 1.0
) -> np.ndarray:
    """Normally distributed values to lay out along one axis."""
    if rng is None:
        rng = np.random.default_rng()
    return rng.normal(loc, scale, size=n)
