"""
Collision force: treat entities as circles and push overlapping ones apart.

Each iteration builds a quadtree over the entities' next positions
(position + velocity) and records the largest radius in every cell. Each
entity then visits only the cells that could hold an overlapping circle.
For an overlapping pair at distance l with combined radius r, the pair is
pushed apart by (r - l) / l * strength, shared by area so that a small
circle moves more than a large one:

    share_i = rj² / (ri² + rj²)

Unlike the other forces, collision is not scaled by alpha: overlap is
resolved at full strength for as long as the simulation runs.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Hashable, Mapping, Sequence
import math

import numpy as np

from forcesim.core.forces import Force, jiggle, resolve_indices, resolve_parameter
from forcesim.core.quadtree import Leaf, Quad, QuadTree


@dataclass(frozen=True)
class Collision(Force):
    """
    Circle collision.

    Args:
        radius: Radius for every participating entity (None = default)
        radii: Per-id radius overriding `radius`
        nodes: Participating ids (None = all entities)
        strength: Fraction of the overlap resolved per iteration, in [0, 1]
        iterations: Passes per tick; more passes give a stiffer result
    """

    radius: float | None = None
    radii: Mapping[Hashable, float] | None = field(default=None, hash=False)
    nodes: Sequence[Hashable] | None = field(default=None, hash=False)
    strength: float | None = None
    iterations: int | None = None

    def __post_init__(self):
        if self.iterations is not None and self.iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {self.iterations}")

    def bind(self, arrays, defaults):
        radius = defaults.collision_radius if self.radius is None else self.radius
        strength = defaults.collision_strength if self.strength is None else self.strength
        iterations = (
            defaults.collision_iterations if self.iterations is None else self.iterations
        )
        return _BoundCollision(
            rows=resolve_indices(arrays, self.nodes),
            radii=resolve_parameter(arrays, radius, self.radii).tolist(),
            strength=strength,
            iterations=iterations,
        )


@dataclass
class _BoundCollision:
    rows: np.ndarray
    radii: list[float]
    strength: float
    iterations: int

    def apply(self, arrays, alpha, random):
        if self.rows.size < 2:
            return

        rows = self.rows.tolist()
        x = arrays.x.tolist()
        y = arrays.y.tolist()
        vx = arrays.vx.tolist()
        vy = arrays.vy.tolist()
        radii = self.radii
        strength = self.strength

        for _ in range(self.iterations):
            tree = QuadTree(
                [x[i] + vx[i] for i in rows],
                [y[i] + vy[i] for i in rows],
                indices=rows,
            )
            tree.visit_after(lambda quad, *bounds: _prepare(quad, radii))

            for i in rows:
                ri = radii[i]
                ri2 = ri * ri
                xi = x[i] + vx[i]
                yi = y[i] + vy[i]

                def apply(quad, x0, y0, x1, y1):
                    if isinstance(quad, Quad):
                        r = ri + quad.r
                        # Skip cells that cannot reach this circle
                        return x0 > xi + r or x1 < xi - r or y0 > yi + r or y1 < yi - r

                    # Each pair is handled once, by its lower index
                    for leaf in quad.chain():
                        j = leaf.index
                        if j <= i:
                            continue
                        rj = radii[j]
                        r = ri + rj
                        dx = xi - x[j] - vx[j]
                        dy = yi - y[j] - vy[j]
                        l = dx * dx + dy * dy
                        if l >= r * r:
                            continue
                        if dx == 0:
                            dx = jiggle(random)
                            l += dx * dx
                        if dy == 0:
                            dy = jiggle(random)
                            l += dy * dy
                        l = math.sqrt(l)
                        push = (r - l) / l * strength
                        dx *= push
                        dy *= push
                        rj2 = rj * rj
                        share = rj2 / (ri2 + rj2)
                        vx[i] += dx * share
                        vy[i] += dy * share
                        vx[j] -= dx * (1 - share)
                        vy[j] -= dy * (1 - share)
                    return False

                tree.visit(apply)

        arrays.vx[:] = vx
        arrays.vy[:] = vy


def _prepare(quad: Quad | Leaf, radii: list[float]) -> None:
    """Largest radius within each cell, children first."""
    if isinstance(quad, Leaf):
        quad.r = max(radii[leaf.index] for leaf in quad.chain())
    else:
        quad.r = max(child.r for child in quad.children if child is not None)
