"""
Many-body force: charge between every pair of entities.

Negative strength repels (the default), positive attracts. Summing all
pairs is O(n²); instead a quadtree is built every tick and distant cells
are treated as a single aggregate charge at their centre of charge
(Barnes–Hut). A cell of width w at squared distance l counts as "far" when

    w² / θ² < l

so a smaller θ opens more cells (more accurate, slower).

Guards:
- squared distances below distance_min² are clamped as l = sqrt(dmin² · l),
  which keeps near-coincident entities from blowing up
- pairs beyond distance_max are ignored
- exactly zero offsets are jiggled so coincident entities can separate
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Hashable, Mapping, Sequence

import numpy as np

from forcesim.core.forces import Force, jiggle, resolve_indices, resolve_parameter
from forcesim.core.quadtree import Leaf, Quad, QuadTree


@dataclass(frozen=True)
class ManyBody(Force):
    """
    Barnes–Hut approximated repulsion (or attraction).

    Args:
        strength: Charge for every participating entity (None = default)
        strengths: Per-id charge overriding `strength`
        nodes: Participating ids (None = all entities)
        theta: Barnes–Hut opening criterion
        distance_min, distance_max: Clamp / cutoff distances
    """

    strength: float | None = None
    strengths: Mapping[Hashable, float] | None = field(default=None, hash=False)
    nodes: Sequence[Hashable] | None = field(default=None, hash=False)
    theta: float | None = None
    distance_min: float | None = None
    distance_max: float | None = None

    def bind(self, arrays, defaults):
        strength = defaults.many_body_strength if self.strength is None else self.strength
        theta = defaults.theta if self.theta is None else self.theta
        dmin = defaults.distance_min if self.distance_min is None else self.distance_min
        dmax = defaults.distance_max if self.distance_max is None else self.distance_max

        return _BoundManyBody(
            rows=resolve_indices(arrays, self.nodes),
            strengths=resolve_parameter(arrays, strength, self.strengths).tolist(),
            theta2=theta * theta,
            distance_min2=dmin * dmin,
            distance_max2=dmax * dmax,
        )


@dataclass
class _BoundManyBody:
    rows: np.ndarray
    strengths: list[float]
    theta2: float
    distance_min2: float
    distance_max2: float

    def apply(self, arrays, alpha, random):
        if self.rows.size == 0:
            return

        rows = self.rows.tolist()
        x = arrays.x.tolist()
        y = arrays.y.tolist()
        vx = arrays.vx.tolist()
        vy = arrays.vy.tolist()
        strengths = self.strengths

        tree = QuadTree(
            [x[i] for i in rows],
            [y[i] for i in rows],
            indices=rows,
        )
        tree.visit_after(lambda quad, *bounds: _accumulate(quad, strengths))

        theta2 = self.theta2
        dmin2 = self.distance_min2
        dmax2 = self.distance_max2

        for i in rows:
            xi = x[i]
            yi = y[i]

            def apply(quad, x0, y0, x1, y1):
                if not quad.value:
                    return True

                dx = quad.x - xi
                dy = quad.y - yi
                w = x1 - x0
                l = dx * dx + dy * dy

                # Far enough: use the aggregate charge
                if w * w / theta2 < l:
                    if l < dmax2:
                        if dx == 0:
                            dx = jiggle(random)
                            l += dx * dx
                        if dy == 0:
                            dy = jiggle(random)
                            l += dy * dy
                        if l < dmin2:
                            l = (dmin2 * l) ** 0.5
                        vx[i] += dx * quad.value * alpha / l
                        vy[i] += dy * quad.value * alpha / l
                    return True

                # Too close to approximate: open internal cells
                if isinstance(quad, Quad) or l >= dmax2:
                    return False

                # Leaf: sum the individual charges (skipping ourselves)
                if quad.index != i or quad.next is not None:
                    if dx == 0:
                        dx = jiggle(random)
                        l += dx * dx
                    if dy == 0:
                        dy = jiggle(random)
                        l += dy * dy
                    if l < dmin2:
                        l = (dmin2 * l) ** 0.5

                for leaf in quad.chain():
                    if leaf.index != i:
                        scale = strengths[leaf.index] * alpha / l
                        vx[i] += dx * scale
                        vy[i] += dy * scale
                return False

            tree.visit(apply)

        arrays.vx[:] = vx
        arrays.vy[:] = vy


def _accumulate(quad: Quad | Leaf, strengths: list[float]) -> None:
    """Aggregate charge and centre of charge, children first."""
    if isinstance(quad, Leaf):
        quad.value = sum(strengths[leaf.index] for leaf in quad.chain())
        return

    total = 0.0
    weight = 0.0
    cx = 0.0
    cy = 0.0
    for child in quad.children:
        if child is None:
            continue
        c = abs(child.value)
        if c:
            total += child.value
            weight += c
            cx += c * child.x
            cy += c * child.y

    quad.value = total
    if weight:
        quad.x = cx / weight
        quad.y = cy / weight
