"""
Link force: springs between connected entities.

For each link, the offset between the endpoints' *next* positions
(position + velocity) is compared with the target distance, and both
endpoints' velocities are nudged to close the gap by a fraction
alpha * strength. The correction is split by degree, so a hub moves less
than the leaf attached to it:

    bias   = deg(source) / (deg(source) + deg(target))
    target gets `bias` of the correction, source gets `1 - bias`

Default strength is 1 / min(deg(source), deg(target)), which keeps
densely connected nodes from being pulled in every direction at once.

Links whose source or target is not a simulated entity are dropped when
the force is bound (and logged once per binding).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Hashable, Iterable
import logging
import math

import numpy as np

from forcesim.core.forces import Force, jiggle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Link:
    """A spring between two entity ids. None = use the default."""

    source: Hashable
    target: Hashable
    distance: float | None = None
    strength: float | None = None


@dataclass(frozen=True)
class Links(Force):
    """Link attraction over a list of edges."""

    links: tuple[Link, ...]
    iterations: int | None = None

    def __post_init__(self):
        object.__setattr__(
            self,
            "links",
            tuple(link if isinstance(link, Link) else Link(*link) for link in self.links),
        )
        if self.iterations is not None and self.iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {self.iterations}")

    def bind(self, arrays, defaults):
        index = arrays.index
        kept = [
            link for link in self.links
            if link.source in index and link.target in index
        ]
        dropped = len(self.links) - len(kept)
        if dropped:
            logger.warning("Dropped %d link(s) referencing unknown entity ids", dropped)

        n = len(arrays)
        sources = np.asarray([index[link.source] for link in kept], dtype=np.intp)
        targets = np.asarray([index[link.target] for link in kept], dtype=np.intp)

        degree = np.zeros(n, dtype=np.float64)
        np.add.at(degree, sources, 1.0)
        np.add.at(degree, targets, 1.0)

        if kept:
            deg_source = degree[sources]
            deg_target = degree[targets]
            bias = deg_source / (deg_source + deg_target)
            default_strength = 1.0 / np.minimum(deg_source, deg_target)
        else:
            bias = np.zeros(0)
            default_strength = np.zeros(0)

        strengths = np.asarray(
            [
                default_strength[k] if link.strength is None else link.strength
                for k, link in enumerate(kept)
            ],
            dtype=np.float64,
        )
        distances = np.asarray(
            [
                defaults.link_distance if link.distance is None else link.distance
                for link in kept
            ],
            dtype=np.float64,
        )

        iterations = defaults.link_iterations if self.iterations is None else self.iterations
        return _BoundLinks(
            sources=sources.tolist(),
            targets=targets.tolist(),
            distances=distances.tolist(),
            strengths=strengths.tolist(),
            bias=bias.tolist(),
            iterations=iterations,
        )


def links(
    edges: Iterable[tuple[Hashable, Hashable]],
    distance: float | None = None,
    strength: float | None = None,
    iterations: int | None = None,
) -> Links:
    """Links from (source, target) pairs sharing one distance and strength."""
    return Links(
        tuple(Link(source, target, distance, strength) for source, target in edges),
        iterations=iterations,
    )


@dataclass
class _BoundLinks:
    sources: list[int]
    targets: list[int]
    distances: list[float]
    strengths: list[float]
    bias: list[float]
    iterations: int

    def apply(self, arrays, alpha, random):
        if not self.sources:
            return

        x = arrays.x.tolist()
        y = arrays.y.tolist()
        vx = arrays.vx.tolist()
        vy = arrays.vy.tolist()

        # Links are processed one after another; later links see the
        # velocity changes made by earlier ones.
        for _ in range(self.iterations):
            for k, s in enumerate(self.sources):
                t = self.targets[k]
                dx = x[t] + vx[t] - x[s] - vx[s]
                dy = y[t] + vy[t] - y[s] - vy[s]
                if dx == 0:
                    dx = jiggle(random)
                if dy == 0:
                    dy = jiggle(random)

                length = math.sqrt(dx * dx + dy * dy)
                correction = (length - self.distances[k]) / length * alpha * self.strengths[k]
                dx *= correction
                dy *= correction

                b = self.bias[k]
                vx[t] -= dx * b
                vy[t] -= dy * b
                vx[s] += dx * (1 - b)
                vy[s] += dy * (1 - b)

        arrays.vx[:] = vx
        arrays.vy[:] = vy
