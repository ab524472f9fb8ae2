"""
Layout metrics: how good does a layout look?

There is no "correct" force layout, only better or worse ones. These
measurements make convergence quality comparable between runs:
- edge length spread (links should sit near their target distance)
- closest pair / overlaps (collision should keep circles apart)
- residual speed (a converged layout barely moves)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from scipy.spatial import cKDTree
from scipy.spatial.distance import pdist

from forcesim.core.entities import ENTITY_ACCESSOR, EntityAccessor, EntityArrays
from forcesim.core.links import Link


@dataclass
class LayoutMetrics:
    """Summary of one layout."""

    n_entities: int
    centroid: tuple[float, float]
    bounds: tuple[float, float, float, float]  # (x0, y0, x1, y1)

    mean_edge_length: float
    std_edge_length: float
    max_edge_length: float

    min_distance: float
    overlaps: int  # Pairs closer than 2 * radius (0 if no radius given)
    kinetic_energy: float


def _arrays(entities: Sequence[Any], accessor: EntityAccessor) -> EntityArrays:
    return EntityArrays.from_entities(entities, accessor)


def centroid(positions: np.ndarray) -> tuple[float, float]:
    """Mean position of an [n, 2] array."""
    if len(positions) == 0:
        return float("nan"), float("nan")
    cx, cy = positions.mean(axis=0)
    return float(cx), float(cy)


def edge_lengths(arrays: EntityArrays, links: Sequence[Link]) -> np.ndarray:
    """Euclidean length of each link whose endpoints both exist."""
    pairs = [
        (arrays.index[link.source], arrays.index[link.target])
        for link in links
        if link.source in arrays.index and link.target in arrays.index
    ]
    if not pairs:
        return np.zeros(0)
    s, t = np.asarray(pairs, dtype=np.intp).T
    return np.hypot(arrays.x[t] - arrays.x[s], arrays.y[t] - arrays.y[s])


def min_pairwise_distance(positions: np.ndarray) -> float:
    """Smallest distance between any two entities (inf for fewer than 2)."""
    if len(positions) < 2:
        return float("inf")
    return float(pdist(positions).min())


def count_overlaps(positions: np.ndarray, radius: float, tolerance: float = 1e-6) -> int:
    """Number of pairs whose circles of the given radius overlap."""
    if len(positions) < 2 or radius <= 0:
        return 0
    tree = cKDTree(positions)
    return len(tree.query_pairs(2 * radius - tolerance))


def kinetic_energy(arrays: EntityArrays) -> float:
    """Sum of ½|v|² over all entities (unit mass)."""
    return float(0.5 * np.sum(arrays.vx**2 + arrays.vy**2))


def measure_layout(
    entities: Sequence[Any],
    links: Sequence[Link] = (),
    radius: float | None = None,
    accessor: EntityAccessor = ENTITY_ACCESSOR,
) -> LayoutMetrics:
    """
    Measure a layout.

    Args:
        entities: Simulated entities
        links: Links to measure edge lengths over
        radius: Circle radius for the overlap count (None = skip)
        accessor: How to read the entities

    Returns:
        LayoutMetrics
    """
    arrays = _arrays(entities, accessor)
    positions = arrays.positions()
    lengths = edge_lengths(arrays, links)

    if len(positions):
        x0, y0 = positions.min(axis=0)
        x1, y1 = positions.max(axis=0)
        bounds = (float(x0), float(y0), float(x1), float(y1))
    else:
        bounds = (0.0, 0.0, 0.0, 0.0)

    return LayoutMetrics(
        n_entities=len(arrays),
        centroid=centroid(positions),
        bounds=bounds,
        mean_edge_length=float(lengths.mean()) if lengths.size else 0.0,
        std_edge_length=float(lengths.std()) if lengths.size else 0.0,
        max_edge_length=float(lengths.max()) if lengths.size else 0.0,
        min_distance=min_pairwise_distance(positions),
        overlaps=count_overlaps(positions, radius) if radius else 0,
        kinetic_energy=kinetic_energy(arrays),
    )
