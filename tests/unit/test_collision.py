"""Unit tests for the collision force."""

import math

import numpy as np
import pytest

from forcesim.core import (
    Collision,
    Entity,
    EntityArrays,
    ForceDefaults,
    compute_until_complete,
    simulation,
)
from forcesim.analysis import min_pairwise_distance


def distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


class TestCollision:
    """Tests for Collision."""

    def test_coincident_entities_end_apart(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=0.0, y=0.0)]
        out = compute_until_complete(simulation([Collision(radius=10.0)]), nodes)
        assert distance(*out) >= 20.0 - 1e-6

    def test_overlapping_entities_end_apart(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=5.0, y=2.0)]
        out = compute_until_complete(simulation([Collision(radius=10.0)]), nodes)
        assert distance(*out) >= 20.0 - 1e-6

    def test_separated_entities_untouched(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=30.0, y=0.0)]
        arrays = EntityArrays.from_entities(nodes)
        Collision(radius=10.0).bind(arrays, ForceDefaults()).apply(
            arrays, alpha=1.0, random=np.random.default_rng(1)
        )
        assert np.all(arrays.vx == 0.0) and np.all(arrays.vy == 0.0)

    def test_small_circle_moves_more(self):
        nodes = [Entity(id="small", x=0.0, y=0.0), Entity(id="big", x=5.0, y=0.0)]
        arrays = EntityArrays.from_entities(nodes)
        force = Collision(radii={"small": 1.0, "big": 10.0})
        force.bind(arrays, ForceDefaults()).apply(arrays, alpha=1.0, random=np.random.default_rng(1))
        assert abs(arrays.vx[0]) > abs(arrays.vx[1])
        assert arrays.vx[0] < 0.0 < arrays.vx[1]

    def test_not_scaled_by_alpha(self):
        results = []
        for alpha in (1.0, 0.01):
            nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=5.0, y=0.0)]
            arrays = EntityArrays.from_entities(nodes)
            Collision(radius=10.0).bind(arrays, ForceDefaults()).apply(
                arrays, alpha=alpha, random=np.random.default_rng(1)
            )
            results.append(arrays.vx.copy())
        assert np.allclose(results[0], results[1])

    def test_strength_scales_push(self):
        pushes = []
        for strength in (1.0, 0.5):
            nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=5.0, y=0.0)]
            arrays = EntityArrays.from_entities(nodes)
            Collision(radius=10.0, strength=strength).bind(arrays, ForceDefaults()).apply(
                arrays, alpha=1.0, random=np.random.default_rng(1)
            )
            pushes.append(arrays.vx[1])
        assert np.isclose(pushes[1], pushes[0] / 2)

    def test_nodes_restricts_participants(self):
        nodes = [
            Entity(id="a", x=0.0, y=0.0),
            Entity(id="b", x=1.0, y=0.0),
            Entity(id="c", x=0.5, y=0.0),
        ]
        arrays = EntityArrays.from_entities(nodes)
        Collision(radius=5.0, nodes=["a", "b"]).bind(arrays, ForceDefaults()).apply(
            arrays, alpha=1.0, random=np.random.default_rng(1)
        )
        assert arrays.vx[2] == 0.0

    def test_row_of_circles_resolves(self):
        nodes = [Entity(id=i, x=float(i), y=0.1 * (i % 2)) for i in range(10)]
        out = compute_until_complete(
            simulation([Collision(radius=5.0, iterations=3)]), nodes
        )
        positions = np.array([(n.x, n.y) for n in out])
        assert min_pairwise_distance(positions) >= 10.0 - 0.1

    def test_invalid_iterations(self):
        with pytest.raises(ValueError):
            Collision(iterations=0)
