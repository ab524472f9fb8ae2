"""Unit tests for the link force."""

import logging
import math

import numpy as np
import pytest

from forcesim.core import (
    Entity,
    EntityArrays,
    ForceDefaults,
    Link,
    Links,
    compute_until_complete,
    links,
    simulation,
    tick,
)


def distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


class TestBinding:
    """Tests for degree, bias and default resolution."""

    def chain(self):
        nodes = [Entity(id=c, x=float(i), y=0.0) for i, c in enumerate("abc")]
        return EntityArrays.from_entities(nodes)

    def test_degree_bias_and_strength(self):
        bound = Links([Link("a", "b"), Link("b", "c")]).bind(self.chain(), ForceDefaults())
        # a-b: deg(a)=1, deg(b)=2
        assert np.isclose(bound.bias[0], 1.0 / 3.0)
        assert np.isclose(bound.strengths[0], 1.0)
        # b-c: deg(b)=2, deg(c)=1
        assert np.isclose(bound.bias[1], 2.0 / 3.0)
        assert bound.distances == [30.0, 30.0]

    def test_explicit_distance_and_strength(self):
        bound = Links([Link("a", "b", distance=80.0, strength=0.2)]).bind(
            self.chain(), ForceDefaults()
        )
        assert bound.distances == [80.0]
        assert bound.strengths == [0.2]

    def test_default_from_config(self):
        bound = Links([Link("a", "b")]).bind(self.chain(), ForceDefaults(link_distance=12.0))
        assert bound.distances == [12.0]

    def test_unknown_ids_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            bound = Links([Link("a", "zzz"), Link("a", "b")]).bind(
                self.chain(), ForceDefaults()
            )
        assert bound.sources == [0]
        assert bound.targets == [1]
        # Dropped links do not count towards degree: deg(a) = deg(b) = 1
        assert bound.bias == [0.5]
        assert bound.strengths == [1.0]
        assert "Dropped 1 link" in caplog.text

    def test_tuples_accepted(self):
        force = Links([("a", "b"), ("b", "c", 10.0)])
        assert force.links[0] == Link("a", "b")
        assert force.links[1].distance == 10.0

    def test_links_helper(self):
        force = links([(1, 2), (2, 3)], distance=40.0, iterations=2)
        assert all(link.distance == 40.0 for link in force.links)
        assert force.iterations == 2

    def test_invalid_iterations(self):
        with pytest.raises(ValueError):
            Links([("a", "b")], iterations=0)


class TestDynamics:
    """Tests for the spring behaviour."""

    def test_pulls_together_when_too_far(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=100.0, y=0.0)]
        _, out = tick(simulation([links([(0, 1)], distance=30.0)]), nodes)
        assert distance(*out) < 100.0
        assert out[0].vx > 0 and out[1].vx < 0

    def test_pushes_apart_when_too_close(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=5.0, y=0.0)]
        _, out = tick(simulation([links([(0, 1)], distance=30.0)]), nodes)
        assert distance(*out) > 5.0

    def test_converges_to_distance(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=10.0, y=3.0)]
        force = Links([Link(0, 1, distance=50.0, strength=1.0)])
        out = compute_until_complete(simulation([force]), nodes)
        assert abs(distance(*out) - 50.0) < 1e-2

    def test_hub_moves_less(self):
        # Star: hub 0 with three leaves
        nodes = [Entity(id=0, x=0.0, y=0.0)] + [
            Entity(id=i, x=100.0 * math.cos(i), y=100.0 * math.sin(i)) for i in (1, 2, 3)
        ]
        arrays = EntityArrays.from_entities(nodes)
        bound = links([(0, 1), (0, 2), (0, 3)]).bind(arrays, ForceDefaults())
        # bias = deg(source) / (deg(source) + deg(target)) = 3 / 4 to the leaf
        assert all(np.isclose(b, 0.75) for b in bound.bias)

    def test_coincident_endpoints_separate(self):
        nodes = [Entity(id=0, x=0.0, y=0.0), Entity(id=1, x=0.0, y=0.0)]
        arrays = EntityArrays.from_entities(nodes)
        bound = links([(0, 1)]).bind(arrays, ForceDefaults())
        bound.apply(arrays, alpha=1.0, random=np.random.default_rng(1))
        assert np.all(np.isfinite(arrays.vx))
        assert arrays.vx[0] != arrays.vx[1] or arrays.vy[0] != arrays.vy[1]

    def test_empty_links(self, two_nodes):
        state, out = tick(simulation([Links([])]), two_nodes)
        assert [n.position for n in out] == [n.position for n in two_nodes]
