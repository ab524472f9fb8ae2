"""Unit tests for layout metrics."""

import math

import numpy as np

from forcesim.analysis import (
    centroid,
    count_overlaps,
    edge_lengths,
    kinetic_energy,
    measure_layout,
    min_pairwise_distance,
)
from forcesim.core import (
    Center,
    Collision,
    Entity,
    EntityArrays,
    Link,
    Links,
    ManyBody,
    compute_until_complete,
    simulation,
)


class TestMeasurements:
    """Tests for the individual measurements."""

    def test_centroid(self):
        assert centroid(np.array([[0.0, 0.0], [2.0, 4.0]])) == (1.0, 2.0)
        assert all(math.isnan(v) for v in centroid(np.zeros((0, 2))))

    def test_edge_lengths_skip_unknown(self, two_nodes):
        arrays = EntityArrays.from_entities(two_nodes)
        lengths = edge_lengths(arrays, [Link("a", "b"), Link("a", "ghost")])
        assert np.allclose(lengths, [10.0])

    def test_min_pairwise_distance(self):
        positions = np.array([[0.0, 0.0], [3.0, 4.0], [10.0, 0.0]])
        assert np.isclose(min_pairwise_distance(positions), 5.0)
        assert min_pairwise_distance(positions[:1]) == math.inf

    def test_count_overlaps(self):
        positions = np.array([[0.0, 0.0], [5.0, 0.0], [100.0, 0.0]])
        assert count_overlaps(positions, radius=5.0) == 1
        assert count_overlaps(positions, radius=2.0) == 0

    def test_touching_circles_do_not_overlap(self):
        positions = np.array([[0.0, 0.0], [10.0, 0.0]])
        assert count_overlaps(positions, radius=5.0) == 0

    def test_kinetic_energy(self):
        nodes = [Entity(id=0, x=0.0, y=0.0, vx=3.0, vy=4.0), Entity(id=1, x=1.0, y=1.0)]
        assert np.isclose(kinetic_energy(EntityArrays.from_entities(nodes)), 12.5)


class TestMeasureLayout:
    """Tests for measure_layout."""

    def test_summary(self, two_nodes):
        metrics = measure_layout(two_nodes, [Link("a", "b")], radius=6.0)
        assert metrics.n_entities == 2
        assert metrics.centroid == (5.0, 0.0)
        assert metrics.bounds == (0.0, 0.0, 10.0, 0.0)
        assert np.isclose(metrics.mean_edge_length, 10.0)
        assert metrics.std_edge_length == 0.0
        assert metrics.overlaps == 1
        assert metrics.kinetic_energy == 0.0

    def test_no_links_no_radius(self, spiral_nodes):
        metrics = measure_layout(spiral_nodes)
        assert metrics.mean_edge_length == 0.0
        assert metrics.overlaps == 0
        assert metrics.min_distance > 0.0

    def test_converged_layout_quality(self, small_graph):
        forces = [
            ManyBody(),
            Links(small_graph.links),
            Collision(radius=5.0),
            Center(),
        ]
        out = compute_until_complete(simulation(forces), small_graph.nodes)
        metrics = measure_layout(out, small_graph.links, radius=4.95)

        assert metrics.overlaps == 0
        assert abs(metrics.centroid[0]) < 1.0
        assert abs(metrics.centroid[1]) < 1.0
        assert metrics.kinetic_energy < 1.0
