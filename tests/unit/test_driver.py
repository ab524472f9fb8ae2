"""Unit tests for the stateful ForceSimulation driver."""

import numpy as np
import pytest

from forcesim.analysis import min_pairwise_distance
from forcesim.core import (
    Center,
    Collision,
    Entity,
    ForceSimulation,
    Link,
    Links,
    ManyBody,
    MappingAccessor,
    SimulationConfig,
)


@pytest.fixture
def graph_sim(small_graph):
    return ForceSimulation(
        small_graph.nodes,
        [ManyBody(), Links(small_graph.links), Center()],
    )


class TestForceSimulation:
    """Tests for ForceSimulation."""

    def test_initial_state(self, graph_sim):
        assert graph_sim.alpha == 1.0
        assert not graph_sim.is_completed
        assert graph_sim.positions().shape == (30, 2)

    def test_tick_returns_entities(self, graph_sim):
        before = graph_sim.positions()
        out = graph_sim.tick()
        assert len(out) == 30
        assert out is graph_sim.entities
        assert not np.allclose(before, graph_sim.positions())

    def test_run_stats(self, graph_sim):
        stats = graph_sim.run(10)
        assert stats["n_ticks"] == 10
        assert stats["total_ticks"] == 10
        assert stats["alpha"] < 1.0
        assert not stats["completed"]
        assert stats["max_speed"] >= stats["mean_speed"] >= 0.0

    def test_run_stops_at_completion(self, graph_sim):
        stats = graph_sim.run(1000)
        assert stats["completed"]
        assert stats["n_ticks"] in (300, 301)
        assert graph_sim.run(10)["n_ticks"] == 0

    def test_run_to_completion(self, graph_sim):
        stats = graph_sim.run_to_completion()
        assert stats["completed"]
        assert graph_sim.is_completed
        assert stats["total_ticks"] == stats["n_ticks"]

    def test_run_matches_tick(self, small_graph):
        forces = [ManyBody(), Links(small_graph.links)]
        batch = ForceSimulation(small_graph.nodes, forces)
        stepped = ForceSimulation(small_graph.nodes, forces)

        batch.run(25)
        for _ in range(25):
            stepped.tick()
        assert np.allclose(batch.positions(), stepped.positions())

    def test_history_recorded(self, two_nodes):
        sim = ForceSimulation(two_nodes, [ManyBody()], record_history=True)
        sim.run(5)
        sim.tick()
        assert len(sim.history) == 7
        assert len(sim.alpha_history) == 7
        assert sim.alpha_history[0] == 1.0
        assert all(h.shape == (2, 2) for h in sim.history)

    def test_history_run_to_completion(self, two_nodes):
        sim = ForceSimulation(
            two_nodes,
            [ManyBody()],
            config=SimulationConfig().with_iterations(40),
            record_history=True,
        )
        stats = sim.run_to_completion()
        assert stats["completed"]
        assert len(sim.history) == stats["n_ticks"] + 1

    def test_alpha_target_blocks_completion(self, two_nodes):
        sim = ForceSimulation(two_nodes, [ManyBody()])
        sim.set_alpha_target(0.3)
        with pytest.raises(ValueError):
            sim.run_to_completion()

    def test_set_forces(self, two_nodes):
        sim = ForceSimulation(two_nodes)
        sim.set_forces([Links([Link("a", "b", distance=50.0)])])
        sim.run_to_completion()
        a, b = sim.entities
        assert abs((b.x - a.x) - 50.0) < 1e-2


class TestInteraction:
    """Tests for drag, release and hit testing."""

    def test_drag_pins_and_reheats(self, graph_sim):
        graph_sim.run_to_completion()
        assert graph_sim.is_completed

        graph_sim.drag(0, 200.0, 200.0)
        assert not graph_sim.is_completed
        graph_sim.run(20)
        dragged = graph_sim.entities[0]
        assert dragged.position == (200.0, 200.0)
        assert dragged.is_fixed

    def test_drag_pulls_neighbours(self):
        nodes = [Entity(id="a", x=0.0, y=0.0), Entity(id="b", x=30.0, y=0.0)]
        sim = ForceSimulation(nodes, [Links([Link("a", "b")])])
        sim.drag("a", -100.0, 0.0)
        sim.run(100)
        assert sim.entities[1].x < 0.0

    def test_release(self, graph_sim):
        graph_sim.drag(3, 50.0, 50.0)
        graph_sim.release(3)
        assert not graph_sim.entities[3].is_fixed
        graph_sim.run(20)
        assert graph_sim.entities[3].position != (50.0, 50.0)

    def test_drag_warms_cooling_layout(self, graph_sim):
        graph_sim.run(290)
        assert graph_sim.alpha < 0.01

        graph_sim.drag(0, 80.0, 80.0)
        assert graph_sim.alpha >= 0.3
        assert graph_sim.state.config.alpha_target == 0.3

    def test_release_restores_resting_target(self, graph_sim):
        graph_sim.drag(0, 80.0, 80.0)
        graph_sim.drag(0, 90.0, 80.0)
        graph_sim.release(0)
        assert graph_sim.state.config.alpha_target == 0.0
        assert graph_sim.run_to_completion()["completed"]

    def test_drag_dict_nodes(self):
        nodes = [{"id": "a", "x": 0.0, "y": 0.0}, {"id": "b", "x": 30.0, "y": 0.0}]
        sim = ForceSimulation(
            nodes, [ManyBody(), Links([Link("a", "b")])], accessor=MappingAccessor()
        )
        sim.drag("a", 50.0, 50.0)
        sim.run(10)
        dragged = sim.entities[0]
        assert (dragged["x"], dragged["y"]) == (50.0, 50.0)
        assert (dragged["fx"], dragged["fy"]) == (50.0, 50.0)
        assert sim.entities[1]["x"] != 30.0

        sim.release("a")
        sim.run(10)
        assert "fx" not in sim.entities[0]
        assert (sim.entities[0]["x"], sim.entities[0]["y"]) != (50.0, 50.0)

    def test_find(self, two_nodes):
        sim = ForceSimulation(two_nodes)
        assert sim.find(9.0, 1.0).id == "b"
        assert sim.find(1.0, 0.0, radius=2.0).id == "a"
        assert sim.find(5.0, 50.0, radius=5.0) is None

    def test_collision_through_driver(self):
        nodes = [Entity(id=i, x=0.0, y=0.0) for i in range(4)]
        sim = ForceSimulation(nodes, [Collision(radius=4.0)])
        sim.run_to_completion()
        assert min_pairwise_distance(sim.positions()) >= 8.0 - 1e-3
