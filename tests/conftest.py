"""
Pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def two_nodes():
    """Two free entities 10 units apart on the x axis."""
    from forcesim.core import Entity
    return [Entity(id="a", x=0.0, y=0.0), Entity(id="b", x=10.0, y=0.0)]


@pytest.fixture
def spiral_nodes():
    """Twenty entities on the phyllotaxis spiral."""
    from forcesim.core import entity
    return [entity(i) for i in range(20)]


@pytest.fixture
def small_graph():
    """Random connected graph: 30 nodes, 40 links, fixed seed."""
    from forcesim.datasets import random_graph
    return random_graph(30, 40, rng=np.random.default_rng(seed=42))


@pytest.fixture
def rng():
    """Reproducible random number generator."""
    return np.random.default_rng(seed=42)
