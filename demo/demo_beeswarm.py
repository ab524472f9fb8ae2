#!/usr/bin/env python3
"""
Demo: Beeswarm

A one-dimensional distribution laid out without overlap:
1. Draw normally distributed values
2. Pull each dot towards its value on x and towards the axis on y
3. Collision keeps the dots from overlapping
4. Compute the layout statically (no animation) and plot it
"""

from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from forcesim.core import (
    Collision,
    Entity,
    SimulationConfig,
    compute_until_complete,
    simulation,
    towards_x,
    towards_y,
)
from forcesim.analysis import measure_layout
from forcesim.datasets import beeswarm_values


def main():
    rng = np.random.default_rng(7)

    print("=" * 60)
    print("  BEESWARM")
    print("=" * 60)

    n = 200
    radius = 3.0
    width = 600.0
    values = beeswarm_values(n, rng=rng)

    # Scale values onto [0, width]
    lo, hi = values.min(), values.max()
    targets = (values - lo) / (hi - lo) * width

    nodes = [Entity(id=i, x=float(targets[i]), y=0.0, value=float(values[i])) for i in range(n)]

    print(f"\n1. Setup: {n} dots, radius {radius}")

    forces = [
        towards_x({i: float(targets[i]) for i in range(n)}, strength=1.0),
        towards_y({i: 0.0 for i in range(n)}),
        Collision(radius=radius + 0.5, iterations=3),
    ]
    state = simulation(forces, SimulationConfig().with_iterations(120))

    print("\n2. Computing layout...")
    layout = compute_until_complete(state, nodes)

    metrics = measure_layout(layout, radius=radius)
    x_error = np.abs(np.array([node.x for node in layout]) - targets)
    print(f"   Overlapping pairs: {metrics.overlaps}")
    print(f"   Mean |x - target|: {x_error.mean():.2f}")
    print(f"   Swarm height: {metrics.bounds[3] - metrics.bounds[1]:.1f}")

    print("\n3. Creating visualization...")
    fig, ax = plt.subplots(figsize=(12, 4))
    for node in layout:
        ax.add_patch(plt.Circle((node.x, node.y), radius, color="#2a788e"))
    ax.set_xlim(-10, width + 10)
    ax.set_ylim(metrics.bounds[1] - 10, metrics.bounds[3] + 10)
    ax.set_aspect("equal")
    ax.set_title("Beeswarm (towards_x + collision)")

    output_dir = Path("output/demo_beeswarm")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "beeswarm.png"
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
