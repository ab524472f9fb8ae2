#!/usr/bin/env python3
"""
Demo: Force-Directed Graph

The classic force layout:
1. Generate a random connected graph with a few groups
2. Lay it out with many-body repulsion, link springs and centring
3. Report layout quality (edge lengths, closest pair)
4. Plot the final layout, the node trajectories and the alpha curve
"""

import logging
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from forcesim.core import Center, ForceSimulation, Links, ManyBody
from forcesim.analysis import measure_layout
from forcesim.datasets import random_graph
from forcesim.viz import plot_alpha_schedule, plot_layout, plot_trajectories


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    rng = np.random.default_rng(42)

    print("=" * 60)
    print("  FORCE-DIRECTED GRAPH")
    print("=" * 60)

    n_nodes, n_links, n_groups = 80, 110, 5
    graph = random_graph(n_nodes, n_links, rng=rng, n_groups=n_groups)

    print(f"\n1. Setup:")
    print(f"   Nodes: {n_nodes}, links: {n_links}, groups: {n_groups}")

    forces = [
        ManyBody(strength=-40.0),
        Links(graph.links),
        Center(0.0, 0.0),
    ]
    sim = ForceSimulation(graph.nodes, forces, record_history=True)

    print("\n2. Running to completion...")
    stats = sim.run_to_completion()
    print(f"   {stats['total_ticks']} ticks, final alpha {stats['alpha']:.5f}")
    print(f"   Mean residual speed: {stats['mean_speed']:.4f}")

    print("\n3. Layout quality:")
    metrics = measure_layout(sim.entities, graph.links)
    print(f"   Centroid: ({metrics.centroid[0]:.2f}, {metrics.centroid[1]:.2f})")
    print(f"   Edge length: {metrics.mean_edge_length:.1f} ± {metrics.std_edge_length:.1f}")
    print(f"   Closest pair: {metrics.min_distance:.2f}")

    print("\n4. Creating visualization...")
    fig, axes = plt.subplots(1, 3, figsize=(20, 7))
    colors = [node.value["group"] / max(n_groups - 1, 1) for node in sim.entities]
    plot_layout(sim.entities, graph.links, colors=colors, radius=4.0,
                title="Final Layout", ax=axes[0])
    plot_trajectories(sim.history, title="Trajectories", ax=axes[1], show_start=False)
    plot_alpha_schedule(sim.config, alphas=sim.alpha_history, ax=axes[2])
    fig.tight_layout()

    output_dir = Path("output/demo_force_graph")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "force_graph.png"
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
