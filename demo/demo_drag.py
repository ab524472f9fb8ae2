#!/usr/bin/env python3
"""
Demo: Dragging a Node

Replays the interaction loop of a draggable force graph without a GUI:
1. Lay out a tree until the simulation completes
2. "Grab" the node nearest to a point (hit test with find)
3. Drag it across the canvas; dragging keeps the layout warm
4. Release it and let the simulation cool down again
"""

from pathlib import Path

import matplotlib.pyplot as plt

from forcesim.core import Center, Collision, ForceSimulation, Links, ManyBody
from forcesim.datasets import balanced_tree
from forcesim.viz import plot_layout


def main():
    print("=" * 60)
    print("  DRAG AND REHEAT")
    print("=" * 60)

    tree = balanced_tree(branching=3, depth=3)
    forces = [
        ManyBody(strength=-60.0),
        Links(tree.links, iterations=2),
        Collision(radius=6.0),
        Center(),
    ]
    sim = ForceSimulation(tree.nodes, forces)

    print(f"\n1. Laying out {len(tree.nodes)} nodes...")
    sim.run_to_completion()
    before = list(sim.entities)
    print(f"   Completed: {sim.is_completed}")

    print("\n2. Grabbing the node nearest to the origin...")
    grabbed = sim.find(0.0, 0.0)
    print(f"   Grabbed node {grabbed.id} at ({grabbed.x:.1f}, {grabbed.y:.1f})")

    print("\n3. Dragging...")
    start_x, start_y = grabbed.x, grabbed.y
    for step in range(1, 61):
        sim.drag(grabbed.id, start_x + 3.0 * step, start_y)
        sim.tick()
    print(f"   Alpha while dragging: {sim.alpha:.3f}")

    print("\n4. Releasing and cooling down...")
    sim.release(grabbed.id)
    stats = sim.run_to_completion()
    print(f"   Cooled in {stats['n_ticks']} ticks")

    fig, axes = plt.subplots(1, 2, figsize=(14, 7))
    plot_layout(before, tree.links, title="Before drag", ax=axes[0])
    plot_layout(sim.entities, tree.links, title="After drag and release", ax=axes[1])
    fig.tight_layout()

    output_dir = Path("output/demo_drag")
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "drag.png"
    fig.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()
    print(f"   Saved: {output_path}")

    print("\n" + "=" * 60)


if __name__ == "__main__":
    main()
