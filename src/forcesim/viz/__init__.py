"""
Visualization utilities.

- Layout plots (nodes and links)
- Node trajectories over a run
- Alpha cooling curve
"""

from forcesim.viz.layout import (
    CMAP_NODES,
    plot_alpha_schedule,
    plot_layout,
    plot_trajectories,
    save_figure,
)

__all__ = [
    "CMAP_NODES",
    "plot_alpha_schedule",
    "plot_layout",
    "plot_trajectories",
    "save_figure",
]
