"""
Visualization of force layouts.

Plots node positions and links, node trajectories over a run, and the
alpha cooling curve. All plots use matplotlib and return (fig, ax) so they
can be composed into larger figures.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection
from matplotlib.colors import LinearSegmentedColormap
from matplotlib.figure import Figure

from forcesim.core.config import SimulationConfig
from forcesim.core.entities import ENTITY_ACCESSOR, EntityAccessor, EntityArrays
from forcesim.core.links import Link


def _create_node_cmap():
    """Dark purple → teal → warm white, for group colouring."""
    colors = [
        (0.267, 0.004, 0.329),
        (0.253, 0.265, 0.529),
        (0.127, 0.566, 0.550),
        (0.565, 0.820, 0.376),
        (0.993, 0.978, 0.925),
    ]
    return LinearSegmentedColormap.from_list("nodes", colors)


CMAP_NODES = _create_node_cmap()
LINK_COLOR = "#999999"


def _get_ax(ax: Axes | None, figsize: tuple[float, float]) -> tuple[Figure, Axes]:
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure
    return fig, ax


def plot_layout(
    entities: Sequence[Any],
    links: Sequence[Link] = (),
    colors: Sequence[float] | None = None,
    radius: float | Sequence[float] = 5.0,
    title: str = "",
    cmap=None,
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    accessor: EntityAccessor = ENTITY_ACCESSOR,
    show_fixed: bool = True,
) -> tuple[Figure, Axes]:
    """
    Plot entities as circles with links as lines.

    Args:
        entities: Simulated entities
        links: Links to draw (unknown ids skipped)
        colors: Optional scalar per entity, mapped through cmap
        radius: Marker radius in data units (scalar or per entity)
        title: Plot title
        ax: Existing axes (creates new if None)
        show_fixed: Outline pinned entities in red

    Returns:
        (fig, ax) tuple
    """
    if cmap is None:
        cmap = CMAP_NODES

    fig, ax = _get_ax(ax, figsize)
    arrays = EntityArrays.from_entities(entities, accessor)

    segments = [
        [
            (arrays.x[arrays.index[link.source]], arrays.y[arrays.index[link.source]]),
            (arrays.x[arrays.index[link.target]], arrays.y[arrays.index[link.target]]),
        ]
        for link in links
        if link.source in arrays.index and link.target in arrays.index
    ]
    if segments:
        ax.add_collection(
            LineCollection(segments, colors=LINK_COLOR, linewidths=1.0, alpha=0.6, zorder=1)
        )

    radii = np.broadcast_to(np.asarray(radius, dtype=np.float64), arrays.x.shape)
    fixed = ~(arrays.free_x & arrays.free_y)
    for i in range(len(arrays)):
        color = cmap(colors[i]) if colors is not None else cmap(0.4)
        edge = "red" if show_fixed and fixed[i] else "white"
        ax.add_patch(
            plt.Circle(
                (arrays.x[i], arrays.y[i]),
                radii[i],
                facecolor=color,
                edgecolor=edge,
                linewidth=1.0,
                zorder=2,
            )
        )

    if len(arrays):
        pad = float(radii.max()) * 2
        ax.set_xlim(arrays.x.min() - pad, arrays.x.max() + pad)
        ax.set_ylim(arrays.y.min() - pad, arrays.y.max() + pad)

    ax.set_aspect("equal")
    # Screen coordinates: y grows downwards
    ax.invert_yaxis()
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")

    return fig, ax


def plot_trajectories(
    history: Sequence[np.ndarray],
    title: str = "Node Trajectories",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 8),
    show_start: bool = True,
    show_end: bool = True,
    line_width: float = 1.0,
) -> tuple[Figure, Axes]:
    """
    Plot the path of every node over a recorded run.

    Args:
        history: Sequence of [n, 2] position arrays (ForceSimulation.history)
        show_start: Mark starting positions
        show_end: Mark final positions

    Returns:
        (fig, ax) tuple
    """
    fig, ax = _get_ax(ax, figsize)
    if len(history) == 0:
        ax.set_title(title)
        return fig, ax

    paths = np.stack(history)  # [ticks, n, 2]
    n = paths.shape[1]
    colors = CMAP_NODES(np.linspace(0.1, 0.8, max(n, 1)))

    for i in range(n):
        ax.plot(paths[:, i, 0], paths[:, i, 1], color=colors[i], linewidth=line_width, zorder=2)

    if show_start:
        ax.scatter(
            paths[0, :, 0], paths[0, :, 1],
            color="green", s=20, marker="o", zorder=3, label="Start",
        )
    if show_end:
        ax.scatter(
            paths[-1, :, 0], paths[-1, :, 1],
            color="red", s=30, marker="x", zorder=3, label="End",
        )

    ax.set_aspect("equal")
    ax.invert_yaxis()
    ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    if show_start or show_end:
        ax.legend(loc="upper right")

    return fig, ax


def plot_alpha_schedule(
    config: SimulationConfig | None = None,
    alphas: Sequence[float] | None = None,
    title: str = "Alpha Cooling",
    ax: Axes | None = None,
    figsize: tuple[float, float] = (8, 4),
) -> tuple[Figure, Axes]:
    """
    Plot alpha against tick number.

    Args:
        config: Schedule to plot the theoretical curve for
        alphas: Recorded alpha values (ForceSimulation.alpha_history)

    Returns:
        (fig, ax) tuple
    """
    if config is None:
        config = SimulationConfig()

    fig, ax = _get_ax(ax, figsize)

    ticks = np.arange(config.iterations + 1)
    expected = config.alpha_target + (config.alpha - config.alpha_target) * (
        1.0 - config.decay
    ) ** ticks
    ax.plot(ticks, expected, color="gray", linestyle="--", label="Schedule")

    if alphas is not None:
        ax.plot(np.arange(len(alphas)), alphas, color=CMAP_NODES(0.3), label="Recorded")

    ax.axhline(config.alpha_min, color="red", linestyle=":", alpha=0.7, label="alpha_min")
    ax.set_yscale("log")
    ax.set_title(title)
    ax.set_xlabel("tick")
    ax.set_ylabel("alpha")
    ax.legend(loc="upper right")

    return fig, ax


def save_figure(fig: Figure, path: str | Path, dpi: int = 150, **kwargs) -> None:
    """Save figure to file."""
    fig.savefig(path, dpi=dpi, bbox_inches="tight", **kwargs)
