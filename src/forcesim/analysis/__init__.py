"""
Analysis layer: layout-quality measurements.

IMPORTANT: This is NOT seen by the kernel. One-way derivation only.

- measure_layout: summary metrics for a finished (or in-progress) layout
- edge_lengths / count_overlaps / kinetic_energy: individual measurements
"""

from forcesim.analysis.metrics import (
    LayoutMetrics,
    centroid,
    count_overlaps,
    edge_lengths,
    kinetic_energy,
    measure_layout,
    min_pairwise_distance,
)

__all__ = [
    "LayoutMetrics",
    "centroid",
    "count_overlaps",
    "edge_lengths",
    "kinetic_energy",
    "measure_layout",
    "min_pairwise_distance",
]
