"""
forcesim: force-directed layout simulation

An iterative physics solver that positions the nodes of a graph so that
connected nodes cluster and unconnected nodes repel.

Core concepts:
- Entities carry position, velocity and an optional pinned position
- Force terms nudge entity velocities once per tick
- Alpha is the cooling temperature; it decays geometrically each tick
- The layout is complete once alpha cools to alpha_min or below
"""

__version__ = "0.1.0"
