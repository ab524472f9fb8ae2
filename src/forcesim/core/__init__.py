"""
Core simulation kernel.

This layer knows NOTHING about rendering, datasets or interaction widgets.
It only knows:
- Entities with position, velocity and optional pinned position
- Force terms that add to entity velocities
- An integrator with velocity decay
- An alpha cooling schedule that decides when the layout is complete

Force terms:
- Center: recentre the layout on a point
- ManyBody: Barnes–Hut approximated repulsion
- Links: springs between connected entities
- Collision: keep circles from overlapping
- TowardsX / TowardsY: pull entities towards a coordinate on one axis
- Custom: caller-supplied velocity update
"""

from forcesim.core.config import ForceDefaults, SimulationConfig
from forcesim.core.entities import (
    Entity,
    EntityAccessor,
    EntityArrays,
    EntityFields,
    ENTITY_ACCESSOR,
    MappingAccessor,
    entity,
    find,
    phyllotaxis,
    pin,
    release,
)
from forcesim.core.forces import (
    AxisTarget,
    BoundForce,
    Center,
    Custom,
    Force,
    TowardsX,
    TowardsY,
    towards_x,
    towards_y,
)
from forcesim.core.links import Link, Links, links
from forcesim.core.many_body import ManyBody
from forcesim.core.collision import Collision
from forcesim.core.quadtree import QuadTree
from forcesim.core.simulation import (
    ForceSimulation,
    SimulationState,
    add_force,
    compute_until_complete,
    is_completed,
    reheat,
    simulation,
    tick,
    with_alpha_target,
    with_forces,
)

__all__ = [
    "ForceDefaults",
    "SimulationConfig",
    "Entity",
    "EntityAccessor",
    "EntityArrays",
    "EntityFields",
    "ENTITY_ACCESSOR",
    "MappingAccessor",
    "entity",
    "find",
    "phyllotaxis",
    "pin",
    "release",
    "AxisTarget",
    "BoundForce",
    "Center",
    "Custom",
    "Force",
    "TowardsX",
    "TowardsY",
    "towards_x",
    "towards_y",
    "Link",
    "Links",
    "links",
    "ManyBody",
    "Collision",
    "QuadTree",
    "ForceSimulation",
    "SimulationState",
    "add_force",
    "compute_until_complete",
    "is_completed",
    "reheat",
    "simulation",
    "tick",
    "with_alpha_target",
    "with_forces",
]
