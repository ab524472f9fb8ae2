"""
Entities: the simulated points of a force layout.

The kernel only ever reads and writes id, position, velocity and pinned
position. Everything else about a node (labels, groups, chart data) is
caller payload, carried along untouched.

Two views of the same data:
- A list of caller-owned items (Entity objects, dicts, or anything an
  EntityAccessor understands)
- EntityArrays: dense numpy arrays the forces operate on during a tick
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import (
    Any,
    Generic,
    Hashable,
    Mapping,
    MutableMapping,
    NamedTuple,
    Protocol,
    Sequence,
    TypeVar,
)
import logging
import math

import numpy as np

from forcesim.core.config import ForceDefaults

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")


@dataclass(frozen=True)
class Entity(Generic[P]):
    """
    A simulated point with an opaque payload.

    x/y default to NaN, meaning "not placed yet": such entities are put on
    a phyllotaxis spiral the first time they are simulated.
    """

    id: Hashable
    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None  # Pinned x (entity does not move along x)
    fy: float | None = None  # Pinned y
    value: P | None = None

    @property
    def position(self) -> tuple[float, float]:
        return self.x, self.y

    @property
    def velocity(self) -> tuple[float, float]:
        return self.vx, self.vy

    @property
    def is_fixed(self) -> bool:
        return self.fx is not None or self.fy is not None


class EntityFields(NamedTuple):
    """The fields the kernel reads from an item."""

    id: Hashable
    x: float
    y: float
    vx: float
    vy: float
    fx: float | None
    fy: float | None


class EntityAccessor(Protocol[T]):
    """How the kernel reads from and writes back to caller-owned items."""

    def read(self, item: T) -> EntityFields:
        ...

    def write(self, item: T, x: float, y: float, vx: float, vy: float) -> T:
        """Return the item with new position and velocity."""
        ...

    def pin(self, item: T, x: float, y: float) -> T:
        """Return the item fixed at (x, y) with zero velocity."""
        ...

    def release(self, item: T) -> T:
        """Return the item with both axes free."""
        ...


class _DataclassAccessor:
    """Accessor for Entity (and any frozen dataclass with the same fields)."""

    def read(self, item: Entity) -> EntityFields:
        return EntityFields(item.id, item.x, item.y, item.vx, item.vy, item.fx, item.fy)

    def write(self, item: Entity, x: float, y: float, vx: float, vy: float) -> Entity:
        return replace(item, x=x, y=y, vx=vx, vy=vy)

    def pin(self, item: Entity, x: float, y: float) -> Entity:
        return pin(item, x, y)

    def release(self, item: Entity) -> Entity:
        return release(item)


ENTITY_ACCESSOR = _DataclassAccessor()


@dataclass(frozen=True)
class MappingAccessor:
    """
    Accessor for dict-like nodes, e.g. records decoded straight from JSON.

    Missing position keys read as NaN (placed on the spiral), missing
    velocities as 0. Items are updated in place and returned.
    """

    id_key: str = "id"
    x_key: str = "x"
    y_key: str = "y"
    vx_key: str = "vx"
    vy_key: str = "vy"
    fx_key: str = "fx"
    fy_key: str = "fy"

    def read(self, item: Mapping[str, Any]) -> EntityFields:
        return EntityFields(
            item[self.id_key],
            item.get(self.x_key, math.nan),
            item.get(self.y_key, math.nan),
            item.get(self.vx_key, 0.0),
            item.get(self.vy_key, 0.0),
            item.get(self.fx_key),
            item.get(self.fy_key),
        )

    def write(
        self, item: MutableMapping[str, Any], x: float, y: float, vx: float, vy: float
    ) -> MutableMapping[str, Any]:
        item[self.x_key] = x
        item[self.y_key] = y
        item[self.vx_key] = vx
        item[self.vy_key] = vy
        return item

    def pin(
        self, item: MutableMapping[str, Any], x: float, y: float
    ) -> MutableMapping[str, Any]:
        self.write(item, x, y, 0.0, 0.0)
        item[self.fx_key] = x
        item[self.fy_key] = y
        return item

    def release(self, item: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        item.pop(self.fx_key, None)
        item.pop(self.fy_key, None)
        return item


def phyllotaxis(index: int, defaults: ForceDefaults | None = None) -> tuple[float, float]:
    """Position of the index-th point on the sunflower spiral."""
    if defaults is None:
        defaults = ForceDefaults()
    radius = defaults.initial_radius * math.sqrt(0.5 + index)
    angle = index * defaults.initial_angle
    return radius * math.cos(angle), radius * math.sin(angle)


def entity(index: int, value: P | None = None, id: Hashable | None = None) -> Entity[P]:
    """
    Create an entity placed on the phyllotaxis spiral.

    Placing nodes on a spiral (rather than at random) gives a deterministic,
    evenly spread start that converges quickly.
    """
    x, y = phyllotaxis(index)
    return Entity(id=index if id is None else id, x=x, y=y, value=value)


def pin(item: Entity[P], x: float, y: float) -> Entity[P]:
    """Fix an entity at (x, y), e.g. while it is being dragged."""
    return replace(item, x=x, y=y, vx=0.0, vy=0.0, fx=x, fy=y)


def release(item: Entity[P]) -> Entity[P]:
    """Let a pinned entity move freely again."""
    return replace(item, fx=None, fy=None)


def find(
    items: Sequence[T],
    x: float,
    y: float,
    radius: float = math.inf,
    accessor: EntityAccessor = ENTITY_ACCESSOR,
) -> T | None:
    """
    Item closest to (x, y) within `radius`, or None.

    Used for hit testing when the user starts dragging.
    """
    best = None
    best_d2 = radius * radius
    for item in items:
        fields = accessor.read(item)
        dx = x - fields.x
        dy = y - fields.y
        d2 = dx * dx + dy * dy
        if d2 < best_d2:
            best = item
            best_d2 = d2
    return best


@dataclass
class EntityArrays:
    """
    Structure-of-arrays view of the entities for one tick.

    fx/fy hold NaN where an axis is free. `index` maps id → row; with
    duplicate ids the first occurrence owns the id.
    """

    ids: tuple
    x: np.ndarray
    y: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    fx: np.ndarray
    fy: np.ndarray
    index: dict

    def __len__(self) -> int:
        return len(self.ids)

    @property
    def free_x(self) -> np.ndarray:
        """Boolean mask of entities free to move along x."""
        return np.isnan(self.fx)

    @property
    def free_y(self) -> np.ndarray:
        return np.isnan(self.fy)

    @classmethod
    def from_entities(
        cls,
        items: Sequence[Any],
        accessor: EntityAccessor = ENTITY_ACCESSOR,
        defaults: ForceDefaults | None = None,
    ) -> "EntityArrays":
        """
        Gather entity fields into arrays.

        Unplaced entities (NaN x or y) go on the phyllotaxis spiral by their
        position in the list; NaN velocities become 0.
        """
        n = len(items)
        x = np.empty(n, dtype=np.float64)
        y = np.empty(n, dtype=np.float64)
        vx = np.empty(n, dtype=np.float64)
        vy = np.empty(n, dtype=np.float64)
        fx = np.full(n, np.nan, dtype=np.float64)
        fy = np.full(n, np.nan, dtype=np.float64)
        ids = []
        index = {}

        for i, item in enumerate(items):
            fields = accessor.read(item)
            ids.append(fields.id)
            if fields.id in index:
                logger.warning("Duplicate entity id %r at position %d", fields.id, i)
            else:
                index[fields.id] = i

            if fields.fx is not None:
                fx[i] = fields.fx
            if fields.fy is not None:
                fy[i] = fields.fy

            px, py = fields.x, fields.y
            if math.isnan(px) or math.isnan(py):
                px, py = phyllotaxis(i, defaults)
            x[i] = px
            y[i] = py
            vx[i] = 0.0 if math.isnan(fields.vx) else fields.vx
            vy[i] = 0.0 if math.isnan(fields.vy) else fields.vy

        return cls(tuple(ids), x, y, vx, vy, fx, fy, index)

    def integrate(self, velocity_decay: float) -> None:
        """
        Advance one step: free axes decay velocity then move, pinned axes
        snap to their fixed coordinate with zero velocity.
        """
        free_x = self.free_x
        free_y = self.free_y

        self.vx[free_x] *= velocity_decay
        self.x[free_x] += self.vx[free_x]
        self.x[~free_x] = self.fx[~free_x]
        self.vx[~free_x] = 0.0

        self.vy[free_y] *= velocity_decay
        self.y[free_y] += self.vy[free_y]
        self.y[~free_y] = self.fy[~free_y]
        self.vy[~free_y] = 0.0

    def pin_fixed(self) -> None:
        """Snap pinned axes without moving anything else."""
        fixed_x = ~self.free_x
        fixed_y = ~self.free_y
        self.x[fixed_x] = self.fx[fixed_x]
        self.vx[fixed_x] = 0.0
        self.y[fixed_y] = self.fy[fixed_y]
        self.vy[fixed_y] = 0.0

    def positions(self) -> np.ndarray:
        """Positions as an [n, 2] array."""
        return np.column_stack([self.x, self.y])

    def write_back(
        self, items: Sequence[T], accessor: EntityAccessor = ENTITY_ACCESSOR
    ) -> list[T]:
        """Return the items with positions and velocities from these arrays."""
        return [
            accessor.write(
                item,
                float(self.x[i]),
                float(self.y[i]),
                float(self.vx[i]),
                float(self.vy[i]),
            )
            for i, item in enumerate(items)
        ]
