"""
Force terms: pluggable contributions to entity velocities.

A force term is an immutable description (which entities, which
parameters). Before use it is bound to a concrete entity set: ids are
resolved to row indices and per-entity parameters to dense arrays, once,
so the per-tick work is pure array arithmetic.

    Force.bind(arrays, defaults) -> BoundForce
    BoundForce.apply(arrays, alpha, random)

Only Center moves positions directly; every other force adds to velocity
and lets the integrator move the entity.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable, Mapping, Protocol, Sequence, TYPE_CHECKING
import logging

import numpy as np

if TYPE_CHECKING:
    from forcesim.core.config import ForceDefaults
    from forcesim.core.entities import EntityArrays

logger = logging.getLogger(__name__)


class BoundForce(Protocol):
    """A force resolved against one entity set."""

    def apply(
        self, arrays: "EntityArrays", alpha: float, random: np.random.Generator
    ) -> None:
        """Add this force's contribution for one tick, in place."""
        ...


def jiggle(random: np.random.Generator) -> float:
    """
    Tiny non-zero offset in (-5e-7, 5e-7).

    Exactly coincident entities have no direction to push along; the
    offset gives them one. Drawn from the simulation's seeded generator so
    runs stay reproducible.
    """
    return (random.random() - 0.5) * 1e-6


class Force(ABC):
    """Base class for force terms."""

    @abstractmethod
    def bind(self, arrays: "EntityArrays", defaults: "ForceDefaults") -> BoundForce:
        """Resolve ids and parameters against the given entities."""
        ...


def resolve_indices(
    arrays: "EntityArrays", nodes: Iterable[Hashable] | None
) -> np.ndarray:
    """Row indices for the listed ids (all rows if None). Unknown ids are skipped."""
    if nodes is None:
        return np.arange(len(arrays), dtype=np.intp)
    rows = [arrays.index[node] for node in nodes if node in arrays.index]
    return np.asarray(rows, dtype=np.intp)


def resolve_parameter(
    arrays: "EntityArrays",
    default: float,
    overrides: Mapping[Hashable, float] | None,
) -> np.ndarray:
    """Dense per-entity parameter: the scalar default, overridden per id."""
    values = np.full(len(arrays), default, dtype=np.float64)
    if overrides:
        for node, value in overrides.items():
            row = arrays.index.get(node)
            if row is not None:
                values[row] = value
    return values


# ═══════════════════════════════════════════════════════════════
# CENTER
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Center(Force):
    """
    Recentre the layout on (x, y).

    Every free entity is shifted by the same offset, (center - mean) *
    strength, with the mean taken over free entities. This moves the whole
    layout; it does not attract individual entities.
    """

    x: float = 0.0
    y: float = 0.0
    strength: float | None = None

    def bind(self, arrays, defaults):
        strength = defaults.center_strength if self.strength is None else self.strength
        return _BoundCenter(self.x, self.y, strength)


@dataclass
class _BoundCenter:
    cx: float
    cy: float
    strength: float

    def apply(self, arrays, alpha, random):
        free_x = arrays.free_x
        if free_x.any():
            shift = (arrays.x[free_x].mean() - self.cx) * self.strength
            arrays.x[free_x] -= shift

        free_y = arrays.free_y
        if free_y.any():
            shift = (arrays.y[free_y].mean() - self.cy) * self.strength
            arrays.y[free_y] -= shift


# ═══════════════════════════════════════════════════════════════
# TOWARDS X / TOWARDS Y
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AxisTarget:
    """Pull one entity towards a coordinate on a single axis."""

    node: Hashable
    target: float
    strength: float | None = None


@dataclass(frozen=True)
class _TowardsAxis(Force):
    targets: tuple[AxisTarget, ...]

    _axis = "x"

    def __post_init__(self):
        object.__setattr__(self, "targets", tuple(self.targets))

    def bind(self, arrays, defaults):
        rows, goals, strengths = [], [], []
        for target in self.targets:
            row = arrays.index.get(target.node)
            if row is None:
                continue
            rows.append(row)
            goals.append(target.target)
            strengths.append(
                defaults.axis_strength if target.strength is None else target.strength
            )

        dropped = len(self.targets) - len(rows)
        if dropped:
            logger.warning(
                "%s: dropped %d target(s) with unknown ids", type(self).__name__, dropped
            )

        return _BoundAxis(
            axis=self._axis,
            rows=np.asarray(rows, dtype=np.intp),
            targets=np.asarray(goals, dtype=np.float64),
            strengths=np.asarray(strengths, dtype=np.float64),
        )


@dataclass(frozen=True)
class TowardsX(_TowardsAxis):
    """Pull listed entities towards target x coordinates."""

    _axis = "x"


@dataclass(frozen=True)
class TowardsY(_TowardsAxis):
    """Pull listed entities towards target y coordinates."""

    _axis = "y"


@dataclass
class _BoundAxis:
    axis: str
    rows: np.ndarray
    targets: np.ndarray
    strengths: np.ndarray

    def apply(self, arrays, alpha, random):
        if self.rows.size == 0:
            return
        if self.axis == "x":
            position, velocity = arrays.x, arrays.vx
        else:
            position, velocity = arrays.y, arrays.vy
        # np.add.at so repeated rows accumulate
        pull = (self.targets - position[self.rows]) * self.strengths * alpha
        np.add.at(velocity, self.rows, pull)


def towards_x(targets: Mapping[Hashable, float], strength: float | None = None) -> TowardsX:
    """TowardsX from an id → target mapping with a shared strength."""
    return TowardsX(AxisTarget(node, goal, strength) for node, goal in targets.items())


def towards_y(targets: Mapping[Hashable, float], strength: float | None = None) -> TowardsY:
    """TowardsY from an id → target mapping with a shared strength."""
    return TowardsY(AxisTarget(node, goal, strength) for node, goal in targets.items())


# ═══════════════════════════════════════════════════════════════
# CUSTOM
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Custom(Force):
    """
    A caller-supplied force.

    `function(arrays, alpha)` runs once per tick and may modify
    arrays.vx / arrays.vy (or positions) in place.
    """

    function: Callable[["EntityArrays", float], None]
    name: str = "custom"

    def bind(self, arrays, defaults):
        return _BoundCustom(self.function)


@dataclass
class _BoundCustom:
    function: Callable

    def apply(self, arrays, alpha, random):
        self.function(arrays, alpha)


def bind_all(
    forces: Sequence[Force], arrays: "EntityArrays", defaults: "ForceDefaults"
) -> list[BoundForce]:
    return [force.bind(arrays, defaults) for force in forces]
