"""
Simulation driver: cooling schedule, force application and integration.

Each tick:
1. Cool: alpha += (alpha_target - alpha) * alpha_decay
2. Apply every force term in order (they add to velocities)
3. Integrate: free axes v *= velocity_decay, x += v; pinned axes x = fx, v = 0

States:
- Active: alpha > alpha_min, ticks do the above
- Complete: alpha <= alpha_min, ticks only re-pin fixed entities

`reheat` returns to Active (e.g. when the user starts dragging a node).
With the default schedule alpha falls from 1 to alpha_min in 300 ticks.

Two ways to drive it:
- Functional: `state = simulation(forces)`, then
  `state, entities = tick(state, entities)`
- Stateful: `ForceSimulation(entities, forces)` owns both and exposes
  run(), drag(), release() for interactive loops
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Hashable, Iterable, Sequence
import logging
import math

import numpy as np

from forcesim.core.config import SimulationConfig
from forcesim.core.entities import (
    ENTITY_ACCESSOR,
    EntityAccessor,
    EntityArrays,
    find as find_entity,
)
from forcesim.core.forces import BoundForce, Force, bind_all

logger = logging.getLogger(__name__)


class _BindingCache:
    """Forces bound to the most recently seen entity id set."""

    def __init__(self):
        self.key: tuple | None = None
        self.bound: list[BoundForce] = []

    def get(self, forces, arrays: EntityArrays, defaults) -> list[BoundForce]:
        if self.key != arrays.ids:
            self.bound = bind_all(forces, arrays, defaults)
            self.key = arrays.ids
        return self.bound


@dataclass(frozen=True)
class SimulationState:
    """
    Immutable simulation state.

    `rng_state` is the PCG64 state of the jiggle generator, so a state plus
    an entity list fully determines the next tick.
    """

    forces: tuple[Force, ...]
    config: SimulationConfig
    alpha: float
    rng_state: dict = field(hash=False, repr=False)
    ticks: int = 0
    _cache: _BindingCache = field(
        default_factory=_BindingCache, repr=False, compare=False
    )


def simulation(
    forces: Iterable[Force] = (), config: SimulationConfig | None = None
) -> SimulationState:
    """Create an Active simulation over the given force terms."""
    if config is None:
        config = SimulationConfig()
    return SimulationState(
        forces=tuple(forces),
        config=config,
        alpha=config.alpha,
        rng_state=np.random.PCG64(config.seed).state,
    )


def is_completed(state: SimulationState) -> bool:
    """True once alpha has cooled to alpha_min or below."""
    return state.alpha <= state.config.alpha_min


def reheat(state: SimulationState, alpha: float = 1.0) -> SimulationState:
    """Raise alpha so the layout starts moving again."""
    logger.debug("Reheating simulation from alpha=%.4f to %.4f", state.alpha, alpha)
    return replace(state, alpha=alpha)


def with_alpha_target(state: SimulationState, alpha_target: float) -> SimulationState:
    """
    Set the temperature alpha decays towards.

    A non-zero target keeps the layout warm (e.g. 0.3 while dragging);
    set it back to 0 to let the simulation complete.
    """
    return replace(
        state,
        config=replace(state.config, alpha_target=alpha_target),
        _cache=state._cache,
    )


def with_forces(state: SimulationState, forces: Iterable[Force]) -> SimulationState:
    """Replace the force terms; they are rebound on the next tick."""
    return replace(state, forces=tuple(forces), _cache=_BindingCache())


def add_force(state: SimulationState, force: Force) -> SimulationState:
    """Append a force term."""
    return with_forces(state, (*state.forces, force))


def _generator(rng_state: dict) -> np.random.Generator:
    """Generator resumed from a stored PCG64 state."""
    bit_generator = np.random.PCG64()
    bit_generator.state = rng_state
    return np.random.Generator(bit_generator)


def step_arrays(state: SimulationState, arrays: EntityArrays) -> SimulationState:
    """
    Advance `arrays` in place by one tick and return the new state.

    The building block for `tick`; callers that keep their own arrays
    across ticks (see ForceSimulation) use it to skip the per-tick
    conversion from and to entity objects.
    """
    if len(arrays) == 0:
        return replace(state, alpha=0.0)

    if is_completed(state):
        arrays.pin_fixed()
        return state

    config = state.config
    alpha = state.alpha + (config.alpha_target - state.alpha) * config.decay

    random = _generator(state.rng_state)
    for force in state._cache.get(state.forces, arrays, config.defaults):
        force.apply(arrays, alpha, random)

    arrays.integrate(config.velocity_decay)

    new_state = replace(
        state,
        alpha=alpha,
        rng_state=random.bit_generator.state,
        ticks=state.ticks + 1,
    )
    if is_completed(new_state):
        logger.debug("Simulation completed after %d ticks", new_state.ticks)
    return new_state


def tick(
    state: SimulationState,
    entities: Sequence[Any],
    accessor: EntityAccessor = ENTITY_ACCESSOR,
) -> tuple[SimulationState, list[Any]]:
    """
    Advance the simulation by one tick.

    With no entities the state is cooled to alpha 0 (Complete) and nothing
    else happens.

    Returns:
        (new_state, updated_entities)
    """
    if not entities:
        return replace(state, alpha=0.0), []

    arrays = EntityArrays.from_entities(entities, accessor, state.config.defaults)
    new_state = step_arrays(state, arrays)
    return new_state, arrays.write_back(entities, accessor)


def compute_until_complete(
    state: SimulationState,
    entities: Sequence[Any],
    accessor: EntityAccessor = ENTITY_ACCESSOR,
) -> list[Any]:
    """
    Run ticks until the simulation completes and return final entities.

    For static layouts where nothing is rendered per frame.

    Raises:
        ValueError: if alpha_target >= alpha_min, which never completes
    """
    _, final = _run_until_complete(state, entities, accessor)
    return final


def _run_until_complete(state, entities, accessor):
    config = state.config
    if not entities:
        return replace(state, alpha=0.0), list(entities)
    if not is_completed(state) and config.alpha_target >= config.alpha_min:
        raise ValueError(
            f"alpha_target ({config.alpha_target}) must be below alpha_min "
            f"({config.alpha_min}) for the simulation to complete"
        )

    arrays = EntityArrays.from_entities(entities, accessor, config.defaults)
    while not is_completed(state):
        state = step_arrays(state, arrays)
    arrays.pin_fixed()
    return state, arrays.write_back(entities, accessor)


@dataclass
class ForceSimulation:
    """
    Stateful driver owning both the entity list and the simulation state.

    Suits animation and interaction loops: call tick() once per frame,
    drag()/release() from pointer events, and read positions() to render.

    Usage:
        sim = ForceSimulation(nodes, [ManyBody(), Links(edges), Center()])
        stats = sim.run_to_completion()
        layout = sim.entities
    """

    entities: list[Any]
    forces: Sequence[Force] = ()
    config: SimulationConfig = field(default_factory=SimulationConfig)
    accessor: EntityAccessor = ENTITY_ACCESSOR
    record_history: bool = False

    state: SimulationState = field(default=None, init=False)
    history: list[np.ndarray] = field(default_factory=list, init=False)
    alpha_history: list[float] = field(default_factory=list, init=False)
    _resting_alpha_target: float | None = field(default=None, init=False, repr=False)

    def __post_init__(self):
        self.entities = list(self.entities)
        self.state = simulation(self.forces, self.config)
        if self.record_history:
            self._record()

    @property
    def alpha(self) -> float:
        return self.state.alpha

    @property
    def is_completed(self) -> bool:
        return is_completed(self.state)

    def tick(self) -> list[Any]:
        """Advance one tick and return the updated entities."""
        self.state, self.entities = tick(self.state, self.entities, self.accessor)
        if self.record_history:
            self._record()
        return self.entities

    def run(self, n_ticks: int) -> dict:
        """
        Run n ticks (stopping early if the simulation completes).

        Returns:
            Statistics dictionary
        """
        arrays = EntityArrays.from_entities(
            self.entities, self.accessor, self.config.defaults
        )
        start = self.state.ticks
        for _ in range(n_ticks):
            if is_completed(self.state):
                break
            self.state = step_arrays(self.state, arrays)
            if self.record_history:
                self._record(arrays)
        arrays.pin_fixed()
        self.entities = arrays.write_back(self.entities, self.accessor)
        return self._stats(arrays, self.state.ticks - start)

    def run_to_completion(self) -> dict:
        """Run until complete; see compute_until_complete."""
        if self.record_history:
            remaining = _ticks_remaining(self.state)
            if remaining is None:
                raise ValueError("simulation cannot complete with the current alpha_target")
            return self.run(remaining)

        start = self.state.ticks
        self.state, self.entities = _run_until_complete(
            self.state, self.entities, self.accessor
        )
        arrays = EntityArrays.from_entities(
            self.entities, self.accessor, self.config.defaults
        )
        return self._stats(arrays, self.state.ticks - start)

    def reheat(self, alpha: float = 1.0) -> None:
        self.state = reheat(self.state, alpha)

    def set_alpha_target(self, alpha_target: float) -> None:
        self.state = with_alpha_target(self.state, alpha_target)

    def set_forces(self, forces: Iterable[Force]) -> None:
        self.forces = tuple(forces)
        self.state = with_forces(self.state, self.forces)

    def drag(
        self, node: Hashable, x: float, y: float, alpha_target: float = 0.3
    ) -> None:
        """
        Pin `node` at (x, y) and keep the layout warm so the rest reacts.

        While dragging, alpha decays towards `alpha_target` instead of the
        resting target, and alpha is raised to at least `alpha_target` so
        neighbours respond even if the layout had nearly cooled. release()
        restores the resting target.
        """
        self.entities = [
            self.accessor.pin(item, x, y) if self._is_node(item, node) else item
            for item in self.entities
        ]
        if self._resting_alpha_target is None:
            self._resting_alpha_target = self.state.config.alpha_target
            self.set_alpha_target(max(alpha_target, self._resting_alpha_target))
        if self.alpha < self.state.config.alpha_target:
            self.reheat(self.state.config.alpha_target)

    def release(self, node: Hashable) -> None:
        """Unpin `node` and let the layout cool towards its resting target."""
        self.entities = [
            self.accessor.release(item) if self._is_node(item, node) else item
            for item in self.entities
        ]
        if self._resting_alpha_target is not None:
            self.set_alpha_target(self._resting_alpha_target)
            self._resting_alpha_target = None

    def _is_node(self, item: Any, node: Hashable) -> bool:
        return self.accessor.read(item).id == node

    def find(self, x: float, y: float, radius: float = math.inf) -> Any | None:
        """Entity closest to (x, y) within radius."""
        return find_entity(self.entities, x, y, radius, self.accessor)

    def positions(self) -> np.ndarray:
        """Current positions as an [n, 2] array."""
        return EntityArrays.from_entities(
            self.entities, self.accessor, self.config.defaults
        ).positions()

    def _record(self, arrays: EntityArrays | None = None) -> None:
        if arrays is None:
            positions = self.positions()
        else:
            positions = arrays.positions()
        self.history.append(positions)
        self.alpha_history.append(self.state.alpha)

    def _stats(self, arrays: EntityArrays, n_ticks: int) -> dict:
        speed = np.hypot(arrays.vx, arrays.vy)
        return {
            "n_ticks": n_ticks,
            "total_ticks": self.state.ticks,
            "alpha": self.state.alpha,
            "completed": self.is_completed,
            "mean_speed": float(speed.mean()) if speed.size else 0.0,
            "max_speed": float(speed.max()) if speed.size else 0.0,
        }


def _ticks_remaining(state: SimulationState) -> int | None:
    """Ticks until completion under the current schedule (None if never)."""
    config = state.config
    if is_completed(state):
        return 0
    if config.alpha_target >= config.alpha_min:
        return None
    n = 0
    alpha = state.alpha
    while alpha > config.alpha_min:
        alpha += (config.alpha_target - alpha) * config.decay
        n += 1
    return n
