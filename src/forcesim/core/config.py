"""
Explicit configuration for the simulation and its force terms.

Force terms take None for any parameter that should fall back to the
configured default. Defaults are resolved when a force is bound to a set
of entities, never read from module globals at tick time.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
import math


@dataclass(frozen=True)
class ForceDefaults:
    """Named defaults for every force term."""

    link_distance: float = 30.0
    link_iterations: int = 1

    many_body_strength: float = -30.0  # Negative = repulsive
    theta: float = 0.9  # Barnes–Hut opening criterion
    distance_min: float = 1.0  # Clamp for near-zero separations
    distance_max: float = math.inf

    collision_radius: float = 1.0
    collision_strength: float = 1.0
    collision_iterations: int = 1

    center_strength: float = 1.0
    axis_strength: float = 0.1  # TowardsX / TowardsY

    # Phyllotaxis placement for entities created without a position
    initial_radius: float = 10.0
    initial_angle: float = math.pi * (3.0 - math.sqrt(5.0))


@dataclass
class SimulationConfig:
    """Configuration for the cooling schedule and integrator."""

    alpha: float = 1.0  # Starting temperature
    alpha_min: float = 0.001  # Complete once alpha drops below this
    alpha_target: float = 0.0  # Alpha decays towards this value
    alpha_decay: float | None = None  # None = derived from iterations
    velocity_decay: float = 0.6  # Velocity multiplier applied each tick
    iterations: int = 300  # Tick budget used to derive alpha_decay
    seed: int = 1  # Seed for the jiggle generator
    defaults: ForceDefaults = field(default_factory=ForceDefaults)

    def __post_init__(self):
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"alpha must be in [0, 1], got {self.alpha}")
        if not 0.0 < self.alpha_min < 1.0:
            raise ValueError(f"alpha_min must be in (0, 1), got {self.alpha_min}")
        if self.iterations < 1:
            raise ValueError(f"iterations must be at least 1, got {self.iterations}")
        if self.alpha_decay is not None and not 0.0 < self.alpha_decay <= 1.0:
            raise ValueError(f"alpha_decay must be in (0, 1], got {self.alpha_decay}")
        if not 0.0 <= self.velocity_decay <= 1.0:
            raise ValueError(
                f"velocity_decay must be in [0, 1], got {self.velocity_decay}"
            )

    @property
    def decay(self) -> float:
        """Effective alpha decay per tick.

        When not set explicitly, chosen so that alpha falls from 1 to
        alpha_min in exactly `iterations` ticks.
        """
        if self.alpha_decay is not None:
            return self.alpha_decay
        return 1.0 - self.alpha_min ** (1.0 / self.iterations)

    def with_iterations(self, iterations: int) -> "SimulationConfig":
        """Copy of this config with a new tick budget (and derived decay)."""
        return replace(self, iterations=iterations, alpha_decay=None)
