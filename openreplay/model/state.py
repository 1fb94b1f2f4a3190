"""Live evaluation context for a model.

A `State` holds everything that changes while a model is evaluated at one
instant: time, the full state vector Y (placeholder slots included), the
control vector, discrete variable values, the realized stage and a cache of
output values. Components themselves hold no per-instant data, so a model can
be evaluated against many `State` objects.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from openreplay.model.stage import Stage


@dataclass
class State:
    """Mutable evaluation context for one instant.

    Attributes:
        time: Simulation time in seconds.
        y: Full state vector, shape (n_slots,). Includes placeholder slots.
        controls: Control vector in the model's native actuator order.
        discrete: Discrete variable values keyed by (component path, name).
        stage: Highest stage realized for the current contents.
        cache: Cached output values keyed by output path. Each entry stores
            the stage the value depends on, so lowering the stage drops it.
    """

    time: float
    y: np.ndarray
    controls: np.ndarray
    discrete: Dict[Tuple[str, str], object] = field(default_factory=dict)
    stage: Stage = Stage.INSTANTIATED
    cache: Dict[str, Tuple[Stage, object]] = field(default_factory=dict)

    def copy(self) -> "State":
        """Return an independent copy with an empty cache at the Instantiated stage."""
        return State(
            time=float(self.time),
            y=self.y.copy(),
            controls=self.controls.copy(),
            discrete=dict(self.discrete),
        )

    def invalidate(self, stage: Stage):
        """Mark `stage` and every later stage as no longer realized."""
        if self.stage >= stage:
            self.stage = Stage(max(stage - 1, Stage.INSTANTIATED))
            self.cache = {k: v for k, v in self.cache.items() if v[0] <= self.stage}

    def __repr__(self):
        return f"State(time={self.time}, n_y={self.y.shape[0]}, stage={self.stage.name})"
