"""Concrete components used to build models.

These cover the layouts the replay engine has to cope with: plain
coordinates, joints with unused quaternion slots, single- and multi-channel
actuators, frames with vector and rotation outputs, and prescribed motion.
Physics is not computed here; values the engine cannot derive from the state
are supplied as callables of the evaluation context.
"""

from typing import Callable, Optional

import numpy as np

from openreplay.model.component import Actuator, Component
from openreplay.model.stage import Stage
from openreplay.model.state import State
from openreplay.model.values import ValueType


class Coordinate(Component):
    """Generalized coordinate with `value` and `speed` state variables."""

    def __init__(self, name: str):
        super().__init__(name)
        self.add_state_variable("value")
        self.add_state_variable("speed")
        self.add_output(
            "value", ValueType.DOUBLE, Stage.POSITION,
            lambda s: self.get_state_variable_value(s, "value"),
        )
        self.add_output(
            "speed", ValueType.DOUBLE, Stage.VELOCITY,
            lambda s: self.get_state_variable_value(s, "speed"),
        )


class QuaternionJoint(Component):
    """Ball joint parameterized by a quaternion.

    The joint exposes three rotational coordinates, but the underlying
    quaternion occupies four position slots; the fourth is an unused
    placeholder in the state vector.
    """

    def __init__(self, name: str):
        super().__init__(name)
        self.add_placeholder_slot()
        for axis in ("rx", "ry", "rz"):
            self.add_component(Coordinate(f"{name}_{axis}"))


class ScalarActuator(Actuator):
    """Single-channel actuator.

    Outputs:
        control: The actuator's entry in the control vector.
        actuation: `optimal_force * control` when the actuator applies force, else 0.
    """

    def __init__(self, name: str, optimal_force: float = 1.0, applies_force: bool = True):
        super().__init__(name, num_controls=1, applies_force=applies_force)
        self.optimal_force = float(optimal_force)
        self.add_output("control", ValueType.DOUBLE, Stage.DYNAMICS, self.get_control)
        self.add_output("actuation", ValueType.DOUBLE, Stage.DYNAMICS, self.get_actuation)

    def get_control(self, state: State) -> float:
        return float(state.controls[self.control_slice][0])

    def get_actuation(self, state: State) -> float:
        if not self.applies_force:
            return 0.0
        return self.optimal_force * self.get_control(state)


class VectorActuator(Actuator):
    """Multi-channel actuator exposing its controls as a `Vector` output."""

    def __init__(self, name: str, num_controls: int, applies_force: bool = True):
        super().__init__(name, num_controls=num_controls, applies_force=applies_force)
        self.add_output("controls", ValueType.VECTOR, Stage.DYNAMICS, self.get_controls)


class Frame(Component):
    """Reference frame with kinematic outputs.

    Args:
        name: Frame name.
        rotation_fn: `state -> (3, 3)` rotation from frame to ground. Identity by default.
        position_fn: `state -> (3,)` origin position in ground. Zero by default.
        acceleration_fn: `state -> (3,)` origin linear acceleration in ground.
            Zero by default.
    """

    def __init__(
        self,
        name: str,
        rotation_fn: Optional[Callable[[State], np.ndarray]] = None,
        position_fn: Optional[Callable[[State], np.ndarray]] = None,
        acceleration_fn: Optional[Callable[[State], np.ndarray]] = None,
    ):
        super().__init__(name)
        self.add_output(
            "position", ValueType.VEC3, Stage.POSITION,
            position_fn or (lambda s: np.zeros(3)),
        )
        self.add_output(
            "rotation", ValueType.ROTATION, Stage.POSITION,
            rotation_fn or (lambda s: np.eye(3)),
        )
        self.add_output(
            "linear_acceleration", ValueType.VEC3, Stage.ACCELERATION,
            acceleration_fn or (lambda s: np.zeros(3)),
        )


class PositionMotion(Component):
    """Prescribes a coordinate's value (and optionally speed) as a function of time."""

    def __init__(
        self,
        name: str,
        coordinate: Coordinate,
        value_fn: Callable[[float], float],
        speed_fn: Optional[Callable[[float], float]] = None,
    ):
        super().__init__(name)
        self.coordinate = coordinate
        self.value_fn = value_fn
        self.speed_fn = speed_fn

    def prescribe(self, state: State):
        state.y[self.coordinate.get_state_variable_index("value")] = self.value_fn(state.time)
        if self.speed_fn is not None:
            state.y[self.coordinate.get_state_variable_index("speed")] = self.speed_fn(state.time)
