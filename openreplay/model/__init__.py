"""Component tree, evaluation context and computation stages."""

from openreplay.model.component import Actuator, Component, DiscreteVariable, Output
from openreplay.model.components import (
    Coordinate,
    Frame,
    PositionMotion,
    QuaternionJoint,
    ScalarActuator,
    VectorActuator,
)
from openreplay.model.model import Model
from openreplay.model.stage import Stage
from openreplay.model.state import State
from openreplay.model.values import ValueType

__all__ = [
    "Actuator",
    "Component",
    "Coordinate",
    "DiscreteVariable",
    "Frame",
    "Model",
    "Output",
    "PositionMotion",
    "QuaternionJoint",
    "ScalarActuator",
    "Stage",
    "State",
    "ValueType",
    "VectorActuator",
]
