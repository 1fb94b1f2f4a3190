from typing import Callable, Iterator, List, Optional

import numpy as np

from openreplay.errors import StageError, UnresolvedPath
from openreplay.model.stage import Stage
from openreplay.model.state import State
from openreplay.model.values import ValueType


class Output:
    """Named, typed, computable value exposed by a component.

    The value is produced by `func(state)` once the evaluation context has
    been realized to `stage`. Values are cached on the `State` until the
    stage they depend on is invalidated.

    Attributes:
        owner (Component): Component exposing this output.
        name (str): Output name, unique within its owner.
        value_type (ValueType): Declared type of the value.
        stage (Stage): Lowest stage the value depends on.
    """

    def __init__(
        self,
        owner: "Component",
        name: str,
        value_type: ValueType,
        stage: Stage,
        func: Callable[[State], object],
    ):
        self.owner = owner
        self.name = name
        self.value_type = ValueType(value_type)
        self.stage = Stage(stage)
        self._func = func

    @property
    def path(self) -> str:
        return _join(self.owner.path, self.name)

    def get_value(self, state: State):
        """Evaluate this output in `state`.

        Raises:
            StageError: If `state` has not been realized to this output's stage.
        """
        if state.stage < self.stage:
            raise StageError(
                f"Output '{self.path}' depends on stage {self.stage.name} but the state "
                f"is only realized to {state.stage.name}"
            )
        key = self.path
        if key not in state.cache:
            state.cache[key] = (self.stage, self.value_type.coerce(self._func(state)))
        return state.cache[key][1]

    def __repr__(self):
        return f"Output('{self.path}', type={self.value_type.value}, stage={self.stage.name})"


class DiscreteVariable:
    """Named non-continuous value owned by a component.

    Attributes:
        name (str): Variable name, unique within its owner.
        default: Value stored in a freshly initialized state.
        invalidates (Stage): Setting the variable un-realizes this stage and
            every later one.
    """

    def __init__(self, name: str, default=0.0, invalidates: Stage = Stage.DYNAMICS):
        self.name = name
        self.default = default
        self.invalidates = Stage(invalidates)

    def __repr__(self):
        return f"DiscreteVariable('{self.name}', default={self.default})"


class Component:
    """Node of a hierarchical model.

    A component owns child components, outputs, an ordered list of state
    variable slots and discrete variables. Slots are either named state
    variables or unused placeholders (for example the redundant entry of a
    quaternion). Components hold no per-instant data; values live in `State`.

    Example:
        ```python
        body = Component("pelvis")
        body.add_state_variable("tilt")
        body.add_output("tilt_deg", ValueType.DOUBLE, Stage.POSITION,
                        lambda s: np.degrees(body.get_state_variable_value(s, "tilt")))
        ```
    """

    def __init__(self, name: str):
        if not name or "/" in name:
            raise ValueError(f"Invalid component name {name!r}: must be non-empty without '/'")
        self.name = name
        self._parent: Optional[Component] = None
        self._children: List[Component] = []
        self._outputs = {}
        self._slots: List[Optional[str]] = []
        self._discrete_variables = {}
        # Set by Model.init_system()
        self._slot_start: Optional[int] = None

    # ------------------------------------------------------------------ tree

    @property
    def parent(self) -> Optional["Component"]:
        return self._parent

    @property
    def path(self) -> str:
        """Absolute path of this component; the root is "/"."""
        names = []
        node = self
        while node._parent is not None:
            names.append(node.name)
            node = node._parent
        return "/" + "/".join(reversed(names))

    def add_component(self, child: "Component") -> "Component":
        """Attach `child` below this component and return it."""
        if child._parent is not None:
            raise ValueError(f"Component '{child.name}' already belongs to '{child._parent.path}'")
        if any(c.name == child.name for c in self._children):
            raise ValueError(f"Component '{self.path}' already has a child named '{child.name}'")
        child._parent = self
        self._children.append(child)
        return child

    def children(self) -> List["Component"]:
        return list(self._children)

    def iter_components(self) -> Iterator["Component"]:
        """Depth-first iteration over this component and its descendants."""
        yield self
        for child in self._children:
            yield from child.iter_components()

    def find_child(self, name: str) -> Optional["Component"]:
        for child in self._children:
            if child.name == name:
                return child
        return None

    # --------------------------------------------------------------- outputs

    def add_output(
        self,
        name: str,
        value_type: ValueType,
        stage: Stage,
        func: Callable[[State], object],
    ) -> Output:
        if name in self._outputs:
            raise ValueError(f"Component '{self.path}' already has an output named '{name}'")
        output = Output(self, name, value_type, stage, func)
        self._outputs[name] = output
        return output

    def get_output_names(self) -> List[str]:
        return list(self._outputs)

    def get_output(self, name: str) -> Output:
        try:
            return self._outputs[name]
        except KeyError:
            raise UnresolvedPath(_join(self.path, name), "no such output") from None

    # ------------------------------------------------------- state variables

    def add_state_variable(self, name: str):
        if name in self._slots:
            raise ValueError(f"Component '{self.path}' already has a state variable '{name}'")
        self._slots.append(name)

    def add_placeholder_slot(self):
        """Reserve an unused slot in the state vector."""
        self._slots.append(None)

    def get_state_variable_names(self) -> List[str]:
        return [s for s in self._slots if s is not None]

    @property
    def num_slots(self) -> int:
        return len(self._slots)

    def get_state_variable_index(self, name: str) -> int:
        """Index in Y of the state variable `name` (requires an initialized model)."""
        if self._slot_start is None:
            raise RuntimeError(f"Component '{self.path}' is not part of an initialized model")
        try:
            return self._slot_start + self._slots.index(name)
        except ValueError:
            raise UnresolvedPath(_join(self.path, name), "no such state variable") from None

    def get_state_variable_value(self, state: State, name: str) -> float:
        return float(state.y[self.get_state_variable_index(name)])

    def set_state_variable_value(self, state: State, name: str, value: float):
        state.y[self.get_state_variable_index(name)] = value
        state.invalidate(Stage.POSITION)

    # ---------------------------------------------------- discrete variables

    def add_discrete_variable(self, name: str, default=0.0, invalidates: Stage = Stage.DYNAMICS):
        if name in self._discrete_variables:
            raise ValueError(f"Component '{self.path}' already has a discrete variable '{name}'")
        dv = DiscreteVariable(name, default, invalidates)
        self._discrete_variables[name] = dv
        return dv

    def get_discrete_variable_names(self) -> List[str]:
        return list(self._discrete_variables)

    def has_discrete_variable(self, name: str) -> bool:
        return name in self._discrete_variables

    def _discrete_variable(self, name: str) -> DiscreteVariable:
        try:
            return self._discrete_variables[name]
        except KeyError:
            raise UnresolvedPath(_join(self.path, name), "no such discrete variable") from None

    def get_discrete_variable_value(self, state: State, name: str):
        dv = self._discrete_variable(name)
        return state.discrete.get((self.path, name), dv.default)

    def set_discrete_variable_value(self, state: State, name: str, value):
        dv = self._discrete_variable(name)
        state.discrete[(self.path, name)] = value
        state.invalidate(dv.invalidates)

    # ----------------------------------------------------------------- hooks

    def prescribe(self, state: State):
        """Enforce prescribed motion by writing into `state.y`. No-op by default."""

    def realize(self, state: State, stage: Stage):
        """Called once per stage while `state` is being realized. No-op by default."""

    def __repr__(self):
        return f"{type(self).__name__}('{self.path}')"


class Actuator(Component):
    """Component that consumes one or more entries of the control vector.

    Attributes:
        num_controls (int): Number of control channels.
        applies_force (bool): Whether the actuator currently contributes to
            the model. Disabled actuators keep their control channels.
    """

    def __init__(self, name: str, num_controls: int = 1, applies_force: bool = True):
        super().__init__(name)
        if num_controls < 1:
            raise ValueError(f"Actuator '{name}' must have at least one control, got {num_controls}")
        self.num_controls = int(num_controls)
        self.applies_force = bool(applies_force)
        # Set by Model.init_system()
        self._control_start: Optional[int] = None

    @property
    def control_slice(self) -> slice:
        if self._control_start is None:
            raise RuntimeError(f"Actuator '{self.path}' is not part of an initialized model")
        return slice(self._control_start, self._control_start + self.num_controls)

    def get_controls(self, state: State) -> np.ndarray:
        return state.controls[self.control_slice].copy()


def _join(parent_path: str, name: str) -> str:
    return parent_path.rstrip("/") + "/" + name
