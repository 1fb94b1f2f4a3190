from typing import Dict, List, Optional

import numpy as np

from openreplay.errors import UnresolvedPath
from openreplay.model.component import Actuator, Component
from openreplay.model.stage import Stage
from openreplay.model.state import State


class Model(Component):
    """Root of a component tree.

    `init_system()` lays the tree out into an arena: every component gets an
    index, a path lookup table is built, state variable slots are assigned
    consecutive positions in Y (in depth-first tree order, placeholders
    included) and control channels are allocated in the model's native
    actuator order. The native order lists the actuators in the force set
    first, in the order they were added, followed by any actuators that live
    elsewhere in the tree. The tree layout must not change between
    `init_system()` and the evaluations that use it.

    Attributes:
        gravity (np.ndarray): Gravitational acceleration expressed in ground, shape (3,).

    Example:
        ```python
        model = Model("arm")
        m1 = model.add_force(ScalarActuator("m1"))
        state = model.init_system()
        model.realize(state, Stage.REPORT)
        ```
    """

    def __init__(self, name: str = "model", gravity=(0.0, -9.80665, 0.0)):
        super().__init__(name)
        self.gravity = np.asarray(gravity, dtype=float)
        self._force_set: Optional[Component] = None
        self._components: List[Component] = []
        self._path_index: Dict[str, int] = {}
        self._placeholders = frozenset()
        self._num_slots = 0
        self._actuators: List[Actuator] = []
        self._num_controls = 0
        self._default_state: Optional[State] = None

    @property
    def force_set(self) -> Component:
        """The "forceset" child, created on first use."""
        if self._force_set is None:
            self._force_set = self.add_component(Component("forceset"))
        return self._force_set

    def add_force(self, actuator: Actuator) -> Actuator:
        """Add `actuator` to the force set and return it."""
        return self.force_set.add_component(actuator)

    # ---------------------------------------------------------------- layout

    def init_system(self) -> State:
        """Lay out the tree and return a default-initialized state.

        Returns:
            State: Zero state vector and controls, default discrete variable
            values, realized to no stage.
        """
        self._components = list(self.iter_components())
        self._path_index = {c.path: i for i, c in enumerate(self._components)}

        offset = 0
        placeholders = set()
        for comp in self._components:
            comp._slot_start = offset
            for k, slot in enumerate(comp._slots):
                if slot is None:
                    placeholders.add(offset + k)
            offset += comp.num_slots
        self._num_slots = offset
        self._placeholders = frozenset(placeholders)

        in_force_set = []
        if self._force_set is not None:
            in_force_set = [c for c in self._force_set.children() if isinstance(c, Actuator)]
        elsewhere = [
            c for c in self._components if isinstance(c, Actuator) and c not in in_force_set
        ]
        self._actuators = in_force_set + elsewhere
        start = 0
        for actu in self._actuators:
            actu._control_start = start
            start += actu.num_controls
        self._num_controls = start

        discrete = {}
        for comp in self._components:
            for name in comp.get_discrete_variable_names():
                discrete[(comp.path, name)] = comp._discrete_variable(name).default

        self._default_state = State(
            time=0.0,
            y=np.zeros(self._num_slots),
            controls=np.zeros(self._num_controls),
            discrete=discrete,
        )
        return self._default_state.copy()

    def _require_initialized(self):
        if self._default_state is None:
            raise RuntimeError(f"Model '{self.name}' has not been initialized; call init_system()")

    def get_default_state(self) -> State:
        self._require_initialized()
        return self._default_state.copy()

    def components(self) -> List[Component]:
        """Arena of components in depth-first order (requires `init_system()`)."""
        self._require_initialized()
        return list(self._components)

    def get_component(self, path: str) -> Component:
        """Resolve an absolute or root-relative component path.

        Raises:
            UnresolvedPath: If no component has this path.
        """
        self._require_initialized()
        key = "/" + path.strip().strip("/")
        try:
            return self._components[self._path_index[key]]
        except KeyError:
            raise UnresolvedPath(path, "no component with this path") from None

    # ------------------------------------------------------------------ state

    @property
    def num_state_slots(self) -> int:
        self._require_initialized()
        return self._num_slots

    @property
    def num_placeholder_slots(self) -> int:
        self._require_initialized()
        return len(self._placeholders)

    def is_placeholder_slot(self, index: int) -> bool:
        self._require_initialized()
        return index in self._placeholders

    def _split_variable_path(self, path: str):
        comp_path, _, name = path.rpartition("/")
        if not name:
            raise UnresolvedPath(path, "expected '<component path>/<variable name>'")
        return self.get_component(comp_path or "/"), name

    def get_state_variable_value(self, state: State, path: str) -> float:
        comp, name = self._split_variable_path(path)
        return comp.get_state_variable_value(state, name)

    def set_state_variable_value(self, state: State, path: str, value: float):
        comp, name = self._split_variable_path(path)
        comp.set_state_variable_value(state, name, value)

    # --------------------------------------------------------------- controls

    @property
    def num_controls(self) -> int:
        self._require_initialized()
        return self._num_controls

    def get_actuators(self) -> List[Actuator]:
        """Actuators in native control order."""
        self._require_initialized()
        return list(self._actuators)

    def set_controls(self, state: State, controls):
        """Replace the control vector; un-realizes Dynamics and later stages."""
        self._require_initialized()
        controls = np.asarray(controls, dtype=float)
        if controls.shape != (self._num_controls,):
            raise ValueError(
                f"Controls shape {controls.shape} does not match model controls "
                f"({self._num_controls},)"
            )
        state.controls = controls.copy()
        state.invalidate(Stage.DYNAMICS)

    # ------------------------------------------------------------ realization

    def prescribe(self, state: State):
        """Apply every prescribed motion registered in the tree to `state`."""
        self._require_initialized()
        # index 0 is the model itself
        for comp in self._components[1:]:
            comp.prescribe(state)
        state.invalidate(Stage.POSITION)

    def realize(self, state: State, stage: Stage):
        """Realize `state` through `stage`. Does nothing if already there."""
        self._require_initialized()
        stage = Stage(stage)
        if state.y.shape != (self._num_slots,):
            raise ValueError(
                f"State has {state.y.shape[0]} slots but model '{self.name}' has {self._num_slots}"
            )
        while state.stage < stage:
            next_stage = state.stage.next()
            for comp in self._components[1:]:
                comp.realize(state, next_stage)
            state.stage = next_stage
