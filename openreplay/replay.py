"""Replay of a recorded state trajectory to compute model outputs.

`ReplayDriver` reconstructs every state of a trajectory, applies the recorded
controls and discrete variable values, realizes the model through
`Stage.REPORT` and records the values of the subscribed outputs. `analyze`
is the one-call entry point that builds the trajectory from a states table.

Per row the driver:

1. copies the recorded state into a fresh evaluation context,
2. enforces prescribed motion,
3. realizes `Stage.VELOCITY`,
4. writes the control vector (controls without a column stay at zero),
5. writes discrete variable values,
6. realizes `Stage.REPORT`,
7. reads the subscribed outputs into the report.

Rows share nothing but the model, which is only read during evaluation, so
they can be evaluated concurrently (`ReplayConfig.n_workers`).
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from openreplay import io
from openreplay.config import Config
from openreplay.errors import RowCountMismatch, UnresolvedPath
from openreplay.indexing import create_system_control_index_map
from openreplay.model.component import Component
from openreplay.model.model import Model
from openreplay.model.stage import Stage
from openreplay.model.values import ValueType
from openreplay.outputs import subscribe_outputs
from openreplay.reporting import ReportAssembler
from openreplay.table import TimeSeriesTable
from openreplay.trajectory import StatesTrajectory
from openreplay.utils import profiling_end, profiling_start


class ReplayDriver:
    """Replays trajectories of one model and reports a fixed set of outputs.

    Construction performs the setup that does not depend on the input tables:
    the model is (re)initialized, outputs are subscribed and the control
    index map is built, which checks the actuator order once.

    Rows are evaluated against private `State` copies and the model is only
    read, so with `ReplayConfig.n_workers > 1` all workers share it. The model
    must not be mutated while a run is in progress.

    Args:
        model: Model to evaluate. `init_system()` is called on it, laying it
            out in place.
        output_paths: Regular expressions matched against full output paths.
        value_type: Only outputs of this type are reported.
        config: Replay and development settings.

    Raises:
        OrderMismatch: If the model's actuator order cannot be mapped to its
            control vector.
    """

    def __init__(
        self,
        model: Model,
        output_paths: Sequence[str],
        value_type: ValueType = ValueType.DOUBLE,
        config: Optional[Config] = None,
    ):
        self.model = model
        self.value_type = ValueType(value_type)
        self.config = config if config is not None else Config()

        self.model.init_system()
        self.subscriptions = subscribe_outputs(model, output_paths, self.value_type)
        self.control_map = create_system_control_index_map(model)

    @property
    def column_labels(self) -> List[str]:
        return [entry.path for entry in self.subscriptions]

    def _check_row_counts(self, trajectory, controls_table, discrete_variables_table):
        n_states = len(trajectory)
        if controls_table.num_rows != n_states:
            raise RowCountMismatch(
                "trajectory", n_states, "controls_table", controls_table.num_rows
            )
        if discrete_variables_table is not None and discrete_variables_table.num_rows != n_states:
            raise RowCountMismatch(
                "discrete_variables_table",
                discrete_variables_table.num_rows,
                "trajectory",
                n_states,
            )

    def _resolve_control_columns(self, controls_table: TimeSeriesTable) -> np.ndarray:
        slots = []
        for label in controls_table.column_labels:
            if label not in self.control_map:
                raise UnresolvedPath(
                    label, "not the name of a control of a force-applying actuator"
                )
            slots.append(self.control_map[label])
        return np.array(slots, dtype=int)

    def _resolve_discrete_variables(
        self, table: Optional[TimeSeriesTable]
    ) -> List[Tuple[Component, str]]:
        # Labels are "<component path>/<variable name>". The tree does not
        # change during a replay, so each label is resolved once.
        refs = []
        if table is None:
            return refs
        for label in table.column_labels:
            comp_path, _, var_name = label.rpartition("/")
            if not comp_path or not var_name:
                raise UnresolvedPath(label, "expected '<component path>/<variable name>'")
            try:
                component = self.model.get_component(comp_path)
            except UnresolvedPath:
                raise UnresolvedPath(label, f"no component at '{comp_path}'") from None
            if not component.has_discrete_variable(var_name):
                raise UnresolvedPath(
                    label, f"component '{component.path}' has no discrete variable '{var_name}'"
                )
            refs.append((component, var_name))
        return refs

    def _replay_row(self, itime, trajectory, controls_table, control_slots, dv_table, dv_refs):
        model = self.model
        state = trajectory[itime]

        model.prescribe(state)
        model.realize(state, Stage.VELOCITY)

        controls = np.zeros(model.num_controls)
        if control_slots.size:
            controls[control_slots] = controls_table.get_row_at_index(itime)
        model.set_controls(state, controls)

        for idv, (component, var_name) in enumerate(dv_refs):
            component.set_discrete_variable_value(state, var_name, dv_table.data[itime, idv])

        model.realize(state, Stage.REPORT)
        return state.time, [entry.output.get_value(state) for entry in self.subscriptions]

    def run(
        self,
        trajectory: StatesTrajectory,
        controls_table: TimeSeriesTable,
        discrete_variables_table: Optional[TimeSeriesTable] = None,
    ) -> TimeSeriesTable:
        """Replay `trajectory` and return the report.

        Args:
            trajectory: States to replay, in order.
            controls_table: One row per state; columns are control names
                (see `create_control_names_from_model`).
            discrete_variables_table: Optional, one row per state; columns
                are `<component path>/<discrete variable name>`.

        Returns:
            TimeSeriesTable: One row per state (same times), one column per
            subscribed output.

        Raises:
            RowCountMismatch: If the inputs do not have the same number of rows.
            UnresolvedPath: If a control or discrete variable label does not
                resolve in the model.
        """
        if discrete_variables_table is not None and discrete_variables_table.num_columns == 0:
            discrete_variables_table = None

        self._check_row_counts(trajectory, controls_table, discrete_variables_table)
        control_slots = self._resolve_control_columns(controls_table)
        dv_refs = self._resolve_discrete_variables(discrete_variables_table)

        n_rows = len(trajectory)
        assembler = ReportAssembler(self.column_labels, n_rows, self.value_type)
        if self.config.dev.printing:
            io.header(self.model.name, n_rows, self.column_labels)

        args = (trajectory, controls_table, control_slots, discrete_variables_table, dv_refs)

        def replay_rows(rows):
            for itime in rows:
                t, values = self._replay_row(itime, *args)
                assembler.set_row(itime, values, t)

        pr = profiling_start(self.config.dev.profiling)
        t0 = time.time()
        n_workers = min(self.config.replay.n_workers, max(n_rows, 1))
        if n_workers > 1:
            chunks = np.array_split(np.arange(n_rows), n_workers)
            with ThreadPoolExecutor(max_workers=n_workers) as pool:
                futures = [pool.submit(replay_rows, chunk) for chunk in chunks]
                for future in futures:
                    future.result()
        else:
            replay_rows(range(n_rows))
        computation_time = time.time() - t0
        profile_path = profiling_end(pr, "replay", self.config.dev.profiling_dir)

        if self.config.dev.printing:
            io.footer(computation_time, n_rows, profile_path)
        return assembler.get_table()


def analyze(
    model: Model,
    states_table: Union[TimeSeriesTable, StatesTrajectory],
    controls_table: TimeSeriesTable,
    output_paths: Sequence[str],
    value_type: ValueType = ValueType.DOUBLE,
    discrete_variables_table: Optional[TimeSeriesTable] = None,
    config: Optional[Config] = None,
) -> TimeSeriesTable:
    """Compute the requested outputs along a recorded trajectory.

    Output paths are regular expressions matched against whole output paths;
    for example ".*activation" selects the activation of every muscle.
    Only outputs whose type is `value_type` are reported; other matches are
    skipped with a `TypeMismatchWarning`. Controls missing from the controls
    table are zero. The states and controls tables are assumed to hold the
    same time points.

    Prescribed motion in the model is applied, but the trajectory is not
    projected onto kinematic constraints: states that violate them produce
    outputs that are wrong, not errors.

    Args:
        model: Model to evaluate. `init_system()` is called on the caller's
            model, which updates its slot and control layout in place and
            leaves it initialized. The tree and its outputs are not modified.
        states_table: Table of state variable values (columns are state
            variable paths), or an already built `StatesTrajectory`.
        controls_table: Table of control values, same rows as the states.
        output_paths: Output path patterns.
        value_type: Requested output type. Defaults to `ValueType.DOUBLE`.
        discrete_variables_table: Optional table of discrete variable values
            labelled `<component path>/<discrete variable name>`, e.g.
            "/forceset/muscle/implicitderiv_normalized_tendon_force".
        config: Replay settings.

    Returns:
        TimeSeriesTable: Report of the subscribed outputs.

    Example:
        ```python
        report = analyze(model, states, controls, [".*activation"])
        report.get_dependent_column("/forceset/soleus/activation")
        ```
    """
    config = config if config is not None else Config()
    driver = ReplayDriver(model, output_paths, value_type, config)
    if isinstance(states_table, StatesTrajectory):
        trajectory = states_table
    else:
        trajectory = StatesTrajectory.from_states_table(
            model,
            states_table,
            allow_missing_columns=config.replay.allow_missing_columns,
            allow_extra_columns=config.replay.allow_extra_columns,
        )
    return driver.run(trajectory, controls_table, discrete_variables_table)
