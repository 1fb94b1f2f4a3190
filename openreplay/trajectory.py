from typing import Iterator, List, Sequence

import numpy as np

from openreplay.errors import ExtraColumns, MissingColumns
from openreplay.indexing import create_system_y_index_map
from openreplay.model.model import Model
from openreplay.model.state import State
from openreplay.table import TimeSeriesTable


class StatesTrajectory:
    """Immutable, time-ordered sequence of full model states.

    Indexing returns a fresh copy of the stored state, so callers may mutate
    what they get back without affecting the trajectory.

    Example:
        ```python
        model.init_system()
        traj = StatesTrajectory.from_states_table(model, states_table)
        state = traj[0]
        ```
    """

    def __init__(self, states: Sequence[State]):
        self._states: List[State] = [s.copy() for s in states]
        times = self.times
        if np.any(np.diff(times) < 0):
            raise ValueError("States in a trajectory must be in non-decreasing time order")

    @classmethod
    def from_states_table(
        cls,
        model: Model,
        table: TimeSeriesTable,
        allow_missing_columns: bool = False,
        allow_extra_columns: bool = False,
    ) -> "StatesTrajectory":
        """Reconstruct full states from a table of state variable values.

        Column labels are state variable paths. Each row starts from the
        model's default state, so placeholder slots and state variables
        without a column keep their default values.

        Args:
            model: An initialized model.
            table: States table, one column per state variable.
            allow_missing_columns: Fill state variables absent from the table
                with defaults instead of raising.
            allow_extra_columns: Ignore columns that are not state variables
                instead of raising.

        Raises:
            MissingColumns: If state variables have no column.
            ExtraColumns: If columns do not name state variables.
        """
        y_map = create_system_y_index_map(model)
        labels = table.column_labels

        missing = [name for name in y_map if name not in labels]
        if missing and not allow_missing_columns:
            raise MissingColumns(missing)
        extra = [label for label in labels if label not in y_map]
        if extra and not allow_extra_columns:
            raise ExtraColumns(extra)

        cols = [i for i, label in enumerate(labels) if label in y_map]
        slots = np.array([y_map[labels[i]] for i in cols], dtype=int)
        default = model.get_default_state()

        states = []
        for irow in range(table.num_rows):
            state = default.copy()
            state.time = float(table.times[irow])
            row = np.asarray(table.get_row_at_index(irow), dtype=float)
            state.y[slots] = row[cols]
            states.append(state)
        return cls(states)

    @property
    def times(self) -> np.ndarray:
        return np.array([s.time for s in self._states])

    def __len__(self) -> int:
        return len(self._states)

    def __getitem__(self, index: int) -> State:
        return self._states[index].copy()

    def __iter__(self) -> Iterator[State]:
        for state in self._states:
            yield state.copy()

    def __repr__(self):
        return f"StatesTrajectory(size={len(self)})"
