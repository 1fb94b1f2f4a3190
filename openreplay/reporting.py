"""Accumulation of replayed output values into a report table."""

import threading
from typing import List, Optional, Sequence

import numpy as np

from openreplay.model.values import ValueType
from openreplay.table import TimeSeriesTable


class ReportAssembler:
    """Collects one row of output values per trajectory entry.

    The column set is fixed at construction. Rows can be appended in order
    or written by index, which lets concurrent workers finish rows out of
    order while the report keeps trajectory order. The table is available
    only once every row has been filled.

    Attributes:
        column_labels (List[str]): Output paths, in subscription order.
        num_rows (int): Expected number of rows.
        value_type (ValueType): Type of every value in the report.
    """

    def __init__(
        self,
        column_labels: Sequence[str],
        num_rows: int,
        value_type: ValueType = ValueType.DOUBLE,
    ):
        self.column_labels: List[str] = list(column_labels)
        self.num_rows = int(num_rows)
        self.value_type = ValueType(value_type)
        self._rows: List[Optional[list]] = [None] * self.num_rows
        self._times = np.full(self.num_rows, np.nan)
        self._next = 0
        self._lock = threading.Lock()

    @property
    def num_filled(self) -> int:
        return sum(r is not None for r in self._rows)

    def set_row(self, index: int, values: Sequence, time: float):
        """Store the values of row `index`.

        Raises:
            ValueError: If the number of values differs from the column count.
            IndexError: If `index` is out of range.
        """
        values = list(values)
        if len(values) != len(self.column_labels):
            raise ValueError(
                f"Row {index} has {len(values)} values but the report has "
                f"{len(self.column_labels)} columns"
            )
        if not 0 <= index < self.num_rows:
            raise IndexError(f"Row index {index} out of range for report with {self.num_rows} rows")
        with self._lock:
            self._rows[index] = values
            self._times[index] = time

    def append_row(self, values: Sequence, time: float):
        self.set_row(self._next, values, time)
        self._next += 1

    def get_table(self) -> TimeSeriesTable:
        """Return the finished report.

        Raises:
            RuntimeError: If some rows have not been filled yet.
        """
        missing = [i for i, r in enumerate(self._rows) if r is None]
        if missing:
            raise RuntimeError(
                f"Report is incomplete: {len(missing)} of {self.num_rows} rows missing "
                f"(first missing row {missing[0]})"
            )

        n_cols = len(self.column_labels)
        if n_cols == 0:
            data = np.zeros((self.num_rows, 0))
        elif self.value_type is ValueType.VECTOR:
            # Vectors may differ in length between columns
            data = np.empty((self.num_rows, n_cols), dtype=object)
            for i, row in enumerate(self._rows):
                for j, value in enumerate(row):
                    data[i, j] = value
        else:
            data = np.asarray(self._rows, dtype=self.value_type.dtype)
            data = data.reshape((self.num_rows, n_cols) + data.shape[2:])

        return TimeSeriesTable(
            self._times.copy(),
            self.column_labels,
            data,
            metadata={"value_type": self.value_type.value},
        )
