"""Time-indexed tables with labelled columns.

`TimeSeriesTable` is the tabular structure consumed (states, controls and
discrete variable tables) and produced (reports) by the replay engine. Rows
are time points; the first two axes of `data` are rows x columns, so tables of
vector values carry extra trailing axes.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np


class TimeSeriesTable:
    """Ordered rows indexed by time, with labelled columns.

    Attributes:
        times (np.ndarray): Time of each row, shape (n_rows,).
        column_labels (List[str]): Unique column labels.
        data (np.ndarray): Values, shape (n_rows, n_columns, ...).
        metadata (dict): Free-form key/value annotations.

    Example:
        ```python
        controls = TimeSeriesTable(
            times=[0.0, 0.1, 0.2],
            column_labels=["m1", "m2"],
            data=np.zeros((3, 2)),
        )
        controls.get_dependent_column("m2")
        ```
    """

    def __init__(
        self,
        times: Sequence[float] = (),
        column_labels: Sequence[str] = (),
        data=None,
        metadata: Optional[Dict] = None,
    ):
        self.times = np.asarray(times, dtype=float).reshape(-1)
        self.column_labels: List[str] = list(column_labels)
        if len(set(self.column_labels)) != len(self.column_labels):
            raise ValueError(f"Column labels must be unique, got {self.column_labels}")

        if data is None:
            data = np.zeros((self.times.shape[0], len(self.column_labels)))
        data = np.asarray(data)
        if data.ndim == 1 and len(self.column_labels) == 1:
            data = data.reshape(-1, 1)
        if data.ndim < 2:
            raise ValueError(f"Table data must be at least 2-D, got shape {data.shape}")
        if data.shape[0] != self.times.shape[0]:
            raise ValueError(
                f"Table has {self.times.shape[0]} times but data has {data.shape[0]} rows"
            )
        if data.shape[1] != len(self.column_labels):
            raise ValueError(
                f"Table has {len(self.column_labels)} column labels but data has "
                f"{data.shape[1]} columns"
            )
        self.data = data
        self.metadata = dict(metadata) if metadata else {}

    @classmethod
    def from_columns(cls, times, columns: Dict[str, Sequence], metadata=None) -> "TimeSeriesTable":
        """Build a table from a `{label: values}` mapping, preserving key order."""
        labels = list(columns)
        times = np.asarray(times, dtype=float)
        if not labels:
            return cls(times, [], np.zeros((times.shape[0], 0)), metadata)
        data = np.stack([np.asarray(columns[k]) for k in labels], axis=1)
        return cls(times, labels, data, metadata)

    @property
    def num_rows(self) -> int:
        return self.times.shape[0]

    @property
    def num_columns(self) -> int:
        return len(self.column_labels)

    def has_column(self, label: str) -> bool:
        return label in self.column_labels

    def get_column_index(self, label: str) -> int:
        try:
            return self.column_labels.index(label)
        except ValueError:
            raise KeyError(f"Table has no column labelled '{label}'") from None

    def get_dependent_column(self, label: str) -> np.ndarray:
        return self.data[:, self.get_column_index(label)]

    def get_row_at_index(self, index: int) -> np.ndarray:
        if not -self.num_rows <= index < self.num_rows:
            raise IndexError(f"Row index {index} out of range for table with {self.num_rows} rows")
        return self.data[index]

    def __len__(self):
        return self.num_rows

    def __repr__(self):
        return f"TimeSeriesTable(rows={self.num_rows}, columns={self.column_labels})"
