"""Exceptions and warnings raised while replaying a trajectory.

Structural problems with the inputs (row counts, control ordering, labels that
do not resolve) abort a replay before any row is processed. Outputs whose
declared type does not match the requested type are not errors; they are
skipped with a `TypeMismatchWarning`.
"""


class ReplayError(Exception):
    """Base class for all replay errors."""


class RowCountMismatch(ReplayError, ValueError):
    """Two input tables that must be row-aligned have different row counts.

    Attributes:
        first (str): Name of the first input (e.g. "statesTable").
        second (str): Name of the second input.
        first_count (int): Row count of the first input.
        second_count (int): Row count of the second input.
    """

    def __init__(self, first: str, first_count: int, second: str, second_count: int):
        self.first = first
        self.second = second
        self.first_count = first_count
        self.second_count = second_count
        super().__init__(
            f"Expected {first} and {second} to contain the same number of rows, "
            f"but {first} contains {first_count} rows and {second} contains "
            f"{second_count} rows."
        )


class OrderMismatch(ReplayError, ValueError):
    """The tree order of actuators differs from the model's native control order.

    Attributes:
        position (int): First actuator position at which the orders diverge.
    """

    def __init__(self, position: int, tree_path: str, native_path: str):
        self.position = position
        self.tree_path = tree_path
        self.native_path = native_path
        super().__init__(
            f"Control order mismatch at actuator {position}: found '{tree_path}' when "
            f"iterating the component tree but '{native_path}' in the model's control "
            "vector. Make sure every actuator is added to the model's force set."
        )


class UnresolvedPath(ReplayError, LookupError):
    """A label or path does not identify anything in the model.

    Attributes:
        label (str): The offending label, as supplied by the caller.
    """

    def __init__(self, label: str, reason: str = ""):
        self.label = label
        msg = f"Could not resolve '{label}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)

    def __str__(self):
        # LookupError would otherwise repr() the message
        return self.args[0]


class StageError(ReplayError, RuntimeError):
    """A value was requested before its dependency stage was realized."""


class MissingColumns(ReplayError, ValueError):
    """A states table lacks columns for some of the model's state variables."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            f"States table is missing {len(self.missing)} state variable(s): "
            + ", ".join(self.missing)
        )


class ExtraColumns(ReplayError, ValueError):
    """A states table has columns that are not state variables of the model."""

    def __init__(self, extra):
        self.extra = list(extra)
        super().__init__(
            f"States table contains {len(self.extra)} column(s) that are not state "
            "variables in the model: " + ", ".join(self.extra)
        )


class TypeMismatchWarning(UserWarning):
    """A matched output was skipped because its type differs from the requested one."""
