"""Value type tags for model outputs.

Outputs carry an explicit type tag so that callers can request one value type
across a heterogeneous component tree. The tag is checked once, when outputs
are subscribed, rather than on every evaluation.
"""

from enum import Enum

import numpy as np


class ValueType(Enum):
    """Declared value type of an output.

    Attributes:
        DOUBLE: Scalar float.
        VEC3: 3-vector, stored as an array of shape (3,).
        ROTATION: 3x3 rotation matrix, shape (3, 3).
        VECTOR: Variable length 1-D float array.
        INT: Scalar integer.
        BOOL: Scalar boolean.
    """

    DOUBLE = "double"
    VEC3 = "Vec3"
    ROTATION = "Rotation"
    VECTOR = "Vector"
    INT = "int"
    BOOL = "bool"

    def coerce(self, value):
        """Convert a raw evaluated value to the canonical Python/numpy form.

        Args:
            value: The raw value returned by an output's compute function.

        Returns:
            The value in canonical form for this type.

        Raises:
            ValueError: If the value has the wrong shape for this type.
        """
        if self is ValueType.DOUBLE:
            return float(value)
        if self is ValueType.INT:
            return int(value)
        if self is ValueType.BOOL:
            return bool(value)

        arr = np.asarray(value, dtype=float)
        expected = {ValueType.VEC3: (3,), ValueType.ROTATION: (3, 3)}.get(self)
        if expected is not None and arr.shape != expected:
            raise ValueError(f"{self.value} value must have shape {expected}, got {arr.shape}")
        if self is ValueType.VECTOR and arr.ndim != 1:
            raise ValueError(f"Vector value must be 1-D, got shape {arr.shape}")
        return arr

    @property
    def dtype(self):
        """numpy dtype used when values of this type are stacked in a table."""
        if self is ValueType.INT:
            return np.int64
        if self is ValueType.BOOL:
            return np.bool_
        if self is ValueType.VECTOR:
            return object
        return np.float64
