"""Synthetic accelerometer signals from a replayed trajectory."""

import re
from typing import Optional, Sequence

import jax
import jax.numpy as jnp
import numpy as np

from openreplay.config import Config
from openreplay.model.model import Model
from openreplay.model.values import ValueType
from openreplay.replay import analyze
from openreplay.table import TimeSeriesTable


@jax.jit
def _imu_signal(rotation, acceleration, gravity):
    # Accelerometers measure specific force expressed in the sensor frame:
    # R^T (a - g) with R the frame-to-ground rotation.
    return rotation.T @ (acceleration - gravity)


# Vectorised over frames, then over rows
_imu_signals = jax.vmap(jax.vmap(_imu_signal, in_axes=(0, 0, None)), in_axes=(0, 0, None))


def create_synthetic_imu_acceleration_signals(
    model: Model,
    states_table: TimeSeriesTable,
    controls_table: TimeSeriesTable,
    frame_paths: Sequence[str],
    config: Optional[Config] = None,
) -> TimeSeriesTable:
    """Compute the signals accelerometers fixed to frames would record.

    The linear acceleration of each frame (its `linear_acceleration` output)
    is obtained with `analyze`, the model's gravity is subtracted and the
    result is re-expressed in the frame's basis (its `rotation` output).
    The model must carry correct mass properties since accelerations need
    `Stage.ACCELERATION`.

    Args:
        model: Model containing the frames.
        states_table: States table, same time points as `controls_table`.
        controls_table: Controls table.
        frame_paths: Absolute paths of the frames carrying a sensor.
        config: Replay settings.

    Returns:
        TimeSeriesTable: One `Vec3` column per frame, labelled with the frame
        path; data shape (n_rows, n_frames, 3).
    """
    frame_paths = list(frame_paths)
    if not frame_paths:
        raise ValueError("At least one frame path is required")

    accel_paths = [f"/{p.strip('/')}/linear_acceleration" for p in frame_paths]
    rotation_paths = [f"/{p.strip('/')}/rotation" for p in frame_paths]

    accelerations = analyze(
        model, states_table, controls_table, [re.escape(p) for p in accel_paths],
        value_type=ValueType.VEC3, config=config,
    )
    rotations = analyze(
        model, states_table, controls_table, [re.escape(p) for p in rotation_paths],
        value_type=ValueType.ROTATION, config=config,
    )
    for paths, table in ((accel_paths, accelerations), (rotation_paths, rotations)):
        missing = [p for p in paths if not table.has_column(p)]
        if missing:
            raise ValueError(f"Frame outputs not found in the model: {missing}")

    accel = jnp.asarray(
        np.stack([accelerations.get_dependent_column(p) for p in accel_paths], axis=1)
    )
    rot = jnp.asarray(
        np.stack([rotations.get_dependent_column(p) for p in rotation_paths], axis=1)
    )
    signals = np.asarray(_imu_signals(rot, accel, jnp.asarray(model.gravity)))

    return TimeSeriesTable(
        accelerations.times,
        frame_paths,
        signals,
        metadata={"value_type": ValueType.VEC3.value, "gravity": model.gravity.tolist()},
    )
