from openreplay.config import Config, DevConfig, ReplayConfig
from openreplay.errors import (
    ExtraColumns,
    MissingColumns,
    OrderMismatch,
    ReplayError,
    RowCountMismatch,
    StageError,
    TypeMismatchWarning,
    UnresolvedPath,
)
from openreplay.imu import create_synthetic_imu_acceleration_signals
from openreplay.indexing import (
    check_labels_match_model_states,
    check_order_system_controls,
    create_control_names_from_model,
    create_state_variable_names_in_system_order,
    create_system_control_index_map,
    create_system_y_index_map,
)
from openreplay.model import (
    Actuator,
    Component,
    Coordinate,
    Frame,
    Model,
    PositionMotion,
    QuaternionJoint,
    ScalarActuator,
    Stage,
    State,
    ValueType,
    VectorActuator,
)
from openreplay.outputs import CatalogEntry, build_output_catalog, select_outputs, subscribe_outputs
from openreplay.replay import ReplayDriver, analyze
from openreplay.reporting import ReportAssembler
from openreplay.table import TimeSeriesTable
from openreplay.trajectory import StatesTrajectory

__all__ = [
    # Main entrypoints
    "analyze",
    "ReplayDriver",
    "create_synthetic_imu_acceleration_signals",
    # Configuration
    "Config",
    "DevConfig",
    "ReplayConfig",
    # Model
    "Model",
    "Component",
    "Actuator",
    "Coordinate",
    "QuaternionJoint",
    "ScalarActuator",
    "VectorActuator",
    "Frame",
    "PositionMotion",
    "Stage",
    "State",
    "ValueType",
    # Tables and trajectories
    "TimeSeriesTable",
    "StatesTrajectory",
    "ReportAssembler",
    # Index maps
    "create_state_variable_names_in_system_order",
    "create_system_y_index_map",
    "create_control_names_from_model",
    "create_system_control_index_map",
    "check_order_system_controls",
    "check_labels_match_model_states",
    # Output selection
    "CatalogEntry",
    "build_output_catalog",
    "select_outputs",
    "subscribe_outputs",
    # Errors
    "ReplayError",
    "RowCountMismatch",
    "OrderMismatch",
    "UnresolvedPath",
    "StageError",
    "MissingColumns",
    "ExtraColumns",
    "TypeMismatchWarning",
]
