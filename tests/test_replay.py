import numpy as np
import pytest

from openreplay.config import Config, DevConfig, ReplayConfig
from openreplay.errors import OrderMismatch, RowCountMismatch, UnresolvedPath
from openreplay.model import (
    Component,
    Coordinate,
    Model,
    PositionMotion,
    ScalarActuator,
    Stage,
    ValueType,
    VectorActuator,
)
from openreplay.replay import ReplayDriver, analyze
from openreplay.table import TimeSeriesTable
from openreplay.trajectory import StatesTrajectory


def empty_states(n_rows):
    return TimeSeriesTable(np.linspace(0.0, 1.0, n_rows), [], np.zeros((n_rows, 0)))


def controls(n_rows, **columns):
    times = np.linspace(0.0, 1.0, n_rows)
    if not columns:
        return TimeSeriesTable(times, [], np.zeros((n_rows, 0)))
    return TimeSeriesTable.from_columns(times, columns)


def make_const_model():
    model = Model()
    m1 = model.add_force(ScalarActuator("m1"))
    m1.add_output("output_const", ValueType.DOUBLE, Stage.POSITION, lambda s: 2.5)
    return model


def make_two_muscle_model():
    model = Model()
    model.add_force(ScalarActuator("m1", optimal_force=10.0))
    model.add_force(ScalarActuator("m2", optimal_force=20.0))
    return model


def test_end_to_end_constant_output():
    model = make_const_model()
    report = analyze(
        model, empty_states(3), controls(3, m1=[0.1, 0.2, 0.3]), [".*output_const"]
    )
    assert report.num_rows == 3
    assert report.column_labels == ["/forceset/m1/output_const"]
    np.testing.assert_array_equal(report.data, np.full((3, 1), 2.5))
    np.testing.assert_allclose(report.times, [0.0, 0.5, 1.0])


def test_row_count_mismatch_states_controls():
    model = make_const_model()
    with pytest.raises(RowCountMismatch) as exc:
        analyze(model, empty_states(10), controls(8, m1=np.zeros(8)), [".*"])
    assert exc.value.first_count == 10
    assert exc.value.second_count == 8
    assert "10" in str(exc.value) and "8" in str(exc.value)


def test_row_count_mismatch_discrete_variables():
    model = make_const_model()
    model.add_component(Component("node1")).add_discrete_variable("dv1")
    dv_table = TimeSeriesTable.from_columns(np.arange(2.0), {"node1/dv1": [1.0, 2.0]})
    with pytest.raises(RowCountMismatch) as exc:
        analyze(model, empty_states(3), controls(3), [".*"], discrete_variables_table=dv_table)
    assert exc.value.first == "discrete_variables_table"
    assert (exc.value.first_count, exc.value.second_count) == (2, 3)


def test_controls_applied_and_missing_controls_zero():
    model = make_two_muscle_model()
    m1_values = [0.1, 0.5, 0.9, 0.3]
    report = analyze(model, empty_states(4), controls(4, m1=m1_values), [".*control"])
    assert report.column_labels == ["/forceset/m1/control", "/forceset/m2/control"]
    np.testing.assert_allclose(report.get_dependent_column("/forceset/m1/control"), m1_values)
    np.testing.assert_array_equal(report.get_dependent_column("/forceset/m2/control"), np.zeros(4))


def test_absent_control_slots_are_zero_every_row():
    model = make_two_muscle_model()
    recorder = model.add_component(Component("recorder"))
    recorder.add_output("controls", ValueType.VECTOR, Stage.DYNAMICS, lambda s: s.controls.copy())
    m2_values = [0.4, 0.6, 0.8]
    report = analyze(
        model, empty_states(3), controls(3, m2=m2_values), ["/recorder/controls"],
        value_type=ValueType.VECTOR,
    )
    for irow, m2 in enumerate(m2_values):
        np.testing.assert_array_equal(report.data[irow, 0], [0.0, m2])


def test_control_columns_in_any_order():
    model = make_two_muscle_model()
    table = TimeSeriesTable.from_columns([0.0, 1.0], {"m2": [1.0, 2.0], "m1": [3.0, 4.0]})
    report = analyze(model, empty_states(2), table, [".*actuation"])
    np.testing.assert_allclose(report.get_dependent_column("/forceset/m1/actuation"), [30.0, 40.0])
    np.testing.assert_allclose(report.get_dependent_column("/forceset/m2/actuation"), [20.0, 40.0])


def test_unknown_control_column_raises():
    model = make_two_muscle_model()
    with pytest.raises(UnresolvedPath) as exc:
        analyze(model, empty_states(2), controls(2, m3=[0.0, 0.0]), [".*"])
    assert exc.value.label == "m3"


def test_discrete_variables_applied():
    model = make_const_model()
    node = model.add_component(Component("node1"))
    node.add_discrete_variable("dv1", default=-1.0)
    node.add_output(
        "dv1", ValueType.DOUBLE, Stage.DYNAMICS,
        lambda s: node.get_discrete_variable_value(s, "dv1"),
    )
    dv_table = TimeSeriesTable.from_columns(np.linspace(0.0, 1.0, 3), {"/node1/dv1": [1.0, 2.0, 3.0]})
    report = analyze(
        model, empty_states(3), controls(3), ["/node1/dv1"], discrete_variables_table=dv_table
    )
    np.testing.assert_allclose(report.get_dependent_column("/node1/dv1"), [1.0, 2.0, 3.0])


def test_unresolved_discrete_variable_component():
    model = make_const_model()
    dv_table = TimeSeriesTable.from_columns(np.arange(3.0), {"node1/dv1": [1.0, 2.0, 3.0]})
    with pytest.raises(UnresolvedPath) as exc:
        analyze(model, empty_states(3), controls(3), [".*"], discrete_variables_table=dv_table)
    assert exc.value.label == "node1/dv1"
    assert "node1/dv1" in str(exc.value)


def test_unresolved_discrete_variable_name():
    model = make_const_model()
    model.add_component(Component("node1"))
    dv_table = TimeSeriesTable.from_columns(np.arange(3.0), {"node1/dv1": [1.0, 2.0, 3.0]})
    with pytest.raises(UnresolvedPath, match="no discrete variable"):
        analyze(model, empty_states(3), controls(3), [".*"], discrete_variables_table=dv_table)


def test_order_mismatch_aborts_before_replay():
    model = Model()
    model.add_component(ScalarActuator("a"))
    model.add_force(ScalarActuator("b"))
    with pytest.raises(OrderMismatch):
        analyze(model, empty_states(2), controls(2), [".*"])


def test_states_drive_outputs():
    model = Model()
    knee = model.add_component(Coordinate("knee"))
    knee.add_output(
        "doubled_speed", ValueType.DOUBLE, Stage.VELOCITY,
        lambda s: 2.0 * knee.get_state_variable_value(s, "speed"),
    )
    states = TimeSeriesTable.from_columns(
        [0.0, 0.1, 0.2], {"/knee/value": [0.0, 0.1, 0.2], "/knee/speed": [1.0, 1.5, 2.0]}
    )
    report = analyze(model, states, controls(3), ["/knee/.*"])
    assert report.column_labels == ["/knee/value", "/knee/speed", "/knee/doubled_speed"]
    np.testing.assert_allclose(report.get_dependent_column("/knee/value"), [0.0, 0.1, 0.2])
    np.testing.assert_allclose(report.get_dependent_column("/knee/doubled_speed"), [2.0, 3.0, 4.0])


def test_prescribed_motion_overrides_trajectory():
    model = Model()
    knee = model.add_component(Coordinate("knee"))
    model.add_component(PositionMotion("knee_motion", knee, value_fn=lambda t: 2.0 * t))
    states = TimeSeriesTable.from_columns(
        [0.0, 0.5, 1.0], {"/knee/value": [9.0, 9.0, 9.0], "/knee/speed": [0.0, 0.0, 0.0]}
    )
    report = analyze(model, states, controls(3), ["/knee/value"])
    np.testing.assert_allclose(report.get_dependent_column("/knee/value"), [0.0, 1.0, 2.0])


def test_acceleration_stage_outputs_see_controls():
    model = make_two_muscle_model()
    actu = model.force_set.find_child("m1")
    actu.add_output(
        "accel", ValueType.DOUBLE, Stage.ACCELERATION, lambda s: 3.0 * actu.get_control(s)
    )
    report = analyze(model, empty_states(2), controls(2, m1=[1.0, 2.0]), [".*accel"])
    np.testing.assert_allclose(report.data[:, 0], [3.0, 6.0])


def test_rows_do_not_leak_state():
    model = Model()
    counter = model.add_component(Component("counter"))
    counter.add_discrete_variable("n", default=0.0)
    counter.add_output(
        "n", ValueType.DOUBLE, Stage.DYNAMICS,
        lambda s: counter.get_discrete_variable_value(s, "n"),
    )

    class Bump(Component):
        def realize(self, state, stage):
            if stage is Stage.POSITION:
                state.discrete[("/counter", "n")] = state.discrete[("/counter", "n")] + 1.0

    model.add_component(Bump("bump"))
    report = analyze(model, empty_states(3), controls(3), ["/counter/n"])
    np.testing.assert_array_equal(report.data[:, 0], [1.0, 1.0, 1.0])


def test_trajectory_accepted_in_place_of_states_table():
    model = make_const_model()
    driver = ReplayDriver(model, [".*output_const"])
    traj = StatesTrajectory.from_states_table(model, empty_states(2))
    report = driver.run(traj, controls(2))
    assert driver.column_labels == ["/forceset/m1/output_const"]
    np.testing.assert_array_equal(report.data[:, 0], [2.5, 2.5])

    report = analyze(model, traj, controls(2), [".*output_const"])
    assert report.num_rows == 2


def test_no_matching_outputs_gives_empty_report():
    model = make_const_model()
    report = analyze(model, empty_states(3), controls(3), ["nothing"])
    assert report.num_rows == 3
    assert report.num_columns == 0


def test_vec3_report():
    model = Model()
    node = model.add_component(Component("node"))
    node.add_output("v", ValueType.VEC3, Stage.POSITION, lambda s: [s.time, 0.0, 1.0])
    report = analyze(model, empty_states(3), controls(3), [".*"], value_type=ValueType.VEC3)
    assert report.data.shape == (3, 1, 3)
    np.testing.assert_allclose(report.data[:, 0, 0], [0.0, 0.5, 1.0])


@pytest.mark.parametrize("n_workers", [2, 3, 8])
def test_parallel_replay_matches_sequential(n_workers):
    model = make_two_muscle_model()
    n_rows = 7
    table = controls(n_rows, m1=np.linspace(0.0, 1.0, n_rows), m2=np.linspace(1.0, 0.0, n_rows))
    sequential = analyze(model, empty_states(n_rows), table, [".*actuation"])
    config = Config(replay=ReplayConfig(n_workers=n_workers))
    parallel = analyze(model, empty_states(n_rows), table, [".*actuation"], config=config)
    assert parallel.column_labels == sequential.column_labels
    np.testing.assert_array_equal(parallel.data, sequential.data)
    np.testing.assert_array_equal(parallel.times, sequential.times)


def test_printing(capsys):
    model = make_const_model()
    config = Config(dev=DevConfig(printing=True))
    analyze(model, empty_states(2), controls(2), [".*output_const"], config=config)
    out = capsys.readouterr().out
    assert "Replaying 2 states" in out
    assert "/forceset/m1/output_const" in out
    assert "Total Computation Time" in out


def test_inputs_not_modified():
    model = make_two_muscle_model()
    table = controls(3, m1=[0.1, 0.2, 0.3])
    before = table.data.copy()
    analyze(model, empty_states(3), table, [".*"])
    np.testing.assert_array_equal(table.data, before)


def test_profiling_writes_stats(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    model = make_const_model()
    config = Config(dev=DevConfig(profiling=True))
    analyze(model, empty_states(2), controls(2), [".*output_const"], config=config)
    profiles = list((tmp_path / "profiling").glob("*_replay.prof"))
    assert len(profiles) == 1


def test_profiling_directory_from_config(tmp_path, capsys):
    out_dir = tmp_path / "stats" / "replays"
    model = make_const_model()
    config = Config(dev=DevConfig(profiling=True, printing=True, profiling_dir=str(out_dir)))
    analyze(model, empty_states(2), controls(2), [".*output_const"], config=config)
    profiles = list(out_dir.glob("*_replay.prof"))
    assert len(profiles) == 1
    assert str(profiles[0]) in capsys.readouterr().out


def test_vector_actuator_controls_report():
    model = Model()
    model.add_force(ScalarActuator("m1"))
    model.add_force(VectorActuator("v", num_controls=2))
    table = controls(2, v_1=[4.0, 5.0], v_0=[1.0, 2.0])
    report = analyze(model, empty_states(2), table, [".*/v/controls"], value_type=ValueType.VECTOR)
    assert report.column_labels == ["/forceset/v/controls"]
    assert report.metadata["value_type"] == "Vector"
    np.testing.assert_allclose(report.data[0, 0], [1.0, 4.0])
    np.testing.assert_allclose(report.data[1, 0], [2.0, 5.0])


def test_analyze_initializes_callers_model_in_place():
    model = make_two_muscle_model()
    before = [c.path for c in model.iter_components()]
    analyze(model, empty_states(2), controls(2, m1=[1.0, 2.0]), [".*control"])
    assert [c.path for c in model.iter_components()] == before
    assert model.num_controls == 2
    assert model.get_component("/forceset/m2").control_slice == slice(1, 2)
