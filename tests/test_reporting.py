import numpy as np
import pytest

from openreplay.model import ValueType
from openreplay.reporting import ReportAssembler


def test_rows_appended_in_order():
    report = ReportAssembler(["/a", "/b"], num_rows=3)
    for i in range(3):
        report.append_row([i, 10.0 * i], time=0.1 * i)
    table = report.get_table()
    assert table.column_labels == ["/a", "/b"]
    np.testing.assert_allclose(table.times, [0.0, 0.1, 0.2])
    np.testing.assert_allclose(table.get_dependent_column("/b"), [0.0, 10.0, 20.0])


def test_rows_set_by_index_keep_trajectory_order():
    report = ReportAssembler(["/a"], num_rows=3)
    for i in [2, 0, 1]:
        report.set_row(i, [float(i)], time=float(i))
    table = report.get_table()
    np.testing.assert_allclose(table.get_dependent_column("/a"), [0.0, 1.0, 2.0])
    np.testing.assert_allclose(table.times, [0.0, 1.0, 2.0])


def test_incomplete_report_not_available():
    report = ReportAssembler(["/a"], num_rows=2)
    report.append_row([1.0], time=0.0)
    assert report.num_filled == 1
    with pytest.raises(RuntimeError, match="incomplete"):
        report.get_table()


def test_row_cannot_add_columns():
    report = ReportAssembler(["/a"], num_rows=1)
    with pytest.raises(ValueError):
        report.append_row([1.0, 2.0], time=0.0)


def test_row_index_out_of_range():
    report = ReportAssembler(["/a"], num_rows=1)
    with pytest.raises(IndexError):
        report.set_row(1, [1.0], time=0.0)


def test_vec3_report_shape():
    report = ReportAssembler(["/f/p", "/g/p"], num_rows=2, value_type=ValueType.VEC3)
    report.append_row([np.zeros(3), np.ones(3)], time=0.0)
    report.append_row([np.ones(3), np.zeros(3)], time=1.0)
    table = report.get_table()
    assert table.data.shape == (2, 2, 3)
    np.testing.assert_array_equal(table.get_dependent_column("/g/p")[0], np.ones(3))
    assert table.metadata["value_type"] == "Vec3"


def test_report_without_columns():
    report = ReportAssembler([], num_rows=2)
    report.append_row([], time=0.0)
    report.append_row([], time=1.0)
    table = report.get_table()
    assert table.num_rows == 2
    assert table.num_columns == 0
