from __future__ import annotations

from fluentsql.result import SQLResult


def test_select_result() -> None:
    result = SQLResult(
        statement="SELECT id, name FROM users",
        data=[{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}],
        column_names=["id", "name"],
        rows_affected=2,
        operation_type="SELECT",
    )

    assert result.returns_rows() is True
    assert result.fetch_one() == {"id": 1, "name": "Ada"}
    assert result.fetch_all() == result.data
    assert result.fetch_all() is not result.data
    assert result.row_count() == 2
    assert result.column_count() == 2
    assert len(result) == 2
    assert [row["name"] for row in result] == ["Ada", "Grace"]


def test_empty_select_result() -> None:
    result = SQLResult(statement="SELECT 1 WHERE 1=0", operation_type="SELECT")

    assert result.fetch_one() is None
    assert result.fetch_all() == []
    assert result.row_count() == 0


def test_execute_result() -> None:
    result = SQLResult(statement="UPDATE users SET age = 1", rows_affected=3, last_inserted_id=None)

    assert result.returns_rows() is False
    assert result.row_count() == 3
    assert result.column_count() == 0
    assert len(result) == 0
    assert result.execution_time is None
