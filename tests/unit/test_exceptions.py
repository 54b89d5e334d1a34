from __future__ import annotations

import pytest

from fluentsql.exceptions import (
    CheckViolationError,
    ConfigurationError,
    DatabaseConnectionError,
    ExecutionError,
    ExtraParameterError,
    FluentSQLError,
    ForeignKeyViolationError,
    ImproperConfigurationError,
    IntegrityError,
    MappingError,
    MissingDependencyError,
    MissingParameterError,
    NotificationError,
    NotNullViolationError,
    OperationalError,
    ParameterError,
    SQLBuilderError,
    SQLParsingError,
    UniqueViolationError,
)


@pytest.mark.parametrize(
    ("error_class", "parents"),
    [
        (ConfigurationError, (SQLBuilderError, FluentSQLError)),
        (MissingParameterError, (ParameterError, SQLBuilderError)),
        (ExtraParameterError, (ParameterError, SQLBuilderError)),
        (UniqueViolationError, (IntegrityError, ExecutionError)),
        (ForeignKeyViolationError, (IntegrityError, ExecutionError)),
        (NotNullViolationError, (IntegrityError, ExecutionError)),
        (CheckViolationError, (IntegrityError, ExecutionError)),
        (DatabaseConnectionError, (ExecutionError,)),
        (OperationalError, (ExecutionError,)),
        (SQLParsingError, (ExecutionError,)),
        (MappingError, (FluentSQLError,)),
        (NotificationError, (FluentSQLError,)),
        (ImproperConfigurationError, (FluentSQLError,)),
    ],
)
def test_hierarchy(error_class: type[Exception], parents: tuple[type[Exception], ...]) -> None:
    assert issubclass(error_class, parents)
    assert issubclass(error_class, FluentSQLError)


def test_builder_and_execution_errors_are_distinct() -> None:
    assert not issubclass(SQLBuilderError, ExecutionError)
    assert not issubclass(ExecutionError, SQLBuilderError)


def test_detail_and_str() -> None:
    error = FluentSQLError("something broke")

    assert error.detail == "something broke"
    assert str(error) == "something broke"
    assert repr(error) == "FluentSQLError - something broke"
    assert repr(FluentSQLError()) == "FluentSQLError"


def test_builder_error_default_message() -> None:
    assert str(SQLBuilderError()) == "Issues building SQL statement."


@pytest.mark.parametrize("error_class", [ExecutionError, MissingParameterError])
def test_sql_context(error_class: type[ExecutionError]) -> None:
    error = error_class("failed", "SELECT 1")

    assert error.sql == "SELECT 1"
    assert str(error) == "failed\nSQL: SELECT 1"


def test_execution_error_without_sql() -> None:
    error = ExecutionError("failed")

    assert error.sql is None
    assert str(error) == "failed"


def test_missing_dependency_error() -> None:
    error = MissingDependencyError("pymysql")

    assert isinstance(error, ImportError)
    assert "pip install fluentsql[pymysql]" in str(error)
