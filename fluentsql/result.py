"""Statement result container returned by every driver execution."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ("SQLResult",)


@dataclass
class SQLResult:
    """Result of one executed statement.

    Rows are fully fetched when the statement returns rows, so the result can
    be consumed after the cursor that produced it has been closed.

    Args:
        statement: The SQL text that was executed (after paramstyle conversion).
        data: Fetched rows as dictionaries, empty for statements without a result set.
        column_names: Names of the result columns in cursor order.
        rows_affected: Row count reported by the driver for INSERT/UPDATE/DELETE.
        last_inserted_id: Id generated by the statement, when the driver reports one.
        operation_type: ``SELECT`` for row-returning statements, else ``EXECUTE``.
        execution_time: Wall clock seconds spent in the driver.
    """

    statement: str
    """The SQL statement that was executed."""
    data: "list[dict[str, Any]]" = field(default_factory=list)
    """Fetched rows."""
    column_names: "list[str]" = field(default_factory=list)
    """Result column names."""
    rows_affected: int = 0
    """Number of rows affected (or fetched for SELECT)."""
    last_inserted_id: "Optional[Union[int, str]]" = None
    """Last inserted id, if any."""
    operation_type: str = "EXECUTE"
    """``SELECT`` or ``EXECUTE``."""
    execution_time: Optional[float] = None
    """Execution time in seconds."""

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> "Iterator[dict[str, Any]]":
        return iter(self.data)

    def returns_rows(self) -> bool:
        return self.operation_type == "SELECT"

    def fetch_all(self) -> "list[dict[str, Any]]":
        """Return every fetched row."""
        return list(self.data)

    def fetch_one(self) -> "Optional[dict[str, Any]]":
        """Return the first row, or None when the result is empty."""
        return self.data[0] if self.data else None

    def row_count(self) -> int:
        """Number of rows returned by a SELECT, else the number of rows affected."""
        if self.returns_rows():
            return len(self.data)
        return self.rows_affected

    def column_count(self) -> int:
        return len(self.column_names)
