"""Small SQL helpers that do not execute anything."""

from typing import TYPE_CHECKING, Any, ClassVar, Union

from mypy_extensions import trait

from fluentsql.conditions import FindInSet, In
from fluentsql.filters import InputFilter, filter_input
from fluentsql.filters import has_sql_function_calls as _has_sql_function_calls
from fluentsql.parameters import ParameterBag

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fluentsql.dialects import Dialect
    from fluentsql.result import SQLResult

__all__ = ("SQLUtilitiesMixin",)


@trait
class SQLUtilitiesMixin:
    """Clause fragments, literal escaping and input filtering bound to the driver's dialect."""

    __slots__ = ()

    dialect: "ClassVar[Dialect]"

    def in_clause(self, field: str, values: "Sequence[Any]") -> "tuple[str, dict[str, Any]]":
        """Build ``field IN (...)`` for a hand-written statement.

        Returns:
            The fragment and its parameters. An empty ``values`` gives ``("1=0", {})``.
        """
        parameters = ParameterBag()
        return In(field, values).render(self.dialect, parameters), parameters.as_dict()

    def find_in_set(self, field: str, value: Any) -> "tuple[str, dict[str, Any]]":
        """Build ``FIND_IN_SET(:value, field)`` (MySQL only).

        Raises:
            SQLBuilderError: On any other dialect.
        """
        parameters = ParameterBag()
        return FindInSet(field, value).render(self.dialect, parameters), parameters.as_dict()

    def escape(self, value: Any) -> Any:
        """Quote a value, or each value of a list, as an SQL literal.

        Only for the rare statement that cannot take a bound parameter.
        """
        if isinstance(value, (list, tuple)):
            return [self.escape(item) for item in value]
        return self.dialect.quote_literal(value)

    def filter(self, data: Any, filter: "Union[InputFilter, str]" = InputFilter.UNSAFE_RAW, **options: Any) -> Any:  # noqa: A002
        return filter_input(data, filter, **options)

    @staticmethod
    def has_sql_function_calls(value: Any) -> bool:
        return _has_sql_function_calls(value)

    @staticmethod
    def num_rows(result: "SQLResult") -> int:
        return result.row_count()

    @staticmethod
    def num_cols(result: "SQLResult") -> int:
        return result.column_count()
