"""Structured WHERE conditions for the driver's CRUD helpers.

``update``, ``delete`` and ``record_exists`` accept either a plain mapping
(``{"id": 1}``; a list, tuple or set value means ``IN``) or a sequence of the
condition objects below. Each condition renders itself to an SQL fragment and
binds its values into a :class:`~fluentsql.parameters.ParameterBag`.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional, Union

from typing_extensions import TypeAlias

from fluentsql.exceptions import SQLBuilderError

if TYPE_CHECKING:
    from fluentsql.dialects import Dialect
    from fluentsql.parameters import ParameterBag

__all__ = (
    "Condition",
    "ConditionsT",
    "Equals",
    "FindInSet",
    "In",
    "NotIn",
    "Raw",
    "coerce_conditions",
    "render_conditions",
)

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class Condition(ABC):
    """Base class for a single AND-joined condition."""

    __slots__ = ()

    @abstractmethod
    def render(self, dialect: "Dialect", parameters: "ParameterBag") -> str:
        """Render the condition and bind its values.

        Args:
            dialect: Dialect used to quote the column.
            parameters: Bag receiving the bound values.

        Returns:
            The SQL fragment, without a leading connector.
        """
        ...

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)
        return f"{type(self).__name__}({fields})"

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)


class Equals(Condition):
    """``column = value``; a ``None`` value renders ``column IS NULL``."""

    __slots__ = ("column", "value")

    def __init__(self, column: str, value: Any) -> None:
        self.column = column
        self.value = value

    def render(self, dialect: "Dialect", parameters: "ParameterBag") -> str:
        column = dialect.quote_identifier(self.column)
        if self.value is None:
            return f"{column} IS NULL"
        return f"{column} = :{parameters.bind('cond', self.value)}"


class In(Condition):
    """``column IN (...)``. An empty collection matches no rows."""

    __slots__ = ("column", "values")

    def __init__(self, column: str, values: "Sequence[Any]") -> None:
        self.column = column
        self.values = list(values)

    def render(self, dialect: "Dialect", parameters: "ParameterBag") -> str:
        if not self.values:
            return "1=0"
        names = parameters.bind_many("cond_in", self.values)
        placeholders = ", ".join(f":{name}" for name in names)
        return f"{dialect.quote_identifier(self.column)} IN ({placeholders})"


class NotIn(Condition):
    """``column NOT IN (...)``. An empty collection matches every row."""

    __slots__ = ("column", "values")

    def __init__(self, column: str, values: "Sequence[Any]") -> None:
        self.column = column
        self.values = list(values)

    def render(self, dialect: "Dialect", parameters: "ParameterBag") -> str:
        if not self.values:
            return "1=1"
        names = parameters.bind_many("cond_not_in", self.values)
        placeholders = ", ".join(f":{name}" for name in names)
        return f"{dialect.quote_identifier(self.column)} NOT IN ({placeholders})"


class FindInSet(Condition):
    """MySQL ``FIND_IN_SET(value, column)`` membership test on a comma separated column."""

    __slots__ = ("column", "value")

    def __init__(self, column: str, value: Any) -> None:
        self.column = column
        self.value = value

    def render(self, dialect: "Dialect", parameters: "ParameterBag") -> str:
        if not dialect.supports_find_in_set:
            msg = f"FIND_IN_SET is not supported by the {dialect.name} dialect"
            raise SQLBuilderError(msg)
        name = parameters.bind("cond_find_in_set", self.value)
        return f"FIND_IN_SET(:{name}, {dialect.quote_identifier(self.column)})"


class Raw(Condition):
    """A caller-written fragment, emitted verbatim, with its own named parameters."""

    __slots__ = ("parameters", "sql")

    def __init__(self, sql: str, parameters: "Optional[Mapping[str, Any]]" = None) -> None:
        self.sql = sql
        self.parameters = dict(parameters or {})

    def render(self, dialect: "Dialect", parameters: "ParameterBag") -> str:
        parameters.merge(self.parameters, self.sql)
        return self.sql


ConditionsT: TypeAlias = "Union[Mapping[str, Any], Sequence[Condition]]"


def coerce_conditions(conditions: "Optional[ConditionsT]") -> "list[Condition]":
    """Normalize a mapping or sequence of conditions to a list of :class:`Condition`.

    Raises:
        SQLBuilderError: If a sequence item is not a :class:`Condition`.
    """
    if not conditions:
        return []
    if isinstance(conditions, Mapping):
        return [
            In(column, list(value)) if isinstance(value, _COLLECTION_TYPES) else Equals(column, value)
            for column, value in conditions.items()
        ]
    coerced: "list[Condition]" = []
    for condition in conditions:
        if not isinstance(condition, Condition):
            msg = f"Expected a Condition instance, got {type(condition).__name__}"
            raise SQLBuilderError(msg)
        coerced.append(condition)
    return coerced


def render_conditions(
    conditions: "Optional[ConditionsT]", dialect: "Dialect", parameters: "ParameterBag"
) -> Optional[str]:
    """Render conditions as an AND-joined WHERE body.

    Returns:
        The joined fragment, or None when there are no conditions.
    """
    fragments = [condition.render(dialect, parameters) for condition in coerce_conditions(conditions)]
    if not fragments:
        return None
    return " AND ".join(fragments)
