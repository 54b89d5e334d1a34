from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Final, Literal, Optional, Protocol, Union

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from fluentsql.result import SQLResult

__all__ = (
    "DictRow",
    "Empty",
    "EmptyType",
    "MappingTarget",
    "ModelDTOT",
    "StatementExecutor",
    "StatementParameters",
)


class _EmptyEnum(Enum):
    """A sentinel enum used as placeholder."""

    EMPTY = 0


EmptyType = Literal[_EmptyEnum.EMPTY]
Empty: Final = _EmptyEnum.EMPTY

DictRow: TypeAlias = "dict[str, Any]"
StatementParameters: TypeAlias = "Optional[Mapping[str, Any]]"

ModelDTOT = TypeVar("ModelDTOT")
"""Type variable for the target of a result mapping."""


class StatementExecutor(Protocol):
    """The execution capability a :class:`~fluentsql.builder.QueryBuilder` delegates to."""

    def execute(self, sql: str, parameters: "StatementParameters" = None) -> "SQLResult": ...


MappingTarget: TypeAlias = "Union[type[Any], str]"
"""A registered result type, addressed by the type itself or by its registered name."""
