"""Named placeholder handling.

SQL produced by fluentsql always uses ``:name`` placeholders with a mapping of
bare names to values. Drivers whose DB-API module expects a different
paramstyle convert the statement with :func:`convert_parameters` right before
execution.
"""

import re
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Final, Optional, Union

from fluentsql.exceptions import ExtraParameterError, MissingParameterError

__all__ = (
    "ParameterBag",
    "ParameterStyle",
    "convert_parameters",
    "extract_parameter_names",
    "normalize_parameters",
    "placeholder_name",
)

_PARAMETER_PATTERN: Final = r"""
    (?P<dquote>"(?:[^"]|"")*") |                       # double-quoted identifiers
    (?P<squote>{squote}) |                              # single-quoted strings
    (?P<btick>`[^`]*`) |                                # MySQL backtick identifiers
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<pg_cast>::\w+) |                                # PostgreSQL ::type casts
    (?P<named_colon>(?<![:\w]):(?P<colon_name>[A-Za-z_]\w*)) |
    (?P<percent>%)
    """
_PARAMETER_REGEX: Final = re.compile(
    _PARAMETER_PATTERN.replace("{squote}", r"'(?:[^']|'')*'"), re.VERBOSE | re.DOTALL
)
# MySQL also escapes quotes with a backslash inside string literals
_BACKSLASH_PARAMETER_REGEX: Final = re.compile(
    _PARAMETER_PATTERN.replace("{squote}", r"'(?:[^'\\]|\\.|'')*'"), re.VERBOSE | re.DOTALL
)


class ParameterStyle(str, Enum):
    """Parameter style enumeration with string values."""

    NAMED_COLON = "named_colon"
    """``:name`` with a mapping (sqlite3)."""
    NAMED_PYFORMAT = "pyformat_named"
    """``%(name)s`` with a mapping (PyMySQL, psycopg)."""
    QMARK = "qmark"
    """``?`` with a sequence (pyodbc)."""

    def __str__(self) -> str:
        return self.value


def placeholder_name(prefix: str, counter: int, index: Optional[int] = None) -> str:
    """Build a placeholder name that is unique within one draft.

    Args:
        prefix: Semantic prefix naming the clause (``where``, ``or_where``...).
        counter: The draft's binding counter at the time of the call.
        index: Position inside a multi-value clause such as ``IN``.

    Returns:
        The bare placeholder name, e.g. ``where_in_3_0``.
    """
    if index is None:
        return f"{prefix}_{counter}"
    return f"{prefix}_{counter}_{index}"


class ParameterBag:
    """Accumulates bound values under generated, never reused placeholder names.

    Every ``bind``/``bind_many`` call advances the counter exactly once, so a
    name can never be produced twice even when the same column is referenced
    by several clauses.
    """

    __slots__ = ("_counter", "_values")

    def __init__(self) -> None:
        self._values: "dict[str, Any]" = {}
        self._counter = 0

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    @property
    def counter(self) -> int:
        """Number of value-producing calls made so far."""
        return self._counter

    def bind(self, prefix: str, value: Any) -> str:
        """Bind one value and return its placeholder name."""
        name = placeholder_name(prefix, self._counter)
        self._counter += 1
        self._values[name] = value
        return name

    def bind_many(self, prefix: str, values: "Sequence[Any]") -> "list[str]":
        """Bind each value of a multi-value clause and return the placeholder names in order."""
        names = [placeholder_name(prefix, self._counter, index) for index in range(len(values))]
        self._counter += 1
        self._values.update(zip(names, values))
        return names

    def merge(self, parameters: "Optional[Mapping[str, Any]]", sql: Optional[str] = None) -> None:
        """Merge externally named parameters (e.g. those of a raw UNION statement).

        Raises:
            ExtraParameterError: If a name is already bound.
        """
        for name, value in normalize_parameters(parameters).items():
            if name in self._values:
                msg = f"Parameter {name!r} is already bound in this query"
                raise ExtraParameterError(msg, sql)
            self._values[name] = value

    def as_dict(self) -> "dict[str, Any]":
        return dict(self._values)


def normalize_parameters(parameters: "Optional[Mapping[str, Any]]") -> "dict[str, Any]":
    """Strip a leading ``:`` from parameter names so ``{":id": 1}`` and ``{"id": 1}`` are equivalent."""
    if not parameters:
        return {}
    return {str(key).lstrip(":"): value for key, value in parameters.items()}


def _parameter_regex(backslash_escapes: bool) -> "re.Pattern[str]":
    return _BACKSLASH_PARAMETER_REGEX if backslash_escapes else _PARAMETER_REGEX


def extract_parameter_names(sql: str, backslash_escapes: bool = False) -> "list[str]":
    """Return the ``:name`` placeholders of a statement in order of appearance.

    Quoted strings, quoted identifiers, comments and ``::`` casts are skipped.
    With ``backslash_escapes`` (MySQL) a ``\\'`` does not end a string literal.
    """
    regex = _parameter_regex(backslash_escapes)
    return [match.group("colon_name") for match in regex.finditer(sql) if match.group("named_colon")]


def convert_parameters(
    sql: str, parameters: "Optional[Mapping[str, Any]]", style: ParameterStyle, backslash_escapes: bool = False
) -> "tuple[str, Union[dict[str, Any], list[Any]]]":
    """Rewrite a ``:name`` statement for the target paramstyle.

    Args:
        sql: Statement using ``:name`` placeholders.
        parameters: Values keyed by bare placeholder name.
        style: The paramstyle expected by the DB-API driver.
        backslash_escapes: Treat ``\\'`` inside string literals as an escaped quote (MySQL).

    Raises:
        MissingParameterError: If a placeholder has no value in ``parameters``.

    Returns:
        The converted SQL and the parameters in the shape the driver expects
        (a mapping for named styles, a list for ``qmark``).
    """
    values = normalize_parameters(parameters)
    if style is ParameterStyle.NAMED_COLON:
        missing = [name for name in extract_parameter_names(sql, backslash_escapes) if name not in values]
        if missing:
            msg = f"No value bound for placeholder(s): {', '.join(missing)}"
            raise MissingParameterError(msg, sql)
        return sql, values

    ordered: "list[Any]" = []

    escape_percent = style is ParameterStyle.NAMED_PYFORMAT

    def _replace(match: "re.Match[str]") -> str:
        name = match.group("colon_name")
        if name is None:
            # pyformat drivers apply %-formatting to the whole statement, literals included
            text = match.group(0)
            return text.replace("%", "%%") if escape_percent else text
        if name not in values:
            msg = f"No value bound for placeholder: {name}"
            raise MissingParameterError(msg, sql)
        if style is ParameterStyle.NAMED_PYFORMAT:
            return f"%({name})s"
        ordered.append(values[name])
        return "?"

    converted = _parameter_regex(backslash_escapes).sub(_replace, sql)
    if style is ParameterStyle.NAMED_PYFORMAT:
        return converted, values
    return converted, ordered
