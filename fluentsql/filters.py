"""Input filtering helpers.

These helpers clean values before they are displayed or stored. They are not a
substitute for bound parameters, which every fluentsql statement already uses.
"""

import html
import re
from enum import Enum
from typing import Any, Final, Optional, Union

__all__ = ("SUSPICIOUS_SQL_TOKENS", "InputFilter", "filter_input", "has_sql_function_calls")

_TAG_PATTERN: Final = re.compile(r"<!--.*?-->|<[^>]*>?", re.DOTALL)
_EMAIL_DISALLOWED: Final = re.compile(r"[^A-Za-z0-9!#$%&'*+\-=?^_`{|}~@.\[\]]")
_URL_DISALLOWED: Final = re.compile(r"[^A-Za-z0-9$\-_.+!*'(),{}|\\^~\[\]`<>#%\";/?:@&=]")
_INT_PATTERN: Final = re.compile(r"^[+-]?(0|[1-9][0-9]*)$")
_TRUE_VALUES: Final = frozenset({"1", "true", "on", "yes"})
_FALSE_VALUES: Final = frozenset({"0", "false", "off", "no", ""})

SUSPICIOUS_SQL_TOKENS: Final = (
    "SLEEP(", "BENCHMARK(", "LOAD_FILE(", "OUTFILE(", "INFILE(",
    "UNION SELECT", "OR 1=1", "AND 1=1", "DROP TABLE", "DELETE FROM",
    "UPDATE ", "INSERT INTO", "CREATE TABLE", "ALTER TABLE",
    "GRANT ", "REVOKE ", "SHOW DATABASES", "SHOW TABLES", "INFORMATION_SCHEMA",
    "CONCAT(", "GROUP_CONCAT(", "CAST(", "CONVERT(", "MD5(", "SHA1(",
    "HEX(", "UNHEX(", "FROM_BASE64(", "TO_BASE64(", "ASCII(", "CHAR(",
    "ORD(", "CHR(", "SUBSTRING(", "MID(", "LEFT(", "RIGHT(", "INSTR(",
    "LOCATE(", "LPAD(", "RPAD(", "REPLACE(", "REVERSE(", "SOUNDEX(",
    "TRIM(", "LOWER(", "UPPER(", "NOW(", "CURDATE(", "CURTIME(",
    "UNIX_TIMESTAMP(", "FROM_UNIXTIME(", "DATE_FORMAT(", "DATE_ADD(",
    "DATE_SUB(", "ADDDATE(", "SUBDATE(", "DATEDIFF(", "TIMEDIFF(",
    "VERSION(", "DATABASE(", "USER(", "CURRENT_USER(", "SESSION_USER(",
    "SYSTEM_USER(", "@@VERSION", "@@DATADIR", "@@HOSTNAME", "@@PORT",
    "@@SOCKET", "@@CHARACTER_SET_CLIENT", "@@CHARACTER_SET_RESULTS",
    "@@COLLATION_CONNECTION", "@@SQL_MODE", "@@AUTOCOMMIT",
    "-- ", "#", "/*", "*/", ";",
)  # fmt: skip


class InputFilter(str, Enum):
    """Filters understood by :func:`filter_input`."""

    UNSAFE_RAW = "unsafe_raw"
    """Strip markup, then HTML-escape (quotes included)."""
    EMAIL = "email"
    """Remove characters not allowed in an e-mail address."""
    URL = "url"
    """Remove characters not allowed in a URL."""
    INT = "int"
    """Validate an integer; ``None`` (or ``default``) when invalid."""
    FLOAT = "float"
    """Validate a float; ``None`` (or ``default``) when invalid."""
    BOOL = "bool"
    """Validate a boolean; ``None`` (or ``default``) when invalid."""

    def __str__(self) -> str:
        return self.value


def _strip_tags(value: str) -> str:
    return _TAG_PATTERN.sub("", value)


def _validate_int(
    value: Any, min_range: Optional[int] = None, max_range: Optional[int] = None, default: Any = None
) -> Any:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        if not _INT_PATTERN.match(text):
            return default
        number = int(text)
    if (min_range is not None and number < min_range) or (max_range is not None and number > max_range):
        return default
    return number


def _validate_float(value: Any, default: Any = None) -> Any:
    if isinstance(value, bool):
        return default
    try:
        return float(str(value).strip()) if not isinstance(value, (int, float)) else float(value)
    except ValueError:
        return default


def _validate_bool(value: Any, default: Any = None) -> Any:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return default


def filter_input(data: Any, filter: "Union[InputFilter, str]" = InputFilter.UNSAFE_RAW, **options: Any) -> Any:  # noqa: A002
    """Filter one value, or every element of a list or tuple.

    Args:
        data: The value to filter.
        filter: The :class:`InputFilter` (or its string value) to apply.
        **options: ``min_range``/``max_range`` for ``INT`` and ``default`` for
            the validating filters.

    Returns:
        The filtered value. Sanitizing filters return strings; validating
        filters return the converted value or ``default`` when invalid.
    """
    selected = InputFilter(filter)
    if isinstance(data, (list, tuple)):
        return [filter_input(item, selected, **options) for item in data]
    if selected is InputFilter.INT:
        return _validate_int(data, **options)
    if selected is InputFilter.FLOAT:
        return _validate_float(data, default=options.get("default"))
    if selected is InputFilter.BOOL:
        return _validate_bool(data, default=options.get("default"))
    if data is None:
        return None
    if selected is InputFilter.EMAIL:
        return _EMAIL_DISALLOWED.sub("", str(data))
    if selected is InputFilter.URL:
        return _URL_DISALLOWED.sub("", str(data))
    if isinstance(data, str):
        return html.escape(_strip_tags(data), quote=True)
    return data


def has_sql_function_calls(value: Any) -> bool:
    """Check a value for SQL function calls and injection fragments.

    A coarse, case-insensitive substring check meant for values that end up in
    places where parameters cannot be used. Lists are joined with spaces.

    Args:
        value: A string or a list/tuple of strings.

    Returns:
        True if any suspicious token is found.
    """
    text = " ".join(str(item) for item in value) if isinstance(value, (list, tuple)) else str(value)
    text = text.upper()
    return any(token in text for token in SUSPICIOUS_SQL_TOKENS)
