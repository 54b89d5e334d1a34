"""fluentsql: a fluent query builder and CRUD helpers over DB-API drivers."""

from fluentsql import adapters, builder, conditions, dialects, driver, exceptions, filters, typing, utils
from fluentsql.__metadata__ import __version__
from fluentsql.builder import CompiledQuery, QueryBuilder, QueryDraft, raw
from fluentsql.conditions import Condition, Equals, FindInSet, In, NotIn, Raw
from fluentsql.config import NoPoolSyncConfig
from fluentsql.dialects import Dialect, get_dialect
from fluentsql.driver import SyncDriverAdapterBase
from fluentsql.exceptions import (
    ConfigurationError,
    ExecutionError,
    FluentSQLError,
    MappingError,
    ParameterError,
    SQLBuilderError,
)
from fluentsql.filters import InputFilter, filter_input
from fluentsql.mapping import TypeRegistry
from fluentsql.notifications import ErrorNotificationConfig, SMTPErrorNotifier
from fluentsql.parameters import ParameterStyle
from fluentsql.result import SQLResult
from fluentsql.typing import DictRow, ModelDTOT, StatementParameters

__all__ = (
    "CompiledQuery",
    "Condition",
    "ConfigurationError",
    "Dialect",
    "DictRow",
    "Equals",
    "ErrorNotificationConfig",
    "ExecutionError",
    "FindInSet",
    "FluentSQLError",
    "In",
    "InputFilter",
    "MappingError",
    "ModelDTOT",
    "NoPoolSyncConfig",
    "NotIn",
    "ParameterError",
    "ParameterStyle",
    "QueryBuilder",
    "QueryDraft",
    "Raw",
    "SMTPErrorNotifier",
    "SQLBuilderError",
    "SQLResult",
    "StatementParameters",
    "SyncDriverAdapterBase",
    "TypeRegistry",
    "__version__",
    "adapters",
    "builder",
    "conditions",
    "dialects",
    "driver",
    "exceptions",
    "filters",
    "filter_input",
    "get_dialect",
    "typing",
    "utils",
)
