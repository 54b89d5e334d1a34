"""Driver mixins for CRUD helpers and SQL utilities."""

from fluentsql.driver.mixins._crud import CRUDMixin
from fluentsql.driver.mixins._utilities import SQLUtilitiesMixin

__all__ = ("CRUDMixin", "SQLUtilitiesMixin")
