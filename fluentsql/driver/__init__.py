"""Driver base classes for database adapters."""

from fluentsql.driver import mixins
from fluentsql.driver._common import CommonDriverAttributesMixin
from fluentsql.driver._sync import SyncDriverAdapterBase

__all__ = ("CommonDriverAttributesMixin", "SyncDriverAdapterBase", "mixins")
