"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .hold_store import HoldStore
from .sql_hold_store import SqlHoldStore

__all__ = ['HoldStore', 'SqlHoldStore']
