"""Schema snapshot model and catalog introspection for pgdiff."""

from .columns import Column
from .constraints import CheckConstraint, ForeignKey, PrimaryKey, UniqueConstraint
from .database import SnapshotLoader, fetch_schema
from .extensions import Extension
from .functions import Function
from .indexes import Index
from .schemas import Schema
from .sequences import Sequence
from .tables import Table
from .triggers import Trigger
from .user_types import CompositeAttribute, UserType
from .views import View

__all__ = [
    "CheckConstraint",
    "Column",
    "CompositeAttribute",
    "Extension",
    "ForeignKey",
    "Function",
    "Index",
    "PrimaryKey",
    "Schema",
    "Sequence",
    "SnapshotLoader",
    "Table",
    "Trigger",
    "UniqueConstraint",
    "UserType",
    "View",
    "fetch_schema",
]
