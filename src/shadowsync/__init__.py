"""
shadowsync: keeps MySQL shadow tables and their audit triggers in step with base tables.

Every table with an ``id`` and an ``updated_at`` column gets a shadow table
that receives a copy of each inserted or updated row. When a base table's
columns change, shadowsync alters the shadow to match and regenerates the
triggers.
"""

__version__ = "0.1.0"
__author__ = "shadowsync Contributors"

from .config import ShadowSyncConfig
from .exceptions import (
    ShadowSyncError,
    ConfigurationError,
    DatabaseError,
    SchemaQueryError,
    ExecutionError,
)

__all__ = [
    "__version__",
    "ShadowSyncConfig",
    "ShadowSyncError",
    "ConfigurationError",
    "DatabaseError",
    "SchemaQueryError",
    "ExecutionError",
]
