"""
Database integration package for shadowsync.

This package provides:
- A MySQL connection wrapper that executes statements
- Schema introspection (table listing and column descriptions)
"""

from .connection import MySQLConnection
from .introspection import SchemaIntrospector, ColumnDescription, quote_identifier

__all__ = [
    "MySQLConnection",
    "SchemaIntrospector",
    "ColumnDescription",
    "quote_identifier",
]
