"""
Database schema introspection for shadowsync.

Lists the tables of the connected schema and describes their columns
in the shape MySQL's DESCRIBE reports them.
"""

import logging
from typing import List, NamedTuple, Optional

import mysql.connector

from .connection import MySQLConnection
from ..exceptions import DatabaseError, SchemaQueryError


logger = logging.getLogger(__name__)


class ColumnDescription(NamedTuple):
    """One row of a table description."""

    field: str
    type: str
    null: Optional[str] = None
    default: Optional[str] = None
    key: Optional[str] = None
    extra: Optional[str] = None


def quote_identifier(name: str) -> str:
    """Quote a MySQL identifier with backticks."""
    return "`" + name.replace("`", "``") + "`"


class SchemaIntrospector:
    """Schema-query interface backed by a live MySQL connection."""

    def __init__(self, connection: MySQLConnection):
        self.connection = connection

    def list_tables(self) -> List[str]:
        """List the base tables of the current schema."""
        query = "SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'"

        try:
            rows = self.connection.fetch(query)
        except (mysql.connector.Error, DatabaseError) as e:
            logger.error(f"Error listing tables: {e}")
            raise SchemaQueryError(f"Failed to list tables: {e}", cause=e) from e

        tables = []
        for row in rows:
            # first column is "Tables_in_<schema>", second is Table_type
            name = next(
                value for key, value in row.items() if key != "Table_type"
            )
            tables.append(str(name))
        return tables

    def describe(self, table_name: str) -> List[ColumnDescription]:
        """Describe the columns of a table in ordinal order."""
        query = f"DESCRIBE {quote_identifier(table_name)}"

        try:
            rows = self.connection.fetch(query)
        except (mysql.connector.Error, DatabaseError) as e:
            logger.error(f"Error describing table {table_name}: {e}")
            raise SchemaQueryError(
                f"Failed to describe table: {e}", table_name=table_name, cause=e
            ) from e

        return [
            ColumnDescription(
                field=row["Field"],
                type=row["Type"],
                null=row.get("Null"),
                default=row.get("Default"),
                key=row.get("Key"),
                extra=row.get("Extra"),
            )
            for row in rows
        ]
