"""
Database connection management for shadowsync.

Wraps a single mysql.connector connection and exposes the two operations
the rest of the package needs: fetching rows from schema queries and
executing DDL/DML statements whose results are not consumed.
"""

import logging
from typing import Any, Dict, List, Optional

import mysql.connector

from ..config import DatabaseConnection
from ..exceptions import DatabaseConnectionError, ExecutionError


logger = logging.getLogger(__name__)


def _decode(value: Any) -> Any:
    # DESCRIBE / SHOW results come back as bytes with some driver versions
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8")
    return value


class MySQLConnection:
    """A MySQL connection usable as a context manager."""

    def __init__(self, config: DatabaseConnection):
        self.config = config
        self._conn: Optional[Any] = None

    def connect(self) -> None:
        """Open the connection."""
        if self._conn is not None:
            return

        try:
            logger.info(
                f"Connecting to {self.config.user}@{self.config.host}:{self.config.port}"
                f"/{self.config.database}"
            )
            self._conn = mysql.connector.connect(**self.config.to_connection_kwargs())
        except mysql.connector.Error as e:
            logger.error(f"Failed to connect: {e}")
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                details={"host": self.config.host, "database": self.config.database},
                cause=e,
            ) from e

    def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            logger.info("Closing database connection")
            try:
                self._conn.close()
            finally:
                self._conn = None

    @property
    def is_connected(self) -> bool:
        """Check if the connection is open."""
        return self._conn is not None

    def _require(self) -> Any:
        if self._conn is None:
            raise DatabaseConnectionError("Connection is not open")
        return self._conn

    def get_server_info(self) -> str:
        """Get the server version string."""
        return str(self._require().get_server_info())

    def fetch(self, query: str) -> List[Dict[str, Any]]:
        """Run a query and return its rows as dicts keyed by column name."""
        cursor = self._require().cursor(dictionary=True)
        try:
            cursor.execute(query)
            return [
                {key: _decode(value) for key, value in row.items()}
                for row in cursor.fetchall()
            ]
        finally:
            cursor.close()

    def execute(self, statement: str) -> None:
        """
        Execute a statement whose result rows are not needed.

        Raises:
            ExecutionError: if the database rejects the statement
        """
        conn = self._require()
        cursor = conn.cursor()
        try:
            cursor.execute(statement)
        except mysql.connector.Error as e:
            raise ExecutionError(
                getattr(e, "errno", None),
                getattr(e, "msg", None) or str(e),
                statement=statement,
                sqlstate=getattr(e, "sqlstate", None),
                cause=e,
            ) from e
        finally:
            cursor.close()

    def __enter__(self) -> "MySQLConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
