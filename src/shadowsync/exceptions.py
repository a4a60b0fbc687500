"""
Exception classes for shadowsync.
"""

from typing import Any, Dict, Optional


class ShadowSyncError(Exception):
    """Base exception for all shadowsync errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            result += f" [{details_str}]"
        if self.cause:
            result += f" (caused by: {self.cause})"
        return result


class ConfigurationError(ShadowSyncError):
    """Raised when there's an error in configuration."""

    pass


class DatabaseError(ShadowSyncError):
    """Raised when there's an error with database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when there's an error establishing or using the database connection."""

    pass


class SchemaQueryError(DatabaseError):
    """Raised when a table cannot be listed or described."""

    def __init__(
        self,
        message: str,
        table_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details = dict(details or {})
        if table_name:
            details["table"] = table_name
        super().__init__(message, details, cause)
        self.table_name = table_name


class ExecutionError(DatabaseError):
    """Raised when a DDL/DML statement is rejected by the database."""

    def __init__(
        self,
        code: Optional[int],
        message: str,
        statement: Optional[str] = None,
        sqlstate: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        details: Dict[str, Any] = {}
        if code is not None:
            details["code"] = code
        if sqlstate:
            details["sqlstate"] = sqlstate
        super().__init__(message, details, cause)
        self.code = code
        self.statement = statement
        self.sqlstate = sqlstate
