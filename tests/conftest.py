"""
Pytest configuration and shared fixtures for shadowsync tests.

Provides an in-memory database that implements both the schema-query and
the statement-execution interfaces and applies the statements shadowsync
renders to its own column models.
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from shadowsync.database.introspection import ColumnDescription
from shadowsync.exceptions import ExecutionError, SchemaQueryError
from shadowsync.schema.descriptor import TableDescriptor
from shadowsync.schema.reconciler import ReconciliationContext


CREATE_TABLE_RE = re.compile(r"CREATE TABLE (\w+)\.(\w+) \( (.*) \)$", re.S)
ALTER_TABLE_RE = re.compile(r"ALTER TABLE (\w+)\.(\w+) (.*)$", re.S)
DROP_TRIGGER_RE = re.compile(r"DROP TRIGGER IF EXISTS (\w+)\.(\w+)$")
CREATE_TRIGGER_RE = re.compile(r"CREATE TRIGGER (\w+)\.(\w+) ")


def split_top_level(text: str) -> List[str]:
    """Split on commas outside parentheses, e.g. ``decimal(10,2)``."""
    parts, depth, current = [], 0, []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    if current:
        parts.append("".join(current).strip())
    return parts


class FakeDatabase:
    """A schema held in memory; statements are applied, not just recorded."""

    def __init__(self, tables: Optional[Dict[str, Iterable[Tuple[str, str]]]] = None):
        self.tables: Dict[str, Dict[str, str]] = {
            name: dict(columns) for name, columns in (tables or {}).items()
        }
        self.triggers: Dict[str, str] = {}
        self.executed: List[str] = []
        self.fail_on: Optional[str] = None
        self.unreachable = False

    # schema-query interface

    def list_tables(self) -> List[str]:
        if self.unreachable:
            raise SchemaQueryError("Lost connection to MySQL server")
        return list(self.tables)

    def describe(self, table_name: str) -> List[ColumnDescription]:
        if self.unreachable or table_name not in self.tables:
            raise SchemaQueryError(
                f"Table '{table_name}' doesn't exist", table_name=table_name
            )
        return [
            ColumnDescription(name, col_type, "YES", None, "", "")
            for name, col_type in self.tables[table_name].items()
        ]

    # statement-execution interface

    def execute(self, statement: str) -> None:
        if self.fail_on and self.fail_on in statement:
            raise ExecutionError(1064, "You have an error in your SQL syntax", statement, "42000")
        self.executed.append(statement)

        match = CREATE_TABLE_RE.match(statement)
        if match:
            name = match.group(2)
            if name in self.tables:
                raise ExecutionError(1050, f"Table '{name}' already exists", statement, "42S01")
            self.tables[name] = dict(
                part.split(" ", 1) for part in split_top_level(match.group(3))
            )
            return

        match = ALTER_TABLE_RE.match(statement)
        if match:
            columns = self.tables[match.group(2)]
            for clause in split_top_level(match.group(3)):
                words = clause.split(" ", 3)
                if words[0] == "ADD":
                    columns[words[2]] = words[3]
                elif words[0] == "DROP":
                    del columns[words[2]]
                elif words[0] == "MODIFY":
                    columns[words[2]] = words[3]
            return

        match = DROP_TRIGGER_RE.match(statement)
        if match:
            self.triggers.pop(match.group(2), None)
            return

        match = CREATE_TRIGGER_RE.match(statement)
        if match:
            name = match.group(2)
            if name in self.triggers:
                raise ExecutionError(1359, "Trigger already exists", statement, "HY000")
            self.triggers[name] = statement
            return

        raise AssertionError(f"unexpected statement: {statement}")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def users_columns() -> List[Tuple[str, str]]:
    """Columns of the canonical users table."""
    return [("id", "int"), ("updated_at", "datetime"), ("name", "varchar(50)")]


@pytest.fixture
def fake_db(users_columns) -> FakeDatabase:
    """A schema holding one eligible table without a shadow."""
    return FakeDatabase({"users": users_columns})


@pytest.fixture
def null_logger() -> logging.Logger:
    """A logger that discards everything."""
    log = logging.getLogger("shadowsync.tests.null")
    log.addHandler(logging.NullHandler())
    log.propagate = False
    return log


@pytest.fixture
def make_context(null_logger):
    """Factory for a reconciliation context over a FakeDatabase."""
    def _make(db: FakeDatabase, dry_run: bool = False, log=None, suffix: str = "_shadow"):
        return ReconciliationContext(
            schema_query=db,
            executor=db,
            schema="app",
            suffix=suffix,
            dry_run=dry_run,
            logger=log or null_logger,
        )
    return _make


@pytest.fixture
def describe():
    """Build a TableDescriptor from ``(name, type)`` pairs."""
    def _describe(table_name: str, columns, suffix: str = "_shadow") -> TableDescriptor:
        rows = [ColumnDescription(name, col_type) for name, col_type in columns]
        return TableDescriptor.from_description(table_name, rows, suffix)
    return _describe
