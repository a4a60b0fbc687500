"""
Tests for shadowsync.exceptions module.
"""

from shadowsync.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    ExecutionError,
    SchemaQueryError,
    ShadowSyncError,
)


class TestShadowSyncError:
    """Test base error formatting."""

    def test_message_only(self):
        assert str(ShadowSyncError("broken")) == "broken"

    def test_details_and_cause(self):
        error = ShadowSyncError("broken", details={"table": "users"}, cause=OSError("disk"))
        assert str(error) == "broken [table=users] (caused by: disk)"

    def test_hierarchy(self):
        assert issubclass(ConfigurationError, ShadowSyncError)
        assert issubclass(DatabaseConnectionError, DatabaseError)
        assert issubclass(SchemaQueryError, DatabaseError)
        assert issubclass(ExecutionError, DatabaseError)


class TestSchemaQueryError:
    def test_table_name(self):
        error = SchemaQueryError("Failed to describe table", table_name="users")

        assert error.table_name == "users"
        assert error.details == {"table": "users"}


class TestExecutionError:
    def test_attributes(self):
        error = ExecutionError(1050, "Table exists", "CREATE TABLE app.t ( id int )", "42S01")

        assert error.code == 1050
        assert error.message == "Table exists"
        assert error.statement == "CREATE TABLE app.t ( id int )"
        assert error.sqlstate == "42S01"
        assert str(error) == "Table exists [code=1050, sqlstate=42S01]"

    def test_without_code(self):
        error = ExecutionError(None, "Lost connection")

        assert error.details == {}
        assert str(error) == "Lost connection"
