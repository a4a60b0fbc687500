"""
End-to-end convergence tests.

Runs the reconciler repeatedly against the in-memory database, changing
base tables between runs, and checks that shadows and triggers follow.
"""

import pytest

from shadowsync.schema.reconciler import ReconciliationStatus, ShadowReconciler

from ..conftest import FakeDatabase


pytestmark = pytest.mark.e2e


def converge(make_context, db, **kwargs):
    db.executed.clear()
    return ShadowReconciler(make_context(db, **kwargs)).run()


class TestConvergence:
    """Repeated runs bring shadows in line and then do nothing."""

    def test_second_run_issues_no_statements(self, make_context, fake_db):
        first = converge(make_context, fake_db)
        second = converge(make_context, fake_db)

        assert first.created == 1
        assert len(first.statements) == 5
        assert second.statements == []
        assert second.get("users").status == ReconciliationStatus.UNCHANGED
        assert second.get("users_shadow").is_shadow is True

    def test_base_table_evolution(self, make_context, fake_db):
        converge(make_context, fake_db)

        fake_db.tables["users"]["email"] = "varchar(100)"
        summary = converge(make_context, fake_db)

        assert summary.get("users").status == ReconciliationStatus.UPDATED
        assert summary.statements[0] == (
            "ALTER TABLE app.users_shadow ADD COLUMN email varchar(100)"
        )
        assert fake_db.tables["users_shadow"] == fake_db.tables["users"]
        assert "new.email" in fake_db.triggers["users_insert"]
        assert "new.email" in fake_db.triggers["users_update"]

        fake_db.tables["users"]["name"] = "varchar(100)"
        summary = converge(make_context, fake_db)

        assert summary.statements == [
            "ALTER TABLE app.users_shadow MODIFY COLUMN name varchar(100)"
        ]

        del fake_db.tables["users"]["email"]
        summary = converge(make_context, fake_db)

        assert summary.statements[0] == "ALTER TABLE app.users_shadow DROP COLUMN email"
        assert "new.email" not in fake_db.triggers["users_insert"]

        assert converge(make_context, fake_db).statements == []
        assert fake_db.tables["users_shadow"] == fake_db.tables["users"]

    def test_dry_run_changes_nothing_and_predicts_real_run(self, make_context):
        db = FakeDatabase({
            "users": [("id", "int"), ("updated_at", "datetime"), ("email", "varchar(100)")],
            "users_shadow": [("id", "int"), ("updated_at", "datetime")],
            "accounts": [("id", "int"), ("updated_at", "datetime")],
        })
        before = {name: dict(columns) for name, columns in db.tables.items()}

        planned = converge(make_context, db, dry_run=True)

        assert db.tables == before
        assert db.executed == []
        assert db.triggers == {}

        applied = converge(make_context, db)

        assert applied.statements == planned.statements
        assert converge(make_context, db).statements == []

    def test_many_tables(self, make_context):
        columns = [("id", "bigint"), ("updated_at", "timestamp"), ("amount", "decimal(10,2)")]
        db = FakeDatabase({f"t{i}": columns for i in range(5)})
        db.tables["log"] = {"message": "text"}

        summary = converge(make_context, db)

        assert summary.created == 5
        assert summary.skipped == 1
        assert summary.exit_code == 0
        for i in range(5):
            assert db.tables[f"t{i}_shadow"] == dict(columns)

        assert converge(make_context, db).statements == []
