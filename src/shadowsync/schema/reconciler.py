"""
Shadow table reconciliation for shadowsync.

Walks every table of a schema snapshot once and decides, per table, whether
its shadow must be created, updated or left alone, then issues the
corresponding statements in a fixed order.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..config import DEFAULT_SHADOW_SUFFIX, ShadowSyncConfig
from ..exceptions import ExecutionError
from .ddl import ALTER_ORDER, AlterKind
from .descriptor import SchemaQuery, TableDescriptor, TableRegistry
from .diff import DiffResult, diff_tables
from .operations import OperationMode, SchemaChange, SchemaOperations, StatementExecutor


logger = logging.getLogger(__name__)


class ReconciliationStatus(str, Enum):
    """Outcome of reconciling one table."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ReconciliationContext:
    """Everything a run needs, passed explicitly instead of held globally."""

    schema_query: SchemaQuery
    executor: StatementExecutor
    schema: str
    suffix: str = DEFAULT_SHADOW_SUFFIX
    dry_run: bool = False
    logger: logging.Logger = field(default=logger)

    @classmethod
    def from_config(
        cls,
        config: ShadowSyncConfig,
        schema_query: SchemaQuery,
        executor: StatementExecutor,
        log: Optional[logging.Logger] = None,
    ) -> "ReconciliationContext":
        return cls(
            schema_query=schema_query,
            executor=executor,
            schema=config.schema_name,
            suffix=config.shadow.suffix,
            dry_run=config.shadow.dry_run,
            logger=log or logger,
        )


@dataclass
class TableResult:
    """Result of reconciling one table."""

    table: str
    status: ReconciliationStatus
    is_shadow: bool = False
    shadow_name: Optional[str] = None
    diff: Optional[DiffResult] = None
    changes: List[SchemaChange] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    execution_time_ms: float = 0.0

    @property
    def statements(self) -> List[str]:
        return [c.sql for c in self.changes]


@dataclass
class RunSummary:
    """What a run did, sufficient for a caller to pick an exit status."""

    schema: str
    dry_run: bool
    results: List[TableResult] = field(default_factory=list)

    def _count(self, status: ReconciliationStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def created(self) -> int:
        return self._count(ReconciliationStatus.CREATED)

    @property
    def updated(self) -> int:
        return self._count(ReconciliationStatus.UPDATED)

    @property
    def unchanged(self) -> int:
        return self._count(ReconciliationStatus.UNCHANGED)

    @property
    def skipped(self) -> int:
        return self._count(ReconciliationStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self._count(ReconciliationStatus.FAILED)

    @property
    def shadow_tables(self) -> int:
        return sum(1 for r in self.results if r.is_shadow)

    def _diff_total(self, category: str) -> int:
        return sum(r.diff.counts()[category] for r in self.results if r.diff)

    @property
    def columns_added(self) -> int:
        return self._diff_total("added")

    @property
    def columns_dropped(self) -> int:
        return self._diff_total("removed")

    @property
    def columns_modified(self) -> int:
        return self._diff_total("modified")

    @property
    def changes(self) -> List[SchemaChange]:
        return [change for r in self.results for change in r.changes]

    @property
    def statements(self) -> List[str]:
        return [change.sql for change in self.changes]

    @property
    def statements_executed(self) -> int:
        return sum(1 for change in self.changes if change.executed)

    @property
    def statements_failed(self) -> int:
        return sum(1 for change in self.changes if change.has_error)

    @property
    def execution_time_ms(self) -> float:
        return sum(r.execution_time_ms for r in self.results)

    @property
    def errors(self) -> List[str]:
        return [error for r in self.results for error in r.errors]

    @property
    def exit_code(self) -> int:
        return 1 if self.errors else 0

    def get(self, table: str) -> Optional[TableResult]:
        for result in self.results:
            if result.table == table:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "dry_run": self.dry_run,
            "tables": len(self.results),
            "created": self.created,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "skipped": self.skipped,
            "shadow_tables": self.shadow_tables,
            "failed": self.failed,
            "columns_added": self.columns_added,
            "columns_dropped": self.columns_dropped,
            "columns_modified": self.columns_modified,
            "statements": len(self.statements),
            "statements_executed": self.statements_executed,
            "statements_failed": self.statements_failed,
            "execution_time_ms": round(self.execution_time_ms, 1),
            "errors": self.errors,
        }


class ShadowReconciler:
    """
    Converges every shadow table of a schema with its base table.

    The table registry is built before any statement is issued, so a shadow
    created during a run is not itself inspected in the same run. Statement
    failures abandon the remaining steps of the current table only; schema
    query failures abort the run.
    """

    def __init__(self, context: ReconciliationContext):
        self.context = context
        self.log = context.logger
        self.operations = SchemaOperations(
            context.executor,
            context.schema,
            OperationMode.DRY_RUN if context.dry_run else OperationMode.APPLY,
            log=context.logger,
        )

    def load_registry(self) -> TableRegistry:
        """Snapshot the schema. Raises SchemaQueryError."""
        return TableRegistry.load(self.context.schema_query, self.context.suffix)

    def run(self, registry: Optional[TableRegistry] = None) -> RunSummary:
        """Reconcile every table of the schema once."""
        self.log.warning(f"-- starting new run of shadowsync in {self.context.schema} --")
        if self.context.dry_run:
            self.log.warning("running in test mode, no changes will be made")

        if registry is None:
            registry = self.load_registry()

        summary = RunSummary(schema=self.context.schema, dry_run=self.context.dry_run)
        for descriptor in registry:
            summary.results.append(self.reconcile_table(descriptor, registry))

        self.log.info(
            f"run complete: {summary.created} created, {summary.updated} updated, "
            f"{summary.unchanged} unchanged, {summary.skipped} skipped, "
            f"{summary.failed} failed"
        )
        return summary

    def plan_table(
        self, descriptor: TableDescriptor, registry: TableRegistry
    ) -> ReconciliationStatus:
        """The action a run would take for this table, without taking it."""
        if not descriptor.eligible:
            return ReconciliationStatus.SKIPPED
        shadow = registry.find_shadow(descriptor)
        if shadow is None:
            return ReconciliationStatus.CREATED
        if diff_tables(descriptor, shadow).unchanged:
            return ReconciliationStatus.UNCHANGED
        return ReconciliationStatus.UPDATED

    def reconcile_table(
        self, descriptor: TableDescriptor, registry: TableRegistry
    ) -> TableResult:
        """Create, update or skip the shadow of one table."""
        start_time = time.time()
        table = descriptor.table_name
        self.log.debug(f"checking table {table}")

        result = TableResult(
            table=table,
            status=ReconciliationStatus.SKIPPED,
            is_shadow=descriptor.is_shadow,
            shadow_name=descriptor.shadow_name,
        )

        if not descriptor.eligible:
            if descriptor.is_shadow:
                self.log.info(f"table {table} is a shadow table")
            else:
                self.log.warning(f"skipping table {table}, can not shadow it")
            return result

        self.log.debug(f"table {table} can have a shadow")
        first_change = len(self.operations.changes)

        try:
            shadow = registry.find_shadow(descriptor)
            if shadow is None:
                self._create_shadow(descriptor)
                result.status = ReconciliationStatus.CREATED
            else:
                self.log.info(f"table {table} has a shadow")
                result.diff = diff_tables(descriptor, shadow)
                if result.diff.unchanged:
                    result.status = ReconciliationStatus.UNCHANGED
                else:
                    self._update_shadow(descriptor, result.diff)
                    result.status = ReconciliationStatus.UPDATED

        except ExecutionError as e:
            self._log_execution_error(table, e)
            result.status = ReconciliationStatus.FAILED
            result.errors.append(
                f"{table}: [{e.code}] {e.message} in statement: {e.statement}"
            )

        finally:
            result.changes = self.operations.changes[first_change:]
            result.execution_time_ms = (time.time() - start_time) * 1000

        return result

    def _create_shadow(self, descriptor: TableDescriptor) -> None:
        self.log.warning(f"create new shadow table {descriptor.shadow_name}")
        self.operations.create_shadow_table(descriptor)

        self.log.info(f"generate triggers on {descriptor.base_name}")
        self.operations.generate_triggers(descriptor)

    def _update_shadow(self, descriptor: TableDescriptor, diff: DiffResult) -> None:
        shadow_name = descriptor.shadow_name
        self.log.warning(f"shadow table {shadow_name} needs an update")

        columns_by_kind = {
            AlterKind.ADD: diff.added,
            AlterKind.DROP: diff.removed,
            AlterKind.MODIFY: diff.modified,
        }
        messages = {
            AlterKind.ADD: "adding {n} field(s) to shadow table {t}",
            AlterKind.DROP: "dropping {n} field(s) from shadow table {t}",
            AlterKind.MODIFY: "modifying {n} field type(s) in shadow table {t}",
        }
        for kind in ALTER_ORDER:
            columns = columns_by_kind[kind]
            if columns:
                self.log.info(messages[kind].format(n=len(columns), t=shadow_name))
                self.operations.alter_shadow_table(descriptor, columns, kind)

        # type-only changes leave trigger bodies valid
        if diff.requires_trigger_regeneration:
            self.log.info(f"regenerate triggers on {descriptor.base_name}")
            self.operations.generate_triggers(descriptor)

    def _log_execution_error(self, table: str, error: ExecutionError) -> None:
        self.log.critical(f"statement failed for table {table}: {error.statement}")
        self.log.critical(f"Error code: {error.code}")
        self.log.critical(f"Error message: {error.message}")
        if error.sqlstate:
            self.log.critical(f"Error SQLSTATE: {error.sqlstate}")
