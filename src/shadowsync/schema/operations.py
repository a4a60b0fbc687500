"""
Shadow schema operations for shadowsync.

Renders shadow DDL through the ddl module, records every statement as a
SchemaChange and submits it to the statement-execution collaborator unless
running in dry-run mode.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional, Protocol

from . import ddl
from .ddl import AlterKind, TriggerEvent
from .descriptor import TableDescriptor
from ..exceptions import ExecutionError


logger = logging.getLogger(__name__)


class StatementExecutor(Protocol):
    """Anything that can run a statement, e.g. MySQLConnection."""

    def execute(self, statement: str) -> None: ...


class ChangeType(str, Enum):
    """Types of shadow schema changes."""

    CREATE_TABLE = "create_table"
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    MODIFY_COLUMN = "modify_column"
    DROP_TRIGGER = "drop_trigger"
    CREATE_TRIGGER = "create_trigger"


class OperationMode(str, Enum):
    """Schema operation modes."""

    APPLY = "apply"        # Execute every statement
    DRY_RUN = "dry_run"    # Render and log statements but don't execute


ALTER_CHANGE_TYPES: Dict[AlterKind, ChangeType] = {
    AlterKind.ADD: ChangeType.ADD_COLUMN,
    AlterKind.DROP: ChangeType.DROP_COLUMN,
    AlterKind.MODIFY: ChangeType.MODIFY_COLUMN,
}


@dataclass
class SchemaChange:
    """Represents one rendered statement."""

    change_type: ChangeType
    schema: str
    table: str
    description: str
    sql: str

    # Execution results
    executed: bool = False
    error: Optional[str] = None

    @property
    def full_table_name(self) -> str:
        """Get fully qualified table name."""
        return f"{self.schema}.{self.table}"

    @property
    def has_error(self) -> bool:
        return self.error is not None


class SchemaOperations:
    """Renders and executes the statements that converge shadow tables."""

    def __init__(
        self,
        executor: StatementExecutor,
        schema: str,
        operation_mode: OperationMode = OperationMode.APPLY,
        log: Optional[logging.Logger] = None,
    ):
        self.executor = executor
        self.schema = schema
        self.operation_mode = operation_mode
        self.log = log or logger

        # Every change issued, in order
        self.changes: List[SchemaChange] = []

    @property
    def dry_run(self) -> bool:
        return self.operation_mode == OperationMode.DRY_RUN

    def create_shadow_table(self, descriptor: TableDescriptor) -> SchemaChange:
        """Create the shadow table of an eligible base table."""
        change = SchemaChange(
            change_type=ChangeType.CREATE_TABLE,
            schema=self.schema,
            table=descriptor.shadow_name,
            description=f"Create shadow table {descriptor.shadow_name}",
            sql=ddl.create_table_sql(self.schema, descriptor),
        )
        return self._execute_change(change)

    def drop_trigger(self, descriptor: TableDescriptor, event: TriggerEvent) -> SchemaChange:
        name = ddl.trigger_name(descriptor.base_name, event)
        change = SchemaChange(
            change_type=ChangeType.DROP_TRIGGER,
            schema=self.schema,
            table=descriptor.base_name,
            description=f"Drop trigger {name}",
            sql=ddl.drop_trigger_sql(self.schema, descriptor.base_name, event),
        )
        return self._execute_change(change)

    def create_trigger(self, descriptor: TableDescriptor, event: TriggerEvent) -> SchemaChange:
        name = ddl.trigger_name(descriptor.base_name, event)
        change = SchemaChange(
            change_type=ChangeType.CREATE_TRIGGER,
            schema=self.schema,
            table=descriptor.base_name,
            description=f"Create trigger {name}",
            sql=ddl.create_trigger_sql(self.schema, descriptor, event),
        )
        return self._execute_change(change)

    def generate_triggers(self, descriptor: TableDescriptor) -> List[SchemaChange]:
        """Drop and recreate the insert and update triggers of a base table."""
        changes = []
        for event in ddl.TRIGGER_EVENTS:
            changes.append(self.drop_trigger(descriptor, event))
            changes.append(self.create_trigger(descriptor, event))
        return changes

    def alter_shadow_table(
        self,
        descriptor: TableDescriptor,
        columns: Mapping[str, str],
        kind: AlterKind,
    ) -> SchemaChange:
        """Apply one kind of column change to the shadow of ``descriptor``."""
        kind = AlterKind(kind)
        change = SchemaChange(
            change_type=ALTER_CHANGE_TYPES[kind],
            schema=self.schema,
            table=descriptor.shadow_name,
            description=(
                f"{kind.value.capitalize()} {len(columns)} column(s) "
                f"on {descriptor.shadow_name}"
            ),
            sql=ddl.alter_table_sql(self.schema, descriptor.shadow_name, columns, kind),
        )
        return self._execute_change(change)

    def _execute_change(self, change: SchemaChange) -> SchemaChange:
        """Log the statement, then execute it unless in dry-run mode."""
        self.changes.append(change)
        self.log.debug(change.sql)

        if self.dry_run:
            return change

        try:
            self.executor.execute(change.sql)
        except ExecutionError as e:
            change.error = str(e)
            raise

        change.executed = True
        return change

