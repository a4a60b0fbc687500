"""
SQL rendering for shadow tables and their triggers.

Every function here returns statement text and never touches the database.
The generated SQL is MySQL-specific.
"""

from enum import Enum
from typing import Mapping

from .descriptor import TableDescriptor


class TriggerEvent(str, Enum):
    """Row events that copy a row into the shadow table."""

    INSERT = "insert"
    UPDATE = "update"


class AlterKind(str, Enum):
    """ALTER TABLE clause kinds; one statement never mixes kinds."""

    ADD = "add"
    DROP = "drop"
    MODIFY = "modify"


TRIGGER_EVENTS = (TriggerEvent.INSERT, TriggerEvent.UPDATE)

# add before drop so columns are never transiently missing, then modify
ALTER_ORDER = (AlterKind.ADD, AlterKind.DROP, AlterKind.MODIFY)


def _require_eligible(descriptor: TableDescriptor) -> str:
    if not descriptor.eligible:
        raise ValueError(f"Table {descriptor.table_name} can not have a shadow table")
    return descriptor.shadow_name


def create_fields(descriptor: TableDescriptor) -> str:
    """``name type`` pairs for CREATE TABLE."""
    return ", ".join(str(column) for column in descriptor.columns)


def field_list(descriptor: TableDescriptor) -> str:
    """Plain column names for the trigger INSERT list."""
    return ", ".join(descriptor.column_names)


def new_list(descriptor: TableDescriptor) -> str:
    """Column names prefixed with ``new.`` for the trigger VALUES list."""
    return ", ".join(f"new.{name}" for name in descriptor.column_names)


def trigger_name(base_name: str, event: TriggerEvent) -> str:
    """Trigger names are reconstructed on drop, so they must stay stable."""
    return f"{base_name}_{TriggerEvent(event).value}"


def create_table_sql(schema: str, descriptor: TableDescriptor) -> str:
    """CREATE TABLE for the shadow of an eligible base table."""
    shadow_name = _require_eligible(descriptor)
    return f"CREATE TABLE {schema}.{shadow_name} ( {create_fields(descriptor)} )"


def create_trigger_sql(schema: str, descriptor: TableDescriptor, event: TriggerEvent) -> str:
    """CREATE TRIGGER copying each inserted or updated row into the shadow."""
    shadow_name = _require_eligible(descriptor)
    event = TriggerEvent(event)
    base_name = descriptor.base_name
    return (
        f"CREATE TRIGGER {schema}.{trigger_name(base_name, event)} "
        f"AFTER {event.value.upper()} ON {schema}.{base_name} FOR EACH ROW "
        f"INSERT INTO {schema}.{shadow_name} ( {field_list(descriptor)} ) "
        f"VALUES ( {new_list(descriptor)} )"
    )


def insert_trigger_sql(schema: str, descriptor: TableDescriptor) -> str:
    return create_trigger_sql(schema, descriptor, TriggerEvent.INSERT)


def update_trigger_sql(schema: str, descriptor: TableDescriptor) -> str:
    return create_trigger_sql(schema, descriptor, TriggerEvent.UPDATE)


def drop_trigger_sql(schema: str, base_name: str, event: TriggerEvent) -> str:
    """DROP TRIGGER that does nothing if the trigger is absent."""
    return f"DROP TRIGGER IF EXISTS {schema}.{trigger_name(base_name, event)}"


def alter_clause(kind: AlterKind, name: str, col_type: str) -> str:
    kind = AlterKind(kind)
    if kind == AlterKind.ADD:
        return f"ADD COLUMN {name} {col_type}"
    elif kind == AlterKind.DROP:
        return f"DROP COLUMN {name}"
    else:
        return f"MODIFY COLUMN {name} {col_type}"


def alter_table_sql(
    schema: str, shadow_name: str, columns: Mapping[str, str], kind: AlterKind
) -> str:
    """One ALTER TABLE batching every column of a single clause kind."""
    if not columns:
        raise ValueError(f"No columns to {AlterKind(kind).value} on {shadow_name}")
    clauses = ", ".join(
        alter_clause(kind, name, col_type) for name, col_type in columns.items()
    )
    return f"ALTER TABLE {schema}.{shadow_name} {clauses}"
