"""
Shadow schema management package for shadowsync.

This package provides:
- Table descriptors and the per-run table registry
- Column set diffing between base and shadow tables
- SQL rendering for shadow tables and their triggers
- Statement execution with dry-run support
- The reconciliation run over a whole schema
"""

from .descriptor import Column, TableDescriptor, TableRegistry, add_suffix, strip_suffix
from .diff import DiffResult, diff_models, diff_tables
from .ddl import AlterKind, TriggerEvent
from .operations import SchemaOperations, SchemaChange, ChangeType, OperationMode
from .reconciler import (
    ShadowReconciler,
    ReconciliationContext,
    ReconciliationStatus,
    RunSummary,
    TableResult,
)

__all__ = [
    "Column",
    "TableDescriptor",
    "TableRegistry",
    "add_suffix",
    "strip_suffix",
    "DiffResult",
    "diff_models",
    "diff_tables",
    "AlterKind",
    "TriggerEvent",
    "SchemaOperations",
    "SchemaChange",
    "ChangeType",
    "OperationMode",
    "ShadowReconciler",
    "ReconciliationContext",
    "ReconciliationStatus",
    "RunSummary",
    "TableResult",
]
