"""
Column set comparison between a base table and its shadow.
"""

from dataclasses import dataclass, field
from typing import Mapping

from .descriptor import ColumnModel, TableDescriptor


@dataclass(frozen=True)
class DiffResult:
    """
    Divergence of a shadow table from its base table.

    ``added`` holds base columns missing from the shadow, ``removed`` holds
    shadow columns no longer in the base (with the shadow's types) and
    ``modified`` holds columns whose type text differs (with the base's
    types, which the shadow must adopt).
    """

    added: ColumnModel = field(default_factory=dict)
    removed: ColumnModel = field(default_factory=dict)
    modified: ColumnModel = field(default_factory=dict)

    @property
    def unchanged(self) -> bool:
        """True if the shadow already matches its base table."""
        return not (self.added or self.removed or self.modified)

    @property
    def requires_trigger_regeneration(self) -> bool:
        """Trigger bodies list column names, so only added/removed columns stale them."""
        return bool(self.added or self.removed)

    def counts(self) -> dict:
        return {
            "added": len(self.added),
            "removed": len(self.removed),
            "modified": len(self.modified),
        }


def diff_models(
    authoritative: Mapping[str, str], candidate: Mapping[str, str]
) -> DiffResult:
    """
    Compare two column models.

    Types are compared as exact strings: ``varchar(255)`` and
    ``VARCHAR(255)`` are different types.
    """
    added = {
        name: col_type
        for name, col_type in authoritative.items()
        if name not in candidate
    }
    removed = {
        name: col_type
        for name, col_type in candidate.items()
        if name not in authoritative
    }
    modified = {
        name: col_type
        for name, col_type in authoritative.items()
        if name in candidate and candidate[name] != col_type
    }
    return DiffResult(added=added, removed=removed, modified=modified)


def diff_tables(authoritative: TableDescriptor, candidate: TableDescriptor) -> DiffResult:
    """Compare a base table (authoritative) with its shadow (candidate)."""
    return diff_models(authoritative.column_model, candidate.column_model)
