"""
Table descriptions for shadowsync.

A TableDescriptor knows about one table of the schema at the moment it was
inspected: whether it is a shadow table, whether it can be shadowed, and the
ordered columns needed to create or alter its shadow and the triggers that
feed it.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Pattern, Protocol, Sequence, Tuple

from ..config import DEFAULT_SHADOW_SUFFIX
from ..database.introspection import ColumnDescription


logger = logging.getLogger(__name__)

# these fields must be present to shadow a table; their types are not checked
ID_NAME = "id"
UPDATE_NAME = "updated_at"

ColumnModel = Dict[str, str]


class SchemaQuery(Protocol):
    """What the registry needs from the database."""

    def list_tables(self) -> Sequence[str]: ...

    def describe(self, table_name: str) -> Sequence[ColumnDescription]: ...


def shadow_pattern(suffix: str = DEFAULT_SHADOW_SUFFIX) -> Pattern[str]:
    """Pattern matched by shadow table names; group 1 is the base name."""
    return re.compile(rf"(.+){re.escape(suffix)}", re.IGNORECASE)


def add_suffix(base_name: str, suffix: str = DEFAULT_SHADOW_SUFFIX) -> str:
    """Name of the shadow table for ``base_name``."""
    return base_name + suffix


def strip_suffix(table_name: str, suffix: str = DEFAULT_SHADOW_SUFFIX) -> str:
    """Base name of a shadow table, or ``table_name`` if it is not one."""
    match = shadow_pattern(suffix).fullmatch(table_name)
    return match.group(1) if match else table_name


@dataclass(frozen=True)
class Column:
    """A column name and its raw database type, e.g. ``varchar(255)``."""

    name: str
    type: str

    def __str__(self) -> str:
        return f"{self.name} {self.type}"


@dataclass(frozen=True)
class TableDescriptor:
    """One physical table as inspected during this run."""

    table_name: str
    base_name: str
    is_shadow: bool
    columns: Tuple[Column, ...]
    # defined only when the table can be shadowed
    shadow_name: Optional[str] = None

    @classmethod
    def from_description(
        cls,
        table_name: str,
        description: Iterable[ColumnDescription],
        suffix: str = DEFAULT_SHADOW_SUFFIX,
    ) -> "TableDescriptor":
        """
        Build a descriptor from the rows a table description returned.

        Only the field name and type are kept; nullability, defaults, keys
        and extra attributes are not carried over to shadows.
        """
        match = shadow_pattern(suffix).fullmatch(table_name)
        is_shadow = match is not None
        base_name = match.group(1) if match else table_name

        has_id = False
        has_update = False
        columns: List[Column] = []
        for row in description:
            name, col_type = row[0], row[1]
            if not is_shadow:
                if name == ID_NAME:
                    has_id = True
                elif name == UPDATE_NAME:
                    has_update = True
            columns.append(Column(name=name, type=col_type))

        can_shadow = has_id and has_update
        return cls(
            table_name=table_name,
            base_name=base_name,
            is_shadow=is_shadow,
            columns=tuple(columns),
            shadow_name=add_suffix(base_name, suffix) if can_shadow else None,
        )

    @classmethod
    def describe(
        cls,
        schema_query: SchemaQuery,
        table_name: str,
        suffix: str = DEFAULT_SHADOW_SUFFIX,
    ) -> "TableDescriptor":
        """Describe ``table_name`` through the schema-query collaborator."""
        return cls.from_description(
            table_name, schema_query.describe(table_name), suffix
        )

    @property
    def eligible(self) -> bool:
        """True if this table should have a shadow."""
        return self.shadow_name is not None

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def column_model(self) -> ColumnModel:
        """Column name to type mapping, in column order."""
        return {column.name: column.type for column in self.columns}

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]


class TableRegistry:
    """All table descriptors of a schema, in listing order."""

    def __init__(self, descriptors: Iterable[TableDescriptor]):
        self._descriptors: List[TableDescriptor] = list(descriptors)
        self._by_name: Dict[str, TableDescriptor] = {
            d.table_name: d for d in self._descriptors
        }

    @classmethod
    def load(
        cls, schema_query: SchemaQuery, suffix: str = DEFAULT_SHADOW_SUFFIX
    ) -> "TableRegistry":
        """
        Describe every table of the schema.

        Raises:
            SchemaQueryError: if any table cannot be listed or described
        """
        table_names = schema_query.list_tables()
        logger.debug(f"Describing {len(table_names)} table(s)")
        return cls(
            TableDescriptor.describe(schema_query, name, suffix)
            for name in table_names
        )

    def get(self, table_name: Optional[str]) -> Optional[TableDescriptor]:
        """Look up a descriptor by exact table name."""
        if table_name is None:
            return None
        return self._by_name.get(table_name)

    def find_shadow(self, descriptor: TableDescriptor) -> Optional[TableDescriptor]:
        """The existing shadow table of an eligible base table, if any."""
        return self.get(descriptor.shadow_name)

    @property
    def table_names(self) -> List[str]:
        return [d.table_name for d in self._descriptors]

    def __iter__(self) -> Iterator[TableDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._by_name
