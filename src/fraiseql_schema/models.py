"""
Data models for introspected PostgreSQL schemas.

Every object here is an immutable value: a snapshot is assembled once from the
live catalog and handed to the caller as-is. Sequences are tuples so ordering
(column ordinal position, index key precedence, FK column alignment) survives
untouched, and ``to_dict()`` renders each model as plain JSON-compatible data
for the schema diff tooling.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Optional

MIGRATION_API_VERSION = 1


class ColumnType(Enum):
    """Logical column type, keyed by the catalog's type name."""

    BIGINT = "bigint"
    INTEGER = "integer"
    SMALLINT = "smallint"
    BOOLEAN = "boolean"
    BYTEA = "bytea"
    DOUBLE_PRECISION = "double precision"
    REAL = "real"
    NUMERIC = "numeric"
    TEXT = "text"
    VARCHAR = "character varying"
    CHAR = "character"
    JSON = "json"
    JSONB = "jsonb"
    UUID = "uuid"
    DATE = "date"
    TIME = "time without time zone"
    TIMESTAMP = "timestamp without time zone"
    TIMESTAMPTZ = "timestamp with time zone"
    INTERVAL = "interval"
    # pgvector
    VECTOR = "vector"
    HALFVEC = "halfvec"
    SPARSEVEC = "sparsevec"
    BIT = "bit"
    UNKNOWN = "unknown"

    @classmethod
    def vector_types(cls) -> tuple[ColumnType, ...]:
        """Types whose stored size modifier is a vector dimension."""
        return (cls.VECTOR, cls.HALFVEC, cls.SPARSEVEC, cls.BIT)

    @property
    def is_vector_type(self) -> bool:
        return self in ColumnType.vector_types()


class VectorDistanceFunction(Enum):
    """Distance metric encoded in a pgvector operator class name."""

    L2 = "l2"
    INNER_PRODUCT = "innerProduct"
    COSINE = "cosine"
    L1 = "l1"
    HAMMING = "hamming"
    JACCARD = "jaccard"


class ForeignKeyAction(Enum):
    NO_ACTION = "no_action"
    RESTRICT = "restrict"
    CASCADE = "cascade"
    SET_NULL = "set_null"
    SET_DEFAULT = "set_default"


class ForeignKeyMatchType(Enum):
    FULL = "full"
    PARTIAL = "partial"
    SIMPLE = "simple"


class IndexElementType(Enum):
    COLUMN = "column"
    EXPRESSION = "expression"


def _enum_value(member: Optional[Enum]) -> Any:
    return member.value if member is not None else None


@dataclass(frozen=True)
class ColumnDefinition:
    """
    Column metadata read from the catalog.

    Attributes:
        name: Column name
        column_type: Logical type (``ColumnType.UNKNOWN`` if unrecognized)
        is_nullable: Whether the column allows NULL values
        column_default: Raw default expression, if any
        vector_dimension: Declared dimension, only for vector-like types
    """

    name: str
    column_type: ColumnType
    is_nullable: bool
    column_default: Optional[str] = None
    vector_dimension: Optional[int] = None

    def __post_init__(self) -> None:
        if self.vector_dimension is not None and not self.column_type.is_vector_type:
            raise ValueError(
                f"Column '{self.name}' of type {self.column_type.value} "
                f"cannot carry a vector dimension"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "column_type": self.column_type.value,
            "is_nullable": self.is_nullable,
            "column_default": self.column_default,
            "vector_dimension": self.vector_dimension,
        }


@dataclass(frozen=True)
class IndexElementDefinition:
    """One key position of an index: a bare column name or a raw expression."""

    type: IndexElementType
    definition: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "definition": self.definition}


@dataclass(frozen=True)
class IndexDefinition:
    """
    Index metadata read from the catalog.

    ``parameters``, ``vector_distance_function`` and ``vector_column_type``
    are only ever populated for similarity-search access methods
    (hnsw, ivfflat).
    """

    index_name: str
    type: str
    is_unique: bool
    is_primary: bool
    elements: tuple[IndexElementDefinition, ...]
    table_space: Optional[str] = None
    predicate: Optional[str] = None
    parameters: Optional[Mapping[str, str]] = None
    vector_distance_function: Optional[VectorDistanceFunction] = None
    vector_column_type: Optional[ColumnType] = None

    def __post_init__(self) -> None:
        if self.parameters is not None and not isinstance(self.parameters, MappingProxyType):
            object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "index_name": self.index_name,
            "table_space": self.table_space,
            "type": self.type,
            "is_unique": self.is_unique,
            "is_primary": self.is_primary,
            "elements": [element.to_dict() for element in self.elements],
            "predicate": self.predicate,
            "parameters": dict(self.parameters) if self.parameters is not None else None,
            "vector_distance_function": _enum_value(self.vector_distance_function),
            "vector_column_type": _enum_value(self.vector_column_type),
        }


@dataclass(frozen=True)
class ForeignKeyDefinition:
    """
    Foreign key constraint metadata.

    ``columns`` and ``reference_columns`` are positionally aligned: the n-th
    local column references the n-th column of the referenced table.
    """

    constraint_name: str
    columns: tuple[str, ...]
    reference_table_schema: str
    reference_table: str
    reference_columns: tuple[str, ...]
    on_update: Optional[ForeignKeyAction] = None
    on_delete: Optional[ForeignKeyAction] = None
    match_type: Optional[ForeignKeyMatchType] = None

    def __post_init__(self) -> None:
        if len(self.columns) != len(self.reference_columns):
            raise ValueError(
                f"Foreign key '{self.constraint_name}' has {len(self.columns)} columns "
                f"but {len(self.reference_columns)} referenced columns"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "constraint_name": self.constraint_name,
            "columns": list(self.columns),
            "reference_table_schema": self.reference_table_schema,
            "reference_table": self.reference_table,
            "reference_columns": list(self.reference_columns),
            "on_update": _enum_value(self.on_update),
            "on_delete": _enum_value(self.on_delete),
            "match_type": _enum_value(self.match_type),
        }


@dataclass(frozen=True)
class TableDefinition:
    """
    Table metadata with its columns, indexes and foreign keys.

    Attributes:
        schema: Schema (namespace) name
        name: Table name
        columns: Columns in catalog ordinal position; never re-sort
        foreign_keys: Foreign keys, unique by constraint name
        indexes: Indexes, unique by index name
    """

    schema: str
    name: str
    columns: tuple[ColumnDefinition, ...] = ()
    foreign_keys: tuple[ForeignKeyDefinition, ...] = ()
    indexes: tuple[IndexDefinition, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    def find_column(self, name: str) -> Optional[ColumnDefinition]:
        return next((c for c in self.columns if c.name == name), None)

    def find_index(self, name: str) -> Optional[IndexDefinition]:
        return next((i for i in self.indexes if i.index_name == name), None)

    def find_foreign_key(self, name: str) -> Optional[ForeignKeyDefinition]:
        return next((fk for fk in self.foreign_keys if fk.constraint_name == name), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": self.schema,
            "name": self.name,
            "columns": [column.to_dict() for column in self.columns],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "indexes": [index.to_dict() for index in self.indexes],
        }


@dataclass(frozen=True)
class MigrationVersion:
    """A row of the applied-migrations table."""

    __table__: ClassVar[str] = "schema_migrations"
    __columns__: ClassVar[tuple[str, ...]] = ("module", "version", "timestamp")

    module: str
    version: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> MigrationVersion:
        module, version, timestamp = row
        return cls(module=module, version=version, timestamp=timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "version": self.version,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class SchemaSnapshot:
    """
    Point-in-time view of a database's physical schema.

    Attributes:
        module_name: Name of the module that produced the snapshot
        database_name: Result of ``current_database()``
        tables: Table definitions in catalog enumeration order
        migration_api_version: Version of the snapshot format
        applied_migrations: Migrations recorded in the migrations table
    """

    module_name: str
    database_name: str
    tables: tuple[TableDefinition, ...] = ()
    migration_api_version: int = MIGRATION_API_VERSION
    applied_migrations: tuple[MigrationVersion, ...] = field(default_factory=tuple)

    @property
    def applied_versions(self) -> list[str]:
        return [migration.version for migration in self.applied_migrations]

    def find_table(self, name: str, schema: str = "public") -> Optional[TableDefinition]:
        return next((t for t in self.tables if t.name == name and t.schema == schema), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "module_name": self.module_name,
            "database_name": self.database_name,
            "tables": [table.to_dict() for table in self.tables],
            "migration_api_version": self.migration_api_version,
            "applied_migrations": [m.to_dict() for m in self.applied_migrations],
        }
