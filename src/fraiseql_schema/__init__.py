"""
fraiseql-schema - PostgreSQL schema introspection

Reads tables, columns, indexes (including pgvector hnsw/ivfflat indexes) and
foreign keys from the system catalogs of a live database into an immutable
snapshot for schema diffing and migration planning.
"""

from fraiseql_schema.analyzer import SchemaAnalyzer, analyze
from fraiseql_schema.config import AnalyzerConfig
from fraiseql_schema.exceptions import (
    AnalysisTimeoutError,
    CatalogParseError,
    CatalogQueryError,
    DatabaseConnectionError,
    MissingAuxiliaryTableError,
    SchemaAnalysisError,
)
from fraiseql_schema.gateway import CatalogGateway, PooledGateway, PsycopgGateway
from fraiseql_schema.models import (
    MIGRATION_API_VERSION,
    ColumnDefinition,
    ColumnType,
    ForeignKeyAction,
    ForeignKeyDefinition,
    ForeignKeyMatchType,
    IndexDefinition,
    IndexElementDefinition,
    IndexElementType,
    MigrationVersion,
    SchemaSnapshot,
    TableDefinition,
    VectorDistanceFunction,
)

__version__ = "0.1.0"

__all__ = [
    "MIGRATION_API_VERSION",
    "AnalysisTimeoutError",
    "AnalyzerConfig",
    "CatalogGateway",
    "CatalogParseError",
    "CatalogQueryError",
    "ColumnDefinition",
    "ColumnType",
    "DatabaseConnectionError",
    "ForeignKeyAction",
    "ForeignKeyDefinition",
    "ForeignKeyMatchType",
    "IndexDefinition",
    "IndexElementDefinition",
    "IndexElementType",
    "MigrationVersion",
    "MissingAuxiliaryTableError",
    "PooledGateway",
    "PsycopgGateway",
    "SchemaAnalysisError",
    "SchemaAnalyzer",
    "SchemaSnapshot",
    "TableDefinition",
    "VectorDistanceFunction",
    "analyze",
]
