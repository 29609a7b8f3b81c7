"""Per-object catalog readers used by the schema analyzer."""

from fraiseql_schema.introspection.columns import read_columns
from fraiseql_schema.introspection.foreign_keys import read_foreign_keys
from fraiseql_schema.introspection.indexes import read_indexes
from fraiseql_schema.introspection.migrations import (
    get_installed_migration_versions,
    read_applied_migrations,
)
from fraiseql_schema.introspection.tables import list_tables

__all__ = [
    "get_installed_migration_versions",
    "list_tables",
    "read_applied_migrations",
    "read_columns",
    "read_foreign_keys",
    "read_indexes",
]
