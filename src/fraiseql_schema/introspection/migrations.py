"""Best-effort read of applied migration versions."""

import logging
from typing import Optional

from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.models import MigrationVersion

logger = logging.getLogger(__name__)


def read_applied_migrations(
    gateway: CatalogGateway,
    table: Optional[str] = None,
    schema: Optional[str] = None,
) -> list[MigrationVersion]:
    """
    Read applied migrations, returning an empty list if they cannot be read.

    A missing table is the normal state of a fresh database, so any failure
    is logged and swallowed; it never aborts schema analysis.

    Args:
        gateway: Catalog gateway
        table: Migrations table name (defaults to ``MigrationVersion.__table__``)
        schema: Schema of the migrations table (defaults to the search path)

    Returns:
        Applied migrations, or ``[]`` on failure
    """
    try:
        return gateway.find_all(MigrationVersion, table=table, schema=schema)
    except Exception as e:
        logger.warning(f"Failed to get installed migrations: {e}")
        return []


# Public name used by callers outside an analysis run
get_installed_migration_versions = read_applied_migrations
