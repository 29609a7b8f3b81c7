"""Enumerate user tables."""

import logging
from collections.abc import Iterable

from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.introspection._query import run_catalog_query
from fraiseql_schema.rows import TableRow, decode_table_row

logger = logging.getLogger(__name__)

SYSTEM_SCHEMAS = ("pg_catalog", "information_schema")

TABLES_QUERY = """
SELECT schemaname::text, tablename::text
FROM pg_catalog.pg_tables
WHERE schemaname <> ALL(%s)
"""


def list_tables(gateway: CatalogGateway, exclude_schemas: Iterable[str] = ()) -> list[TableRow]:
    """
    List every (schema, table) pair outside the system schemas.

    Rows come back in catalog order, which is not guaranteed to be sorted.

    Args:
        gateway: Catalog gateway
        exclude_schemas: Extra schemas to skip

    Returns:
        Decoded table rows

    Raises:
        CatalogQueryError: If the enumeration query fails
    """
    excluded = list(dict.fromkeys([*SYSTEM_SCHEMAS, *exclude_schemas]))
    rows = run_catalog_query(gateway, "tables", None, TABLES_QUERY, (excluded,))
    tables = [decode_table_row(row) for row in rows]
    logger.debug(f"Found {len(tables)} tables (excluding schemas: {', '.join(excluded)})")
    return tables
