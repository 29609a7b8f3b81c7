"""Read column metadata for one table."""

import logging

from fraiseql_schema.decoders import column_type_from_sql, decode_is_nullable
from fraiseql_schema.exceptions import CatalogParseError
from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.introspection._query import run_catalog_query
from fraiseql_schema.models import ColumnDefinition, ColumnType
from fraiseql_schema.rows import ColumnRow, decode_column_row

logger = logging.getLogger(__name__)

# USER-DEFINED types (pgvector's among them) report their real name in udt_name.
# atttypmod of a vector column holds its declared dimension.
COLUMNS_QUERY = """
SELECT c.column_name::text,
       c.column_default::text,
       c.is_nullable::text,
       CASE WHEN c.data_type = 'USER-DEFINED' THEN c.udt_name ELSE c.data_type END::text,
       CASE WHEN c.udt_name = ANY(%s) THEN a.atttypmod ELSE NULL END
FROM information_schema.columns c
JOIN pg_catalog.pg_namespace n ON n.nspname = c.table_schema
JOIN pg_catalog.pg_class t ON t.relnamespace = n.oid AND t.relname = c.table_name
JOIN pg_catalog.pg_attribute a ON a.attrelid = t.oid AND a.attname = c.column_name
WHERE c.table_schema = %s AND c.table_name = %s
ORDER BY c.ordinal_position
"""


def _to_column(row: ColumnRow) -> ColumnDefinition:
    try:
        is_nullable = decode_is_nullable(row.is_nullable)
    except ValueError as e:
        raise CatalogParseError("columns", str(e), position=2) from e

    column_type = column_type_from_sql(row.data_type)

    vector_dimension = None
    if column_type.is_vector_type:
        if row.vector_size is not None and row.vector_size > 0:
            vector_dimension = row.vector_size
        else:
            logger.debug(f"Vector column '{row.name}' has no declared dimension")

    return ColumnDefinition(
        name=row.name,
        column_type=column_type,
        is_nullable=is_nullable,
        column_default=row.column_default,
        vector_dimension=vector_dimension,
    )


def read_columns(gateway: CatalogGateway, schema: str, table: str) -> list[ColumnDefinition]:
    """
    Get all columns for a table in ordinal position order.

    The query sorts by ordinal position; the result keeps that order.

    Raises:
        CatalogParseError: If a row does not have the expected shape
        CatalogQueryError: If the query itself fails
    """
    qualified = f"{schema}.{table}"
    vector_types = [t.value for t in ColumnType.vector_types()]
    rows = run_catalog_query(
        gateway, "columns", qualified, COLUMNS_QUERY, (vector_types, schema, table)
    )

    try:
        return [_to_column(decode_column_row(row)) for row in rows]
    except CatalogParseError as e:
        raise e.for_table(qualified) from e
