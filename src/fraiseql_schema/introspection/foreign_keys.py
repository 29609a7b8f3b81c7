"""Read foreign key constraints for one table."""

from fraiseql_schema.decoders import decode_foreign_key_action, decode_match_type
from fraiseql_schema.exceptions import CatalogParseError
from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.introspection._query import run_catalog_query
from fraiseql_schema.models import ForeignKeyDefinition
from fraiseql_schema.rows import ForeignKeyRow, decode_foreign_key_row

# conkey/confkey hold attribute numbers; resolve them to names against the
# owning and referenced table, keeping array order.
FOREIGN_KEYS_QUERY = """
SELECT con.conname::text,
       con.confupdtype::text,
       con.confdeltype::text,
       con.confmatchtype::text,
       ARRAY(
           SELECT a.attname::text
           FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
           JOIN pg_catalog.pg_attribute a ON a.attrelid = t.oid AND a.attnum = k.attnum
           ORDER BY k.ord
       ),
       r.relname::text,
       nr.nspname::text,
       ARRAY(
           SELECT a.attname::text
           FROM unnest(con.confkey) WITH ORDINALITY AS k(attnum, ord)
           JOIN pg_catalog.pg_attribute a ON a.attrelid = r.oid AND a.attnum = k.attnum
           ORDER BY k.ord
       )
FROM pg_catalog.pg_constraint con
JOIN pg_catalog.pg_class t ON t.oid = con.conrelid
JOIN pg_catalog.pg_class r ON r.oid = con.confrelid
JOIN pg_catalog.pg_namespace nt ON nt.oid = t.relnamespace
JOIN pg_catalog.pg_namespace nr ON nr.oid = r.relnamespace
WHERE con.contype = 'f' AND nt.nspname = %s AND t.relname = %s
"""


def _to_foreign_key(row: ForeignKeyRow) -> ForeignKeyDefinition:
    return ForeignKeyDefinition(
        constraint_name=row.constraint_name,
        columns=tuple(row.columns),
        reference_table_schema=row.reference_schema,
        reference_table=row.reference_table,
        reference_columns=tuple(row.reference_columns),
        on_update=decode_foreign_key_action(row.update_code),
        on_delete=decode_foreign_key_action(row.delete_code),
        match_type=decode_match_type(row.match_code),
    )


def read_foreign_keys(
    gateway: CatalogGateway, schema: str, table: str
) -> list[ForeignKeyDefinition]:
    """
    Get all foreign keys declared on a table.

    Unknown action or match codes decode to ``None``.

    Raises:
        CatalogParseError: If a row does not have the expected shape
        CatalogQueryError: If the query itself fails
    """
    qualified = f"{schema}.{table}"
    rows = run_catalog_query(
        gateway, "foreign_keys", qualified, FOREIGN_KEYS_QUERY, (schema, table)
    )

    try:
        return [_to_foreign_key(decode_foreign_key_row(row)) for row in rows]
    except CatalogParseError as e:
        raise e.for_table(qualified) from e
