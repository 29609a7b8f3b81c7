"""Read index metadata for one table, including pgvector index details."""

import logging

from fraiseql_schema.decoders import (
    parse_opclass_name,
    parse_reloptions,
    remove_surrounding_quotes,
)
from fraiseql_schema.exceptions import CatalogParseError
from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.introspection._query import run_catalog_query
from fraiseql_schema.models import IndexDefinition, IndexElementDefinition, IndexElementType
from fraiseql_schema.rows import IndexRow, decode_index_row

logger = logging.getLogger(__name__)

# Access methods provided by pgvector
VECTOR_INDEX_METHODS = ("hnsw", "ivfflat")

# Columns: name, tablespace, unique, primary, per-key definitions, per-key
# is-column flags, predicate, access method, reloptions, per-key opclasses.
#
# pg_get_indexdef(indexrelid, k, true) renders key position k as a column
# name or an expression. An indkey entry of 0 marks an expression. The
# tablespace is NULL when the index lives in the database default.
INDEXES_QUERY = """
SELECT i.relname::text,
       ts.spcname::text,
       ix.indisunique,
       ix.indisprimary,
       ARRAY(
           SELECT pg_get_indexdef(ix.indexrelid, k + 1, true)
           FROM generate_subscripts(ix.indkey, 1) AS k
           ORDER BY k
       )::text[],
       ARRAY(
           SELECT key > 0
           FROM unnest(ix.indkey::int[]) WITH ORDINALITY AS keys(key, ord)
           ORDER BY ord
       )::boolean[],
       pg_get_expr(ix.indpred, ix.indrelid),
       am.amname::text,
       i.reloptions::text[],
       ARRAY(
           SELECT oc.opcname
           FROM unnest(ix.indclass::oid[]) WITH ORDINALITY AS cls(opclass_oid, ord)
           JOIN pg_catalog.pg_opclass oc ON oc.oid = cls.opclass_oid
           ORDER BY cls.ord
       )::text[]
FROM pg_catalog.pg_index ix
JOIN pg_catalog.pg_class t ON t.oid = ix.indrelid
JOIN pg_catalog.pg_namespace n ON n.oid = t.relnamespace
JOIN pg_catalog.pg_class i ON i.oid = ix.indexrelid
LEFT JOIN pg_catalog.pg_tablespace ts ON ts.oid = i.reltablespace
JOIN pg_catalog.pg_am am ON am.oid = i.relam
WHERE n.nspname = %s AND t.relname = %s
"""


def _to_elements(row: IndexRow) -> tuple[IndexElementDefinition, ...]:
    elements = []
    for definition, is_column in zip(row.key_definitions, row.key_is_column):
        if is_column:
            elements.append(
                IndexElementDefinition(
                    type=IndexElementType.COLUMN,
                    definition=remove_surrounding_quotes(definition),
                )
            )
        else:
            elements.append(
                IndexElementDefinition(type=IndexElementType.EXPRESSION, definition=definition)
            )
    return tuple(elements)


def _to_index(row: IndexRow) -> IndexDefinition:
    parameters = None
    distance_function = None
    vector_column_type = None

    if row.access_method in VECTOR_INDEX_METHODS:
        parameters = parse_reloptions(row.reloptions) or None

        # The first operator class carries the distance metric
        if row.opclass_names:
            vector_column_type, distance_function = parse_opclass_name(row.opclass_names[0])

    return IndexDefinition(
        index_name=row.name,
        table_space=row.table_space,
        type=row.access_method,
        is_unique=row.is_unique,
        is_primary=row.is_primary,
        elements=_to_elements(row),
        predicate=row.predicate,
        parameters=parameters,
        vector_distance_function=distance_function,
        vector_column_type=vector_column_type,
    )


def read_indexes(gateway: CatalogGateway, schema: str, table: str) -> list[IndexDefinition]:
    """
    Get all indexes for a table.

    For hnsw and ivfflat indexes, storage options become ``parameters`` and
    the first operator class name gives the vector type and distance metric.

    Raises:
        CatalogParseError: If key definitions and is-column flags do not line up
        CatalogQueryError: If the query itself fails
    """
    qualified = f"{schema}.{table}"
    rows = run_catalog_query(gateway, "indexes", qualified, INDEXES_QUERY, (schema, table))

    try:
        indexes = [_to_index(decode_index_row(row)) for row in rows]
    except CatalogParseError as e:
        raise e.for_table(qualified) from e

    logger.debug(f"Read {len(indexes)} indexes for {qualified}")
    return indexes
