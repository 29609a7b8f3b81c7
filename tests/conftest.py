"""Pytest configuration and shared fixtures."""

import threading
from collections.abc import Sequence
from typing import Any, Optional

import pytest

from fraiseql_schema.exceptions import MissingAuxiliaryTableError
from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.models import MigrationVersion


class FakeGateway(CatalogGateway):
    """
    In-memory gateway returning canned catalog rows.

    Queries are routed by the catalog object they read; per-table stages are
    keyed by the trailing (schema, table) parameters.
    """

    def __init__(
        self,
        database: str = "fraiseql_test",
        tables: Optional[list[tuple[str, str]]] = None,
        columns: Optional[dict[tuple[str, str], list[tuple]]] = None,
        indexes: Optional[dict[tuple[str, str], list[tuple]]] = None,
        foreign_keys: Optional[dict[tuple[str, str], list[tuple]]] = None,
        migrations: Optional[list[MigrationVersion]] = None,
        concurrent: bool = False,
    ):
        self.database = database
        self.tables = tables or []
        self.columns = columns or {}
        self.indexes = indexes or {}
        self.foreign_keys = foreign_keys or {}
        self.migrations = migrations
        self.supports_concurrency = concurrent
        self.errors: dict[str, Exception] = {}
        self.blockers: dict[str, threading.Event] = {}
        self.queries: list[tuple[str, Any]] = []
        self.find_all_calls: list[tuple[type, Optional[str], Optional[str]]] = []

    @staticmethod
    def stage_of(query: str) -> str:
        if "current_database()" in query:
            return "database"
        if "information_schema.columns" in query:
            return "columns"
        if "pg_constraint" in query:
            return "foreign_keys"
        # Checked before pg_tables: the index query joins pg_tablespace
        if "pg_index" in query:
            return "indexes"
        if "pg_tables" in query:
            return "tables"
        raise AssertionError(f"Unexpected query: {query}")

    def run_query(
        self, query: str, params: Optional[Sequence[Any]] = None
    ) -> list[tuple[Any, ...]]:
        stage = self.stage_of(query)
        self.queries.append((stage, params))

        if stage in self.blockers:
            self.blockers[stage].wait(timeout=5)
        if stage in self.errors:
            raise self.errors[stage]

        if stage == "database":
            return [(self.database,)]
        if stage == "tables":
            excluded = set(params[0])
            return [t for t in self.tables if t[0] not in excluded]

        key = tuple(params[-2:])
        source = {
            "columns": self.columns,
            "indexes": self.indexes,
            "foreign_keys": self.foreign_keys,
        }[stage]
        return list(source.get(key, []))

    def find_all(self, record_type, table=None, schema=None):
        self.find_all_calls.append((record_type, table, schema))
        if self.migrations is None:
            raise MissingAuxiliaryTableError(table or record_type.__table__)
        return list(self.migrations)


def column_row(
    name: str,
    data_type: str = "integer",
    is_nullable: str = "NO",
    default: Optional[str] = None,
    vector_size: Optional[int] = None,
) -> tuple:
    """Build a row as returned by the columns query."""
    return (name, default, is_nullable, data_type, vector_size)


def index_row(
    name: str,
    keys: list[str],
    is_column: Optional[list[bool]] = None,
    method: str = "btree",
    unique: bool = False,
    primary: bool = False,
    table_space: Optional[str] = None,
    predicate: Optional[str] = None,
    reloptions: Optional[list[str]] = None,
    opclasses: Optional[list[str]] = None,
) -> tuple:
    """Build a row as returned by the indexes query."""
    if is_column is None:
        is_column = [True] * len(keys)
    return (
        name,
        table_space,
        unique,
        primary,
        keys,
        is_column,
        predicate,
        method,
        reloptions,
        opclasses if opclasses is not None else [],
    )


def foreign_key_row(
    name: str,
    columns: list[str],
    reference_table: str,
    reference_columns: list[str],
    on_update: str = "a",
    on_delete: str = "a",
    match: str = "s",
    reference_schema: str = "public",
) -> tuple:
    """Build a row as returned by the foreign keys query."""
    return (
        name,
        on_update,
        on_delete,
        match,
        columns,
        reference_table,
        reference_schema,
        reference_columns,
    )


@pytest.fixture
def orders_gateway() -> FakeGateway:
    """
    Catalog for a two-table schema with a pgvector column and hnsw index.

    orders(id pk, customer_id fk -> customers.id on delete cascade, embedding vector(768))
    """
    return FakeGateway(
        tables=[("public", "customers"), ("public", "orders")],
        columns={
            ("public", "customers"): [
                column_row("id", "bigint", default="nextval('customers_id_seq'::regclass)"),
                column_row("name", "text"),
            ],
            ("public", "orders"): [
                column_row("id", "bigint", default="nextval('orders_id_seq'::regclass)"),
                column_row("customer_id", "bigint"),
                column_row("embedding", "vector", is_nullable="YES", vector_size=768),
            ],
        },
        indexes={
            ("public", "customers"): [
                index_row("customers_pkey", ["id"], unique=True, primary=True,
                          opclasses=["int8_ops"]),
            ],
            ("public", "orders"): [
                index_row("orders_pkey", ["id"], unique=True, primary=True,
                          opclasses=["int8_ops"]),
                index_row(
                    "orders_embedding_idx",
                    ["embedding"],
                    method="hnsw",
                    reloptions=["m=16"],
                    opclasses=["vector_cosine_ops"],
                ),
            ],
        },
        foreign_keys={
            ("public", "orders"): [
                foreign_key_row(
                    "orders_customer_id_fkey",
                    ["customer_id"],
                    "customers",
                    ["id"],
                    on_delete="c",
                ),
            ],
        },
    )
