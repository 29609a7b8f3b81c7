"""Tests for SchemaAnalyzer orchestration."""

import threading

import psycopg
import pytest

from conftest import FakeGateway, column_row, index_row
from fraiseql_schema import (
    AnalysisTimeoutError,
    AnalyzerConfig,
    CatalogParseError,
    CatalogQueryError,
    ColumnType,
    DatabaseConnectionError,
    ForeignKeyAction,
    MigrationVersion,
    SchemaAnalysisError,
    SchemaAnalyzer,
    VectorDistanceFunction,
    analyze,
)
from fraiseql_schema.models import MIGRATION_API_VERSION


def test_orders_snapshot(orders_gateway: FakeGateway):
    """Should capture FK, vector column and hnsw index of the orders table."""
    snapshot = SchemaAnalyzer().analyze(orders_gateway, module_name="shop")

    orders = snapshot.find_table("orders")
    assert orders is not None

    assert len(orders.foreign_keys) == 1
    fk = orders.foreign_keys[0]
    assert fk.on_delete is ForeignKeyAction.CASCADE
    assert fk.columns == ("customer_id",)
    assert fk.reference_table == "customers"
    assert fk.reference_columns == ("id",)

    embedding = orders.find_column("embedding")
    assert embedding.column_type is ColumnType.VECTOR
    assert embedding.vector_dimension == 768

    vector_indexes = [i for i in orders.indexes if i.type == "hnsw"]
    assert len(vector_indexes) == 1
    assert vector_indexes[0].vector_distance_function is VectorDistanceFunction.COSINE
    assert vector_indexes[0].vector_column_type is ColumnType.VECTOR
    assert vector_indexes[0].parameters == {"m": "16"}


def test_snapshot_header(orders_gateway: FakeGateway):
    """Should stamp database name, module name and migration API version."""
    snapshot = SchemaAnalyzer().analyze(orders_gateway, module_name="shop")

    assert snapshot.database_name == "fraiseql_test"
    assert snapshot.module_name == "shop"
    assert snapshot.migration_api_version == MIGRATION_API_VERSION
    assert snapshot.applied_migrations == ()


def test_module_name_defaults_to_config(orders_gateway: FakeGateway):
    """Should fall back to the configured module name."""
    config = AnalyzerConfig(module_name="inventory")

    snapshot = analyze(orders_gateway, config=config)

    assert snapshot.module_name == "inventory"


def test_column_order_preserved(orders_gateway: FakeGateway):
    """Should keep ordinal column order for every table."""
    snapshot = SchemaAnalyzer().analyze(orders_gateway)

    orders = snapshot.find_table("orders")
    assert [c.name for c in orders.columns] == ["id", "customer_id", "embedding"]


def test_applied_migrations_included(orders_gateway: FakeGateway):
    """Should include applied migrations read from the configured table."""
    orders_gateway.migrations = [MigrationVersion("shop", "20240301000000000")]
    config = AnalyzerConfig(migrations_table="shop_migrations", migrations_schema="ops")

    snapshot = SchemaAnalyzer(config).analyze(orders_gateway)

    assert snapshot.applied_versions == ["20240301000000000"]
    assert orders_gateway.find_all_calls == [(MigrationVersion, "shop_migrations", "ops")]


def test_empty_database():
    """Should produce a snapshot with zero tables."""
    snapshot = SchemaAnalyzer().analyze(FakeGateway())

    assert snapshot.tables == ()


def test_connection_failure():
    """Should raise DatabaseConnectionError when the first query fails."""
    gateway = FakeGateway()
    gateway.errors["database"] = psycopg.OperationalError("connection refused")

    with pytest.raises(DatabaseConnectionError, match="connection refused"):
        SchemaAnalyzer().analyze(gateway)

    assert [stage for stage, _ in gateway.queries] == ["database"]


def test_no_caching_between_calls(orders_gateway: FakeGateway):
    """Should re-query the catalog on every call."""
    analyzer = SchemaAnalyzer()

    first = analyzer.analyze(orders_gateway)
    orders_gateway.columns[("public", "customers")].append(column_row("email", "text", "YES"))
    second = analyzer.analyze(orders_gateway)

    assert len(first.find_table("customers").columns) == 2
    assert len(second.find_table("customers").columns) == 3


class TestConcurrentDispatch:
    """Tests for thread pool dispatch of per-table reads."""

    def test_concurrent_matches_sequential(self, orders_gateway: FakeGateway) -> None:
        """Test that concurrent dispatch yields the same snapshot as sequential."""
        sequential = SchemaAnalyzer().analyze(orders_gateway)

        orders_gateway.supports_concurrency = True
        concurrent = SchemaAnalyzer(AnalyzerConfig(max_workers=4)).analyze(orders_gateway)

        assert concurrent == sequential

    def test_table_order_follows_enumeration(self, orders_gateway: FakeGateway) -> None:
        """Test that tables keep enumeration order regardless of completion order."""
        orders_gateway.supports_concurrency = True

        snapshot = SchemaAnalyzer(AnalyzerConfig(max_workers=4)).analyze(orders_gateway)

        assert [t.name for t in snapshot.tables] == ["customers", "orders"]

    def test_single_worker_is_sequential(self, orders_gateway: FakeGateway) -> None:
        """Test that max_workers=1 runs all queries on the calling thread."""
        orders_gateway.supports_concurrency = True
        threads = set()
        original = orders_gateway.run_query

        def recording_run_query(query, params=None):
            threads.add(threading.get_ident())
            return original(query, params)

        orders_gateway.run_query = recording_run_query

        SchemaAnalyzer(AnalyzerConfig(max_workers=1)).analyze(orders_gateway)

        assert threads == {threading.get_ident()}

    def test_parse_error_aborts_analysis(self, orders_gateway: FakeGateway) -> None:
        """Test that a malformed row in any table aborts the whole analysis."""
        orders_gateway.supports_concurrency = True
        orders_gateway.indexes[("public", "orders")].append(
            index_row("broken_idx", ["a", "b"], is_column=[True])
        )

        with pytest.raises(CatalogParseError) as exc_info:
            SchemaAnalyzer(AnalyzerConfig(max_workers=4)).analyze(orders_gateway)

        assert exc_info.value.table == "public.orders"

    def test_timeout_abandons_analysis(self, orders_gateway: FakeGateway) -> None:
        """Test that an expired timeout raises and discards partial results."""
        orders_gateway.supports_concurrency = True
        release = threading.Event()
        orders_gateway.blockers["indexes"] = release
        config = AnalyzerConfig(max_workers=2, timeout=0.05)

        try:
            with pytest.raises(AnalysisTimeoutError) as exc_info:
                SchemaAnalyzer(config).analyze(orders_gateway)
        finally:
            release.set()

        assert exc_info.value.pending > 0


def test_table_enumeration_failure():
    """Should wrap a failed table listing in the analysis error hierarchy."""
    gateway = FakeGateway()
    gateway.errors["tables"] = psycopg.errors.InsufficientPrivilege("permission denied")

    with pytest.raises(SchemaAnalysisError) as exc_info:
        SchemaAnalyzer().analyze(gateway)

    assert isinstance(exc_info.value, CatalogQueryError)
    assert exc_info.value.stage == "tables"
    assert exc_info.value.table is None


def test_connection_failure_with_other_driver():
    """Should raise DatabaseConnectionError for errors the gateway declares."""
    gateway = FakeGateway()
    gateway.error_types = (RuntimeError,)
    gateway.errors["database"] = RuntimeError("socket closed")

    with pytest.raises(DatabaseConnectionError, match="socket closed"):
        SchemaAnalyzer().analyze(gateway)


def test_undeclared_errors_propagate_unwrapped():
    """Should let errors outside the gateway's error types through as-is."""
    gateway = FakeGateway()
    gateway.errors["database"] = KeyError("bug")

    with pytest.raises(KeyError):
        SchemaAnalyzer().analyze(gateway)


class TestSequentialTimeout:
    """Tests for the timeout on the single-connection path."""

    def test_timeout_stops_before_next_table(self, orders_gateway: FakeGateway) -> None:
        """Test that an expired timeout raises instead of reading further tables."""
        release = threading.Event()
        orders_gateway.blockers["indexes"] = release
        timer = threading.Timer(0.2, release.set)
        timer.start()

        try:
            with pytest.raises(AnalysisTimeoutError) as exc_info:
                SchemaAnalyzer(AnalyzerConfig(timeout=0.05)).analyze(orders_gateway)
        finally:
            timer.cancel()
            release.set()

        # customers was read in full; orders was never queried
        assert exc_info.value.pending == 3
        read = {tuple(params[-2:]) for stage, params in orders_gateway.queries
                if stage in ("columns", "indexes", "foreign_keys")}
        assert read == {("public", "customers")}

    def test_finishes_within_timeout(self, orders_gateway: FakeGateway) -> None:
        """Test that a generous timeout does not affect the snapshot."""
        expected = SchemaAnalyzer().analyze(orders_gateway)

        snapshot = SchemaAnalyzer(AnalyzerConfig(timeout=30)).analyze(orders_gateway)

        assert snapshot == expected
