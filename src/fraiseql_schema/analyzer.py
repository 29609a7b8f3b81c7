"""Build a complete schema snapshot from a live PostgreSQL catalog.

Per-table reads (columns, indexes, foreign keys) are independent read-only
queries. With a gateway that supports concurrency they run on a thread pool;
the first failure or an expired timeout cancels the rest and aborts the
whole analysis, since a partial snapshot would mislead the diff.
"""

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Optional

from fraiseql_schema.config import AnalyzerConfig
from fraiseql_schema.exceptions import AnalysisTimeoutError, DatabaseConnectionError
from fraiseql_schema.gateway import CatalogGateway
from fraiseql_schema.introspection import (
    list_tables,
    read_applied_migrations,
    read_columns,
    read_foreign_keys,
    read_indexes,
)
from fraiseql_schema.models import (
    MIGRATION_API_VERSION,
    SchemaSnapshot,
    TableDefinition,
)
from fraiseql_schema.rows import TableRow

logger = logging.getLogger(__name__)

CURRENT_DATABASE_QUERY = "SELECT current_database()"

# Columns, foreign keys and indexes
QUERIES_PER_TABLE = 3


class SchemaAnalyzer:
    """
    Introspect a PostgreSQL database into a ``SchemaSnapshot``.

    Nothing is cached: every ``analyze()`` call re-reads the live catalog.

    Example:
        >>> analyzer = SchemaAnalyzer(AnalyzerConfig())
        >>> with analyzer.config.connect() as gateway:
        ...     snapshot = analyzer.analyze(gateway, module_name="billing")
    """

    def __init__(self, config: Optional[AnalyzerConfig] = None):
        self.config = config or AnalyzerConfig()

    def analyze(
        self, gateway: CatalogGateway, module_name: Optional[str] = None
    ) -> SchemaSnapshot:
        """
        Analyze the database behind ``gateway``.

        Args:
            gateway: Catalog gateway for the target database
            module_name: Module stamped on the snapshot (defaults to config)

        Returns:
            Fully populated snapshot

        Raises:
            DatabaseConnectionError: If the database cannot be queried at all
            CatalogParseError: If a catalog row has an unexpected shape
            CatalogQueryError: If a per-table catalog query fails
            AnalysisTimeoutError: If the configured timeout expires
        """
        database_name = self._current_database(gateway)
        logger.info(f"Analyzing schema of database '{database_name}'")

        applied_migrations = read_applied_migrations(
            gateway,
            table=self.config.migrations_table,
            schema=self.config.migrations_schema,
        )

        table_rows = list_tables(gateway, exclude_schemas=self.config.exclude_schemas)
        tables = self._read_tables(gateway, table_rows)

        logger.info(
            f"Analyzed {len(tables)} tables and {len(applied_migrations)} applied "
            f"migrations in '{database_name}'"
        )
        return SchemaSnapshot(
            module_name=module_name or self.config.module_name,
            database_name=database_name,
            tables=tuple(tables),
            migration_api_version=MIGRATION_API_VERSION,
            applied_migrations=tuple(applied_migrations),
        )

    def _current_database(self, gateway: CatalogGateway) -> str:
        try:
            rows = gateway.run_query(CURRENT_DATABASE_QUERY)
        except gateway.error_types as e:
            raise DatabaseConnectionError(e) from e
        return rows[0][0]

    def _read_tables(
        self, gateway: CatalogGateway, table_rows: list[TableRow]
    ) -> list[TableDefinition]:
        if not table_rows:
            return []

        if not gateway.supports_concurrency or self.config.max_workers == 1:
            return self._read_tables_sequentially(gateway, table_rows)

        return self._read_tables_concurrently(gateway, table_rows)

    def _read_tables_sequentially(
        self, gateway: CatalogGateway, table_rows: list[TableRow]
    ) -> list[TableDefinition]:
        logger.debug("Reading tables sequentially")
        timeout = self.config.timeout
        deadline = None if timeout is None else time.monotonic() + timeout

        tables = []
        for position, row in enumerate(table_rows):
            # A query already running is not interrupted; the deadline is
            # checked between tables
            if deadline is not None and time.monotonic() >= deadline:
                remaining = len(table_rows) - position
                raise AnalysisTimeoutError(timeout, remaining * QUERIES_PER_TABLE)
            tables.append(self._read_table(gateway, row))
        return tables

    def _read_table(self, gateway: CatalogGateway, row: TableRow) -> TableDefinition:
        logger.debug(f"Reading {row.schema}.{row.name}")
        return TableDefinition(
            schema=row.schema,
            name=row.name,
            columns=tuple(read_columns(gateway, row.schema, row.name)),
            foreign_keys=tuple(read_foreign_keys(gateway, row.schema, row.name)),
            indexes=tuple(read_indexes(gateway, row.schema, row.name)),
        )

    def _read_tables_concurrently(
        self, gateway: CatalogGateway, table_rows: list[TableRow]
    ) -> list[TableDefinition]:
        executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="fraiseql-schema"
        )
        try:
            pending: list[tuple[TableRow, Future, Future, Future]] = [
                (
                    row,
                    executor.submit(read_columns, gateway, row.schema, row.name),
                    executor.submit(read_foreign_keys, gateway, row.schema, row.name),
                    executor.submit(read_indexes, gateway, row.schema, row.name),
                )
                for row in table_rows
            ]
            futures = [f for _, *table_futures in pending for f in table_futures]

            done, not_done = wait(
                futures, timeout=self.config.timeout, return_when=FIRST_EXCEPTION
            )

            # Re-raise the first failure in submission order
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()

            if not_done:
                raise AnalysisTimeoutError(self.config.timeout, len(not_done))

            return [
                TableDefinition(
                    schema=row.schema,
                    name=row.name,
                    columns=tuple(columns.result()),
                    foreign_keys=tuple(foreign_keys.result()),
                    indexes=tuple(indexes.result()),
                )
                for row, columns, foreign_keys, indexes in pending
            ]
        finally:
            # Queries already running finish in the background; their results are dropped
            executor.shutdown(wait=False, cancel_futures=True)


def analyze(
    gateway: CatalogGateway,
    module_name: Optional[str] = None,
    config: Optional[AnalyzerConfig] = None,
) -> SchemaSnapshot:
    """Analyze the database behind ``gateway`` with a one-off analyzer."""
    return SchemaAnalyzer(config).analyze(gateway, module_name=module_name)
