"""Catalog query gateways.

A gateway runs one read-only statement and hands back rows as tuples in the
query's column order. ``PsycopgGateway`` wraps a single connection and is
serial; ``PooledGateway`` checks a connection out of a psycopg pool per
statement so catalog queries can run concurrently.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Optional, TypeVar

import psycopg
from psycopg import Connection, sql
from psycopg_pool import ConnectionPool

from fraiseql_schema.exceptions import MissingAuxiliaryTableError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class CatalogGateway(ABC):
    """
    Minimal database surface needed by the schema analyzer.

    Subclasses must return rows as tuples whose values keep the driver's
    native types (str, bool, int, list, None).
    """

    supports_concurrency: bool = False
    # Driver errors that mean a statement failed, as raised by run_query
    error_types: tuple[type[BaseException], ...] = (psycopg.Error,)

    @abstractmethod
    def run_query(
        self, query: str, params: Optional[Sequence[Any]] = None
    ) -> list[tuple[Any, ...]]:
        """
        Execute a read-only statement and return all rows.

        Args:
            query: SQL text with ``%s`` placeholders
            params: Values bound to the placeholders

        Returns:
            Rows in the order the statement produced them
        """
        raise NotImplementedError

    @abstractmethod
    def find_all(
        self,
        record_type: type[RecordT],
        table: Optional[str] = None,
        schema: Optional[str] = None,
    ) -> list[RecordT]:
        """
        Read every row of the table backing ``record_type``.

        Raises:
            MissingAuxiliaryTableError: If the table does not exist
        """
        raise NotImplementedError


def select_all_statement(
    record_type: type, table: Optional[str] = None, schema: Optional[str] = None
) -> sql.Composed:
    """Compose ``SELECT <columns> FROM [schema.]table`` for a record type."""
    table_name = table or record_type.__table__
    target = sql.Identifier(schema, table_name) if schema else sql.Identifier(table_name)
    columns = sql.SQL(", ").join(sql.Identifier(c) for c in record_type.__columns__)
    return sql.SQL("SELECT {columns} FROM {target}").format(columns=columns, target=target)


class _PsycopgGatewayBase(CatalogGateway):
    """Shared statement execution for psycopg-backed gateways."""

    @abstractmethod
    def _connection(self) -> AbstractContextManager[Connection]:
        """Yield a connection inside a transaction block that is closed afterwards."""
        raise NotImplementedError

    def run_query(
        self, query: str, params: Optional[Sequence[Any]] = None
    ) -> list[tuple[Any, ...]]:
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                return cur.fetchall()

    def find_all(
        self,
        record_type: type[RecordT],
        table: Optional[str] = None,
        schema: Optional[str] = None,
    ) -> list[RecordT]:
        statement = select_all_statement(record_type, table, schema)
        try:
            with self._connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(statement)
                    rows = cur.fetchall()
        except psycopg.errors.UndefinedTable as e:
            raise MissingAuxiliaryTableError(table or record_type.__table__) from e

        return [record_type.from_row(row) for row in rows]


class PsycopgGateway(_PsycopgGatewayBase):
    """
    Gateway over a single psycopg connection.

    Statements run one at a time, each in its own transaction block (a
    savepoint if the caller already opened a transaction), so a failed
    statement does not abort the caller's session.
    """

    supports_concurrency = False

    def __init__(self, conn: Connection):
        """
        Initialize gateway.

        Args:
            conn: Open PostgreSQL connection, owned by the caller
        """
        self.conn = conn
        self._lock = threading.Lock()

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        with self._lock:
            with self.conn.transaction():
                yield self.conn


class PooledGateway(_PsycopgGatewayBase):
    """
    Gateway over a psycopg connection pool, one connection per statement.

    Use as a context manager, or call ``close()`` when done.
    """

    supports_concurrency = True

    def __init__(self, conninfo: str, max_size: int = 8):
        """
        Initialize gateway and open the pool.

        Args:
            conninfo: PostgreSQL connection URL or DSN
            max_size: Maximum number of pooled connections
        """
        self.pool = ConnectionPool(conninfo, min_size=1, max_size=max_size, open=True)
        logger.debug(f"Opened connection pool (max_size={max_size})")

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        with self.pool.connection() as conn:
            yield conn

    def close(self) -> None:
        self.pool.close()

    def __enter__(self) -> "PooledGateway":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
