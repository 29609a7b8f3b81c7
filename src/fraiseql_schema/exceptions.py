"""Custom exceptions with helpful error messages."""

from typing import Optional


class SchemaAnalysisError(Exception):
    """Base exception for fraiseql-schema errors."""

    pass


class DatabaseConnectionError(SchemaAnalysisError):
    """Database cannot be reached or queried at all."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(
            f"Could not query the database: {cause}\n\n"
            f"Suggestions:\n"
            f"1. Check the connection URL (FRAISEQL_SCHEMA_DATABASE_URL)\n"
            f"2. Ensure the PostgreSQL server is running and reachable\n"
            f"3. Check that the role may connect to the target database"
        )


class CatalogParseError(SchemaAnalysisError):
    """A catalog query returned rows that violate the expected shape."""

    def __init__(
        self,
        stage: str,
        detail: str,
        table: Optional[str] = None,
        position: Optional[int] = None,
    ):
        self.stage = stage
        self.detail = detail
        self.table = table
        self.position = position

        location = f"'{stage}' query"
        if table is not None:
            location += f" for table '{table}'"
        if position is not None:
            location += f" at column {position}"
        super().__init__(
            f"Failed to parse {location}: {detail}\n\n"
            f"Suggestions:\n"
            f"1. Check the PostgreSQL server version is supported\n"
            f"2. Check that catalog views have not been shadowed by user objects\n"
            f"3. Report the row shape if the catalog layout changed"
        )

    def for_table(self, table: str) -> "CatalogParseError":
        """Return a copy of this error that names the table it came from."""
        return CatalogParseError(self.stage, self.detail, table=table, position=self.position)


class CatalogQueryError(SchemaAnalysisError):
    """A catalog query failed at the driver level."""

    def __init__(self, stage: str, table: Optional[str], cause: BaseException):
        self.stage = stage
        self.table = table
        self.cause = cause
        target = f" for table '{table}'" if table else ""
        scope = f"the schema of '{table}'" if table else "pg_catalog"
        super().__init__(
            f"Catalog query '{stage}' failed{target}: {cause}\n\n"
            f"Suggestions:\n"
            f"1. Check the role has USAGE on {scope}\n"
            f"2. Check the connection was not closed during analysis"
        )


class MissingAuxiliaryTableError(SchemaAnalysisError):
    """An auxiliary table (e.g. applied migrations) does not exist."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(
            f"Table '{table}' not found.\n\n"
            f"Suggestions:\n"
            f"1. This is expected on a fresh database before the first migration\n"
            f"2. Check the migrations_table setting if migrations were applied"
        )


class AnalysisTimeoutError(SchemaAnalysisError):
    """Schema analysis did not finish within the configured timeout."""

    def __init__(self, timeout: float, pending: int):
        self.timeout = timeout
        self.pending = pending
        super().__init__(
            f"Schema analysis timed out after {timeout}s with {pending} catalog "
            f"queries still pending.\n\n"
            f"Suggestions:\n"
            f"1. Increase the timeout (FRAISEQL_SCHEMA_TIMEOUT)\n"
            f"2. Increase max_workers to run more catalog queries concurrently\n"
            f"3. Exclude large schemas you do not need (exclude_schemas)"
        )
