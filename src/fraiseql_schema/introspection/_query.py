"""Error translation shared by the catalog readers."""

from collections.abc import Sequence
from typing import Any, Optional

from fraiseql_schema.exceptions import CatalogQueryError
from fraiseql_schema.gateway import CatalogGateway


def run_catalog_query(
    gateway: CatalogGateway,
    stage: str,
    qualified_table: Optional[str],
    query: str,
    params: Optional[Sequence[Any]] = None,
) -> list[tuple[Any, ...]]:
    """Run a catalog query, naming the stage (and table, if any) on driver errors."""
    try:
        return gateway.run_query(query, params)
    except gateway.error_types as e:
        raise CatalogQueryError(stage, qualified_table, e) from e
