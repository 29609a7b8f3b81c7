"""Decode catalog-encoded text into model values.

The catalog hands back quoted identifiers, ``key=value`` storage options and
single-character codes. These helpers are pure; unrecognized codes decode to
``None`` (or ``ColumnType.UNKNOWN``) rather than raising, since newer
PostgreSQL versions may add codes this module does not know yet.
"""

import logging
import re
from typing import Optional

from fraiseql_schema.models import (
    ColumnType,
    ForeignKeyAction,
    ForeignKeyMatchType,
    VectorDistanceFunction,
)

logger = logging.getLogger(__name__)

FOREIGN_KEY_ACTIONS = {
    "a": ForeignKeyAction.NO_ACTION,
    "r": ForeignKeyAction.RESTRICT,
    "c": ForeignKeyAction.CASCADE,
    "n": ForeignKeyAction.SET_NULL,
    "d": ForeignKeyAction.SET_DEFAULT,
}

FOREIGN_KEY_MATCH_TYPES = {
    "f": ForeignKeyMatchType.FULL,
    "p": ForeignKeyMatchType.PARTIAL,
    "s": ForeignKeyMatchType.SIMPLE,
}

# Operator class names look like vector_l2_ops, halfvec_cosine_ops, bit_hamming_ops
OPCLASS_PATTERN = re.compile(r"(\w+)_(\w+)_ops")

# Short metric names used in operator classes
METRIC_ALIASES = {"ip": "innerProduct"}


def remove_surrounding_quotes(value: str) -> str:
    """
    Strip one pair of surrounding double quotes.

    Only strips when the value both starts and ends with ``"``. Quotes
    embedded inside an expression are left alone.

    Example:
        >>> remove_surrounding_quotes('"UserId"')
        'UserId'
        >>> remove_surrounding_quotes('"partial')
        '"partial'
    """
    # TODO: handle quoted identifiers inside expressions once partial indexes are diffed
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def parse_reloptions(options: Optional[list[str]]) -> dict[str, str]:
    """
    Parse index storage options (``pg_class.reloptions``) into a mapping.

    Options without exactly one ``=`` are skipped.

    Example:
        >>> parse_reloptions(["m=16", "ef_construction=64"])
        {'m': '16', 'ef_construction': '64'}
    """
    parameters: dict[str, str] = {}
    for option in options or []:
        parts = option.split("=")
        if len(parts) != 2:
            logger.debug(f"Skipping malformed index option: {option!r}")
            continue
        key, value = parts
        parameters[key] = value
    return parameters


def decode_foreign_key_action(code: str) -> Optional[ForeignKeyAction]:
    """Decode ``pg_constraint.confupdtype`` / ``confdeltype``."""
    action = FOREIGN_KEY_ACTIONS.get(code)
    if action is None:
        logger.debug(f"Unrecognized foreign key action code: {code!r}")
    return action


def decode_match_type(code: str) -> Optional[ForeignKeyMatchType]:
    """Decode ``pg_constraint.confmatchtype``."""
    match_type = FOREIGN_KEY_MATCH_TYPES.get(code)
    if match_type is None:
        logger.debug(f"Unrecognized foreign key match type code: {code!r}")
    return match_type


def decode_is_nullable(token: str) -> bool:
    """
    Decode ``information_schema.columns.is_nullable``.

    Raises:
        ValueError: If the token is neither YES nor NO
    """
    if token == "YES":
        return True
    if token == "NO":
        return False
    raise ValueError(f"Expected 'YES' or 'NO' for is_nullable, got {token!r}")


def column_type_from_sql(type_name: str) -> ColumnType:
    """Map a catalog type name to a ``ColumnType``, falling back to UNKNOWN."""
    try:
        return ColumnType(type_name)
    except ValueError:
        logger.debug(f"Unsupported column type: {type_name!r}")
        return ColumnType.UNKNOWN


def parse_opclass_name(
    opclass: str,
) -> tuple[Optional[ColumnType], Optional[VectorDistanceFunction]]:
    """
    Split a pgvector operator class name into vector type and distance metric.

    Each half resolves independently and is ``None`` when unrecognized.

    Example:
        >>> parse_opclass_name("vector_l2_ops")
        (<ColumnType.VECTOR: 'vector'>, <VectorDistanceFunction.L2: 'l2'>)
        >>> parse_opclass_name("vector_ip_ops")[1]
        <VectorDistanceFunction.INNER_PRODUCT: 'innerProduct'>
    """
    match = OPCLASS_PATTERN.search(opclass)
    if match is None:
        logger.debug(f"Operator class does not name a vector metric: {opclass!r}")
        return None, None

    base_type, metric = match.group(1), match.group(2)

    column_type = next((t for t in ColumnType.vector_types() if t.value == base_type), None)

    metric = METRIC_ALIASES.get(metric, metric)
    distance = next((d for d in VectorDistanceFunction if d.value == metric), None)

    if column_type is None or distance is None:
        logger.debug(f"Unrecognized operator class components in {opclass!r}")
    return column_type, distance
