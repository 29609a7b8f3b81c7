"""Typed decoding of raw catalog rows.

Each catalog query has exactly one decoder here. A decoder checks the row
width and the Python type of every positional value once, so the readers
never deal with loosely-typed tuples. Any deviation raises
``CatalogParseError`` naming the stage and the offending position.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from fraiseql_schema.exceptions import CatalogParseError


@dataclass(frozen=True)
class TableRow:
    schema: str
    name: str


@dataclass(frozen=True)
class ColumnRow:
    name: str
    column_default: Optional[str]
    is_nullable: str
    data_type: str
    vector_size: Optional[int]


@dataclass(frozen=True)
class IndexRow:
    name: str
    table_space: Optional[str]
    is_unique: bool
    is_primary: bool
    key_definitions: list[str]
    key_is_column: list[bool]
    predicate: Optional[str]
    access_method: str
    reloptions: Optional[list[str]]
    opclass_names: list[str]


@dataclass(frozen=True)
class ForeignKeyRow:
    constraint_name: str
    update_code: str
    delete_code: str
    match_code: str
    columns: list[str]
    reference_table: str
    reference_schema: str
    reference_columns: list[str]


def _type_name(value: Any) -> str:
    return type(value).__name__


def _check_width(row: Sequence[Any], width: int, stage: str) -> None:
    if len(row) != width:
        raise CatalogParseError(stage, f"expected {width} columns, got {len(row)}")


def expect_str(row: Sequence[Any], position: int, stage: str) -> str:
    value = row[position]
    if not isinstance(value, str):
        raise CatalogParseError(
            stage, f"expected text, got {_type_name(value)}", position=position
        )
    return value


def expect_optional_str(row: Sequence[Any], position: int, stage: str) -> Optional[str]:
    if row[position] is None:
        return None
    return expect_str(row, position, stage)


def expect_bool(row: Sequence[Any], position: int, stage: str) -> bool:
    value = row[position]
    if not isinstance(value, bool):
        raise CatalogParseError(
            stage, f"expected boolean, got {_type_name(value)}", position=position
        )
    return value


def expect_optional_int(row: Sequence[Any], position: int, stage: str) -> Optional[int]:
    value = row[position]
    if value is None:
        return None
    # bool is an int subclass; a boolean here means the query shape changed
    if isinstance(value, bool) or not isinstance(value, int):
        raise CatalogParseError(
            stage, f"expected integer, got {_type_name(value)}", position=position
        )
    return value


def expect_list(
    row: Sequence[Any], position: int, stage: str, item_type: type
) -> list[Any]:
    value = row[position]
    if not isinstance(value, list):
        raise CatalogParseError(
            stage,
            f"expected array of {item_type.__name__}, got {_type_name(value)}",
            position=position,
        )
    for item in value:
        if not isinstance(item, item_type):
            raise CatalogParseError(
                stage,
                f"expected array of {item_type.__name__}, found {_type_name(item)} element",
                position=position,
            )
    return value


def expect_optional_list(
    row: Sequence[Any], position: int, stage: str, item_type: type
) -> Optional[list[Any]]:
    if row[position] is None:
        return None
    return expect_list(row, position, stage, item_type)


def decode_table_row(row: Sequence[Any]) -> TableRow:
    stage = "tables"
    _check_width(row, 2, stage)
    return TableRow(schema=expect_str(row, 0, stage), name=expect_str(row, 1, stage))


def decode_column_row(row: Sequence[Any]) -> ColumnRow:
    stage = "columns"
    _check_width(row, 5, stage)
    return ColumnRow(
        name=expect_str(row, 0, stage),
        column_default=expect_optional_str(row, 1, stage),
        is_nullable=expect_str(row, 2, stage),
        data_type=expect_str(row, 3, stage),
        vector_size=expect_optional_int(row, 4, stage),
    )


def decode_index_row(row: Sequence[Any]) -> IndexRow:
    """
    Decode one row of the index query.

    The per-position key definitions and is-column flags must both be
    arrays of the same length; anything else means the query contract broke.
    """
    stage = "indexes"
    _check_width(row, 10, stage)

    key_definitions = expect_list(row, 4, stage, str)
    key_is_column = expect_list(row, 5, stage, bool)
    if len(key_definitions) != len(key_is_column):
        raise CatalogParseError(
            stage,
            f"index key definitions ({len(key_definitions)}) and is-column flags "
            f"({len(key_is_column)}) differ in length",
            position=5,
        )

    return IndexRow(
        name=expect_str(row, 0, stage),
        table_space=expect_optional_str(row, 1, stage),
        is_unique=expect_bool(row, 2, stage),
        is_primary=expect_bool(row, 3, stage),
        key_definitions=key_definitions,
        key_is_column=key_is_column,
        predicate=expect_optional_str(row, 6, stage),
        access_method=expect_str(row, 7, stage),
        reloptions=expect_optional_list(row, 8, stage, str),
        opclass_names=expect_optional_list(row, 9, stage, str) or [],
    )


def decode_foreign_key_row(row: Sequence[Any]) -> ForeignKeyRow:
    stage = "foreign_keys"
    _check_width(row, 8, stage)

    columns = expect_list(row, 4, stage, str)
    reference_columns = expect_list(row, 7, stage, str)
    if len(columns) != len(reference_columns):
        raise CatalogParseError(
            stage,
            f"constraint columns ({len(columns)}) and referenced columns "
            f"({len(reference_columns)}) differ in length",
            position=7,
        )

    return ForeignKeyRow(
        constraint_name=expect_str(row, 0, stage),
        update_code=expect_str(row, 1, stage),
        delete_code=expect_str(row, 2, stage),
        match_code=expect_str(row, 3, stage),
        columns=columns,
        reference_table=expect_str(row, 5, stage),
        reference_schema=expect_str(row, 6, stage),
        reference_columns=reference_columns,
    )
