"""
Value types shared by the statement-generation pipeline.

Everything here is immutable and created fresh on each invocation; nothing is
cached across merges.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class DataType(str, Enum):
    """Column type families the generator knows how to compare null-safely."""

    STRING = "STRING"
    DATE = "DATE"
    DATETIME = "DATETIME"
    TIMESTAMP = "TIMESTAMP"
    NUMERIC = "NUMERIC"

    @property
    def is_temporal(self) -> bool:
        return self in TEMPORAL_TYPES


TEMPORAL_TYPES = frozenset({DataType.DATE, DataType.DATETIME, DataType.TIMESTAMP})

# Engine type names (BigQuery and Spark/Databricks), parameters stripped
_TYPE_NAMES: dict[str, DataType] = {
    "STRING": DataType.STRING,
    "VARCHAR": DataType.STRING,
    "CHAR": DataType.STRING,
    "DATE": DataType.DATE,
    "DATETIME": DataType.DATETIME,
    "TIMESTAMP_NTZ": DataType.DATETIME,
    "TIMESTAMP": DataType.TIMESTAMP,
    "TIMESTAMP_LTZ": DataType.TIMESTAMP,
    "INT64": DataType.NUMERIC,
    "INT": DataType.NUMERIC,
    "INTEGER": DataType.NUMERIC,
    "BIGINT": DataType.NUMERIC,
    "SMALLINT": DataType.NUMERIC,
    "TINYINT": DataType.NUMERIC,
    "BYTE": DataType.NUMERIC,
    "SHORT": DataType.NUMERIC,
    "LONG": DataType.NUMERIC,
    "NUMERIC": DataType.NUMERIC,
    "BIGNUMERIC": DataType.NUMERIC,
    "DECIMAL": DataType.NUMERIC,
    "BIGDECIMAL": DataType.NUMERIC,
    "FLOAT": DataType.NUMERIC,
    "FLOAT64": DataType.NUMERIC,
    "DOUBLE": DataType.NUMERIC,
    "REAL": DataType.NUMERIC,
}

_TYPE_PARAMS_RE = re.compile(r"\s*[(<].*$")


def parse_data_type(raw_type: str) -> DataType | None:
    """
    Map an engine type name to a DataType.

    'decimal(10,2)' and 'NUMERIC(38, 9)' become NUMERIC, 'varchar(20)' STRING.
    Returns None for types outside the supported families (BOOL, BYTES,
    ARRAY<...>, STRUCT<...>, ...).
    """
    base = _TYPE_PARAMS_RE.sub("", raw_type.strip()).upper()
    return _TYPE_NAMES.get(base)


@dataclass(frozen=True)
class ColumnDescriptor:
    """One column of a table as read from the catalog."""

    name: str
    ordinal_position: int
    data_type: DataType | None
    raw_type: str = ""

    @classmethod
    def from_catalog(
        cls, name: str, ordinal_position: int, raw_type: str
    ) -> ColumnDescriptor:
        return cls(
            name=name,
            ordinal_position=int(ordinal_position),
            data_type=parse_data_type(raw_type),
            raw_type=raw_type,
        )


@dataclass(frozen=True)
class ColumnClassification:
    """
    Columns of the target partitioned for SCD2.

    key_columns and attribute_columns are disjoint and together hold every
    column except the two validity-period columns, each in ordinal order.
    """

    key_columns: tuple[ColumnDescriptor, ...]
    attribute_columns: tuple[ColumnDescriptor, ...]
    start_column: ColumnDescriptor
    end_column: ColumnDescriptor

    @property
    def insert_columns(self) -> tuple[ColumnDescriptor, ...]:
        """Keys and attributes merged back into ordinal order."""
        return tuple(
            sorted(
                self.key_columns + self.attribute_columns,
                key=lambda c: c.ordinal_position,
            )
        )

    @property
    def key_names(self) -> list[str]:
        return [c.name for c in self.key_columns]

    @property
    def attribute_names(self) -> list[str]:
        return [c.name for c in self.attribute_columns]


@dataclass(frozen=True)
class SqlLiteral:
    """A literal already rendered for the target dialect, with its type."""

    sql: str
    data_type: DataType

    def __str__(self) -> str:
        return self.sql


@dataclass(frozen=True)
class ConditionFragment:
    """A predicate or expression list plus the columns it references."""

    sql: str
    columns: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return self.sql

    def and_(self, other: ConditionFragment) -> ConditionFragment:
        return ConditionFragment(
            sql=f"{self.sql} AND {other.sql}",
            columns=_merge_columns(self.columns, other.columns),
        )


def _merge_columns(left: tuple[str, ...], right: tuple[str, ...]) -> tuple[str, ...]:
    return left + tuple(c for c in right if c not in left)


@dataclass(frozen=True)
class MergeStatement:
    """The final merge command. Handed to the executor, then discarded."""

    text: str
    target_table: str
    source_table: str
    classification: ColumnClassification
    collision_probe: str | None = None

    def __str__(self) -> str:
        return self.text
