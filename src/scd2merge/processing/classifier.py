from __future__ import annotations

import logging
from collections.abc import Sequence

from scd2merge.common.errors import (
    InvalidPrimaryKeyError,
    UnsupportedDateColumnTypeError,
)
from scd2merge.common.utils import split_primary_keys
from scd2merge.processing.models import ColumnClassification, ColumnDescriptor

logger = logging.getLogger(__name__)


def _period_column(
    columns_by_name: dict[str, ColumnDescriptor], name: str, role: str
) -> ColumnDescriptor:
    column = columns_by_name.get(name)
    if column is None:
        raise UnsupportedDateColumnTypeError(
            f"{role} column '{name}' does not exist in the target table",
            {"column": name},
        )
    if column.data_type is None or not column.data_type.is_temporal:
        raise UnsupportedDateColumnTypeError(
            f"{role} column '{name}' has type {column.raw_type or column.data_type}; "
            "expected DATE, DATETIME or TIMESTAMP",
            {"column": name, "data_type": str(column.raw_type)},
        )
    return column


def classify_columns(
    columns: Sequence[ColumnDescriptor],
    primary_keys: str | Sequence[str],
    start_date_column: str,
    end_date_column: str,
) -> ColumnClassification:
    """
    Partition target columns into keys, attributes and the validity period.

    Args:
        columns: Target columns (any order; output follows ordinal position)
        primary_keys: Comma-separated string or sequence of key column names
        start_date_column: Start-of-validity column name
        end_date_column: End-of-validity column name

    Raises:
        InvalidPrimaryKeyError: a key name matches no column, or no key is
            left once the period columns are removed.
        UnsupportedDateColumnTypeError: a period column is missing or not
            DATE, DATETIME or TIMESTAMP.
    """
    ordered = sorted(columns, key=lambda c: c.ordinal_position)
    columns_by_name = {c.name: c for c in ordered}

    key_names = split_primary_keys(primary_keys)
    unknown = [name for name in key_names if name not in columns_by_name]
    if unknown:
        raise InvalidPrimaryKeyError(
            f"Primary key columns not found in target table: {', '.join(unknown)}",
            {"unknown_keys": ",".join(unknown)},
        )

    start = _period_column(columns_by_name, start_date_column, "Start date")
    end = _period_column(columns_by_name, end_date_column, "End date")
    period_names = {start.name, end.name}

    keys = tuple(c for c in ordered if c.name in key_names and c.name not in period_names)
    if not keys:
        raise InvalidPrimaryKeyError(
            "No primary key columns left after excluding the validity period columns"
        )
    attributes = tuple(
        c for c in ordered if c.name not in key_names and c.name not in period_names
    )

    logger.info(
        f"Classified {len(keys)} key columns {[c.name for c in keys]} and "
        f"{len(attributes)} attribute columns"
    )
    return ColumnClassification(
        key_columns=keys,
        attribute_columns=attributes,
        start_column=start,
        end_column=end,
    )
