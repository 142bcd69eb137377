"""
Null sentinels.

SQL's NULL = NULL is not true, so the generator compares
coalesce(A, sentinel) = coalesce(B, sentinel) instead: two NULLs compare
equal and a NULL differs from every real value. The sentinel must be a valid
literal of the column's exact type; temporal sentinels are tagged with the
column's own subtype because DATE, DATETIME and TIMESTAMP literals do not
compare with each other.
"""

from __future__ import annotations

from collections.abc import Callable

from scd2merge.common.config import SentinelConfig
from scd2merge.common.errors import UnsupportedColumnTypeError
from scd2merge.processing.dialect import SqlDialect
from scd2merge.processing.models import ColumnDescriptor, DataType, SqlLiteral


class NullSentinelResolver:
    """Maps a column's data type to its sentinel literal."""

    def __init__(self, sentinels: SentinelConfig, dialect: SqlDialect):
        self.sentinels = sentinels
        self.dialect = dialect
        # One entry per supported type; adding a type is adding an entry
        self._table: dict[DataType, Callable[[DataType], SqlLiteral]] = {
            DataType.STRING: lambda _: dialect.string_literal(sentinels.string_value),
            DataType.NUMERIC: lambda _: dialect.numeric_literal(sentinels.numeric_value),
            DataType.DATE: self._date_sentinel,
            DataType.DATETIME: self._date_sentinel,
            DataType.TIMESTAMP: self._date_sentinel,
        }

    def _date_sentinel(self, data_type: DataType) -> SqlLiteral:
        return self.dialect.temporal_literal(self.sentinels.date_value, data_type)

    def resolve(self, column: ColumnDescriptor) -> SqlLiteral:
        """Sentinel literal for a column.

        Raises:
            UnsupportedColumnTypeError: the column's type has no sentinel.
        """
        factory = self._table.get(column.data_type) if column.data_type else None
        if factory is None:
            raise UnsupportedColumnTypeError(
                f"Column '{column.name}' has unsupported type '{column.raw_type}' "
                "for null-safe comparison",
                {"column": column.name, "data_type": column.raw_type},
            )
        return factory(column.data_type)

    def open_end(self, column: ColumnDescriptor) -> SqlLiteral:
        """Far-future end of validity, typed to the column's subtype."""
        return self.dialect.temporal_literal(
            self.sentinels.open_end_value, self._temporal_type(column)
        )

    def now(self, column: ColumnDescriptor) -> str:
        """Current point in time, typed to the column's subtype."""
        return self.dialect.current_time(self._temporal_type(column))

    @staticmethod
    def _temporal_type(column: ColumnDescriptor) -> DataType:
        if column.data_type is None or not column.data_type.is_temporal:
            raise UnsupportedColumnTypeError(
                f"Column '{column.name}' is not a DATE, DATETIME or TIMESTAMP column"
            )
        return column.data_type
