"""
SQL dialects for the generated merge statement.

The statement shape is the same everywhere; dialects only differ in how
tables are referenced, which function substitutes NULL, how temporal
literals are tagged and which function returns "now" for a temporal type.

- spark:    Databricks / Delta Lake (the engine MergeExecutor runs against)
- bigquery: GoogleSQL, rendered for callers that execute elsewhere
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from scd2merge.common.errors import ConfigurationError, UnsupportedColumnTypeError
from scd2merge.common.utils import quote_table_name
from scd2merge.processing.models import DataType, SqlLiteral


class SqlDialect:
    """Base dialect. Subclasses fill in the engine specific spellings."""

    name: str = ""
    null_function: str = "coalesce"
    temporal_keywords: dict[DataType, str] = {}
    now_functions: dict[DataType, str] = {}

    def table_reference(self, catalog: str, schema: str, table: str) -> str:
        raise NotImplementedError

    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "``") + "`"

    def column(self, alias: str, name: str) -> str:
        return f"{alias}.{self.quote_identifier(name)}"

    def null_safe(self, expression: str, sentinel: SqlLiteral) -> str:
        return f"{self.null_function}({expression}, {sentinel.sql})"

    def string_literal(self, value: str) -> SqlLiteral:
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return SqlLiteral(f"'{escaped}'", DataType.STRING)

    def numeric_literal(self, value: int | float | Decimal) -> SqlLiteral:
        return SqlLiteral(str(value), DataType.NUMERIC)

    def temporal_literal(self, value: date, data_type: DataType) -> SqlLiteral:
        """Render value as a literal tagged with the exact temporal subtype."""
        keyword = self._temporal_keyword(data_type)
        if data_type == DataType.DATE:
            text = value.strftime("%Y-%m-%d")
        else:
            if not isinstance(value, datetime):
                value = datetime(value.year, value.month, value.day)
            text = value.strftime("%Y-%m-%d %H:%M:%S")
        return SqlLiteral(f"{keyword} '{text}'", data_type)

    def current_time(self, data_type: DataType) -> str:
        """Expression for the current point in time, typed to data_type."""
        try:
            return self.now_functions[data_type]
        except KeyError:
            raise UnsupportedColumnTypeError(
                f"No current-time function for {data_type} in dialect '{self.name}'"
            ) from None

    def _temporal_keyword(self, data_type: DataType) -> str:
        try:
            return self.temporal_keywords[data_type]
        except KeyError:
            raise UnsupportedColumnTypeError(
                f"{data_type} is not a temporal type"
            ) from None


class SparkDialect(SqlDialect):
    name = "spark"
    null_function = "coalesce"
    temporal_keywords = {
        DataType.DATE: "DATE",
        DataType.DATETIME: "TIMESTAMP_NTZ",
        DataType.TIMESTAMP: "TIMESTAMP",
    }
    now_functions = {
        DataType.DATE: "current_date()",
        DataType.DATETIME: "localtimestamp()",
        DataType.TIMESTAMP: "current_timestamp()",
    }

    def table_reference(self, catalog: str, schema: str, table: str) -> str:
        return quote_table_name(f"{catalog}.{schema}.{table}")


class BigQueryDialect(SqlDialect):
    name = "bigquery"
    null_function = "IFNULL"
    temporal_keywords = {
        DataType.DATE: "DATE",
        DataType.DATETIME: "DATETIME",
        DataType.TIMESTAMP: "TIMESTAMP",
    }
    now_functions = {
        DataType.DATE: "CURRENT_DATE()",
        DataType.DATETIME: "CURRENT_DATETIME()",
        DataType.TIMESTAMP: "CURRENT_TIMESTAMP()",
    }

    def table_reference(self, catalog: str, schema: str, table: str) -> str:
        # BigQuery accepts the whole path inside one pair of backticks
        return f"`{catalog}.{schema}.{table}`"

    def quote_identifier(self, name: str) -> str:
        return "`" + name.replace("`", "\\`") + "`"


_DIALECTS: dict[str, type[SqlDialect]] = {
    "spark": SparkDialect,
    "bigquery": BigQueryDialect,
}


def get_dialect(name: str) -> SqlDialect:
    """Return a dialect instance by name ('spark' or 'bigquery')."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown dialect '{name}'. Expected one of {sorted(_DIALECTS)}"
        ) from None
