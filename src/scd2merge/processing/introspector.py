"""
Schema introspection.

The generator only ever needs one thing from a catalog: the ordered
(name, ordinal_position, data_type) triples of a table. CatalogReader is that
interface; the adapters below implement it over Spark's catalog API, over
Unity Catalog's information_schema, and over fixed in-memory fixtures.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Protocol

from scd2merge.common.errors import SchemaNotFoundError
from scd2merge.processing.models import ColumnDescriptor

if TYPE_CHECKING:
    from pyspark.sql import SparkSession

logger = logging.getLogger(__name__)

ColumnTriple = tuple[str, int, str]


class CatalogReader(Protocol):
    """Read ordered column metadata for a table."""

    def list_columns(
        self, database_id: str, schema_id: str, table_name: str
    ) -> Sequence[ColumnTriple]:
        """Return (name, ordinal_position, data_type) triples, empty if the
        table does not exist."""
        ...


class SparkCatalogReader:
    """CatalogReader over spark.catalog (Hive metastore or Unity Catalog)."""

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def list_columns(
        self, database_id: str, schema_id: str, table_name: str
    ) -> list[ColumnTriple]:
        full_name = f"{database_id}.{schema_id}.{table_name}"
        if not self.spark.catalog.tableExists(full_name):
            return []
        # listColumns returns columns in table order
        return [
            (column.name, position, column.dataType)
            for position, column in enumerate(
                self.spark.catalog.listColumns(full_name), start=1
            )
        ]


class InformationSchemaCatalogReader:
    """CatalogReader over `<catalog>.information_schema.columns`."""

    QUERY = (
        "SELECT column_name, ordinal_position, data_type "
        "FROM {catalog}.information_schema.columns "
        "WHERE table_schema = :schema_id AND table_name = :table_name "
        "ORDER BY ordinal_position"
    )

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def list_columns(
        self, database_id: str, schema_id: str, table_name: str
    ) -> list[ColumnTriple]:
        query = self.QUERY.format(catalog=f"`{database_id}`")
        # Unity Catalog stores schema and table names in lower case
        rows = self.spark.sql(
            query,
            args={"schema_id": schema_id.lower(), "table_name": table_name.lower()},
        ).collect()
        return [
            (row["column_name"], row["ordinal_position"], row["data_type"])
            for row in rows
        ]


class StaticCatalogReader:
    """
    CatalogReader over fixed metadata, keyed by 'database.schema.table'.

    Used to render statements without a live engine (e.g. for BigQuery) and
    as a test fixture.
    """

    def __init__(self, tables: Mapping[str, Iterable[ColumnTriple]]):
        self.tables = {name: list(columns) for name, columns in tables.items()}

    def list_columns(
        self, database_id: str, schema_id: str, table_name: str
    ) -> list[ColumnTriple]:
        return list(self.tables.get(f"{database_id}.{schema_id}.{table_name}", []))


class SchemaIntrospector:
    """Turns catalog triples into an ordered ColumnDescriptor sequence."""

    def __init__(self, catalog: CatalogReader):
        self.catalog = catalog

    def introspect(
        self, database_id: str, schema_id: str, table_name: str
    ) -> tuple[ColumnDescriptor, ...]:
        """
        Read the columns of a table, ordered by ordinal position.

        Raises:
            SchemaNotFoundError: the catalog knows no such table.
        """
        triples = self.catalog.list_columns(database_id, schema_id, table_name)
        if not triples:
            raise SchemaNotFoundError(
                f"Table {database_id}.{schema_id}.{table_name} not found in catalog",
                {"database_id": database_id, "schema_id": schema_id, "table_name": table_name},
            )

        columns = tuple(
            sorted(
                (
                    ColumnDescriptor.from_catalog(name, position, raw_type)
                    for name, position, raw_type in triples
                ),
                key=lambda c: c.ordinal_position,
            )
        )
        logger.info(
            f"Introspected {len(columns)} columns for {database_id}.{schema_id}.{table_name}"
        )
        return columns
