from unittest.mock import MagicMock

import pytest

from scd2merge.common.errors import SchemaNotFoundError
from scd2merge.processing.introspector import (
    InformationSchemaCatalogReader,
    SchemaIntrospector,
    SparkCatalogReader,
    StaticCatalogReader,
)
from scd2merge.processing.models import DataType


def test_introspect_orders_by_ordinal_position():
    catalog = StaticCatalogReader(
        {
            "main.gold.dim": [
                ("valid_to", 4, "date"),
                ("id", 1, "int"),
                ("valid_from", 3, "date"),
                ("name", 2, "string"),
            ]
        }
    )

    columns = SchemaIntrospector(catalog).introspect("main", "gold", "dim")

    assert [c.name for c in columns] == ["id", "name", "valid_from", "valid_to"]
    assert columns[0].data_type == DataType.NUMERIC


def test_introspect_missing_table_raises(catalog):
    with pytest.raises(SchemaNotFoundError) as excinfo:
        SchemaIntrospector(catalog).introspect("main", "gold", "dim_product")

    assert excinfo.value.details["table_name"] == "dim_product"


def test_introspect_reads_catalog_on_every_call():
    catalog = MagicMock()
    catalog.list_columns.return_value = [("id", 1, "int")]
    introspector = SchemaIntrospector(catalog)

    introspector.introspect("main", "gold", "dim")
    introspector.introspect("main", "gold", "dim")

    assert catalog.list_columns.call_count == 2


def test_spark_catalog_reader(mock_spark):
    mock_spark.catalog.tableExists.return_value = True
    name_col = MagicMock(dataType="string")
    name_col.name = "name"
    id_col = MagicMock(dataType="bigint")
    id_col.name = "id"
    mock_spark.catalog.listColumns.return_value = [id_col, name_col]

    triples = SparkCatalogReader(mock_spark).list_columns("main", "gold", "dim")

    mock_spark.catalog.tableExists.assert_called_once_with("main.gold.dim")
    mock_spark.catalog.listColumns.assert_called_once_with("main.gold.dim")
    assert triples == [("id", 1, "bigint"), ("name", 2, "string")]


def test_spark_catalog_reader_missing_table(mock_spark):
    mock_spark.catalog.tableExists.return_value = False

    assert SparkCatalogReader(mock_spark).list_columns("main", "gold", "dim") == []
    mock_spark.catalog.listColumns.assert_not_called()


def test_information_schema_reader(mock_spark):
    mock_spark.sql.return_value.collect.return_value = [
        {"column_name": "id", "ordinal_position": 0, "data_type": "INT"},
        {"column_name": "valid_from", "ordinal_position": 1, "data_type": "TIMESTAMP"},
    ]

    triples = InformationSchemaCatalogReader(mock_spark).list_columns("main", "Gold", "Dim")

    query = mock_spark.sql.call_args[0][0]
    assert "FROM `main`.information_schema.columns" in query
    assert mock_spark.sql.call_args[1]["args"] == {"schema_id": "gold", "table_name": "dim"}
    assert triples == [("id", 0, "INT"), ("valid_from", 1, "TIMESTAMP")]
