import sys
from unittest.mock import MagicMock

# Mock databricks.sdk.runtime to allow local testing without credentials.
# The real SDK tries to authenticate at import time, which fails outside
# a Databricks environment.
mock_db_sdk = MagicMock()
mock_db_sdk.spark = MagicMock()
sys.modules["databricks.sdk.runtime"] = mock_db_sdk

import pytest  # noqa: E402

from scd2merge.common.config import SentinelConfig  # noqa: E402
from scd2merge.common.runtime import RuntimeOptions  # noqa: E402
from scd2merge.processing.classifier import classify_columns  # noqa: E402
from scd2merge.processing.dialect import get_dialect  # noqa: E402
from scd2merge.processing.introspector import (  # noqa: E402
    SchemaIntrospector,
    StaticCatalogReader,
)
from scd2merge.processing.sentinels import NullSentinelResolver  # noqa: E402

# Customer dimension: one key, two attributes, TIMESTAMP validity period
CUSTOMER_COLUMNS = [
    ("customer_id", 1, "bigint"),
    ("name", 2, "string"),
    ("city", 3, "string"),
    ("valid_from", 4, "timestamp"),
    ("valid_to", 5, "timestamp"),
]

# Same table as BigQuery reports it, DATE validity period
BQ_CUSTOMER_COLUMNS = [
    ("pk", 1, "INT64"),
    ("name", 2, "STRING"),
    ("start_date", 3, "DATE"),
    ("end_date", 4, "DATE"),
]


@pytest.fixture
def catalog():
    """Fixed catalog with the customer dimension in Spark and BigQuery flavours."""
    return StaticCatalogReader(
        {
            "main.gold.dim_customer": CUSTOMER_COLUMNS,
            "my-test-project.my_dataset.target_table": BQ_CUSTOMER_COLUMNS,
        }
    )


@pytest.fixture
def customer_columns(catalog):
    return SchemaIntrospector(catalog).introspect("main", "gold", "dim_customer")


@pytest.fixture
def classification(customer_columns):
    return classify_columns(customer_columns, "customer_id", "valid_from", "valid_to")


@pytest.fixture
def spark_dialect():
    return get_dialect("spark")


@pytest.fixture
def bigquery_dialect():
    return get_dialect("bigquery")


@pytest.fixture
def resolver(spark_dialect):
    return NullSentinelResolver(SentinelConfig(), spark_dialect)


@pytest.fixture
def mock_spark():
    """Create a mock SparkSession."""
    return MagicMock()


@pytest.fixture
def runtime_options(mock_spark):
    return RuntimeOptions(dialect="spark", spark_session=mock_spark)
