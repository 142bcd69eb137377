import sys
import tempfile
import uuid
from typing import Any, cast

import pytest
from delta import configure_spark_with_delta_pip
from pyspark.sql import SparkSession


@pytest.fixture(scope="session")
def spark():
    """Create a local SparkSession with Delta Lake support for testing."""
    builder = (
        SparkSession.builder.appName("Scd2MergeFrameworkTest")
        .master("local[*]")
        .config("spark.sql.extensions", "io.delta.sql.DeltaSparkSessionExtension")
        .config(
            "spark.sql.catalog.spark_catalog",
            "org.apache.spark.sql.delta.catalog.DeltaCatalog",
        )
        .config("spark.sql.ansi.enabled", "true")
        .config("spark.sql.shuffle.partitions", "1")
        .config(
            "spark.sql.warehouse.dir",
            tempfile.mkdtemp(prefix="spark-warehouse-scd2-tests-"),
        )
    )
    spark = configure_spark_with_delta_pip(builder).getOrCreate()

    # Code that reaches for databricks.sdk.runtime.spark gets the local engine
    if "databricks.sdk.runtime" in sys.modules:
        cast(Any, sys.modules["databricks.sdk.runtime"]).spark = spark

    yield spark
    spark.stop()


@pytest.fixture
def schema(spark):
    """A fresh schema holding empty customers (source) and dim_customer (target)."""
    name = f"scd2_it_{uuid.uuid4().hex[:8]}"
    spark.sql(f"CREATE SCHEMA spark_catalog.{name}")
    for table in ("customers", "dim_customer"):
        spark.sql(
            f"""
            CREATE TABLE spark_catalog.{name}.{table} (
                customer_id BIGINT,
                name STRING,
                city STRING,
                valid_from TIMESTAMP,
                valid_to TIMESTAMP
            ) USING DELTA
            """
        )
    yield name
    spark.sql(f"DROP SCHEMA IF EXISTS spark_catalog.{name} CASCADE")
