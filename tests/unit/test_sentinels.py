"""
Unit tests for null sentinels.

Every supported type gets a literal of its own type; temporal sentinels carry
the column's exact subtype.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from scd2merge.common.config import SentinelConfig
from scd2merge.common.errors import UnsupportedColumnTypeError
from scd2merge.processing.models import ColumnDescriptor, DataType
from scd2merge.processing.sentinels import NullSentinelResolver


def _column(raw_type, name="col"):
    return ColumnDescriptor.from_catalog(name, 1, raw_type)


@pytest.mark.parametrize(
    "raw_type, expected",
    [
        ("string", "'NULL'"),
        ("bigint", "-1"),
        ("decimal(10,2)", "-1"),
        ("date", "DATE '1900-01-01'"),
        ("timestamp_ntz", "TIMESTAMP_NTZ '1900-01-01 00:00:00'"),
        ("timestamp", "TIMESTAMP '1900-01-01 00:00:00'"),
    ],
)
def test_spark_sentinels(resolver, raw_type, expected):
    assert resolver.resolve(_column(raw_type)).sql == expected


@pytest.mark.parametrize(
    "raw_type, expected",
    [
        ("STRING", "'NULL'"),
        ("INT64", "-1"),
        ("DATE", "DATE '1900-01-01'"),
        ("DATETIME", "DATETIME '1900-01-01 00:00:00'"),
        ("TIMESTAMP", "TIMESTAMP '1900-01-01 00:00:00'"),
    ],
)
def test_bigquery_sentinels(bigquery_dialect, raw_type, expected):
    resolver = NullSentinelResolver(SentinelConfig(), bigquery_dialect)
    assert resolver.resolve(_column(raw_type)).sql == expected


def test_sentinel_is_typed_to_column(resolver):
    for raw_type, data_type in [
        ("date", DataType.DATE),
        ("timestamp_ntz", DataType.DATETIME),
        ("timestamp", DataType.TIMESTAMP),
    ]:
        assert resolver.resolve(_column(raw_type)).data_type == data_type


def test_custom_sentinels(spark_dialect):
    sentinels = SentinelConfig(
        string_value="<missing>",
        numeric_value=Decimal("-999999"),
        date_value=date(1800, 1, 1),
    )
    resolver = NullSentinelResolver(sentinels, spark_dialect)

    assert resolver.resolve(_column("string")).sql == "'<missing>'"
    assert resolver.resolve(_column("int")).sql == "-999999"
    assert resolver.resolve(_column("date")).sql == "DATE '1800-01-01'"


def test_string_sentinel_is_escaped(spark_dialect):
    resolver = NullSentinelResolver(SentinelConfig(string_value="it's"), spark_dialect)
    assert resolver.resolve(_column("string")).sql == "'it\\'s'"


def test_unsupported_type_raises(resolver):
    with pytest.raises(UnsupportedColumnTypeError) as excinfo:
        resolver.resolve(_column("boolean", name="is_active"))

    assert "is_active" in str(excinfo.value)


def test_open_end_is_typed_to_column(resolver):
    assert resolver.open_end(_column("date")).sql == "DATE '9999-12-31'"
    assert resolver.open_end(_column("timestamp")).sql == "TIMESTAMP '9999-12-31 23:59:59'"
    assert (
        resolver.open_end(_column("timestamp_ntz")).sql
        == "TIMESTAMP_NTZ '9999-12-31 23:59:59'"
    )


def test_custom_open_end(spark_dialect):
    sentinels = SentinelConfig(open_end_value=datetime(2099, 12, 31, 0, 0, 0))
    resolver = NullSentinelResolver(sentinels, spark_dialect)
    assert resolver.open_end(_column("timestamp")).sql == "TIMESTAMP '2099-12-31 00:00:00'"


def test_now_is_typed_to_column(resolver):
    assert resolver.now(_column("date")) == "current_date()"
    assert resolver.now(_column("timestamp_ntz")) == "localtimestamp()"
    assert resolver.now(_column("timestamp")) == "current_timestamp()"


def test_now_for_non_temporal_column_raises(resolver):
    with pytest.raises(UnsupportedColumnTypeError):
        resolver.now(_column("string"))
