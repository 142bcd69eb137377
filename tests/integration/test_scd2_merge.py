"""
Runs generated merges on a local Delta engine and checks the resulting
history: new keys, unchanged rows, changes, NULL handling and reruns.
"""

from datetime import datetime

import pytest

from scd2merge import RuntimeOptions, perform_scd2_transform

pytestmark = pytest.mark.integration

OPEN_END = datetime(9999, 12, 31, 23, 59, 59)


@pytest.fixture
def merge(spark, schema):
    options = RuntimeOptions(spark_session=spark, max_retries=0)

    def _merge(source_filter=""):
        return perform_scd2_transform(
            "spark_catalog",
            schema,
            "dim_customer",
            schema,
            "customers",
            source_filter,
            "customer_id",
            "valid_from",
            "valid_to",
            runtime_options=options,
        )

    return _merge


@pytest.fixture
def load_source(spark, schema):
    def _load(rows):
        spark.sql(f"TRUNCATE TABLE spark_catalog.{schema}.customers")
        values = ", ".join(
            "({}, {}, {}, NULL, NULL)".format(
                pk,
                "NULL" if name is None else f"'{name}'",
                "NULL" if city is None else f"'{city}'",
            )
            for pk, name, city in rows
        )
        spark.sql(f"INSERT INTO spark_catalog.{schema}.customers VALUES {values}")

    return _load


@pytest.fixture
def history(spark, schema):
    def _history():
        rows = spark.sql(
            f"SELECT customer_id, name, city, valid_from, valid_to "
            f"FROM spark_catalog.{schema}.dim_customer "
            f"ORDER BY customer_id, valid_from, valid_to"
        ).collect()
        return [tuple(row) for row in rows]

    return _history


def _versions(history, pk):
    return [row for row in history if row[0] == pk]


def test_new_keys_are_inserted_as_active(merge, load_source, history):
    load_source([(1, "Alice", None), (2, "Bob", "Oslo")])

    result = merge()

    rows = history()
    assert result.num_inserted_rows == 2
    assert [(r[0], r[1], r[2]) for r in rows] == [(1, "Alice", None), (2, "Bob", "Oslo")]
    assert all(r[3] is not None and r[4] == OPEN_END for r in rows)


def test_change_expires_active_version_and_inserts_new_one(merge, load_source, history):
    load_source([(1, "Alice", None), (2, "Bob", "Oslo")])
    merge()
    bob_before = _versions(history(), 2)

    load_source([(1, "Alicia", None), (2, "Bob", "Oslo")])
    result = merge()

    rows = history()
    alice = _versions(rows, 1)
    assert len(alice) == 2
    expired = next(r for r in alice if r[1] == "Alice")
    active = next(r for r in alice if r[1] == "Alicia")
    assert expired[4] != OPEN_END
    assert active[4] == OPEN_END
    # Unchanged key keeps its single, untouched version
    assert _versions(rows, 2) == bob_before
    assert result.num_updated_rows == 1
    assert result.num_inserted_rows == 1


def test_rerun_changes_nothing(merge, load_source, history):
    load_source([(1, "Alice", None), (2, "Bob", "Oslo")])
    merge()
    load_source([(1, "Alicia", None), (2, "Bob", "Oslo")])
    merge()
    before = history()

    result = merge()

    assert history() == before
    assert result.num_affected_rows == 0
    assert len(_versions(before, 1)) == 2
    assert len(_versions(before, 2)) == 1


def test_null_attributes_compare_null_safely(merge, load_source, history):
    load_source([(1, "Alice", None), (2, "Bob", "Oslo")])
    merge()

    # NULL on both sides is no change; a value turning NULL is a change
    load_source([(1, "Alice", None), (2, "Bob", None)])
    merge()

    rows = history()
    assert len(_versions(rows, 1)) == 1
    bob = _versions(rows, 2)
    assert len(bob) == 2
    assert [r[2] for r in bob if r[4] == OPEN_END] == [None]


def test_source_qualified_filter(merge, load_source, history):
    load_source([(1, "Alice", None), (2, "Bob", "Oslo")])
    merge()
    load_source([(1, "Alicia", None), (2, "Robert", "Oslo")])

    merge("S.customer_id = 1")

    rows = history()
    assert len(_versions(rows, 1)) == 2
    assert [r[1] for r in _versions(rows, 2)] == ["Bob"]
