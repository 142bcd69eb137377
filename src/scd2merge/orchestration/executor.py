"""MergeExecutor - runs generated statements against Spark SQL.

The MERGE is a single statement, so the engine applies all updates and
inserts together or none of them. The executor holds no locks and opens no
transactions; callers serialize merges per target table.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING, Any

from delta.tables import DeltaTable

from scd2merge.common.errors import (
    ConfigurationError,
    DeltaConcurrentModificationError,
    wrap_exception,
)
from scd2merge.common.exceptions import PYSPARK_EXCEPTION_BASE
from scd2merge.processing.models import MergeStatement

if TYPE_CHECKING:
    from pyspark.sql import SparkSession

logger = logging.getLogger(__name__)


def retry_on_concurrent_exception(
    max_retries: int = 3, backoff_base: int = 2
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator that classifies engine errors and retries merges that lost a
    concurrent-modification race, with exponential backoff.

    Every other engine error is raised as its Scd2Error classification.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except PYSPARK_EXCEPTION_BASE as e:
                    error = wrap_exception(e)
                    if (
                        isinstance(error, DeltaConcurrentModificationError)
                        and attempt < max_retries
                    ):
                        wait_time = backoff_base**attempt
                        logger.warning(
                            f"Concurrent write detected, retrying in {wait_time}s "
                            f"(attempt {attempt + 1}/{max_retries + 1})"
                        )
                        time.sleep(wait_time)
                        continue
                    raise error from e

        return wrapper

    return decorator


@dataclass
class MergeResult:
    """Outcome of one generate-and-execute cycle."""

    statement: MergeStatement
    executed: bool
    num_affected_rows: int = 0
    num_updated_rows: int = 0
    num_inserted_rows: int = 0

    def __str__(self) -> str:
        if not self.executed:
            return f"SCD2 merge into {self.statement.target_table}: not executed (dry run)"
        return (
            f"SCD2 merge into {self.statement.target_table}: "
            f"{self.num_updated_rows} expired, {self.num_inserted_rows} inserted"
        )


class MergeExecutor:
    """Executes merge statements and their pre-flight checks on Spark."""

    def __init__(self, spark: SparkSession, max_retries: int = 3, backoff_base: int = 2):
        self.spark = spark
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    def ensure_delta_target(self, table_name: str) -> None:
        """MERGE INTO needs a Delta target on Spark.

        Raises:
            ConfigurationError: the target is not a Delta table.
        """
        try:
            DeltaTable.forName(self.spark, table_name)
        except PYSPARK_EXCEPTION_BASE as e:
            raise ConfigurationError(
                f"Target table {table_name} is not a Delta table: {e}",
                {"table_name": table_name},
            ) from e

    def count_collisions(self, probe: str) -> int:
        """Run the sentinel collision probe and return its count."""
        rows = retry_on_concurrent_exception(0)(self._run)(probe)
        return int(rows[0]["collisions"]) if rows else 0

    def execute(self, statement: MergeStatement) -> MergeResult:
        """Execute the merge statement.

        Raises:
            MalformedFilterError, SchemaMismatchError, ...: classified engine
                failures (see scd2merge.common.errors.wrap_exception).
        """
        logger.info(f"Executing SCD2 merge into {statement.target_table}")
        logger.debug(statement.text)

        started = time.time()
        run = retry_on_concurrent_exception(self.max_retries, self.backoff_base)(
            self._run
        )
        metrics = self._metrics(run(statement.text))
        logger.info(
            f"SCD2 merge into {statement.target_table} finished in "
            f"{time.time() - started:.1f}s: {metrics}"
        )
        return MergeResult(statement=statement, executed=True, **metrics)

    def _run(self, sql: str) -> list[Any]:
        return self.spark.sql(sql).collect()

    @staticmethod
    def _metrics(rows: list[Any]) -> dict[str, int]:
        # Delta returns one row of operation metrics for MERGE
        if not rows:
            return {}
        values = rows[0].asDict()
        return {
            key: int(values[key] or 0)
            for key in ("num_affected_rows", "num_updated_rows", "num_inserted_rows")
            if key in values
        }
