"""Runtime configuration for the SCD2 merge framework.

RuntimeOptions bundles everything that is a property of the environment
rather than of a single table: the SQL dialect, safety checks, retries and
the SparkSession used to reach the engine.

Usage:
    # Create with defaults (reads from environment)
    options = RuntimeOptions.from_environment()

    # Create with explicit values (for testing/DI)
    options = RuntimeOptions(dialect="bigquery", dry_run=True)

    generator = Scd2MergeGenerator(runtime_options=options)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from scd2merge.common.constants import (
    DEFAULT_DIALECT,
    SCD2_CHECK_SENTINEL_COLLISIONS_ENV,
    SCD2_DIALECT_ENV,
    SCD2_DRY_RUN_ENV,
    SCD2_MAX_RETRIES_ENV,
    SUPPORTED_DIALECTS,
)
from scd2merge.common.errors import ConfigurationError

if TYPE_CHECKING:
    from pyspark.sql import SparkSession


@dataclass
class RuntimeOptions:
    """Centralized runtime configuration for SCD2 merges.

    Attributes:
        dialect: SQL dialect of the generated statement ('spark' or 'bigquery').
        check_sentinel_collisions: Probe the target for rows whose keys equal
            the key sentinels before executing.
        dry_run: Generate the statement but never execute it.
        max_retries: Retries on concurrent modification conflicts.
        spark_session: Optional injected SparkSession for testing.
    """

    dialect: Literal["spark", "bigquery"] = DEFAULT_DIALECT
    check_sentinel_collisions: bool = True
    dry_run: bool = False
    max_retries: int = 3

    spark_session: SparkSession | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.dialect not in SUPPORTED_DIALECTS:
            raise ConfigurationError(
                f"Unknown dialect '{self.dialect}'. Expected one of {SUPPORTED_DIALECTS}"
            )
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")

    @classmethod
    def from_environment(cls) -> RuntimeOptions:
        """Create RuntimeOptions from environment variables.

        Environment Variables:
            SCD2_DIALECT: 'spark' (default) or 'bigquery'.
            SCD2_CHECK_SENTINEL_COLLISIONS: '0' to skip the collision probe.
            SCD2_DRY_RUN: '1' to generate without executing.
            SCD2_MAX_RETRIES: Retries on concurrent modification (default: 3).

        Returns:
            RuntimeOptions instance configured from environment.
        """
        dialect = os.environ.get(SCD2_DIALECT_ENV, DEFAULT_DIALECT).lower()

        def _flag(env_var: str, default: bool) -> bool:
            """Parse feature flag: '1' -> True, '0' -> False, missing -> default."""
            val = os.environ.get(env_var)
            if val == "1":
                return True
            if val == "0":
                return False
            return default

        max_retries_str = os.environ.get(SCD2_MAX_RETRIES_ENV, "3")
        try:
            max_retries = int(max_retries_str)
        except ValueError as e:
            raise ConfigurationError(
                f"{SCD2_MAX_RETRIES_ENV} must be an integer, got '{max_retries_str}'"
            ) from e

        return cls(
            dialect=dialect,  # type: ignore[arg-type]
            check_sentinel_collisions=_flag(SCD2_CHECK_SENTINEL_COLLISIONS_ENV, True),
            dry_run=_flag(SCD2_DRY_RUN_ENV, False),
            max_retries=max_retries,
        )

    def get_spark(self) -> SparkSession:
        """Return the injected SparkSession, or obtain one lazily.

        In Databricks the runtime-provided session is used; elsewhere
        SparkSession.builder.getOrCreate().
        """
        if self.spark_session is not None:
            return self.spark_session

        try:
            from databricks.sdk.runtime import spark

            return spark
        except ImportError:
            from pyspark.sql import SparkSession

            return SparkSession.builder.getOrCreate()
        except Exception as e:
            # Databricks SDK installed but not in Databricks runtime
            try:
                from pyspark.sql import SparkSession

                return SparkSession.builder.getOrCreate()
            except ImportError:
                raise RuntimeError(
                    "No SparkSession available. Either run in Databricks or install pyspark."
                ) from e
