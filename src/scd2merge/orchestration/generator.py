"""Scd2MergeGenerator - metadata-driven SCD Type 2 merges.

One sequential flow per call, with no state kept between calls:

    introspect -> classify -> resolve sentinels -> build conditions
    -> assemble -> (check collisions) -> execute

Example:
    from scd2merge import perform_scd2_transform

    result = perform_scd2_transform(
        "main",
        "gold",
        "dim_customer",
        "silver",
        "customers",
        "ingest_date = current_date()",
        "customer_id",
        "valid_from",
        "valid_to",
    )
    print(result)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from scd2merge.common.config import Scd2MergeConfig, build_config
from scd2merge.common.errors import ConfigurationError, SentinelCollisionError
from scd2merge.common.runtime import RuntimeOptions
from scd2merge.orchestration.executor import MergeExecutor, MergeResult
from scd2merge.processing.assembler import StatementAssembler
from scd2merge.processing.classifier import classify_columns
from scd2merge.processing.dialect import get_dialect
from scd2merge.processing.introspector import (
    CatalogReader,
    SchemaIntrospector,
    SparkCatalogReader,
)
from scd2merge.processing.models import MergeStatement
from scd2merge.processing.sentinels import NullSentinelResolver

logger = logging.getLogger(__name__)


class Scd2MergeGenerator:
    """
    Generates, and optionally executes, the SCD2 merge for a config.

    Args:
        catalog: Column metadata source. Defaults to Spark's catalog.
        runtime_options: Dialect, safety checks and SparkSession.
            Defaults to RuntimeOptions.from_environment().
    """

    def __init__(
        self,
        catalog: CatalogReader | None = None,
        runtime_options: RuntimeOptions | None = None,
    ):
        self.runtime_options = runtime_options or RuntimeOptions.from_environment()
        self._catalog = catalog

    @property
    def catalog(self) -> CatalogReader:
        if self._catalog is None:
            self._catalog = SparkCatalogReader(self.runtime_options.get_spark())
        return self._catalog

    def generate(self, config: Scd2MergeConfig) -> MergeStatement:
        """Build the merge statement for config. Reads the catalog only."""
        dialect = get_dialect(self.runtime_options.dialect)

        columns = SchemaIntrospector(self.catalog).introspect(*config.target_table)
        classification = classify_columns(
            columns,
            config.primary_keys,
            config.start_date_column,
            config.end_date_column,
        )
        sentinels = NullSentinelResolver(config.sentinels, dialect)
        assembler = StatementAssembler(classification, sentinels, dialect)

        statement = assembler.assemble(
            target_table=dialect.table_reference(*config.target_table),
            source_table=dialect.table_reference(*config.source_table),
            source_filter=config.source_filter,
        )
        logger.info(
            f"Generated {dialect.name} SCD2 merge for {'.'.join(config.target_table)} "
            f"from {'.'.join(config.source_table)}"
        )
        return statement

    def run(self, config: Scd2MergeConfig) -> MergeResult:
        """
        Generate and execute the merge for config.

        Raises:
            ConfigurationError: the dialect cannot be executed on Spark, or
                the target is not a Delta table.
            SentinelCollisionError: a real key equals the key sentinels.
            Scd2Error: any classified engine failure.
        """
        statement = self.generate(config)
        options = self.runtime_options

        if options.dry_run:
            logger.info("Dry run: merge statement generated but not executed")
            return MergeResult(statement=statement, executed=False)

        if options.dialect != "spark":
            raise ConfigurationError(
                f"Statements in dialect '{options.dialect}' cannot be executed on Spark; "
                "use dry_run to render them"
            )

        executor = MergeExecutor(options.get_spark(), max_retries=options.max_retries)
        executor.ensure_delta_target(statement.target_table)

        if options.check_sentinel_collisions and statement.collision_probe:
            collisions = executor.count_collisions(statement.collision_probe)
            if collisions:
                raise SentinelCollisionError(
                    f"{collisions} rows in {statement.target_table} or "
                    f"{statement.source_table} have key values equal to the key "
                    "sentinels; change the sentinel values before merging",
                    {"collisions": str(collisions)},
                )

        return executor.execute(statement)


def _config_from_params(
    project_id: str,
    target_dataset_id: str,
    target_table_name: str,
    source_dataset_id: str,
    source_table_name: str,
    source_filter: str | None,
    primary_keys: str | Sequence[str],
    start_date_column: str,
    end_date_column: str,
) -> Scd2MergeConfig:
    return build_config(
        project_id=project_id,
        target_dataset_id=target_dataset_id,
        target_table_name=target_table_name,
        source_dataset_id=source_dataset_id,
        source_table_name=source_table_name,
        source_filter=source_filter,
        primary_keys=primary_keys,
        start_date_column=start_date_column,
        end_date_column=end_date_column,
    )


def generate_scd2_merge(
    project_id: str,
    target_dataset_id: str,
    target_table_name: str,
    source_dataset_id: str,
    source_table_name: str,
    source_filter: str | None,
    primary_keys: str | Sequence[str],
    start_date_column: str,
    end_date_column: str,
    *,
    catalog: CatalogReader | None = None,
    runtime_options: RuntimeOptions | None = None,
) -> str:
    """Return the SCD2 merge statement text without executing it."""
    config = _config_from_params(
        project_id,
        target_dataset_id,
        target_table_name,
        source_dataset_id,
        source_table_name,
        source_filter,
        primary_keys,
        start_date_column,
        end_date_column,
    )
    return Scd2MergeGenerator(catalog, runtime_options).generate(config).text


def perform_scd2_transform(
    project_id: str,
    target_dataset_id: str,
    target_table_name: str,
    source_dataset_id: str,
    source_table_name: str,
    source_filter: str | None,
    primary_keys: str | Sequence[str],
    start_date_column: str,
    end_date_column: str,
    *,
    catalog: CatalogReader | None = None,
    runtime_options: RuntimeOptions | None = None,
) -> MergeResult:
    """Generate and execute the SCD2 merge for a target table."""
    config = _config_from_params(
        project_id,
        target_dataset_id,
        target_table_name,
        source_dataset_id,
        source_table_name,
        source_filter,
        primary_keys,
        start_date_column,
        end_date_column,
    )
    return Scd2MergeGenerator(catalog, runtime_options).run(config)
