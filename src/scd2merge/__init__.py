from scd2merge.common.config import ConfigLoader, Scd2MergeConfig, SentinelConfig
from scd2merge.common.errors import (
    ConfigurationError,
    DeltaConcurrentModificationError,
    InvalidPrimaryKeyError,
    MalformedFilterError,
    NonRetriableError,
    RetriableError,
    Scd2Error,
    SchemaMismatchError,
    SchemaNotFoundError,
    SentinelCollisionError,
    TransientSparkError,
    UnsupportedColumnTypeError,
    UnsupportedDateColumnTypeError,
)
from scd2merge.common.runtime import RuntimeOptions
from scd2merge.orchestration.executor import MergeExecutor, MergeResult
from scd2merge.orchestration.generator import (
    Scd2MergeGenerator,
    generate_scd2_merge,
    perform_scd2_transform,
)
from scd2merge.processing.introspector import (
    CatalogReader,
    InformationSchemaCatalogReader,
    SparkCatalogReader,
    StaticCatalogReader,
)

__all__ = [
    "Scd2MergeGenerator",
    "generate_scd2_merge",
    "perform_scd2_transform",
    "MergeExecutor",
    "MergeResult",
    # Configuration
    "ConfigLoader",
    "Scd2MergeConfig",
    "SentinelConfig",
    "RuntimeOptions",
    # Catalogs
    "CatalogReader",
    "SparkCatalogReader",
    "InformationSchemaCatalogReader",
    "StaticCatalogReader",
    # Errors
    "Scd2Error",
    "RetriableError",
    "NonRetriableError",
    "DeltaConcurrentModificationError",
    "TransientSparkError",
    "ConfigurationError",
    "SchemaNotFoundError",
    "InvalidPrimaryKeyError",
    "UnsupportedDateColumnTypeError",
    "UnsupportedColumnTypeError",
    "MalformedFilterError",
    "SchemaMismatchError",
    "SentinelCollisionError",
]
