from datetime import date, datetime

# Null sentinels used for null-safe comparisons
DEFAULT_STRING_SENTINEL = "NULL"
DEFAULT_NUMERIC_SENTINEL = -1
DEFAULT_DATE_SENTINEL = date(1900, 1, 1)

# Open end of the validity period for the active version
DEFAULT_OPEN_END = datetime(9999, 12, 31, 23, 59, 59)

# Aliases used inside the generated merge statement
TARGET_ALIAS = "T"
SOURCE_ALIAS = "S"
JOIN_KEY_PREFIX = "JK"

SUPPORTED_DIALECTS = ("spark", "bigquery")
DEFAULT_DIALECT = "spark"

# Environment variables read by RuntimeOptions.from_environment()
SCD2_DIALECT_ENV = "SCD2_DIALECT"
SCD2_CHECK_SENTINEL_COLLISIONS_ENV = "SCD2_CHECK_SENTINEL_COLLISIONS"
SCD2_DRY_RUN_ENV = "SCD2_DRY_RUN"
SCD2_MAX_RETRIES_ENV = "SCD2_MAX_RETRIES"
