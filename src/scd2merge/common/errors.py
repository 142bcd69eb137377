"""
SCD2 Merge Framework Error Classification

Errors are divided into two categories:
- RetriableError: Transient issues that may succeed on retry (environment issues)
- NonRetriableError: Permanent issues that won't succeed on retry (metadata/SQL issues)

Every error aborts the whole generate-and-execute cycle. The merge statement is
all-or-nothing, so the target table is left unmodified.
"""


class Scd2Error(Exception):
    """Base exception for all SCD2 merge framework errors."""

    retriable = False

    def __init__(self, message: str, details: dict[str, str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# RETRIABLE ERRORS - May succeed on retry (transient environment issues)
# =============================================================================


class RetriableError(Scd2Error):
    """Errors that may succeed on retry (transient environment issues)."""

    retriable = True


class DeltaConcurrentModificationError(RetriableError):
    """Concurrent write conflict on the target table.

    Another process merged into the same table. The engine rolled our merge
    back, so running it again never applies a partial result.
    """

    pass


class TransientSparkError(RetriableError):
    """Transient Spark cluster issues (executor lost, shuffle failure, etc)."""

    pass


# =============================================================================
# NON-RETRIABLE ERRORS - Will NOT succeed on retry
# =============================================================================


class NonRetriableError(Scd2Error):
    """Errors that will NOT succeed on retry (metadata/SQL issues)."""

    retriable = False


class ConfigurationError(NonRetriableError):
    """Invalid YAML configuration or invalid call parameters.

    Examples:
    - Missing required fields (target_table_name, primary_keys)
    - Unknown dialect
    - Unsafe identifiers
    """

    pass


class SchemaNotFoundError(NonRetriableError):
    """Target table is absent from the catalog at introspection time."""

    pass


class InvalidPrimaryKeyError(NonRetriableError):
    """A primary key name does not match any target column, or no key is left
    once the validity-period columns are removed."""

    pass


class UnsupportedDateColumnTypeError(NonRetriableError):
    """Start/end validity columns are missing or not DATE, DATETIME or TIMESTAMP."""

    pass


class UnsupportedColumnTypeError(NonRetriableError):
    """A column needs a null sentinel but its type is outside the supported
    families (strings, dates/times and numerics)."""

    pass


class MalformedFilterError(NonRetriableError):
    """The caller-supplied source filter is not valid SQL in its position.

    Only surfaces when the engine compiles the merge statement; the
    filter is never pre-validated.
    """

    pass


class SchemaMismatchError(NonRetriableError):
    """Source and target column sets differ.

    Surfaces as an execution-time failure of the generated UNION / INSERT.
    """

    pass


class SentinelCollisionError(NonRetriableError):
    """A real key value equals the key sentinels, so forced inserts could
    match an existing row."""

    pass


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def is_retriable(error: Exception) -> bool:
    """Check if an error is retriable."""
    if isinstance(error, Scd2Error):
        return error.retriable

    error_msg = str(error).lower()
    retriable_patterns = [
        "concurrent",
        "transaction conflict",
        "optimistic concurrency",
        "executor lost",
        "shuffle",
        "timeout",
        "connection reset",
    ]
    return any(pattern in error_msg for pattern in retriable_patterns)


def _headline(error: Exception) -> str:
    """First non-empty line of an engine message, lower-cased.

    Spark appends the offending statement (== SQL ==) or the logical plan
    after the first line; only the headline describes the error.
    """
    for line in str(error).splitlines():
        if line.strip():
            return line.strip().lower()
    return ""


def wrap_exception(original: Exception) -> Scd2Error:
    """Wrap an engine exception raised while running a merge statement."""
    if isinstance(original, Scd2Error):
        return original

    error_msg = _headline(original)
    details = {"original_error": str(original)}

    if "concurrent" in error_msg or "transaction conflict" in error_msg:
        return DeltaConcurrentModificationError(
            f"Delta concurrency conflict: {original}", details
        )

    if "executor lost" in error_msg or "shuffle" in error_msg:
        return TransientSparkError(f"Spark transient error: {original}", details)

    if (
        "table or view not found" in error_msg
        or "table_or_view_not_found" in error_msg
        or "not found: table" in error_msg
    ):
        return SchemaNotFoundError(f"Missing table: {original}", details)

    if (
        "parse_syntax_error" in error_msg
        or "syntax error" in error_msg
        or "unresolved_column" in error_msg
        or "cannot resolve" in error_msg
        or "cannot be resolved" in error_msg
        or "unrecognized name" in error_msg
    ):
        return MalformedFilterError(
            f"Merge statement failed to compile, check the source filter: {original}",
            details,
        )

    if (
        "[num_columns_mismatch]" in error_msg
        or "[incompatible_column_type]" in error_msg
        or "[datatype_mismatch" in error_msg
        or "number of columns" in error_msg
        or "incompatible types" in error_msg
        or "cannot be inserted into column" in error_msg
    ):
        return SchemaMismatchError(
            f"Source and target columns differ: {original}", details
        )

    return NonRetriableError(f"Unknown error: {original}", details)
