"""PySpark exception base class compatibility across Runtime versions.

The PYSPARK_EXCEPTION_BASE is determined at import time via feature detection,
providing a stable base for catching PySpark exceptions regardless of the
Databricks Runtime version. Framework errors live in errors.py.
"""

from __future__ import annotations

# Databricks Runtime 13+ moved errors to pyspark.errors
PYSPARK_EXCEPTION_BASE: type[Exception]

try:
    # Databricks Runtime 13+ / PySpark 3.4+
    from pyspark.errors import PySparkException

    PYSPARK_EXCEPTION_BASE = PySparkException
except ImportError:
    # Older Databricks Runtime versions (11.x, 12.x)
    from pyspark.sql.utils import AnalysisException

    PYSPARK_EXCEPTION_BASE = AnalysisException

__all__ = ["PYSPARK_EXCEPTION_BASE"]
