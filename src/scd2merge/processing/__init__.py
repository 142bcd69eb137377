"""
SCD2 Merge Framework Processing Module.

Contains the statement-generation pipeline: introspection, column
classification, null sentinels, condition building and assembly.
"""

from scd2merge.processing.assembler import StatementAssembler
from scd2merge.processing.classifier import classify_columns
from scd2merge.processing.conditions import ConditionBuilder
from scd2merge.processing.introspector import SchemaIntrospector
from scd2merge.processing.sentinels import NullSentinelResolver

__all__ = [
    "SchemaIntrospector",
    "classify_columns",
    "NullSentinelResolver",
    "ConditionBuilder",
    "StatementAssembler",
]
