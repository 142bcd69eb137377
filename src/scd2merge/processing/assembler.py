"""
StatementAssembler - composes the SCD2 MERGE from its fragments.

Shape of the generated statement:

    MERGE INTO <target> T
    USING (
      SELECT <real keys AS JKi>, * FROM <source> S          -- (a)
      UNION ALL
      SELECT <sentinel keys AS JKi>, S.* FROM <source> S    -- (b)
      JOIN <target> T ON <real keys equal> AND (<active version changed>)
    ) S
    ON <T.key_i = S.JKi>
    WHEN MATCHED AND <active version changed> THEN UPDATE SET <end> = <now>
    WHEN NOT MATCHED THEN INSERT (<columns>, <start>, <end>)
                          VALUES (<S.columns>, <now>, <open end>)

- New keys: only (a), no match -> INSERT.
- Changed keys: (a) matches the active version -> UPDATE expires it;
  (b) carries sentinel keys, never matches -> INSERT of the new version.
- Unchanged keys: (a) matches but nothing changed -> no-op; (b) empty.
"""

from __future__ import annotations

import logging

from scd2merge.common.constants import SOURCE_ALIAS, TARGET_ALIAS
from scd2merge.processing.conditions import ConditionBuilder
from scd2merge.processing.dialect import SqlDialect
from scd2merge.processing.models import ColumnClassification, MergeStatement
from scd2merge.processing.sentinels import NullSentinelResolver

logger = logging.getLogger(__name__)


class StatementAssembler:
    """Turns a classification into one MERGE statement."""

    def __init__(
        self,
        classification: ColumnClassification,
        sentinels: NullSentinelResolver,
        dialect: SqlDialect,
    ):
        self.classification = classification
        self.sentinels = sentinels
        self.dialect = dialect
        self.conditions = ConditionBuilder(classification, sentinels, dialect)

    def source_relation(self, source_table: str, source_filter: str | None) -> str:
        """Source table, wrapped in a filtering subquery when a filter is set.

        The filter is inserted verbatim; the engine reports it if invalid. The
        source keeps its alias inside the subquery, so both `col` and `S.col`
        resolve.
        """
        if source_filter and source_filter.strip():
            return (
                f"(SELECT * FROM {source_table} {SOURCE_ALIAS} "
                f"WHERE {source_filter.strip()})"
            )
        return source_table

    def assemble(
        self,
        target_table: str,
        source_table: str,
        source_filter: str | None = None,
    ) -> MergeStatement:
        """
        Build the MERGE statement.

        Args:
            target_table: Rendered target table reference
            source_table: Rendered source table reference
            source_filter: Optional WHERE condition for the source table
        """
        cls = self.classification
        q = self.dialect.quote_identifier
        source = self.source_relation(source_table, source_filter)

        key_aliases = self.conditions.key_aliases()
        sentinel_keys = self.conditions.sentinel_key_aliases()
        key_join = self.conditions.key_join_condition()
        source_keys = self.conditions.source_key_condition()
        active_change = self.conditions.active_change_condition()

        insert_names = [q(c.name) for c in cls.insert_columns]
        insert_values = [self.dialect.column(SOURCE_ALIAS, c.name) for c in cls.insert_columns]
        start = cls.start_column
        end = cls.end_column

        lines = [
            f"MERGE INTO {target_table} {TARGET_ALIAS}",
            "USING (",
            f"  SELECT {key_aliases}, * FROM {source} {SOURCE_ALIAS}",
            "  UNION ALL",
            f"  SELECT {sentinel_keys}, {SOURCE_ALIAS}.* FROM {source} {SOURCE_ALIAS}",
            f"  JOIN {target_table} {TARGET_ALIAS}",
            f"    ON {source_keys} AND ({active_change})",
            f") {SOURCE_ALIAS}",
            f"ON {key_join}",
            f"WHEN MATCHED AND {active_change} THEN",
            f"  UPDATE SET {q(end.name)} = {self.sentinels.now(end)}",
            "WHEN NOT MATCHED THEN",
            f"  INSERT ({', '.join(insert_names)}, {q(start.name)}, {q(end.name)})",
            f"  VALUES ({', '.join(insert_values)}, {self.sentinels.now(start)}, "
            f"{self.sentinels.open_end(end)})",
        ]
        text = "\n".join(lines)
        logger.debug(f"Assembled SCD2 merge statement:\n{text}")

        return MergeStatement(
            text=text,
            target_table=target_table,
            source_table=source_table,
            classification=cls,
            collision_probe=self.collision_probe(target_table, source),
        )

    def collision_probe(self, target_table: str, source: str) -> str:
        """
        Count rows in target or source whose keys all equal the key sentinels.

        Such a row would let the forced-insert rows of (b) match, so the
        merge must not run while the count is non-zero.
        """
        keys = ", ".join(
            self.dialect.quote_identifier(c.name) for c in self.classification.key_columns
        )
        probe = self.conditions.sentinel_key_probe(TARGET_ALIAS)
        return "\n".join(
            [
                "SELECT COUNT(*) AS collisions FROM (",
                f"  SELECT {keys} FROM {target_table}",
                "  UNION ALL",
                f"  SELECT {keys} FROM {source} {SOURCE_ALIAS}",
                f") {TARGET_ALIAS}",
                f"WHERE {probe}",
            ]
        )
