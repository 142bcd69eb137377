"""
Predicate and projection fragments for the SCD2 merge.

Keys are projected twice under the same positional aliases (JK0, JK1, ...):
once with their real values, so source rows can match the target, and once
with their sentinels, so the same rows can never match and are forced down
the INSERT path. Both lists keep key order, so the two projections of the
UNION ALL line up column by column.
"""

from __future__ import annotations

from scd2merge.common.constants import JOIN_KEY_PREFIX, SOURCE_ALIAS, TARGET_ALIAS
from scd2merge.processing.dialect import SqlDialect
from scd2merge.processing.models import ColumnClassification, ConditionFragment
from scd2merge.processing.sentinels import NullSentinelResolver


class ConditionBuilder:
    """Builds the join, alias and change-detection fragments."""

    def __init__(
        self,
        classification: ColumnClassification,
        sentinels: NullSentinelResolver,
        dialect: SqlDialect,
    ):
        self.classification = classification
        self.sentinels = sentinels
        self.dialect = dialect

    @staticmethod
    def join_key_alias(position: int) -> str:
        return f"{JOIN_KEY_PREFIX}{position}"

    def key_aliases(self) -> ConditionFragment:
        """`k0` AS JK0, `k1` AS JK1, ..."""
        keys = self.classification.key_columns
        return ConditionFragment(
            sql=", ".join(
                f"{self.dialect.quote_identifier(c.name)} AS {self.join_key_alias(i)}"
                for i, c in enumerate(keys)
            ),
            columns=tuple(c.name for c in keys),
        )

    def sentinel_key_aliases(self) -> ConditionFragment:
        """<sentinel(k0)> AS JK0, <sentinel(k1)> AS JK1, ..."""
        keys = self.classification.key_columns
        return ConditionFragment(
            sql=", ".join(
                f"{self.sentinels.resolve(c).sql} AS {self.join_key_alias(i)}"
                for i, c in enumerate(keys)
            ),
            columns=tuple(c.name for c in keys),
        )

    def key_join_condition(self) -> ConditionFragment:
        """Merge ON clause: T.k0 = S.JK0 AND T.k1 = S.JK1 ..."""
        keys = self.classification.key_columns
        return ConditionFragment(
            sql=" AND ".join(
                f"{self.dialect.column(TARGET_ALIAS, c.name)} = "
                f"{SOURCE_ALIAS}.{self.join_key_alias(i)}"
                for i, c in enumerate(keys)
            ),
            columns=tuple(c.name for c in keys),
        )

    def source_key_condition(self) -> ConditionFragment:
        """Source-to-target join on real keys: T.k = S.k AND ..."""
        keys = self.classification.key_columns
        return ConditionFragment(
            sql=" AND ".join(
                f"{self.dialect.column(TARGET_ALIAS, c.name)} = "
                f"{self.dialect.column(SOURCE_ALIAS, c.name)}"
                for c in keys
            ),
            columns=tuple(c.name for c in keys),
        )

    def change_condition(self) -> ConditionFragment:
        """
        True when at least one attribute differs between T and S.

        (coalesce(T.a, s) <> coalesce(S.a, s) OR ...) as one parenthesized
        group. A table without attributes never changes: (FALSE).
        """
        attributes = self.classification.attribute_columns
        if not attributes:
            return ConditionFragment(sql="(FALSE)")

        comparisons = []
        for column in attributes:
            sentinel = self.sentinels.resolve(column)
            target = self.dialect.null_safe(
                self.dialect.column(TARGET_ALIAS, column.name), sentinel
            )
            source = self.dialect.null_safe(
                self.dialect.column(SOURCE_ALIAS, column.name), sentinel
            )
            comparisons.append(f"{target} <> {source}")

        return ConditionFragment(
            sql="(" + " OR ".join(comparisons) + ")",
            columns=tuple(c.name for c in attributes),
        )

    def active_version_condition(self) -> ConditionFragment:
        """T.end = <open end>: the target row is the active version."""
        end = self.classification.end_column
        return ConditionFragment(
            sql=f"{self.dialect.column(TARGET_ALIAS, end.name)} = "
            f"{self.sentinels.open_end(end).sql}",
            columns=(end.name,),
        )

    def active_change_condition(self) -> ConditionFragment:
        """Change condition restricted to the active version."""
        return self.change_condition().and_(self.active_version_condition())

    def sentinel_key_probe(self, alias: str = TARGET_ALIAS) -> ConditionFragment:
        """Matches rows whose keys all equal their sentinels."""
        keys = self.classification.key_columns
        return ConditionFragment(
            sql=" AND ".join(
                f"{self.dialect.column(alias, c.name)} = {self.sentinels.resolve(c).sql}"
                for c in keys
            ),
            columns=tuple(c.name for c in keys),
        )
