from __future__ import annotations

import re
from collections.abc import Sequence

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Project ids may contain dashes (e.g. BigQuery 'my-test-project')
_PROJECT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_\-]*$")


def is_valid_identifier(name: str) -> bool:
    """Validate that a name is a safe SQL identifier."""
    return bool(_IDENTIFIER_RE.match(name))


def is_valid_project_id(name: str) -> bool:
    return bool(_PROJECT_RE.match(name))


def quote_table_name(table_name: str) -> str:
    """
    Properly quote a multi-part table name for SQL.

    Handles 1, 2, or 3 part names:
    - 'table' → '`table`'
    - 'schema.table' → '`schema`.`table`'
    - 'catalog.schema.table' → '`catalog`.`schema`.`table`'
    """
    parts = table_name.split(".")
    return ".".join(f"`{part}`" for part in parts)


def split_primary_keys(primary_keys: str | Sequence[str]) -> list[str]:
    """
    Normalise a primary key list.

    Accepts either a comma-separated string ('pk1, pk2') or a sequence of
    names. Whitespace is trimmed and empty items are dropped; the caller's
    order is kept and duplicates are removed.
    """
    if isinstance(primary_keys, str):
        items = primary_keys.split(",")
    else:
        items = list(primary_keys)

    keys: list[str] = []
    for item in items:
        name = item.strip()
        if name and name not in keys:
            keys.append(name)
    return keys
