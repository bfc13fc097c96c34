"""Trigger dataclass and query for PostgreSQL trigger introspection."""

from collections import defaultdict
from dataclasses import dataclass

import psycopg


@dataclass(frozen=True)
class Trigger:
    """Represents a PostgreSQL trigger."""

    trigger_name: str
    timing: str
    events: str
    level: str = "ROW"
    function_name: str | None = None
    function_schema: str | None = None
    condition: str | None = None
    enabled: bool = True
    definition: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.trigger_name

    @property
    def function_full_name(self) -> str | None:
        if self.function_schema is None:
            return self.function_name
        return f"{self.function_schema}.{self.function_name}"

    def __str__(self) -> str:
        return f"Trigger({self.key})"


# tgtype bits: 1 ROW, 2 BEFORE, 4 INSERT, 8 DELETE, 16 UPDATE, 32 TRUNCATE, 64 INSTEAD
QUERY = """
SELECT
    c.relname AS table_name,
    t.tgname AS trigger_name,
    CASE
        WHEN t.tgtype & 2 = 2 THEN 'BEFORE'
        WHEN t.tgtype & 64 = 64 THEN 'INSTEAD OF'
        ELSE 'AFTER'
    END AS timing,
    concat_ws(' OR ',
        CASE WHEN t.tgtype & 4 = 4 THEN 'INSERT' END,
        CASE WHEN t.tgtype & 16 = 16 THEN 'UPDATE' END,
        CASE WHEN t.tgtype & 8 = 8 THEN 'DELETE' END,
        CASE WHEN t.tgtype & 32 = 32 THEN 'TRUNCATE' END
    ) AS events,
    CASE WHEN t.tgtype & 1 = 1 THEN 'ROW' ELSE 'STATEMENT' END AS level,
    p.proname AS function_name,
    pn.nspname AS function_schema,
    substring(pg_get_triggerdef(t.oid, true) FROM 'WHEN \\((.*)\\) EXECUTE') AS condition,
    t.tgenabled <> 'D' AS enabled,
    pg_get_triggerdef(t.oid, true) AS definition
FROM pg_trigger t
JOIN pg_class c ON c.oid = t.tgrelid
JOIN pg_namespace n ON n.oid = c.relnamespace
JOIN pg_proc p ON p.oid = t.tgfoid
JOIN pg_namespace pn ON pn.oid = p.pronamespace
WHERE n.nspname = %s
  AND c.relkind IN ('r', 'p')
  AND NOT t.tgisinternal
ORDER BY c.relname, t.tgname
"""


def trigger_from_row(row: tuple) -> Trigger:
    """Build a Trigger from a QUERY row (without the leading table name)."""
    return Trigger(
        trigger_name=row[0],
        timing=row[1],
        events=row[2],
        level=row[3],
        function_name=row[4],
        function_schema=row[5],
        condition=row[6],
        enabled=bool(row[7]),
        definition=row[8],
    )


def fetch_triggers(conn: psycopg.Connection, schema_name: str) -> dict[str, list[Trigger]]:
    """Fetch all user triggers of a schema, grouped by table name."""
    triggers: dict[str, list[Trigger]] = defaultdict(list)
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        for row in cur.fetchall():
            triggers[row[0]].append(trigger_from_row(row[1:]))
    return triggers
