"""View dataclass and query for PostgreSQL view introspection."""

from dataclasses import dataclass

import psycopg


@dataclass(frozen=True)
class View:
    """Represents a PostgreSQL view or materialized view."""

    schema_name: str
    view_name: str
    definition: str | None = None
    is_materialized: bool = False
    owner: str | None = None
    comment: str | None = None
    is_populated: bool = True

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a schema."""
        return self.view_name

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.view_name}"

    def __str__(self) -> str:
        return f"View({self.full_name})"


QUERY = """
SELECT
    n.nspname AS schema_name,
    c.relname AS view_name,
    pg_get_viewdef(c.oid, true) AS definition,
    c.relkind = 'm' AS is_materialized,
    pg_get_userbyid(c.relowner) AS owner,
    obj_description(c.oid, 'pg_class') AS comment,
    c.relispopulated AS is_populated
FROM pg_class c
JOIN pg_namespace n ON n.oid = c.relnamespace
WHERE n.nspname = %s
  AND c.relkind IN ('v', 'm')
ORDER BY c.relname
"""


def fetch_views(conn: psycopg.Connection, schema_name: str) -> list[View]:
    """Fetch all views and materialized views of a schema."""
    views = []
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        for row in cur.fetchall():
            views.append(
                View(
                    schema_name=row[0],
                    view_name=row[1],
                    definition=row[2],
                    is_materialized=bool(row[3]),
                    owner=row[4],
                    comment=row[5],
                    is_populated=bool(row[6]),
                )
            )
    return views
