"""Extension dataclass and query for PostgreSQL extension introspection."""

from dataclasses import dataclass

import psycopg


@dataclass(frozen=True)
class Extension:
    """Represents an installed PostgreSQL extension."""

    name: str
    version: str | None = None
    schema_name: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison (extensions are database-wide)."""
        return self.name

    def __str__(self) -> str:
        return f"Extension({self.name} {self.version})"


QUERY = """
SELECT
    e.extname AS name,
    e.extversion AS version,
    n.nspname AS schema_name
FROM pg_extension e
JOIN pg_namespace n ON n.oid = e.extnamespace
ORDER BY e.extname
"""


def fetch_extensions(conn: psycopg.Connection) -> list[Extension]:
    """Fetch all installed extensions of the connected database."""
    with conn.cursor() as cur:
        cur.execute(QUERY)
        return [
            Extension(name=row[0], version=row[1], schema_name=row[2])
            for row in cur.fetchall()
        ]
