"""Schema snapshot root and query for PostgreSQL schema introspection."""

from dataclasses import dataclass

import psycopg

from .extensions import Extension
from .functions import Function
from .sequences import Sequence
from .tables import Table
from .user_types import UserType
from .views import View


@dataclass(frozen=True)
class Schema:
    """Point-in-time structural snapshot of one PostgreSQL schema."""

    schema_name: str
    owner: str | None = None
    tables: tuple[Table, ...] = ()
    sequences: tuple[Sequence, ...] = ()
    views: tuple[View, ...] = ()
    functions: tuple[Function, ...] = ()
    types: tuple[UserType, ...] = ()
    extensions: tuple[Extension, ...] = ()

    @property
    def key(self) -> str:
        """Unique identifier for comparison."""
        return self.schema_name

    def find_table(self, table_name: str) -> Table | None:
        for table in self.tables:
            if table.table_name == table_name:
                return table
        return None

    def find_sequence(self, sequence_name: str) -> Sequence | None:
        for sequence in self.sequences:
            if sequence.sequence_name == sequence_name:
                return sequence
        return None

    def object_counts(self) -> dict[str, int]:
        """Return the number of objects per category."""
        return {
            "tables": len(self.tables),
            "columns": sum(len(t.columns) for t in self.tables),
            "indexes": sum(len(t.indexes) for t in self.tables),
            "constraints": sum(
                (1 if t.primary_key else 0)
                + len(t.foreign_keys)
                + len(t.unique_constraints)
                + len(t.check_constraints)
                for t in self.tables
            ),
            "triggers": sum(len(t.triggers) for t in self.tables),
            "views": len(self.views),
            "functions": len(self.functions),
            "sequences": len(self.sequences),
            "types": len(self.types),
            "extensions": len(self.extensions),
        }

    def __str__(self) -> str:
        return f"Schema({self.schema_name})"


QUERY = """
SELECT
    n.nspname AS schema_name,
    pg_get_userbyid(n.nspowner) AS owner
FROM pg_namespace n
WHERE n.nspname = %s
"""


def fetch_schema_row(conn: psycopg.Connection, schema_name: str) -> tuple | None:
    """Return (name, owner) for the schema, or None when it does not exist."""
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        return cur.fetchone()
