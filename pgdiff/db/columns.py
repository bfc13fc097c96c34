"""Column dataclass and query for PostgreSQL column introspection."""

from collections import defaultdict
from dataclasses import dataclass

import psycopg

# pg_attribute.attidentity codes
IDENTITY_TYPES = {"a": "ALWAYS", "d": "BY DEFAULT"}


@dataclass(frozen=True)
class Column:
    """Represents a PostgreSQL table column."""

    column_name: str
    data_type: str
    nullable: bool = True
    default_value: str | None = None
    is_identity: bool = False
    identity_type: str | None = None
    is_generated: bool = False
    generation_expression: str | None = None
    collation: str | None = None
    position: int = 0
    comment: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.column_name

    @property
    def identity(self) -> str | None:
        """Identity type (ALWAYS / BY DEFAULT) for identity columns, else None."""
        if not self.is_identity:
            return None
        return self.identity_type or "YES"

    def __str__(self) -> str:
        return f"Column({self.key})"


QUERY = """
SELECT
    c.relname AS table_name,
    a.attname AS column_name,
    pg_catalog.format_type(a.atttypid, a.atttypmod) AS data_type,
    NOT a.attnotnull AS is_nullable,
    CASE WHEN a.attgenerated = '' THEN pg_get_expr(d.adbin, d.adrelid) END AS default_value,
    a.attidentity AS identity,
    CASE WHEN a.attgenerated <> '' THEN pg_get_expr(d.adbin, d.adrelid) END AS generation_expression,
    CASE WHEN a.attcollation <> t.typcollation THEN co.collname END AS collation,
    a.attnum AS ordinal_position,
    col_description(c.oid, a.attnum) AS comment
FROM pg_attribute a
JOIN pg_class c ON c.oid = a.attrelid
JOIN pg_namespace n ON n.oid = c.relnamespace
JOIN pg_type t ON t.oid = a.atttypid
LEFT JOIN pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
LEFT JOIN pg_collation co ON co.oid = a.attcollation
WHERE n.nspname = %s
  AND c.relkind IN ('r', 'p')
  AND a.attnum > 0
  AND NOT a.attisdropped
ORDER BY c.relname, a.attnum
"""


def column_from_row(row: tuple) -> Column:
    """Build a Column from a QUERY row (without the leading table name)."""
    identity_code = row[4] or ""
    return Column(
        column_name=row[0],
        data_type=row[1],
        nullable=bool(row[2]),
        default_value=row[3],
        is_identity=identity_code in IDENTITY_TYPES,
        identity_type=IDENTITY_TYPES.get(identity_code),
        is_generated=row[5] is not None,
        generation_expression=row[5],
        collation=row[6],
        position=row[7],
        comment=row[8],
    )


def fetch_columns(conn: psycopg.Connection, schema_name: str) -> dict[str, list[Column]]:
    """Fetch all table columns of a schema, grouped by table name."""
    columns: dict[str, list[Column]] = defaultdict(list)
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        for row in cur.fetchall():
            columns[row[0]].append(column_from_row(row[1:]))
    return columns
