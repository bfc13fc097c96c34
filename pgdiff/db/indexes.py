"""Index dataclass and query for PostgreSQL index introspection."""

from collections import defaultdict
from dataclasses import dataclass

import psycopg


@dataclass(frozen=True)
class Index:
    """Represents a PostgreSQL index."""

    index_name: str
    index_type: str = "btree"
    columns: tuple[str, ...] = ()
    include_columns: tuple[str, ...] = ()
    is_unique: bool = False
    is_primary: bool = False
    where_clause: str | None = None
    expression_def: str | None = None
    tablespace: str | None = None
    definition: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.index_name

    @property
    def columns_display(self) -> str:
        return ", ".join(self.columns)

    @property
    def is_partial(self) -> bool:
        return bool(self.where_clause)

    @property
    def is_expression(self) -> bool:
        return bool(self.expression_def)

    def __str__(self) -> str:
        return f"Index({self.key})"


# Primary key indexes are reported through the primary key constraint.
# indkey is split at indnkeyatts into key columns and INCLUDE columns.
QUERY = """
SELECT
    t.relname AS table_name,
    i.relname AS index_name,
    am.amname AS index_type,
    ARRAY(
        SELECT a.attname
        FROM unnest(ix.indkey::int2[]) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_attribute a ON a.attrelid = ix.indrelid AND a.attnum = k.attnum
        WHERE k.ord <= ix.indnkeyatts
        ORDER BY k.ord
    ) AS columns,
    ARRAY(
        SELECT a.attname
        FROM unnest(ix.indkey::int2[]) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_attribute a ON a.attrelid = ix.indrelid AND a.attnum = k.attnum
        WHERE k.ord > ix.indnkeyatts
        ORDER BY k.ord
    ) AS include_columns,
    ix.indisunique AS is_unique,
    ix.indisprimary AS is_primary,
    pg_get_expr(ix.indpred, ix.indrelid) AS where_clause,
    pg_get_expr(ix.indexprs, ix.indrelid) AS expression_def,
    ts.spcname AS tablespace,
    pg_get_indexdef(ix.indexrelid) AS definition
FROM pg_index ix
JOIN pg_class i ON i.oid = ix.indexrelid
JOIN pg_class t ON t.oid = ix.indrelid
JOIN pg_namespace n ON n.oid = t.relnamespace
JOIN pg_am am ON am.oid = i.relam
LEFT JOIN pg_tablespace ts ON ts.oid = i.reltablespace
WHERE n.nspname = %s
  AND t.relkind IN ('r', 'p')
  AND NOT ix.indisprimary
ORDER BY t.relname, i.relname
"""


def index_from_row(row: tuple) -> Index:
    """Build an Index from a QUERY row (without the leading table name)."""
    return Index(
        index_name=row[0],
        index_type=row[1],
        columns=tuple(row[2] or ()),
        include_columns=tuple(row[3] or ()),
        is_unique=bool(row[4]),
        is_primary=bool(row[5]),
        where_clause=row[6],
        expression_def=row[7],
        tablespace=row[8],
        definition=row[9],
    )


def fetch_indexes(conn: psycopg.Connection, schema_name: str) -> dict[str, list[Index]]:
    """Fetch all indexes of a schema, grouped by table name."""
    indexes: dict[str, list[Index]] = defaultdict(list)
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        for row in cur.fetchall():
            indexes[row[0]].append(index_from_row(row[1:]))
    return indexes
