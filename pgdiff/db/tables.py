"""Table dataclass and query for PostgreSQL table introspection."""

from dataclasses import dataclass

import psycopg

from .columns import Column
from .constraints import CheckConstraint, ForeignKey, PrimaryKey, UniqueConstraint
from .indexes import Index
from .triggers import Trigger

# pg_partitioned_table.partstrat codes
PARTITION_STRATEGIES = {"r": "RANGE", "l": "LIST", "h": "HASH"}


@dataclass(frozen=True)
class Table:
    """Represents a PostgreSQL table with its columns and dependent objects."""

    schema_name: str
    table_name: str
    owner: str | None = None
    comment: str | None = None
    is_partitioned: bool = False
    partition_strategy: str | None = None
    partition_key: str | None = None
    is_partition: bool = False
    has_rls: bool = False
    tablespace: str | None = None
    columns: tuple[Column, ...] = ()
    primary_key: PrimaryKey | None = None
    foreign_keys: tuple[ForeignKey, ...] = ()
    unique_constraints: tuple[UniqueConstraint, ...] = ()
    check_constraints: tuple[CheckConstraint, ...] = ()
    indexes: tuple[Index, ...] = ()
    triggers: tuple[Trigger, ...] = ()

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a schema."""
        return self.table_name

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.table_name}"

    def find_column(self, column_name: str) -> Column | None:
        for column in self.columns:
            if column.column_name == column_name:
                return column
        return None

    def find_index(self, index_name: str) -> Index | None:
        for index in self.indexes:
            if index.index_name == index_name:
                return index
        return None

    def __str__(self) -> str:
        return f"Table({self.full_name})"


QUERY = """
SELECT
    n.nspname AS schema_name,
    c.relname AS table_name,
    pg_get_userbyid(c.relowner) AS owner,
    obj_description(c.oid, 'pg_class') AS comment,
    c.relkind = 'p' AS is_partitioned,
    pt.partstrat AS partition_strategy,
    pg_get_partkeydef(c.oid) AS partition_key,
    c.relispartition AS is_partition,
    c.relrowsecurity AS has_rls,
    ts.spcname AS tablespace
FROM pg_class c
JOIN pg_namespace n ON n.oid = c.relnamespace
LEFT JOIN pg_partitioned_table pt ON pt.partrelid = c.oid
LEFT JOIN pg_tablespace ts ON ts.oid = c.reltablespace
WHERE n.nspname = %s
  AND c.relkind IN ('r', 'p')
ORDER BY c.relname
"""


def fetch_tables(conn: psycopg.Connection, schema_name: str) -> list[tuple]:
    """Fetch the table rows of a schema.

    Sub-objects are attached by the caller (see ``database.fetch_schema``),
    since the frozen Table needs all of them at construction time.
    """
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        return cur.fetchall()


def table_from_row(row: tuple, **children) -> Table:
    """Build a Table from a QUERY row plus its already-fetched sub-objects."""
    return Table(
        schema_name=row[0],
        table_name=row[1],
        owner=row[2],
        comment=row[3],
        is_partitioned=bool(row[4]),
        partition_strategy=PARTITION_STRATEGIES.get(row[5]) if row[5] else None,
        partition_key=row[6],
        is_partition=bool(row[7]),
        has_rls=bool(row[8]),
        tablespace=row[9],
        **children,
    )
