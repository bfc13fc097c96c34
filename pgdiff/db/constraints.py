"""Constraint dataclasses and queries for PostgreSQL constraint introspection."""

from collections import defaultdict
from dataclasses import dataclass, field

import psycopg

# pg_constraint.confupdtype / confdeltype codes
FK_ACTIONS = {
    "a": "NO ACTION",
    "r": "RESTRICT",
    "c": "CASCADE",
    "n": "SET NULL",
    "d": "SET DEFAULT",
}


@dataclass(frozen=True)
class PrimaryKey:
    """Represents a PostgreSQL primary key constraint."""

    constraint_name: str
    columns: tuple[str, ...] = ()
    index_tablespace: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.constraint_name

    @property
    def columns_display(self) -> str:
        return ", ".join(self.columns)

    def __str__(self) -> str:
        return f"PrimaryKey({self.key})"


@dataclass(frozen=True)
class ForeignKey:
    """Represents a PostgreSQL foreign key constraint."""

    constraint_name: str
    columns: tuple[str, ...] = ()
    referenced_schema: str | None = None
    referenced_table: str | None = None
    referenced_columns: tuple[str, ...] = ()
    on_delete: str = "NO ACTION"
    on_update: str = "NO ACTION"
    deferrable: bool = False
    initially_deferred: bool = False

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.constraint_name

    @property
    def referenced_full_name(self) -> str | None:
        """Return schema.table of the referenced table."""
        if self.referenced_table is None:
            return None
        if self.referenced_schema is None:
            return self.referenced_table
        return f"{self.referenced_schema}.{self.referenced_table}"

    @property
    def columns_display(self) -> str:
        return ", ".join(self.columns)

    @property
    def referenced_columns_display(self) -> str:
        return ", ".join(self.referenced_columns)

    def __str__(self) -> str:
        return f"ForeignKey({self.key})"


@dataclass(frozen=True)
class UniqueConstraint:
    """Represents a PostgreSQL unique constraint."""

    constraint_name: str
    columns: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.constraint_name

    @property
    def columns_display(self) -> str:
        return ", ".join(self.columns)

    def __str__(self) -> str:
        return f"UniqueConstraint({self.key})"


@dataclass(frozen=True)
class CheckConstraint:
    """Represents a PostgreSQL check constraint."""

    constraint_name: str
    expression: str | None = None
    no_inherit: bool = False

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a table."""
        return self.constraint_name

    def __str__(self) -> str:
        return f"CheckConstraint({self.key})"


# One row per constraint. Column arrays keep the constraint's own column order.
# Check expressions come from pg_get_constraintdef() so they are canonical
# across DDL rewrites.
QUERY = """
SELECT
    t.relname AS table_name,
    c.conname AS constraint_name,
    c.contype AS constraint_type,
    ARRAY(
        SELECT a.attname
        FROM unnest(c.conkey) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_attribute a ON a.attrelid = c.conrelid AND a.attnum = k.attnum
        ORDER BY k.ord
    ) AS columns,
    rn.nspname AS referenced_schema,
    rt.relname AS referenced_table,
    ARRAY(
        SELECT a.attname
        FROM unnest(c.confkey) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_attribute a ON a.attrelid = c.confrelid AND a.attnum = k.attnum
        ORDER BY k.ord
    ) AS referenced_columns,
    c.confdeltype AS on_delete,
    c.confupdtype AS on_update,
    c.condeferrable AS deferrable,
    c.condeferred AS initially_deferred,
    CASE WHEN c.contype = 'c' THEN pg_get_constraintdef(c.oid, true) END AS expression,
    c.connoinherit AS no_inherit,
    ts.spcname AS index_tablespace
FROM pg_constraint c
JOIN pg_class t ON t.oid = c.conrelid
JOIN pg_namespace n ON n.oid = t.relnamespace
LEFT JOIN pg_class rt ON rt.oid = c.confrelid
LEFT JOIN pg_namespace rn ON rn.oid = rt.relnamespace
LEFT JOIN pg_class ic ON ic.oid = c.conindid
LEFT JOIN pg_tablespace ts ON ts.oid = ic.reltablespace
WHERE n.nspname = %s
  AND c.contype IN ('p', 'f', 'u', 'c')
  AND t.relkind IN ('r', 'p')
ORDER BY t.relname, c.conname
"""


@dataclass
class TableConstraints:
    """Constraints collected for one table."""

    primary_key: PrimaryKey | None = None
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    unique_constraints: list[UniqueConstraint] = field(default_factory=list)
    check_constraints: list[CheckConstraint] = field(default_factory=list)


def fetch_constraints(
    conn: psycopg.Connection, schema_name: str
) -> dict[str, TableConstraints]:
    """Fetch all table constraints of a schema, grouped by table name."""
    constraints: dict[str, TableConstraints] = defaultdict(TableConstraints)
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        for row in cur.fetchall():
            add_constraint_row(constraints[row[0]], row)
    return constraints


def add_constraint_row(target: TableConstraints, row: tuple) -> None:
    """Map one QUERY row onto the matching constraint kind."""
    constraint_name = row[1]
    constraint_type = row[2]
    columns = tuple(row[3] or ())

    if constraint_type == "p":
        target.primary_key = PrimaryKey(
            constraint_name=constraint_name,
            columns=columns,
            index_tablespace=row[13],
        )
    elif constraint_type == "f":
        target.foreign_keys.append(
            ForeignKey(
                constraint_name=constraint_name,
                columns=columns,
                referenced_schema=row[4],
                referenced_table=row[5],
                referenced_columns=tuple(row[6] or ()),
                on_delete=FK_ACTIONS.get(row[7], "NO ACTION"),
                on_update=FK_ACTIONS.get(row[8], "NO ACTION"),
                deferrable=bool(row[9]),
                initially_deferred=bool(row[10]),
            )
        )
    elif constraint_type == "u":
        target.unique_constraints.append(
            UniqueConstraint(constraint_name=constraint_name, columns=columns)
        )
    elif constraint_type == "c":
        target.check_constraints.append(
            CheckConstraint(
                constraint_name=constraint_name,
                expression=row[11],
                no_inherit=bool(row[12]),
            )
        )
