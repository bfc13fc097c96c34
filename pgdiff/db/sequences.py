"""Sequence dataclass and query for PostgreSQL sequence introspection."""

from dataclasses import dataclass

import psycopg


@dataclass(frozen=True)
class Sequence:
    """Represents a PostgreSQL sequence."""

    schema_name: str
    sequence_name: str
    data_type: str = "bigint"
    start_value: int = 1
    increment: int = 1
    min_value: int = 1
    max_value: int = 9223372036854775807
    cache_size: int = 1
    cycle: bool = False
    owned_by_table: str | None = None
    owned_by_column: str | None = None
    owner: str | None = None
    comment: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison."""
        return self.sequence_name

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.sequence_name}"

    @property
    def owned_by(self) -> str | None:
        """Return table.column owning this sequence, if any."""
        if self.owned_by_table is None or self.owned_by_column is None:
            return None
        return f"{self.owned_by_table}.{self.owned_by_column}"

    def __str__(self) -> str:
        return f"Sequence({self.full_name})"


QUERY = """
SELECT
    n.nspname AS schema_name,
    c.relname AS sequence_name,
    pg_catalog.format_type(s.seqtypid, NULL) AS data_type,
    s.seqstart AS start_value,
    s.seqincrement AS increment,
    s.seqmin AS min_value,
    s.seqmax AS max_value,
    s.seqcache AS cache_size,
    s.seqcycle AS cycle,
    ot.relname AS owned_by_table,
    oa.attname AS owned_by_column,
    pg_get_userbyid(c.relowner) AS owner,
    obj_description(c.oid, 'pg_class') AS comment
FROM pg_sequence s
JOIN pg_class c ON c.oid = s.seqrelid
JOIN pg_namespace n ON n.oid = c.relnamespace
LEFT JOIN pg_depend d
  ON d.classid = 'pg_class'::regclass
 AND d.objid = c.oid
 AND d.refclassid = 'pg_class'::regclass
 AND d.deptype IN ('a', 'i')
LEFT JOIN pg_class ot ON ot.oid = d.refobjid
LEFT JOIN pg_attribute oa ON oa.attrelid = d.refobjid AND oa.attnum = d.refobjsubid
WHERE n.nspname = %s
ORDER BY c.relname
"""


def sequence_from_row(row: tuple) -> Sequence:
    """Build a Sequence from a QUERY row."""
    return Sequence(
        schema_name=row[0],
        sequence_name=row[1],
        data_type=row[2],
        start_value=row[3],
        increment=row[4],
        min_value=row[5],
        max_value=row[6],
        cache_size=row[7],
        cycle=bool(row[8]),
        owned_by_table=row[9],
        owned_by_column=row[10],
        owner=row[11],
        comment=row[12],
    )


def fetch_sequences(conn: psycopg.Connection, schema_name: str) -> list[Sequence]:
    """Fetch all sequences of a schema."""
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        return [sequence_from_row(row) for row in cur.fetchall()]
