"""Function/procedure dataclass and query for PostgreSQL introspection."""

from dataclasses import dataclass

import psycopg


@dataclass(frozen=True)
class Function:
    """Represents a PostgreSQL function or procedure."""

    schema_name: str
    function_name: str
    kind: str = "function"  # 'function', 'procedure', 'aggregate' or 'window'
    arguments: str = ""
    return_type: str | None = None
    language: str = "sql"
    definition: str | None = None
    volatility: str = "volatile"
    is_strict: bool = False
    security_definer: bool = False
    owner: str | None = None
    comment: str | None = None

    @property
    def key(self) -> str:
        """Signature, unique within a schema across overloads."""
        return f"{self.function_name}({self.arguments})"

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.key}"

    @property
    def is_procedure(self) -> bool:
        return self.kind == "procedure"

    def __str__(self) -> str:
        return f"Function({self.full_name})"


QUERY = """
SELECT
    n.nspname AS schema_name,
    p.proname AS function_name,
    CASE p.prokind
        WHEN 'f' THEN 'function'
        WHEN 'p' THEN 'procedure'
        WHEN 'a' THEN 'aggregate'
        WHEN 'w' THEN 'window'
    END AS kind,
    pg_get_function_identity_arguments(p.oid) AS arguments,
    pg_get_function_result(p.oid) AS return_type,
    l.lanname AS language,
    CASE WHEN p.prokind IN ('f', 'p') THEN p.prosrc END AS definition,
    CASE p.provolatile
        WHEN 'i' THEN 'immutable'
        WHEN 's' THEN 'stable'
        WHEN 'v' THEN 'volatile'
    END AS volatility,
    p.proisstrict AS is_strict,
    p.prosecdef AS security_definer,
    pg_get_userbyid(p.proowner) AS owner,
    obj_description(p.oid, 'pg_proc') AS comment
FROM pg_proc p
JOIN pg_namespace n ON n.oid = p.pronamespace
JOIN pg_language l ON l.oid = p.prolang
WHERE n.nspname = %s
  AND NOT EXISTS (
      SELECT 1 FROM pg_depend d
      WHERE d.objid = p.oid AND d.deptype = 'e'
  )
ORDER BY p.proname, pg_get_function_identity_arguments(p.oid)
"""


def fetch_functions(conn: psycopg.Connection, schema_name: str) -> list[Function]:
    """Fetch all functions and procedures of a schema, skipping extension members."""
    functions = []
    with conn.cursor() as cur:
        cur.execute(QUERY, (schema_name,))
        for row in cur.fetchall():
            functions.append(
                Function(
                    schema_name=row[0],
                    function_name=row[1],
                    kind=row[2],
                    arguments=row[3] or "",
                    return_type=row[4],
                    language=row[5],
                    definition=row[6],
                    volatility=row[7],
                    is_strict=bool(row[8]),
                    security_definer=bool(row[9]),
                    owner=row[10],
                    comment=row[11],
                )
            )
    return functions
