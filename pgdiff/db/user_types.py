"""User-defined type dataclasses and queries (enum, composite, domain, range)."""

from dataclasses import dataclass

import psycopg

TYPE_KINDS = ("enum", "composite", "domain", "range")


@dataclass(frozen=True)
class CompositeAttribute:
    """One attribute of a composite type."""

    attribute_name: str
    data_type: str
    position: int = 0

    @property
    def key(self) -> str:
        return self.attribute_name


@dataclass(frozen=True)
class UserType:
    """Represents a user-defined PostgreSQL type.

    Only the fields relevant to ``kind`` are populated: ``enum_labels`` for
    enums, ``attributes`` for composites, ``base_type``/``default_value``/
    ``not_null``/``check_constraints`` for domains and ``subtype`` for ranges.
    """

    schema_name: str
    type_name: str
    kind: str
    enum_labels: tuple[str, ...] = ()
    attributes: tuple[CompositeAttribute, ...] = ()
    base_type: str | None = None
    default_value: str | None = None
    not_null: bool = False
    check_constraints: tuple[str, ...] = ()
    subtype: str | None = None
    owner: str | None = None
    comment: str | None = None

    @property
    def key(self) -> str:
        """Unique identifier for comparison within a schema."""
        return self.type_name

    @property
    def full_name(self) -> str:
        return f"{self.schema_name}.{self.type_name}"

    def find_attribute(self, attribute_name: str) -> CompositeAttribute | None:
        for attribute in self.attributes:
            if attribute.attribute_name == attribute_name:
                return attribute
        return None

    def __str__(self) -> str:
        return f"UserType({self.full_name})"


ENUM_QUERY = """
SELECT
    t.typname AS type_name,
    array_agg(e.enumlabel ORDER BY e.enumsortorder) AS labels,
    pg_get_userbyid(t.typowner) AS owner,
    obj_description(t.oid, 'pg_type') AS comment
FROM pg_enum e
JOIN pg_type t ON t.oid = e.enumtypid
JOIN pg_namespace n ON n.oid = t.typnamespace
WHERE n.nspname = %s
GROUP BY t.oid, t.typname, t.typowner
ORDER BY t.typname
"""

# Row types of tables, views and the like are not user types.
COMPOSITE_QUERY = """
SELECT
    t.typname AS type_name,
    array_agg(a.attname ORDER BY a.attnum) AS attribute_names,
    array_agg(pg_catalog.format_type(a.atttypid, a.atttypmod) ORDER BY a.attnum) AS attribute_types,
    array_agg(a.attnum ORDER BY a.attnum) AS attribute_positions,
    pg_get_userbyid(t.typowner) AS owner,
    obj_description(t.oid, 'pg_type') AS comment
FROM pg_type t
JOIN pg_namespace n ON n.oid = t.typnamespace
JOIN pg_class c ON c.oid = t.typrelid
JOIN pg_attribute a ON a.attrelid = c.oid AND a.attnum > 0 AND NOT a.attisdropped
WHERE n.nspname = %s
  AND t.typtype = 'c'
  AND c.relkind = 'c'
GROUP BY t.oid, t.typname, t.typowner
ORDER BY t.typname
"""

DOMAIN_QUERY = """
SELECT
    t.typname AS type_name,
    pg_catalog.format_type(t.typbasetype, t.typtypmod) AS base_type,
    pg_get_expr(t.typdefaultbin, 0) AS default_value,
    t.typnotnull AS not_null,
    ARRAY(
        SELECT pg_get_constraintdef(c.oid, true)
        FROM pg_constraint c
        WHERE c.contypid = t.oid AND c.contype = 'c'
        ORDER BY c.conname
    ) AS check_constraints,
    pg_get_userbyid(t.typowner) AS owner,
    obj_description(t.oid, 'pg_type') AS comment
FROM pg_type t
JOIN pg_namespace n ON n.oid = t.typnamespace
WHERE n.nspname = %s
  AND t.typtype = 'd'
ORDER BY t.typname
"""

RANGE_QUERY = """
SELECT
    t.typname AS type_name,
    pg_catalog.format_type(r.rngsubtype, NULL) AS subtype,
    pg_get_userbyid(t.typowner) AS owner,
    obj_description(t.oid, 'pg_type') AS comment
FROM pg_range r
JOIN pg_type t ON t.oid = r.rngtypid
JOIN pg_namespace n ON n.oid = t.typnamespace
WHERE n.nspname = %s
ORDER BY t.typname
"""


def fetch_user_types(conn: psycopg.Connection, schema_name: str) -> list[UserType]:
    """Fetch enum, composite, domain and range types of a schema."""
    types: list[UserType] = []
    with conn.cursor() as cur:
        cur.execute(ENUM_QUERY, (schema_name,))
        for row in cur.fetchall():
            types.append(
                UserType(
                    schema_name=schema_name,
                    type_name=row[0],
                    kind="enum",
                    enum_labels=tuple(row[1] or ()),
                    owner=row[2],
                    comment=row[3],
                )
            )

        cur.execute(COMPOSITE_QUERY, (schema_name,))
        for row in cur.fetchall():
            attributes = tuple(
                CompositeAttribute(attribute_name=name, data_type=data_type, position=position)
                for name, data_type, position in zip(row[1], row[2], row[3])
            )
            types.append(
                UserType(
                    schema_name=schema_name,
                    type_name=row[0],
                    kind="composite",
                    attributes=attributes,
                    owner=row[4],
                    comment=row[5],
                )
            )

        cur.execute(DOMAIN_QUERY, (schema_name,))
        for row in cur.fetchall():
            types.append(
                UserType(
                    schema_name=schema_name,
                    type_name=row[0],
                    kind="domain",
                    base_type=row[1],
                    default_value=row[2],
                    not_null=bool(row[3]),
                    check_constraints=tuple(row[4] or ()),
                    owner=row[5],
                    comment=row[6],
                )
            )

        cur.execute(RANGE_QUERY, (schema_name,))
        for row in cur.fetchall():
            types.append(
                UserType(
                    schema_name=schema_name,
                    type_name=row[0],
                    kind="range",
                    subtype=row[1],
                    owner=row[2],
                    comment=row[3],
                )
            )

    return sorted(types, key=lambda t: t.type_name)
