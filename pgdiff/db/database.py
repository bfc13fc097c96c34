"""Build Schema snapshots from a live PostgreSQL database."""

from typing import TYPE_CHECKING

import psycopg

from ..exceptions import IntrospectionError, UnknownInstanceError
from ..utils.logging import get_logger
from .columns import fetch_columns
from .constraints import TableConstraints, fetch_constraints
from .extensions import fetch_extensions
from .functions import fetch_functions
from .indexes import fetch_indexes
from .schemas import Schema, fetch_schema_row
from .sequences import fetch_sequences
from .tables import fetch_tables, table_from_row
from .triggers import fetch_triggers
from .user_types import fetch_user_types
from .views import fetch_views

if TYPE_CHECKING:
    from ..config import Settings

logger = get_logger(__name__)


def fetch_schema(
    conn: psycopg.Connection, schema_name: str, instance: str = "database"
) -> Schema:
    """Fetch a complete snapshot of one schema.

    All catalog queries run inside a single transaction that is rolled back
    afterwards, so the snapshot is consistent and nothing is persisted.

    Raises:
        IntrospectionError: The schema does not exist or a catalog query failed.
    """
    try:
        with conn.transaction():
            schema = _fetch_schema(conn, schema_name, instance)
            raise psycopg.Rollback()
    except psycopg.Rollback:
        pass
    except psycopg.Error as e:
        raise IntrospectionError(instance, schema_name, str(e)) from e

    logger.debug(
        "schema_snapshot_built",
        instance=instance,
        schema=schema_name,
        **schema.object_counts(),
    )
    return schema


def _fetch_schema(conn: psycopg.Connection, schema_name: str, instance: str) -> Schema:
    schema_row = fetch_schema_row(conn, schema_name)
    if schema_row is None:
        raise IntrospectionError(instance, schema_name, "schema does not exist")

    columns = fetch_columns(conn, schema_name)
    constraints = fetch_constraints(conn, schema_name)
    indexes = fetch_indexes(conn, schema_name)
    triggers = fetch_triggers(conn, schema_name)

    tables = []
    for row in fetch_tables(conn, schema_name):
        table_name = row[1]
        table_constraints = constraints.get(table_name, TableConstraints())
        tables.append(
            table_from_row(
                row,
                columns=tuple(columns.get(table_name, ())),
                primary_key=table_constraints.primary_key,
                foreign_keys=tuple(table_constraints.foreign_keys),
                unique_constraints=tuple(table_constraints.unique_constraints),
                check_constraints=tuple(table_constraints.check_constraints),
                indexes=tuple(indexes.get(table_name, ())),
                triggers=tuple(triggers.get(table_name, ())),
            )
        )

    return Schema(
        schema_name=schema_row[0],
        owner=schema_row[1],
        tables=tuple(tables),
        sequences=tuple(fetch_sequences(conn, schema_name)),
        views=tuple(fetch_views(conn, schema_name)),
        functions=tuple(fetch_functions(conn, schema_name)),
        types=tuple(fetch_user_types(conn, schema_name)),
        extensions=tuple(fetch_extensions(conn)),
    )


class SnapshotLoader:
    """Loads snapshots for configured instances.

    Instances are looked up in ``Settings.instances``; calling the loader
    as ``loader(instance, schema_name)`` returns a ``Schema``.
    """

    def __init__(self, settings: "Settings"):
        self.settings = settings

    def connect(self, instance: str, schema_name: str = "") -> psycopg.Connection:
        conninfo = self.settings.get_dsn(instance)
        if conninfo is None:
            raise UnknownInstanceError(instance, schema_name)
        return psycopg.connect(
            conninfo, autocommit=True, connect_timeout=self.settings.connect_timeout
        )

    def __call__(self, instance: str, schema_name: str) -> Schema:
        try:
            conn = self.connect(instance, schema_name)
        except psycopg.Error as e:
            raise IntrospectionError(instance, schema_name, str(e)) from e

        with conn:
            return fetch_schema(conn, schema_name, instance=instance)
