"""Pytest configuration and shared snapshot fixtures for pgdiff tests."""

from dataclasses import replace

import pytest

from pgdiff.db import (
    CheckConstraint,
    Column,
    Extension,
    ForeignKey,
    Function,
    Index,
    PrimaryKey,
    Schema,
    Sequence,
    Table,
    Trigger,
    UniqueConstraint,
    UserType,
    View,
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "introspection: tests that drive catalog queries through fake cursors"
    )
    config.addinivalue_line("markers", "scenario: end-to-end comparison scenarios")


@pytest.fixture
def users_table() -> Table:
    """public.users(id bigint PK, email varchar NOT NULL)."""
    return Table(
        schema_name="public",
        table_name="users",
        owner="app",
        columns=(
            Column("id", "bigint", nullable=False, position=1),
            Column("email", "character varying(255)", nullable=False, position=2),
        ),
        primary_key=PrimaryKey("users_pkey", ("id",)),
    )


@pytest.fixture
def orders_table() -> Table:
    """A table exercising every kind of table sub-object."""
    return Table(
        schema_name="public",
        table_name="orders",
        owner="app",
        columns=(
            Column("id", "bigint", nullable=False, is_identity=True, identity_type="ALWAYS", position=1),
            Column("user_id", "bigint", nullable=False, position=2),
            Column("amount", "numeric", nullable=True, position=3),
            Column("status", "text", nullable=False, default_value="'new'::text", position=4),
        ),
        primary_key=PrimaryKey("orders_pkey", ("id",)),
        foreign_keys=(
            ForeignKey(
                "orders_user_id_fkey",
                columns=("user_id",),
                referenced_schema="public",
                referenced_table="users",
                referenced_columns=("id",),
                on_delete="CASCADE",
            ),
        ),
        unique_constraints=(UniqueConstraint("orders_status_id_key", ("status", "id")),),
        check_constraints=(CheckConstraint("orders_amount_check", "(amount >= 0)"),),
        indexes=(
            Index("orders_user_id_idx", "btree", ("user_id",)),
            Index("orders_open_idx", "btree", ("status",), where_clause="(status = 'open'::text)"),
        ),
        triggers=(
            Trigger(
                "orders_audit",
                timing="AFTER",
                events="INSERT OR UPDATE",
                level="ROW",
                function_schema="public",
                function_name="audit_row",
            ),
        ),
    )


@pytest.fixture
def order_id_sequence() -> Sequence:
    return Sequence(
        schema_name="public",
        sequence_name="invoice_number_seq",
        data_type="bigint",
        owned_by_table="orders",
        owned_by_column="id",
    )


@pytest.fixture
def status_enum() -> UserType:
    return UserType("public", "order_status", "enum", enum_labels=("new", "paid", "shipped"))


@pytest.fixture
def active_users_view() -> View:
    return View("public", "active_users", definition="SELECT id, email FROM users;")


@pytest.fixture
def audit_function() -> Function:
    return Function(
        "public",
        "audit_row",
        arguments="",
        return_type="trigger",
        language="plpgsql",
        definition="BEGIN RETURN NEW; END;",
    )


@pytest.fixture
def make_schema():
    """Factory building a Schema from tables plus optional other collections."""

    def _make(*tables: Table, schema_name: str = "public", **collections) -> Schema:
        tables = tuple(replace(t, schema_name=schema_name) for t in tables)
        return Schema(schema_name=schema_name, tables=tables, **collections)

    return _make


@pytest.fixture
def full_schema(make_schema, users_table, orders_table, order_id_sequence, status_enum,
                active_users_view, audit_function) -> Schema:
    """A schema holding at least one object of every kind."""
    return make_schema(
        users_table,
        orders_table,
        sequences=(order_id_sequence,),
        views=(active_users_view,),
        functions=(audit_function,),
        types=(status_enum,),
        extensions=(Extension("pgcrypto", "1.3"),),
    )
