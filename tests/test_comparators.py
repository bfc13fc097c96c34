"""Tests for per-kind structural comparison rules."""

from dataclasses import replace

import pytest

from pgdiff import comparators
from pgdiff.comparators import normalize_view_definition, normalize_whitespace
from pgdiff.db import (
    CheckConstraint,
    Column,
    CompositeAttribute,
    Extension,
    ForeignKey,
    Function,
    Index,
    PrimaryKey,
    Sequence,
    Table,
    Trigger,
    UniqueConstraint,
    UserType,
    View,
)
from pgdiff.results import AttributeDifference, ObjectType, Severity

SAMPLES = [
    (comparators.TABLES, Table("public", "users", owner="app", has_rls=True)),
    (comparators.COLUMNS, Column("email", "text", nullable=False, default_value="''", position=2)),
    (comparators.PRIMARY_KEYS, PrimaryKey("users_pkey", ("id",))),
    (
        comparators.FOREIGN_KEYS,
        ForeignKey("fk", ("user_id",), "public", "users", ("id",), on_delete="CASCADE"),
    ),
    (comparators.UNIQUE_CONSTRAINTS, UniqueConstraint("uq", ("a", "b"))),
    (comparators.CHECK_CONSTRAINTS, CheckConstraint("ck", "(balance >= 0)")),
    (comparators.INDEXES, Index("idx", "btree", ("a",), where_clause="(a > 0)")),
    (comparators.TRIGGERS, Trigger("trg", "BEFORE", "UPDATE", "ROW", "touch", "public")),
    (comparators.SEQUENCES, Sequence("public", "seq", cache_size=20, cycle=True)),
    (comparators.VIEWS, View("public", "v", "SELECT 1")),
    (comparators.FUNCTIONS, Function("public", "f", arguments="a integer", definition="SELECT a")),
    (comparators.USER_TYPES, UserType("public", "mood", "enum", enum_labels=("sad", "happy"))),
    (comparators.EXTENSIONS, Extension("pgcrypto", "1.3")),
]


@pytest.mark.parametrize("comparator,obj", SAMPLES, ids=lambda v: type(v).__name__)
class TestComparatorContract:
    """Properties every comparator shares."""

    def test_reflexive(self, comparator, obj):
        """An object is structurally equal to itself and has no differences."""
        assert comparator.equals_structure(obj, obj) is True
        assert comparator.diff(obj, obj) == []

    def test_equal_copy(self, comparator, obj):
        """A field-for-field copy compares equal."""
        assert comparator.equals_structure(obj, replace(obj)) is True

    def test_absent_counterpart(self, comparator, obj):
        """A missing side is never equal and never raises."""
        assert comparator.equals_structure(obj, None) is False
        assert comparator.equals_structure(None, obj) is False
        assert comparator.equals_structure(None, None) is False
        assert comparator.diff(obj, None) == []
        assert comparator.diff(None, obj) == []


class TestNormalizeWhitespace:
    """Whitespace normalization helpers."""

    def test_collapses_runs_and_trims(self):
        assert normalize_whitespace("  (balance  >=\n\t0) ") == "(balance >= 0)"

    def test_none_passes_through(self):
        assert normalize_whitespace(None) is None

    def test_view_definition_ignores_case_and_semicolon(self):
        assert normalize_view_definition(" SELECT  id\nFROM users ; ") == "select id from users"


class TestColumnComparator:
    """Column attribute rules."""

    def test_type_change_is_breaking(self):
        diffs = comparators.COLUMNS.diff(Column("amount", "numeric"), Column("amount", "integer"))
        assert diffs == [AttributeDifference("Data Type", "numeric", "integer", True)]

    def test_tightening_nullability_is_breaking(self):
        diffs = comparators.COLUMNS.diff(
            Column("c", "text", nullable=True), Column("c", "text", nullable=False)
        )
        assert diffs == [AttributeDifference("Nullable", "YES", "NO", True)]

    def test_loosening_nullability_is_not_breaking(self):
        diffs = comparators.COLUMNS.diff(
            Column("c", "text", nullable=False), Column("c", "text", nullable=True)
        )
        assert diffs == [AttributeDifference("Nullable", "NO", "YES", False)]

    def test_default_change_is_not_breaking(self):
        diffs = comparators.COLUMNS.diff(
            Column("c", "text", default_value="'a'::text"), Column("c", "text")
        )
        assert diffs == [AttributeDifference("Default", "'a'::text", None, False)]

    def test_identity_change_is_not_breaking(self):
        diffs = comparators.COLUMNS.diff(
            Column("id", "bigint"),
            Column("id", "bigint", is_identity=True, identity_type="ALWAYS"),
        )
        assert diffs == [AttributeDifference("Identity", "NO", "ALWAYS", False)]

    def test_generated_and_collation_are_not_breaking(self):
        diffs = comparators.COLUMNS.diff(
            Column("c", "text", is_generated=True, generation_expression="lower(a)"),
            Column("c", "text", collation="C"),
        )
        assert [d.attribute_name for d in diffs] == ["Generated", "Collation"]
        assert not any(d.breaking for d in diffs)

    def test_position_and_comment_are_ignored(self):
        source = Column("c", "text", position=1, comment="old")
        destination = Column("c", "text", position=7, comment="new")
        assert comparators.COLUMNS.equals_structure(source, destination)

    def test_name_is_part_of_structure(self):
        assert not comparators.COLUMNS.equals_structure(Column("a", "text"), Column("b", "text"))

    def test_sorted_by_position(self):
        assert comparators.COLUMNS.sort_key(Column("z", "text", position=1)) < (
            comparators.COLUMNS.sort_key(Column("a", "text", position=2))
        )


class TestConstraintComparators:
    """Primary key, foreign key, unique and check constraint rules."""

    def test_primary_key_column_order_is_breaking(self):
        diffs = comparators.PRIMARY_KEYS.diff(
            PrimaryKey("pk", ("a", "b")), PrimaryKey("pk", ("b", "a"))
        )
        assert diffs == [AttributeDifference("Columns", "a, b", "b, a", True)]

    def test_primary_key_name_is_ignored(self):
        assert comparators.PRIMARY_KEYS.equals_structure(
            PrimaryKey("users_pkey", ("id",)), PrimaryKey("pk_users", ("id",))
        )

    def test_foreign_key_referenced_table_is_schema_qualified(self):
        source = ForeignKey("fk", ("user_id",), "public", "users", ("id",))
        destination = replace(source, referenced_schema="audit")
        diffs = comparators.FOREIGN_KEYS.diff(source, destination)
        assert diffs == [AttributeDifference("Referenced Table", "public.users", "audit.users", True)]

    def test_foreign_key_into_own_schema_is_schema_relative(self):
        comparator = comparators.ForeignKeyComparator("public", "staging")
        source = ForeignKey("fk", ("user_id",), "public", "users", ("id",))
        destination = replace(source, referenced_schema="staging")
        assert comparator.equals_structure(source, destination)
        assert comparator.diff(source, destination) == []

    def test_foreign_key_outside_own_schema_stays_qualified(self):
        comparator = comparators.ForeignKeyComparator("public", "staging")
        source = ForeignKey("fk", ("user_id",), "public", "users", ("id",))
        destination = replace(source, referenced_schema="audit")
        diffs = comparator.diff(source, destination)
        assert diffs == [AttributeDifference("Referenced Table", "users", "audit.users", True)]

    def test_foreign_key_actions_are_not_breaking(self):
        source = ForeignKey("fk", ("user_id",), "public", "users", ("id",))
        destination = replace(source, on_delete="CASCADE", on_update="RESTRICT", deferrable=True)
        diffs = comparators.FOREIGN_KEYS.diff(source, destination)
        assert [d.attribute_name for d in diffs] == ["ON DELETE", "ON UPDATE", "Deferrable"]
        assert not any(d.breaking for d in diffs)
        assert comparators.FOREIGN_KEYS.modified_severity(diffs) is Severity.WARNING

    def test_foreign_key_column_change_is_breaking(self):
        source = ForeignKey("fk", ("user_id",), "public", "users", ("id",))
        destination = replace(source, columns=("owner_id",), referenced_columns=("uid",))
        diffs = comparators.FOREIGN_KEYS.diff(source, destination)
        assert [d.attribute_name for d in diffs] == ["Columns", "Referenced Columns"]
        assert all(d.breaking for d in diffs)

    def test_unique_constraint_is_atomic(self):
        source = UniqueConstraint("uq", ("a",))
        destination = UniqueConstraint("uq", ("a", "b"))
        assert comparators.UNIQUE_CONSTRAINTS.equals_structure(source, destination) is False
        assert comparators.UNIQUE_CONSTRAINTS.diff(source, destination) == []

    def test_check_constraint_ignores_whitespace(self):
        assert comparators.CHECK_CONSTRAINTS.equals_structure(
            CheckConstraint("ck", "(balance >= 0)"), CheckConstraint("ck", "(balance  >=  0)")
        )

    def test_check_constraint_change_is_atomic(self):
        source = CheckConstraint("ck", "(balance >= 0)")
        destination = CheckConstraint("ck", "(balance > 0)")
        assert comparators.CHECK_CONSTRAINTS.equals_structure(source, destination) is False
        assert comparators.CHECK_CONSTRAINTS.diff(source, destination) == []

    def test_check_constraint_no_inherit(self):
        assert not comparators.CHECK_CONSTRAINTS.equals_structure(
            CheckConstraint("ck", "(a > 0)"), CheckConstraint("ck", "(a > 0)", no_inherit=True)
        )


class TestIndexComparator:
    """Index attribute rules."""

    def test_where_clause_ignores_whitespace(self):
        source = Index("idx", "btree", ("a",), where_clause="(a > 0)")
        destination = replace(source, where_clause="(a  >  0)")
        assert comparators.INDEXES.equals_structure(source, destination)
        assert comparators.INDEXES.diff(source, destination) == []

    def test_where_clause_change_is_not_breaking(self):
        source = Index("idx", "btree", ("a",), where_clause="(a > 0)")
        destination = replace(source, where_clause="(a > 10)")
        diffs = comparators.INDEXES.diff(source, destination)
        assert diffs == [AttributeDifference("WHERE Clause", "(a > 0)", "(a > 10)", False)]

    def test_type_columns_and_uniqueness_are_breaking(self):
        source = Index("idx", "btree", ("a",))
        destination = Index("idx", "hash", ("a", "b"), is_unique=True)
        diffs = comparators.INDEXES.diff(source, destination)
        assert [(d.attribute_name, d.breaking) for d in diffs] == [
            ("Index Type", True),
            ("Columns", True),
            ("Unique", True),
        ]

    def test_include_columns_are_not_breaking(self):
        source = Index("idx", "btree", ("a",))
        destination = replace(source, include_columns=("b",))
        diffs = comparators.INDEXES.diff(source, destination)
        assert diffs == [AttributeDifference("Include Columns", "", "b", False)]

    def test_extra_index_is_informational(self):
        assert comparators.INDEXES.missing_severity is Severity.INFO
        assert comparators.INDEXES.extra_severity is Severity.INFO


class TestTriggerComparator:
    """Trigger attribute rules."""

    def test_shape_changes_are_breaking(self):
        source = Trigger("t", "BEFORE", "INSERT", "ROW", "f", "public")
        destination = Trigger("t", "AFTER", "INSERT OR UPDATE", "STATEMENT", "g", "public")
        diffs = comparators.TRIGGERS.diff(source, destination)
        assert [d.attribute_name for d in diffs] == ["Timing", "Events", "Level", "Function"]
        assert all(d.breaking for d in diffs)

    def test_function_schema_is_part_of_reference(self):
        source = Trigger("t", "BEFORE", "INSERT", "ROW", "f", "public")
        diffs = comparators.TRIGGERS.diff(source, replace(source, function_schema="audit"))
        assert diffs == [AttributeDifference("Function", "public.f", "audit.f", True)]

    def test_function_in_own_schema_is_schema_relative(self):
        comparator = comparators.TriggerComparator("public", "staging")
        source = Trigger("t", "BEFORE", "INSERT", "ROW", "f", "public")
        destination = replace(source, function_schema="staging")
        assert comparator.equals_structure(source, destination)
        shared = replace(source, function_schema="util")
        assert comparator.diff(shared, replace(destination, function_schema="util")) == []
        diffs = comparator.diff(source, replace(source, function_schema="util"))
        assert diffs == [AttributeDifference("Function", "f", "util.f", True)]

    def test_condition_and_enabled_are_not_breaking(self):
        source = Trigger("t", "BEFORE", "INSERT", "ROW", "f", "public")
        destination = replace(source, condition="(new.a IS NOT NULL)", enabled=False)
        diffs = comparators.TRIGGERS.diff(source, destination)
        assert diffs == [
            AttributeDifference("Condition", None, "(new.a IS NOT NULL)", False),
            AttributeDifference("Enabled", "YES", "NO", False),
        ]
        assert comparators.TRIGGERS.equals_structure(source, destination) is False


class TestSequenceComparator:
    """Sequence attribute rules."""

    def test_data_type_is_breaking(self):
        source = Sequence("public", "s", data_type="integer")
        diffs = comparators.SEQUENCES.diff(source, replace(source, data_type="bigint"))
        assert diffs == [AttributeDifference("Data Type", "integer", "bigint", True)]

    @pytest.mark.parametrize(
        "field_name,label,value",
        [
            ("start_value", "Start Value", 100),
            ("increment", "Increment", 5),
            ("min_value", "Min Value", 0),
            ("max_value", "Max Value", 1000),
            ("cache_size", "Cache Size", 50),
        ],
    )
    def test_tuning_changes_are_not_breaking(self, field_name, label, value):
        source = Sequence("public", "s")
        destination = replace(source, **{field_name: value})
        diffs = comparators.SEQUENCES.diff(source, destination)
        assert diffs == [
            AttributeDifference(label, str(getattr(source, field_name)), str(value), False)
        ]

    def test_cycle_and_owner_are_not_breaking(self):
        source = Sequence("public", "s")
        destination = replace(source, cycle=True, owned_by_table="t", owned_by_column="id")
        diffs = comparators.SEQUENCES.diff(source, destination)
        assert diffs == [
            AttributeDifference("Cycle", "NO", "YES", False),
            AttributeDifference("Owned By", None, "t.id", False),
        ]


class TestTableComparator:
    """Table-level attribute rules."""

    def test_sub_objects_are_not_compared(self, users_table):
        assert comparators.TABLES.equals_structure(users_table, replace(users_table, columns=()))

    def test_cosmetic_changes_are_info(self, users_table):
        diffs = comparators.TABLES.diff(
            users_table, replace(users_table, owner="admin", comment="Users")
        )
        assert [d.attribute_name for d in diffs] == ["Owner", "Comment"]
        assert comparators.TABLES.modified_severity(diffs) is Severity.INFO

    def test_partitioning_and_rls_are_breaking(self, users_table):
        destination = replace(
            users_table,
            is_partitioned=True,
            partition_strategy="RANGE",
            partition_key="RANGE (id)",
            has_rls=True,
        )
        diffs = comparators.TABLES.diff(users_table, destination)
        assert [d.attribute_name for d in diffs] == [
            "Partitioned",
            "Partition Strategy",
            "Partition Key",
            "Row Level Security",
        ]
        assert comparators.TABLES.modified_severity(diffs) is Severity.BREAKING


class TestViewAndFunctionComparators:
    """View and function rules."""

    def test_view_definition_formatting_is_ignored(self):
        source = View("public", "v", "SELECT id FROM users;")
        destination = View("public", "v", "select id\n  from users")
        assert comparators.VIEWS.equals_structure(source, destination)

    def test_view_definition_change_is_breaking(self):
        source = View("public", "v", "SELECT id FROM users")
        destination = View("public", "v", "SELECT id, email FROM users")
        diffs = comparators.VIEWS.diff(source, destination)
        assert len(diffs) == 1
        assert diffs[0].attribute_name == "Definition"
        assert diffs[0].breaking is True

    def test_materialized_flip_is_breaking(self):
        source = View("public", "v", "SELECT 1")
        diffs = comparators.VIEWS.diff(source, replace(source, is_materialized=True))
        assert diffs == [AttributeDifference("Type", "VIEW", "MATERIALISED VIEW", True)]
        assert comparators.VIEWS.object_type_for(replace(source, is_materialized=True)) is (
            ObjectType.MATERIALIZED_VIEW
        )

    def test_function_tuning_is_not_breaking(self):
        source = Function("public", "f", definition="SELECT 1")
        destination = replace(source, volatility="stable", is_strict=True, security_definer=True)
        diffs = comparators.FUNCTIONS.diff(source, destination)
        assert [d.attribute_name for d in diffs] == ["Volatility", "Strict", "Security Definer"]
        assert comparators.FUNCTIONS.modified_severity(diffs) is Severity.WARNING

    def test_function_body_and_language_are_breaking(self):
        source = Function("public", "f", language="sql", definition="SELECT 1")
        destination = replace(source, language="plpgsql", definition="BEGIN RETURN 1; END")
        diffs = comparators.FUNCTIONS.diff(source, destination)
        assert [d.attribute_name for d in diffs] == ["Definition", "Language"]
        assert all(d.breaking for d in diffs)

    def test_function_body_whitespace_is_ignored(self):
        source = Function("public", "f", definition="SELECT  1")
        assert comparators.FUNCTIONS.equals_structure(source, replace(source, definition="SELECT 1"))

    def test_procedure_object_type(self):
        procedure = Function("public", "p", kind="procedure")
        assert comparators.FUNCTIONS.object_type_for(procedure) is ObjectType.PROCEDURE

    def test_function_key_is_signature(self):
        assert Function("public", "f", arguments="a integer").key == "f(a integer)"


class TestUserTypeComparator:
    """Enum, composite, domain and range rules."""

    def test_enum_labels_are_breaking(self):
        source = UserType("public", "mood", "enum", enum_labels=("sad", "happy"))
        destination = replace(source, enum_labels=("sad", "ok", "happy"))
        diffs = comparators.USER_TYPES.diff(source, destination)
        assert diffs == [AttributeDifference("Enum Values", "sad, happy", "sad, ok, happy", True)]

    def test_kind_change_stops_comparison(self):
        source = UserType("public", "t", "enum", enum_labels=("a",))
        destination = UserType("public", "t", "domain", base_type="text")
        diffs = comparators.USER_TYPES.diff(source, destination)
        assert diffs == [AttributeDifference("Type Kind", "enum", "domain", True)]

    def test_composite_attribute_changes(self):
        source = UserType(
            "public",
            "address",
            "composite",
            attributes=(
                CompositeAttribute("street", "text", 1),
                CompositeAttribute("zip", "integer", 2),
            ),
        )
        destination = replace(
            source,
            attributes=(
                CompositeAttribute("street", "text", 1),
                CompositeAttribute("zip", "text", 2),
                CompositeAttribute("city", "text", 3),
            ),
        )
        diffs = comparators.USER_TYPES.diff(source, destination)
        assert diffs == [
            AttributeDifference("Attribute zip", "integer", "text", True),
            AttributeDifference("Attribute city", None, "text", True),
        ]

    def test_composite_attribute_order(self):
        source = UserType(
            "public",
            "pair",
            "composite",
            attributes=(CompositeAttribute("a", "int", 1), CompositeAttribute("b", "int", 2)),
        )
        destination = replace(
            source,
            attributes=(CompositeAttribute("b", "int", 1), CompositeAttribute("a", "int", 2)),
        )
        diffs = comparators.USER_TYPES.diff(source, destination)
        assert diffs == [AttributeDifference("Attribute Order", "a, b", "b, a", True)]

    def test_domain_default_is_not_breaking(self):
        source = UserType("public", "email", "domain", base_type="text", default_value="''")
        diffs = comparators.USER_TYPES.diff(source, replace(source, default_value=None))
        assert diffs == [AttributeDifference("Default", "''", None, False)]

    def test_domain_checks_ignore_whitespace(self):
        source = UserType("public", "pos", "domain", base_type="int", check_constraints=("CHECK (VALUE > 0)",))
        destination = replace(source, check_constraints=("CHECK  (VALUE > 0)",))
        assert comparators.USER_TYPES.equals_structure(source, destination)

    def test_range_subtype(self):
        source = UserType("public", "r", "range", subtype="integer")
        diffs = comparators.USER_TYPES.diff(source, replace(source, subtype="bigint"))
        assert diffs == [AttributeDifference("Subtype", "integer", "bigint", True)]
        assert comparators.USER_TYPES.object_type_for(source) is ObjectType.TYPE_RANGE


class TestExtensionComparator:
    """Extension rules."""

    def test_version_change_is_info(self):
        diffs = comparators.EXTENSIONS.diff(Extension("pgcrypto", "1.3"), Extension("pgcrypto", "1.4"))
        assert diffs == [AttributeDifference("Version", "1.3", "1.4", False)]
        assert comparators.EXTENSIONS.modified_severity(diffs) is Severity.INFO

    def test_missing_extension_is_a_warning(self):
        assert comparators.EXTENSIONS.missing_severity is Severity.WARNING
        assert comparators.EXTENSIONS.extra_severity is Severity.BREAKING
