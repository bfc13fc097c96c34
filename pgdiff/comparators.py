"""Structural comparison rules, one comparator per object kind.

Each comparator answers two questions about a matched pair of objects:
``equals_structure`` (are they the same, ignoring the object's own name?)
and ``diff`` (which named attributes differ, and is each change breaking?).
Both treat a missing side as "nothing to compare": ``equals_structure``
returns False and ``diff`` returns an empty list.
"""

import re
from typing import Any, Generic, TypeVar

from .db import (
    CheckConstraint,
    Column,
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
from .results import USER_TYPE_OBJECT_TYPES, AttributeDifference, ObjectType, Severity

T = TypeVar("T")

TRAILING_SEMICOLON = re.compile(r";\s*$")


def normalize_whitespace(text: str | None) -> str | None:
    """Collapse runs of whitespace to one space and trim."""
    if text is None:
        return None
    return " ".join(text.split())


def normalize_view_definition(text: str | None) -> str | None:
    """Whitespace-normalized, lowercased view definition without a trailing semicolon."""
    if text is None:
        return None
    return TRAILING_SEMICOLON.sub("", " ".join(text.split())).strip().lower()


def schema_relative(schema: str | None, name: str | None, own_schema: str | None) -> str | None:
    """Drop the schema from a reference that points into the snapshot's own schema."""
    if name is None:
        return None
    if schema is None or schema == own_schema:
        return name
    return f"{schema}.{name}"


def changed(
    diffs: list[AttributeDifference],
    attribute_name: str,
    source: Any,
    destination: Any,
    breaking: bool = False,
) -> None:
    """Append an AttributeDifference when the two values differ."""
    if source != destination:
        diffs.append(AttributeDifference.between(attribute_name, source, destination, breaking))


class StructuralComparator(Generic[T]):
    """Comparison rules for one kind of object.

    Subclasses set ``object_type`` and the MISSING/EXTRA severities and
    implement ``_diff``; ``_equals`` defaults to "no attribute differs".
    """

    object_type: ObjectType
    missing_severity: Severity = Severity.INFO
    extra_severity: Severity = Severity.BREAKING

    def key(self, obj: T) -> str:
        return obj.key  # type: ignore[attr-defined]

    def sort_key(self, obj: T) -> Any:
        return self.key(obj)

    def object_type_for(self, obj: T) -> ObjectType:
        return self.object_type

    def equals_structure(self, source: T | None, destination: T | None) -> bool:
        if source is None or destination is None:
            return False
        return self._equals(source, destination)

    def diff(self, source: T | None, destination: T | None) -> list[AttributeDifference]:
        if source is None or destination is None:
            return []
        return self._diff(source, destination)

    def modified_severity(self, diffs: list[AttributeDifference]) -> Severity:
        if any(d.breaking for d in diffs):
            return Severity.BREAKING
        return Severity.WARNING

    def describe(self, obj: T) -> str:
        return str(obj)

    def _equals(self, source: T, destination: T) -> bool:
        return not self._diff(source, destination)

    def _diff(self, source: T, destination: T) -> list[AttributeDifference]:
        return []


class TableComparator(StructuralComparator[Table]):
    """Table-level attributes only; sub-objects are matched separately."""

    object_type = ObjectType.TABLE

    def _diff(self, source: Table, destination: Table) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Partitioned", source.is_partitioned, destination.is_partitioned, True)
        changed(
            diffs,
            "Partition Strategy",
            source.partition_strategy,
            destination.partition_strategy,
            True,
        )
        changed(diffs, "Partition Key", source.partition_key, destination.partition_key, True)
        changed(diffs, "Row Level Security", source.has_rls, destination.has_rls, True)
        changed(diffs, "Owner", source.owner, destination.owner)
        changed(diffs, "Comment", source.comment, destination.comment)
        changed(diffs, "Tablespace", source.tablespace, destination.tablespace)
        return diffs

    def modified_severity(self, diffs: list[AttributeDifference]) -> Severity:
        if any(d.breaking for d in diffs):
            return Severity.BREAKING
        return Severity.INFO

    def describe(self, obj: Table) -> str:
        kind = "PARTITIONED TABLE" if obj.is_partitioned else "TABLE"
        return f"{kind} {obj.full_name} ({len(obj.columns)} columns)"


class ColumnComparator(StructuralComparator[Column]):
    object_type = ObjectType.COLUMN

    def sort_key(self, obj: Column) -> Any:
        return (obj.position, obj.column_name)

    def _equals(self, source: Column, destination: Column) -> bool:
        # Columns are reported by name, so the name is part of their structure.
        return source.column_name == destination.column_name and not self._diff(
            source, destination
        )

    def _diff(self, source: Column, destination: Column) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Data Type", source.data_type, destination.data_type, True)
        # Only nullable -> NOT NULL can reject existing rows.
        changed(
            diffs,
            "Nullable",
            source.nullable,
            destination.nullable,
            source.nullable and not destination.nullable,
        )
        changed(diffs, "Default", source.default_value, destination.default_value)
        changed(diffs, "Identity", source.identity or "NO", destination.identity or "NO")
        changed(
            diffs,
            "Generated",
            normalize_whitespace(source.generation_expression),
            normalize_whitespace(destination.generation_expression),
        )
        changed(diffs, "Collation", source.collation, destination.collation)
        return diffs

    def describe(self, obj: Column) -> str:
        parts = [obj.column_name, obj.data_type]
        if not obj.nullable:
            parts.append("NOT NULL")
        if obj.default_value is not None:
            parts.append(f"DEFAULT {obj.default_value}")
        if obj.identity:
            parts.append(f"GENERATED {obj.identity} AS IDENTITY")
        return " ".join(parts)


class PrimaryKeyComparator(StructuralComparator[PrimaryKey]):
    object_type = ObjectType.CONSTRAINT_PRIMARY
    missing_severity = Severity.WARNING

    def _diff(self, source: PrimaryKey, destination: PrimaryKey) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Columns", source.columns, destination.columns, True)
        return diffs

    def describe(self, obj: PrimaryKey) -> str:
        return f"PRIMARY KEY ({obj.columns_display})"


class ForeignKeyComparator(StructuralComparator[ForeignKey]):
    object_type = ObjectType.CONSTRAINT_FOREIGN
    missing_severity = Severity.WARNING

    def __init__(self, source_schema: str | None = None, destination_schema: str | None = None):
        self.source_schema = source_schema
        self.destination_schema = destination_schema

    def _diff(self, source: ForeignKey, destination: ForeignKey) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Columns", source.columns, destination.columns, True)
        changed(
            diffs,
            "Referenced Table",
            self.referenced_name(source, self.source_schema),
            self.referenced_name(destination, self.destination_schema),
            True,
        )
        changed(
            diffs,
            "Referenced Columns",
            source.referenced_columns,
            destination.referenced_columns,
            True,
        )
        changed(diffs, "ON DELETE", source.on_delete, destination.on_delete)
        changed(diffs, "ON UPDATE", source.on_update, destination.on_update)
        changed(diffs, "Deferrable", source.deferrable, destination.deferrable)
        changed(
            diffs, "Initially Deferred", source.initially_deferred, destination.initially_deferred
        )
        return diffs

    @staticmethod
    def referenced_name(obj: ForeignKey, own_schema: str | None) -> str | None:
        if own_schema is None:
            return obj.referenced_full_name
        return schema_relative(obj.referenced_schema, obj.referenced_table, own_schema)

    def describe(self, obj: ForeignKey) -> str:
        return (
            f"FOREIGN KEY ({obj.columns_display}) REFERENCES {obj.referenced_full_name}"
            f" ({obj.referenced_columns_display}) ON DELETE {obj.on_delete}"
            f" ON UPDATE {obj.on_update}"
        )


class UniqueConstraintComparator(StructuralComparator[UniqueConstraint]):
    """Atomic: a changed unique constraint has no attribute breakdown."""

    object_type = ObjectType.CONSTRAINT_UNIQUE

    def _equals(self, source: UniqueConstraint, destination: UniqueConstraint) -> bool:
        return source.columns == destination.columns

    def describe(self, obj: UniqueConstraint) -> str:
        return f"UNIQUE ({obj.columns_display})"


class CheckConstraintComparator(StructuralComparator[CheckConstraint]):
    """Atomic: expressions are compared whitespace-normalized."""

    object_type = ObjectType.CONSTRAINT_CHECK

    def _equals(self, source: CheckConstraint, destination: CheckConstraint) -> bool:
        return (
            normalize_whitespace(source.expression) == normalize_whitespace(destination.expression)
            and source.no_inherit == destination.no_inherit
        )

    def describe(self, obj: CheckConstraint) -> str:
        text = obj.expression or ""
        return f"{text} NO INHERIT" if obj.no_inherit else text


class IndexComparator(StructuralComparator[Index]):
    object_type = ObjectType.INDEX
    extra_severity = Severity.INFO

    def _diff(self, source: Index, destination: Index) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Index Type", source.index_type, destination.index_type, True)
        changed(diffs, "Columns", source.columns, destination.columns, True)
        changed(diffs, "Include Columns", source.include_columns, destination.include_columns)
        changed(diffs, "Unique", source.is_unique, destination.is_unique, True)
        if normalize_whitespace(source.where_clause) != normalize_whitespace(
            destination.where_clause
        ):
            diffs.append(
                AttributeDifference.between(
                    "WHERE Clause", source.where_clause, destination.where_clause
                )
            )
        if normalize_whitespace(source.expression_def) != normalize_whitespace(
            destination.expression_def
        ):
            diffs.append(
                AttributeDifference.between(
                    "Expression", source.expression_def, destination.expression_def, True
                )
            )
        return diffs

    def describe(self, obj: Index) -> str:
        if obj.definition:
            return obj.definition
        unique = "UNIQUE " if obj.is_unique else ""
        text = f"{unique}INDEX {obj.index_name} USING {obj.index_type} ({obj.columns_display})"
        if obj.where_clause:
            text += f" WHERE {obj.where_clause}"
        return text


class TriggerComparator(StructuralComparator[Trigger]):
    object_type = ObjectType.TRIGGER
    missing_severity = Severity.WARNING

    def __init__(self, source_schema: str | None = None, destination_schema: str | None = None):
        self.source_schema = source_schema
        self.destination_schema = destination_schema

    def _diff(self, source: Trigger, destination: Trigger) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Timing", source.timing, destination.timing, True)
        changed(diffs, "Events", source.events, destination.events, True)
        changed(diffs, "Level", source.level, destination.level, True)
        changed(
            diffs,
            "Function",
            self.function_name(source, self.source_schema),
            self.function_name(destination, self.destination_schema),
            True,
        )
        if normalize_whitespace(source.condition) != normalize_whitespace(destination.condition):
            diffs.append(
                AttributeDifference.between("Condition", source.condition, destination.condition)
            )
        changed(diffs, "Enabled", source.enabled, destination.enabled)
        return diffs

    @staticmethod
    def function_name(obj: Trigger, own_schema: str | None) -> str | None:
        if own_schema is None:
            return obj.function_full_name
        return schema_relative(obj.function_schema, obj.function_name, own_schema)

    def describe(self, obj: Trigger) -> str:
        if obj.definition:
            return obj.definition
        text = f"{obj.timing} {obj.events} FOR EACH {obj.level}"
        if obj.condition:
            text += f" WHEN ({obj.condition})"
        return f"{text} EXECUTE FUNCTION {obj.function_full_name}()"


class SequenceComparator(StructuralComparator[Sequence]):
    object_type = ObjectType.SEQUENCE

    def _diff(self, source: Sequence, destination: Sequence) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Data Type", source.data_type, destination.data_type, True)
        changed(diffs, "Start Value", source.start_value, destination.start_value)
        changed(diffs, "Increment", source.increment, destination.increment)
        changed(diffs, "Min Value", source.min_value, destination.min_value)
        changed(diffs, "Max Value", source.max_value, destination.max_value)
        changed(diffs, "Cache Size", source.cache_size, destination.cache_size)
        changed(diffs, "Cycle", source.cycle, destination.cycle)
        changed(diffs, "Owned By", source.owned_by, destination.owned_by)
        return diffs

    def describe(self, obj: Sequence) -> str:
        text = (
            f"SEQUENCE {obj.full_name} AS {obj.data_type} START {obj.start_value}"
            f" INCREMENT {obj.increment}"
        )
        if obj.owned_by:
            text += f" OWNED BY {obj.owned_by}"
        return text


class ViewComparator(StructuralComparator[View]):
    object_type = ObjectType.VIEW

    def object_type_for(self, obj: View) -> ObjectType:
        return ObjectType.MATERIALIZED_VIEW if obj.is_materialized else ObjectType.VIEW

    def _diff(self, source: View, destination: View) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        if normalize_view_definition(source.definition) != normalize_view_definition(
            destination.definition
        ):
            diffs.append(
                AttributeDifference.between(
                    "Definition", source.definition, destination.definition, True
                )
            )
        changed(
            diffs,
            "Type",
            "MATERIALISED VIEW" if source.is_materialized else "VIEW",
            "MATERIALISED VIEW" if destination.is_materialized else "VIEW",
            True,
        )
        return diffs

    def describe(self, obj: View) -> str:
        kind = "MATERIALIZED VIEW" if obj.is_materialized else "VIEW"
        return f"{kind} {obj.full_name}"


class FunctionComparator(StructuralComparator[Function]):
    object_type = ObjectType.FUNCTION

    def object_type_for(self, obj: Function) -> ObjectType:
        return ObjectType.PROCEDURE if obj.is_procedure else ObjectType.FUNCTION

    def _diff(self, source: Function, destination: Function) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        if normalize_whitespace(source.definition) != normalize_whitespace(destination.definition):
            diffs.append(
                AttributeDifference.between(
                    "Definition", source.definition, destination.definition, True
                )
            )
        changed(diffs, "Language", source.language, destination.language, True)
        changed(diffs, "Return Type", source.return_type, destination.return_type, True)
        changed(diffs, "Volatility", source.volatility, destination.volatility)
        changed(diffs, "Strict", source.is_strict, destination.is_strict)
        changed(diffs, "Security Definer", source.security_definer, destination.security_definer)
        return diffs

    def describe(self, obj: Function) -> str:
        text = f"{obj.kind.upper()} {obj.full_name}"
        if obj.return_type and not obj.is_procedure:
            text += f" RETURNS {obj.return_type}"
        return f"{text} LANGUAGE {obj.language}"


class UserTypeComparator(StructuralComparator[UserType]):
    object_type = ObjectType.TYPE_ENUM

    def object_type_for(self, obj: UserType) -> ObjectType:
        return USER_TYPE_OBJECT_TYPES[obj.kind]

    def _diff(self, source: UserType, destination: UserType) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        if source.kind != destination.kind:
            # Different kinds share no comparable attributes.
            changed(diffs, "Type Kind", source.kind, destination.kind, True)
            return diffs

        if source.kind == "enum":
            changed(diffs, "Enum Values", source.enum_labels, destination.enum_labels, True)
        elif source.kind == "composite":
            self._diff_attributes(diffs, source, destination)
        elif source.kind == "domain":
            changed(diffs, "Base Type", source.base_type, destination.base_type, True)
            changed(diffs, "Default", source.default_value, destination.default_value)
            changed(diffs, "Not Null", source.not_null, destination.not_null, True)
            changed(
                diffs,
                "Check Constraints",
                tuple(normalize_whitespace(c) for c in source.check_constraints),
                tuple(normalize_whitespace(c) for c in destination.check_constraints),
                True,
            )
        elif source.kind == "range":
            changed(diffs, "Subtype", source.subtype, destination.subtype, True)
        return diffs

    def _diff_attributes(
        self, diffs: list[AttributeDifference], source: UserType, destination: UserType
    ) -> None:
        for attribute in source.attributes:
            other = destination.find_attribute(attribute.attribute_name)
            if other is None or other.data_type != attribute.data_type:
                diffs.append(
                    AttributeDifference.between(
                        f"Attribute {attribute.attribute_name}",
                        attribute.data_type,
                        other.data_type if other else None,
                        True,
                    )
                )
        for other in destination.attributes:
            if source.find_attribute(other.attribute_name) is None:
                diffs.append(
                    AttributeDifference.between(
                        f"Attribute {other.attribute_name}", None, other.data_type, True
                    )
                )
        if not diffs:
            changed(
                diffs,
                "Attribute Order",
                tuple(a.attribute_name for a in source.attributes),
                tuple(a.attribute_name for a in destination.attributes),
                True,
            )

    def describe(self, obj: UserType) -> str:
        if obj.kind == "enum":
            return f"ENUM {obj.full_name} ({', '.join(obj.enum_labels)})"
        if obj.kind == "composite":
            attributes = ", ".join(f"{a.attribute_name} {a.data_type}" for a in obj.attributes)
            return f"COMPOSITE {obj.full_name} ({attributes})"
        if obj.kind == "domain":
            return f"DOMAIN {obj.full_name} AS {obj.base_type}"
        return f"RANGE {obj.full_name} (SUBTYPE {obj.subtype})"


class ExtensionComparator(StructuralComparator[Extension]):
    object_type = ObjectType.EXTENSION
    missing_severity = Severity.WARNING

    def _diff(self, source: Extension, destination: Extension) -> list[AttributeDifference]:
        diffs: list[AttributeDifference] = []
        changed(diffs, "Version", source.version, destination.version)
        return diffs

    def modified_severity(self, diffs: list[AttributeDifference]) -> Severity:
        return Severity.INFO

    def describe(self, obj: Extension) -> str:
        return f"EXTENSION {obj.name} VERSION {obj.version}"


TABLES = TableComparator()
COLUMNS = ColumnComparator()
PRIMARY_KEYS = PrimaryKeyComparator()
FOREIGN_KEYS = ForeignKeyComparator()
UNIQUE_CONSTRAINTS = UniqueConstraintComparator()
CHECK_CONSTRAINTS = CheckConstraintComparator()
INDEXES = IndexComparator()
TRIGGERS = TriggerComparator()
SEQUENCES = SequenceComparator()
VIEWS = ViewComparator()
FUNCTIONS = FunctionComparator()
USER_TYPES = UserTypeComparator()
EXTENSIONS = ExtensionComparator()
