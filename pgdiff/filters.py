"""Comparison filters: narrow which schemas, relations and object kinds are compared."""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache

from .db import Schema, Table
from .results import USER_TYPE_OBJECT_TYPES, ObjectType
from .utils.logging import get_logger

logger = get_logger(__name__)

TEMP_TABLE_PATTERNS = ("temp_*", "tmp_*", "*_backup", "*_bak", "zz_*")
SYSTEM_SCHEMA_PATTERNS = ("pg_catalog", "information_schema", "pgdiff")


class FilterPreset(Enum):
    """Ready-made filter configurations."""

    NONE = "none"
    EXCLUDE_TEMP_TABLES = "exclude_temp_tables"
    EXCLUDE_SYSTEM_SCHEMAS = "exclude_system_schemas"
    PRODUCTION_SAFE = "production_safe"

    @property
    def display_name(self) -> str:
        return PRESET_SETTINGS[self][0]

    @property
    def table_patterns(self) -> tuple[str, ...]:
        return PRESET_SETTINGS[self][1]

    @property
    def schema_patterns(self) -> tuple[str, ...]:
        return PRESET_SETTINGS[self][2]


PRESET_SETTINGS = {
    FilterPreset.NONE: ("No filters", (), ()),
    FilterPreset.EXCLUDE_TEMP_TABLES: ("Exclude temp/backup tables", TEMP_TABLE_PATTERNS, ()),
    FilterPreset.EXCLUDE_SYSTEM_SCHEMAS: ("Exclude system schemas", (), SYSTEM_SCHEMA_PATTERNS),
    FilterPreset.PRODUCTION_SAFE: (
        "Production-safe defaults",
        TEMP_TABLE_PATTERNS,
        SYSTEM_SCHEMA_PATTERNS,
    ),
}


def wildcard_to_regex(pattern: str) -> str:
    """Translate ``*`` and ``?`` wildcards to a regex; everything else is literal."""
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


@lru_cache(maxsize=256)
def compile_pattern(pattern: str, use_regex: bool) -> re.Pattern | None:
    """Compile a filter pattern, or return None when the regex is invalid."""
    if not use_regex:
        return re.compile(wildcard_to_regex(pattern))
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning("invalid_filter_regex", pattern=pattern, error=str(e))
        return None


@dataclass
class ComparisonFilter:
    """Which schemas, relations and object kinds take part in a comparison.

    Name patterns apply to relations (tables, views and sequences); schema
    patterns apply to everything in a schema. All object kinds are included
    by default.
    """

    included_object_types: set[ObjectType] = field(default_factory=lambda: set(ObjectType))
    excluded_object_types: set[ObjectType] = field(default_factory=set)
    exclude_table_patterns: list[str] = field(default_factory=list)
    exclude_schema_patterns: list[str] = field(default_factory=list)
    include_table_patterns: list[str] = field(default_factory=list)
    use_regex: bool = False

    @classmethod
    def from_preset(cls, preset: FilterPreset) -> "ComparisonFilter":
        return cls(
            exclude_table_patterns=list(preset.table_patterns),
            exclude_schema_patterns=list(preset.schema_patterns),
        )

    @classmethod
    def from_pattern_string(cls, patterns: str | None, use_regex: bool = False) -> "ComparisonFilter":
        """Build table exclusions from a comma-separated list, e.g. ``"temp_*, audit_*"``."""
        comparison_filter = cls(use_regex=use_regex)
        for pattern in (patterns or "").split(","):
            pattern = pattern.strip()
            if pattern:
                comparison_filter.exclude_table_patterns.append(pattern)
        return comparison_filter

    def matches_pattern(self, value: str | None, pattern: str | None) -> bool:
        if value is None or pattern is None:
            return False
        compiled = compile_pattern(pattern, self.use_regex)
        return compiled is not None and compiled.fullmatch(value) is not None

    def matches_schema(self, schema_name: str | None) -> bool:
        return not any(self.matches_pattern(schema_name, p) for p in self.exclude_schema_patterns)

    def matches_table(self, schema_name: str | None, table_name: str) -> bool:
        """Apply schema exclusions, then table exclusions, then the include list."""
        if not self.matches_schema(schema_name):
            return False
        if any(self.matches_pattern(table_name, p) for p in self.exclude_table_patterns):
            return False
        if self.include_table_patterns:
            return any(self.matches_pattern(table_name, p) for p in self.include_table_patterns)
        return True

    def matches_object_type(self, object_type: ObjectType) -> bool:
        if object_type in self.excluded_object_types:
            return False
        return not self.included_object_types or object_type in self.included_object_types

    def include_object_type(self, object_type: ObjectType) -> None:
        self.included_object_types.add(object_type)
        self.excluded_object_types.discard(object_type)

    def exclude_object_type(self, object_type: ObjectType) -> None:
        self.excluded_object_types.add(object_type)
        self.included_object_types.discard(object_type)

    def add_exclude_table_pattern(self, pattern: str) -> None:
        self.exclude_table_patterns.append(pattern)

    def add_exclude_schema_pattern(self, pattern: str) -> None:
        self.exclude_schema_patterns.append(pattern)

    def add_include_table_pattern(self, pattern: str) -> None:
        self.include_table_patterns.append(pattern)

    def has_filters(self) -> bool:
        return bool(
            self.exclude_table_patterns
            or self.exclude_schema_patterns
            or self.excluded_object_types
            or self.include_table_patterns
        )

    def summary_text(self) -> str:
        parts = []
        if self.include_table_patterns:
            parts.append("Including: " + ", ".join(self.include_table_patterns))
        if self.exclude_table_patterns:
            parts.append("Excluding: " + ", ".join(self.exclude_table_patterns))
        if self.exclude_schema_patterns:
            parts.append("Excluding schemas: " + ", ".join(self.exclude_schema_patterns))
        if self.excluded_object_types:
            names = sorted(t.display_name for t in self.excluded_object_types)
            parts.append("Excluding types: " + ", ".join(names))
        if not parts:
            return "No filters applied"
        return "; ".join(parts)

    def apply(self, schema: Schema) -> Schema:
        """Return a copy of ``schema`` holding only the objects this filter admits."""
        if not self.matches_schema(schema.schema_name):
            return Schema(schema_name=schema.schema_name, owner=schema.owner)

        tables: tuple[Table, ...] = ()
        if self.matches_object_type(ObjectType.TABLE):
            tables = tuple(
                self._apply_to_table(table)
                for table in schema.tables
                if self.matches_table(schema.schema_name, table.table_name)
            )

        views = tuple(
            view
            for view in schema.views
            if self.matches_object_type(
                ObjectType.MATERIALIZED_VIEW if view.is_materialized else ObjectType.VIEW
            )
            and self.matches_table(schema.schema_name, view.view_name)
        )
        sequences = tuple(
            sequence
            for sequence in schema.sequences
            if self.matches_object_type(ObjectType.SEQUENCE)
            and self.matches_table(schema.schema_name, sequence.sequence_name)
        )
        functions = tuple(
            function
            for function in schema.functions
            if self.matches_object_type(
                ObjectType.PROCEDURE if function.is_procedure else ObjectType.FUNCTION
            )
        )
        types = tuple(
            user_type
            for user_type in schema.types
            if self.matches_object_type(USER_TYPE_OBJECT_TYPES[user_type.kind])
        )
        extensions = schema.extensions if self.matches_object_type(ObjectType.EXTENSION) else ()

        return replace(
            schema,
            tables=tables,
            views=views,
            sequences=sequences,
            functions=functions,
            types=types,
            extensions=extensions,
        )

    def _apply_to_table(self, table: Table) -> Table:
        changes: dict = {}
        if not self.matches_object_type(ObjectType.COLUMN):
            changes["columns"] = ()
        if not self.matches_object_type(ObjectType.CONSTRAINT_PRIMARY):
            changes["primary_key"] = None
        if not self.matches_object_type(ObjectType.CONSTRAINT_FOREIGN):
            changes["foreign_keys"] = ()
        if not self.matches_object_type(ObjectType.CONSTRAINT_UNIQUE):
            changes["unique_constraints"] = ()
        if not self.matches_object_type(ObjectType.CONSTRAINT_CHECK):
            changes["check_constraints"] = ()
        if not self.matches_object_type(ObjectType.INDEX):
            changes["indexes"] = ()
        if not self.matches_object_type(ObjectType.TRIGGER):
            changes["triggers"] = ()
        return replace(table, **changes) if changes else table

