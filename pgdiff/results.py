"""Difference and result model for schema comparisons.

A comparison run produces one ``SchemaComparisonResult``. Every difference
the matcher finds is recorded through ``SchemaComparisonResult.add_difference``,
which appends the difference and updates the running ``ComparisonSummary``
in the same call, so the summary totals always agree with the list.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from .filters import ComparisonFilter


class ObjectType(Enum):
    """Kind of database object a difference refers to."""

    TABLE = "Table"
    COLUMN = "Column"
    INDEX = "Index"
    CONSTRAINT_PRIMARY = "Primary Key"
    CONSTRAINT_FOREIGN = "Foreign Key"
    CONSTRAINT_UNIQUE = "Unique Constraint"
    CONSTRAINT_CHECK = "Check Constraint"
    VIEW = "View"
    MATERIALIZED_VIEW = "Materialised View"
    FUNCTION = "Function"
    PROCEDURE = "Procedure"
    TRIGGER = "Trigger"
    SEQUENCE = "Sequence"
    TYPE_ENUM = "Enum Type"
    TYPE_COMPOSITE = "Composite Type"
    TYPE_DOMAIN = "Domain"
    TYPE_RANGE = "Range Type"
    EXTENSION = "Extension"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def category(self) -> str:
        """Name of the summary counter this kind is tallied under."""
        return OBJECT_CATEGORIES[self]


OBJECT_CATEGORIES = {
    ObjectType.TABLE: "tables",
    ObjectType.COLUMN: "columns",
    ObjectType.INDEX: "indexes",
    ObjectType.CONSTRAINT_PRIMARY: "constraints",
    ObjectType.CONSTRAINT_FOREIGN: "constraints",
    ObjectType.CONSTRAINT_UNIQUE: "constraints",
    ObjectType.CONSTRAINT_CHECK: "constraints",
    ObjectType.VIEW: "views",
    ObjectType.MATERIALIZED_VIEW: "views",
    ObjectType.FUNCTION: "functions",
    ObjectType.PROCEDURE: "functions",
    ObjectType.TRIGGER: "triggers",
    ObjectType.SEQUENCE: "sequences",
    ObjectType.TYPE_ENUM: "types",
    ObjectType.TYPE_COMPOSITE: "types",
    ObjectType.TYPE_DOMAIN: "types",
    ObjectType.TYPE_RANGE: "types",
    ObjectType.EXTENSION: "extensions",
}

USER_TYPE_OBJECT_TYPES = {
    "enum": ObjectType.TYPE_ENUM,
    "composite": ObjectType.TYPE_COMPOSITE,
    "domain": ObjectType.TYPE_DOMAIN,
    "range": ObjectType.TYPE_RANGE,
}


class DifferenceType(Enum):
    """Classification relative to the source-to-destination direction."""

    MISSING = "Missing"  # in source, not in destination
    EXTRA = "Extra"  # in destination, not in source
    MODIFIED = "Modified"  # in both, structurally different

    @property
    def display_name(self) -> str:
        return self.value


class Severity(Enum):
    """Impact classification of a difference."""

    BREAKING = "Breaking"
    WARNING = "Warning"
    INFO = "Info"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """0 for the most severe level."""
        return list(Severity).index(self)


def format_value(value: Any) -> str | None:
    """Render an attribute value for an AttributeDifference."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "YES" if value else "NO"
    if isinstance(value, (tuple, list)):
        return ", ".join(str(v) for v in value)
    return str(value)


@dataclass(frozen=True)
class AttributeDifference:
    """A single named attribute that differs between source and destination."""

    attribute_name: str
    source_value: str | None
    destination_value: str | None
    breaking: bool = False

    @classmethod
    def between(
        cls, attribute_name: str, source: Any, destination: Any, breaking: bool = False
    ) -> "AttributeDifference":
        """Build a difference, rendering both values with ``format_value``."""
        return cls(
            attribute_name=attribute_name,
            source_value=format_value(source),
            destination_value=format_value(destination),
            breaking=breaking,
        )

    def __str__(self) -> str:
        text = f"{self.attribute_name}: {self.source_value} -> {self.destination_value}"
        return f"{text} (breaking)" if self.breaking else text


@dataclass(frozen=True)
class ObjectDifference:
    """One object-level mismatch between the two snapshots."""

    object_type: ObjectType
    difference_type: DifferenceType
    severity: Severity
    object_name: str
    schema_name: str | None = None
    parent_object_name: str | None = None
    source_definition: str | None = None
    destination_definition: str | None = None
    attribute_differences: tuple[AttributeDifference, ...] = ()

    @property
    def full_name(self) -> str:
        """Return schema.object, or the bare object name without a schema."""
        if not self.schema_name:
            return self.object_name
        return f"{self.schema_name}.{self.object_name}"

    @property
    def is_breaking(self) -> bool:
        return self.severity is Severity.BREAKING

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    @property
    def is_info(self) -> bool:
        return self.severity is Severity.INFO

    @property
    def is_missing(self) -> bool:
        return self.difference_type is DifferenceType.MISSING

    @property
    def is_extra(self) -> bool:
        return self.difference_type is DifferenceType.EXTRA

    @property
    def is_modified(self) -> bool:
        return self.difference_type is DifferenceType.MODIFIED

    @property
    def summary(self) -> str:
        """One-line description, e.g. ``Missing Table: public.users``."""
        return (
            f"{self.difference_type.display_name} "
            f"{self.object_type.display_name}: {self.full_name}"
        )

    def __str__(self) -> str:
        return self.summary


@dataclass
class ComparisonSummary:
    """Running totals for a comparison.

    Only ``SchemaComparisonResult.add_difference`` should call
    ``update_counts``; the compared/matching counters are bumped by the
    matcher as it visits objects.
    """

    missing_objects: int = 0
    extra_objects: int = 0
    modified_objects: int = 0
    matching_objects: int = 0
    breaking_changes: int = 0

    tables_compared: int = 0
    columns_compared: int = 0
    indexes_compared: int = 0
    constraints_compared: int = 0
    views_compared: int = 0
    functions_compared: int = 0
    triggers_compared: int = 0
    sequences_compared: int = 0
    types_compared: int = 0
    extensions_compared: int = 0

    @property
    def total_differences(self) -> int:
        return self.missing_objects + self.extra_objects + self.modified_objects

    @property
    def total_compared(self) -> int:
        return (
            self.tables_compared
            + self.columns_compared
            + self.indexes_compared
            + self.constraints_compared
            + self.views_compared
            + self.functions_compared
            + self.triggers_compared
            + self.sequences_compared
            + self.types_compared
            + self.extensions_compared
        )

    @property
    def status(self) -> str:
        """``identical``, ``breaking`` or ``changed``."""
        if self.total_differences == 0:
            return "identical"
        if self.has_breaking_changes():
            return "breaking"
        return "changed"

    def has_breaking_changes(self) -> bool:
        """True when at least one recorded difference has BREAKING severity."""
        return self.breaking_changes > 0

    def update_counts(self, difference: ObjectDifference) -> None:
        if difference.difference_type is DifferenceType.MISSING:
            self.missing_objects += 1
        elif difference.difference_type is DifferenceType.EXTRA:
            self.extra_objects += 1
        else:
            self.modified_objects += 1
        if difference.is_breaking:
            self.breaking_changes += 1

    def increment_compared(self, object_type: ObjectType) -> None:
        counter = f"{object_type.category}_compared"
        setattr(self, counter, getattr(self, counter) + 1)

    def increment_matching(self) -> None:
        self.matching_objects += 1

    def summary_text(self) -> str:
        if self.total_differences == 0:
            return "Schemas are identical"
        return (
            f"{self.total_differences} differences "
            f"({self.missing_objects} missing, {self.extra_objects} extra, "
            f"{self.modified_objects} modified)"
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "missing": self.missing_objects,
            "extra": self.extra_objects,
            "modified": self.modified_objects,
            "matching": self.matching_objects,
            "breaking": self.breaking_changes,
            "total": self.total_differences,
        }


@dataclass
class SchemaComparisonResult:
    """Outcome of comparing a source schema with a destination schema."""

    source_instance: str
    source_schema: str
    destination_instance: str
    destination_schema: str
    id: UUID = field(default_factory=uuid4)
    compared_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: int = 0
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)
    comparison_filter: "ComparisonFilter | None" = None
    performed_by: str | None = None
    error_message: str | None = None
    _differences: list[ObjectDifference] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def failed(
        cls,
        source_instance: str,
        source_schema: str,
        destination_instance: str,
        destination_schema: str,
        error_message: str,
        comparison_filter: "ComparisonFilter | None" = None,
        performed_by: str | None = None,
        duration_ms: int = 0,
    ) -> "SchemaComparisonResult":
        """Result for a run that could not compare anything."""
        return cls(
            source_instance=source_instance,
            source_schema=source_schema,
            destination_instance=destination_instance,
            destination_schema=destination_schema,
            duration_ms=duration_ms,
            comparison_filter=comparison_filter,
            performed_by=performed_by,
            error_message=error_message,
        )

    @property
    def differences(self) -> tuple[ObjectDifference, ...]:
        """All differences in emission order."""
        return tuple(self._differences)

    @property
    def success(self) -> bool:
        return self.error_message is None

    def add_difference(self, difference: ObjectDifference) -> None:
        self._differences.append(difference)
        self.summary.update_counts(difference)

    def is_identical(self) -> bool:
        return not self._differences

    def has_breaking_changes(self) -> bool:
        return any(d.is_breaking for d in self._differences)

    def differences_by_severity(self, severity: Severity) -> list[ObjectDifference]:
        return [d for d in self._differences if d.severity is severity]

    def differences_by_type(self, object_type: ObjectType) -> list[ObjectDifference]:
        return [d for d in self._differences if d.object_type is object_type]

    def differences_by_diff_type(
        self, difference_type: DifferenceType
    ) -> list[ObjectDifference]:
        return [d for d in self._differences if d.difference_type is difference_type]

    def grouped_by_object_type(self) -> dict[ObjectType, list[ObjectDifference]]:
        """Differences grouped by kind, in first-seen order."""
        groups: dict[ObjectType, list[ObjectDifference]] = defaultdict(list)
        for difference in self._differences:
            groups[difference.object_type].append(difference)
        return dict(groups)

    @property
    def breaking_count(self) -> int:
        return len(self.differences_by_severity(Severity.BREAKING))

    @property
    def warning_count(self) -> int:
        return len(self.differences_by_severity(Severity.WARNING))

    @property
    def info_count(self) -> int:
        return len(self.differences_by_severity(Severity.INFO))

    def summary_text(self) -> str:
        if not self.success:
            return f"Comparison failed: {self.error_message}"
        return self.summary.summary_text()

    @property
    def comparison_label(self) -> str:
        return (
            f"{self.source_instance}.{self.source_schema} → "
            f"{self.destination_instance}.{self.destination_schema}"
        )

    @property
    def formatted_timestamp(self) -> str:
        return self.compared_at.strftime("%Y-%m-%d %H:%M:%S")
