"""pgdiff - PostgreSQL Schema Comparison Engine."""

from .db import Schema, SnapshotLoader, fetch_schema
from .analysis import compare_schemas, run_comparison
from .comparison import match_objects, MatchCounts
from .comparators import StructuralComparator, normalize_whitespace
from .config import Settings, get_settings
from .exceptions import PgDiffError, IntrospectionError, UnknownInstanceError
from .filters import ComparisonFilter, FilterPreset
from .profiles import ComparisonProfile
from .report import generate_text_report, render_report
from .results import (
    AttributeDifference,
    ComparisonSummary,
    DifferenceType,
    ObjectDifference,
    ObjectType,
    SchemaComparisonResult,
    Severity,
)
from .utils.logging import configure_logging, get_logger

__all__ = [
    "Schema",
    "SnapshotLoader",
    "fetch_schema",
    "compare_schemas",
    "run_comparison",
    "match_objects",
    "MatchCounts",
    "StructuralComparator",
    "normalize_whitespace",
    "Settings",
    "get_settings",
    "PgDiffError",
    "IntrospectionError",
    "UnknownInstanceError",
    "ComparisonFilter",
    "FilterPreset",
    "ComparisonProfile",
    "generate_text_report",
    "render_report",
    "AttributeDifference",
    "ComparisonSummary",
    "DifferenceType",
    "ObjectDifference",
    "ObjectType",
    "SchemaComparisonResult",
    "Severity",
    "configure_logging",
    "get_logger",
]
