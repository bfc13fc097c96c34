"""Analysis module for comparing PostgreSQL schema snapshots.

The comparison walks the two snapshots in a fixed order:
1. Tables, by name. Each table's own attributes are compared first, then
   (for tables present on both sides) its columns, primary key, foreign
   keys, unique constraints, check constraints, indexes and triggers.
   A table present on one side only is reported once; its sub-objects are
   not reported individually.
2. Views, functions, user-defined types and extensions.
3. Sequences.

``compare_schemas`` is pure: it reads two snapshots and returns a new result.
``run_comparison`` loads the snapshots first and turns loader failures into
a failed result.
"""

import time
from collections.abc import Callable

from . import comparators
from .comparison import match_objects
from .db import PrimaryKey, Schema, Table
from .filters import ComparisonFilter
from .results import SchemaComparisonResult
from .utils.logging import get_logger

logger = get_logger(__name__)

SnapshotSource = Callable[[str, str], Schema]


def _primary_key_slot(primary_key: PrimaryKey) -> str:
    # A table has at most one primary key; pair them regardless of name.
    return "PRIMARY KEY"


def _optional(item: PrimaryKey | None) -> tuple[PrimaryKey, ...]:
    return () if item is None else (item,)


def compare_table_contents(
    source: Table, destination: Table, result: SchemaComparisonResult
) -> None:
    """Match the sub-objects of a table present in both snapshots."""
    scope = {"schema_name": source.schema_name, "parent_name": source.table_name}
    own_schemas = (source.schema_name, destination.schema_name)

    match_objects(source.columns, destination.columns, comparators.COLUMNS, result, **scope)
    match_objects(
        _optional(source.primary_key),
        _optional(destination.primary_key),
        comparators.PRIMARY_KEYS,
        result,
        key=_primary_key_slot,
        **scope,
    )
    match_objects(
        source.foreign_keys,
        destination.foreign_keys,
        comparators.ForeignKeyComparator(*own_schemas),
        result,
        **scope,
    )
    match_objects(
        source.unique_constraints,
        destination.unique_constraints,
        comparators.UNIQUE_CONSTRAINTS,
        result,
        **scope,
    )
    match_objects(
        source.check_constraints,
        destination.check_constraints,
        comparators.CHECK_CONSTRAINTS,
        result,
        **scope,
    )
    match_objects(source.indexes, destination.indexes, comparators.INDEXES, result, **scope)
    match_objects(
        source.triggers,
        destination.triggers,
        comparators.TriggerComparator(*own_schemas),
        result,
        **scope,
    )


def compare_schemas(
    source: Schema,
    destination: Schema,
    comparison_filter: ComparisonFilter | None = None,
    *,
    source_instance: str = "source",
    destination_instance: str = "destination",
    performed_by: str | None = None,
) -> SchemaComparisonResult:
    """Compare two schema snapshots and return every difference found.

    Args:
        source: The reference snapshot.
        destination: The snapshot checked against the source.
        comparison_filter: Applied to both snapshots before matching.
        source_instance: Label of the instance the source came from.
        destination_instance: Label of the instance the destination came from.
        performed_by: Optional user recorded on the result.
    """
    started = time.perf_counter()
    result = SchemaComparisonResult(
        source_instance=source_instance,
        source_schema=source.schema_name,
        destination_instance=destination_instance,
        destination_schema=destination.schema_name,
        comparison_filter=comparison_filter,
        performed_by=performed_by,
    )
    logger.info("comparison_started", comparison=result.comparison_label)

    if comparison_filter is not None:
        source = comparison_filter.apply(source)
        destination = comparison_filter.apply(destination)

    schema_name = source.schema_name
    match_objects(
        source.tables,
        destination.tables,
        comparators.TABLES,
        result,
        schema_name=schema_name,
        on_match=lambda s, d: compare_table_contents(s, d, result),
    )
    match_objects(
        source.views, destination.views, comparators.VIEWS, result, schema_name=schema_name
    )
    match_objects(
        source.functions,
        destination.functions,
        comparators.FUNCTIONS,
        result,
        schema_name=schema_name,
    )
    match_objects(
        source.types, destination.types, comparators.USER_TYPES, result, schema_name=schema_name
    )
    # Extensions are database-wide, so they carry no schema.
    match_objects(
        source.extensions, destination.extensions, comparators.EXTENSIONS, result, schema_name=None
    )
    match_objects(
        source.sequences,
        destination.sequences,
        comparators.SEQUENCES,
        result,
        schema_name=schema_name,
    )

    result.duration_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "comparison_completed",
        comparison=result.comparison_label,
        duration_ms=result.duration_ms,
        compared=result.summary.total_compared,
        **result.summary.to_dict(),
    )
    return result


def run_comparison(
    load_snapshot: SnapshotSource,
    source_instance: str,
    source_schema: str,
    destination_instance: str,
    destination_schema: str,
    comparison_filter: ComparisonFilter | None = None,
    performed_by: str | None = None,
) -> SchemaComparisonResult:
    """Load both snapshots and compare them.

    ``load_snapshot(instance, schema)`` must return a ``Schema``. If loading
    either side raises, nothing is compared: the returned result has
    ``success == False``, the error message, and no differences. On both
    paths ``duration_ms`` covers the snapshot loads as well as the matching.
    """
    started = time.perf_counter()
    try:
        source = load_snapshot(source_instance, source_schema)
        destination = load_snapshot(destination_instance, destination_schema)
    except Exception as e:
        logger.error(
            "snapshot_load_failed",
            source=f"{source_instance}.{source_schema}",
            destination=f"{destination_instance}.{destination_schema}",
            error_type=type(e).__name__,
            error=str(e),
        )
        return SchemaComparisonResult.failed(
            source_instance=source_instance,
            source_schema=source_schema,
            destination_instance=destination_instance,
            destination_schema=destination_schema,
            error_message=str(e) or type(e).__name__,
            comparison_filter=comparison_filter,
            performed_by=performed_by,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )

    result = compare_schemas(
        source,
        destination,
        comparison_filter,
        source_instance=source_instance,
        destination_instance=destination_instance,
        performed_by=performed_by,
    )
    result.duration_ms = int((time.perf_counter() - started) * 1000)
    return result
