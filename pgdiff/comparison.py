"""Object matcher: aligns two collections of same-kind objects by identity key."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from .comparators import StructuralComparator
from .results import DifferenceType, ObjectDifference, SchemaComparisonResult
from .utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class MatchCounts:
    """Per-call tally of what ``match_objects`` found."""

    missing: int = 0
    extra: int = 0
    modified: int = 0
    matching: int = 0

    @property
    def total_differences(self) -> int:
        return self.missing + self.extra + self.modified


def match_objects(
    source_items: Iterable[T],
    destination_items: Iterable[T],
    comparator: StructuralComparator[T],
    result: SchemaComparisonResult,
    *,
    schema_name: str | None,
    parent_name: str | None = None,
    on_match: Callable[[T, T], None] | None = None,
    key: Callable[[T], str] | None = None,
) -> MatchCounts:
    """Compare two collections and record every difference on ``result``.

    Objects are paired by ``key`` (the comparator's identity key unless
    given). Keys only in the source are MISSING, keys only in the
    destination are EXTRA, and paired objects that are not structurally
    equal are MODIFIED. Keys are visited in the comparator's sort order so
    output is deterministic. ``on_match`` is called for every pair, after
    the pair's own difference (if any) has been recorded.

    Matching is purely by key: a renamed object shows up as one MISSING
    plus one EXTRA.
    """
    key = key or comparator.key
    source_map = {key(item): item for item in source_items}
    destination_map = {key(item): item for item in destination_items}

    def order(k: str) -> Any:
        item = source_map[k] if k in source_map else destination_map[k]
        return (comparator.sort_key(item), k)

    counts = MatchCounts()
    for k in sorted(source_map.keys() | destination_map.keys(), key=order):
        source = source_map.get(k)
        destination = destination_map.get(k)
        present = source if source is not None else destination
        object_type = comparator.object_type_for(present)
        result.summary.increment_compared(object_type)

        name = comparator.key(present)
        object_name = f"{parent_name}.{name}" if parent_name else name

        if destination is None:
            counts.missing += 1
            result.add_difference(
                ObjectDifference(
                    object_type=object_type,
                    difference_type=DifferenceType.MISSING,
                    severity=comparator.missing_severity,
                    object_name=object_name,
                    schema_name=schema_name,
                    parent_object_name=parent_name,
                    source_definition=comparator.describe(source),
                )
            )
            continue

        if source is None:
            counts.extra += 1
            result.add_difference(
                ObjectDifference(
                    object_type=object_type,
                    difference_type=DifferenceType.EXTRA,
                    severity=comparator.extra_severity,
                    object_name=object_name,
                    schema_name=schema_name,
                    parent_object_name=parent_name,
                    destination_definition=comparator.describe(destination),
                )
            )
            continue

        if comparator.equals_structure(source, destination):
            counts.matching += 1
            result.summary.increment_matching()
        else:
            counts.modified += 1
            attribute_differences = comparator.diff(source, destination)
            result.add_difference(
                ObjectDifference(
                    object_type=object_type,
                    difference_type=DifferenceType.MODIFIED,
                    severity=comparator.modified_severity(attribute_differences),
                    object_name=object_name,
                    schema_name=schema_name,
                    parent_object_name=parent_name,
                    source_definition=comparator.describe(source),
                    destination_definition=comparator.describe(destination),
                    attribute_differences=tuple(attribute_differences),
                )
            )

        if on_match is not None:
            on_match(source, destination)

    if counts.total_differences:
        logger.debug(
            "objects_differ",
            object_type=comparator.object_type.display_name,
            parent=parent_name,
            missing=counts.missing,
            extra=counts.extra,
            modified=counts.modified,
        )
    return counts
