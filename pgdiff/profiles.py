"""Saved comparison configurations."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID, uuid4

from .analysis import SnapshotSource, run_comparison
from .filters import ComparisonFilter
from .results import ComparisonSummary, SchemaComparisonResult
from .utils.logging import get_logger

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ComparisonProfile:
    """A named source/destination pair plus the filter to compare them with."""

    name: str
    source_instance: str
    destination_instance: str
    source_schema: str = "public"
    destination_schema: str = "public"
    description: str | None = None
    comparison_filter: ComparisonFilter = field(default_factory=ComparisonFilter)
    is_default: bool = False
    created_by: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    last_run_at: datetime | None = None
    last_run_summary: ComparisonSummary | None = None
    id: UUID = field(default_factory=uuid4)

    @property
    def comparison_label(self) -> str:
        return (
            f"{self.source_instance}.{self.source_schema} → "
            f"{self.destination_instance}.{self.destination_schema}"
        )

    def has_been_run(self) -> bool:
        return self.last_run_at is not None

    def last_run_summary_text(self) -> str:
        if self.last_run_summary is None:
            return "Never run"
        return self.last_run_summary.summary_text()

    def update_last_run(self, result: SchemaComparisonResult) -> None:
        """Record a finished run on the profile."""
        self.last_run_at = result.compared_at
        self.last_run_summary = result.summary
        self.updated_at = _now()

    def run(
        self, loader: SnapshotSource, performed_by: str | None = None
    ) -> SchemaComparisonResult:
        """Run this profile's comparison.

        The last-run fields are only updated when the run succeeded.
        """
        logger.info("profile_run_started", profile=self.name, comparison=self.comparison_label)
        result = run_comparison(
            loader,
            self.source_instance,
            self.source_schema,
            self.destination_instance,
            self.destination_schema,
            comparison_filter=self.comparison_filter,
            performed_by=performed_by,
        )
        if result.success:
            self.update_last_run(result)
        else:
            logger.warning("profile_run_failed", profile=self.name, error=result.error_message)
        return result
