"""Report generation for schema comparison results."""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .results import DifferenceType, ObjectDifference, SchemaComparisonResult, Severity

SEVERITY_STYLES = {
    Severity.BREAKING: "bold red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}

DIFFERENCE_MARKS = {
    DifferenceType.MISSING: "←",
    DifferenceType.EXTRA: "→",
    DifferenceType.MODIFIED: "≠",
}


def _format_detail(difference: ObjectDifference) -> str:
    """Detail cell for the console table."""
    if difference.is_modified:
        lines = []
        for attribute in difference.attribute_differences:
            line = escape(str(attribute))
            lines.append(f"[red]{line}[/red]" if attribute.breaking else line)
        return "\n".join(lines)
    definition = difference.source_definition or difference.destination_definition
    return escape(definition or "")


def build_report_table(result: SchemaComparisonResult) -> Table:
    """Build a rich table of all differences, grouped by object type."""
    table = Table(
        title=f"Schema Comparison: {escape(result.comparison_label)}",
        caption=escape(result.summary_text()),
        show_header=True,
        header_style="bold",
        show_lines=True,
    )
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Object", style="white", no_wrap=True)
    table.add_column("Difference", no_wrap=True)
    table.add_column("Severity", no_wrap=True)
    table.add_column("Detail", overflow="fold")

    summary = result.summary
    for label, value in [
        ("Missing", summary.missing_objects),
        ("Extra", summary.extra_objects),
        ("Modified", summary.modified_objects),
        ("Matching", summary.matching_objects),
        ("Compared", summary.total_compared),
    ]:
        table.add_row("Summary", label, str(value), "", "")

    for object_type, differences in result.grouped_by_object_type().items():
        table.add_section()
        for difference in differences:
            style = SEVERITY_STYLES[difference.severity]
            table.add_row(
                object_type.display_name,
                escape(difference.full_name),
                f"{DIFFERENCE_MARKS[difference.difference_type]} "
                f"{difference.difference_type.display_name}",
                f"[{style}]{difference.severity.display_name}[/{style}]",
                _format_detail(difference),
            )

    return table


def render_report(result: SchemaComparisonResult, console: Console | None = None) -> None:
    """Print a result to the console."""
    console = console or Console()
    if not result.success:
        console.print(
            f"[bold red]Comparison failed[/bold red] {escape(result.comparison_label)}: "
            f"{escape(result.error_message or '')}"
        )
        return
    if result.is_identical():
        console.print(f"[green]✓[/green] {escape(result.comparison_label)}: Schemas are identical")
        return
    console.print(build_report_table(result))


def format_difference(difference: ObjectDifference, indent: str = "  ") -> list[str]:
    """Format a single object difference."""
    mark = DIFFERENCE_MARKS[difference.difference_type]
    lines = [
        f"{indent}{mark} {difference.difference_type.display_name.upper()} "
        f"[{difference.severity.display_name}]: {difference.full_name}"
    ]
    for attribute in difference.attribute_differences:
        breaking = " (breaking)" if attribute.breaking else ""
        lines.append(f"{indent}    {attribute.attribute_name}{breaking}:")
        lines.append(f"{indent}      ← {attribute.source_value}")
        lines.append(f"{indent}      → {attribute.destination_value}")
    return lines


def generate_text_report(result: SchemaComparisonResult) -> str:
    """Generate a plain-text comparison report."""
    lines = [
        "PostgreSQL Schema Comparison Report",
        "=" * 60,
        f"Source:      {result.source_instance}.{result.source_schema}",
        f"Destination: {result.destination_instance}.{result.destination_schema}",
        f"Compared at: {result.formatted_timestamp} ({result.duration_ms} ms)",
    ]
    if result.comparison_filter is not None:
        lines.append(f"Filter:      {result.comparison_filter.summary_text()}")

    if not result.success:
        lines.append("")
        lines.append(f"✗ Comparison failed: {result.error_message}")
        return "\n".join(lines)

    if result.is_identical():
        lines.append("")
        lines.append("✓ No differences found. Schemas are identical.")
        return "\n".join(lines)

    for object_type, differences in result.grouped_by_object_type().items():
        lines.extend(
            [
                "",
                "=" * 60,
                f" {object_type.display_name.upper()} ({len(differences)} difference(s))",
                "=" * 60,
            ]
        )
        for difference in differences:
            lines.extend(format_difference(difference))

    lines.append("")
    lines.append("=" * 60)
    lines.append(" SUMMARY")
    lines.append("=" * 60)
    lines.append(f"  {result.summary_text()}")
    lines.append(
        f"  {result.breaking_count} breaking, {result.warning_count} warning, "
        f"{result.info_count} info"
    )
    return "\n".join(lines)
