"""Shared Rich display functions for cleanup and monitor results.

Provides table builders and summary printers used by the clean, monitor
and components commands.
"""

from collections.abc import Sequence
from datetime import datetime

from rich.table import Table

from nexusctl.core.cleaner import CleanerReport
from nexusctl.core.freshness import compute_idle_duration
from nexusctl.core.monitor import MonitorReport
from nexusctl.core.reclaim import ReclaimResult
from nexusctl.core.rules import RuleEvaluation
from nexusctl.models.component import Component
from nexusctl.utils.formatting import (
    console,
    create_table,
    format_mib,
    format_size,
    print_success,
    print_warning,
)


def create_decisions_table(repository: str, evaluation: RuleEvaluation) -> Table:
    """Create a table of per-member rule decisions.

    Args:
        repository: Repository name for the title.
        evaluation: Evaluation of that repository.

    Returns:
        Rich Table with one row per decision.
    """
    table = create_table(f"Rule Decisions ({repository})")
    table.add_column("Rule", justify="right", width=4)
    table.add_column("Group", style="muted")
    table.add_column("Component", no_wrap=True)
    table.add_column("Idle", justify="right")
    table.add_column("Min Age", justify="right", style="muted")
    table.add_column("Decision", justify="center")

    for decision in evaluation.decisions:
        style = "expired" if decision.expired else "retained"
        table.add_row(
            f"{decision.rule_index:02d}",
            decision.group_key,
            f"[{style}]{decision.component.name}[/]",
            f"{decision.freshness.idle_days}d",
            str(decision.min_age),
            f"[{style}]{'expired' if decision.expired else 'keep'}[/]",
        )
    for group in evaluation.skipped_groups:
        table.add_row(
            f"{group.rule_index:02d}",
            group.group_key,
            f"[skipped]{group.size} files[/]",
            "-",
            "-",
            f"[skipped]floor {group.min_files}[/]",
        )
    return table


def create_reclaim_table(result: ReclaimResult, dry_run: bool) -> Table:
    """Create a table of the reclaim walk in reclaim order.

    Args:
        result: Reclaim result to display.
        dry_run: Whether no deletes were issued.

    Returns:
        Rich Table with one row per walked entry.
    """
    title = "Reclaim Order (Dry Run)" if dry_run else "Reclaim Order"
    table = create_table(title)
    table.add_column("#", justify="right", width=4)
    table.add_column("Component", no_wrap=True)
    table.add_column("Size", justify="right", style="info")
    table.add_column("Idle", justify="right")
    table.add_column("Downloaded", justify="center")
    table.add_column("Status", justify="center")

    for entry in result.entries:
        if entry.deleted:
            status = "[expired]deleted[/]"
        elif entry.selected:
            status = "[warning]would delete[/]"
        else:
            status = "[retained]retained[/]"
        table.add_row(
            f"{entry.index:03d}",
            entry.component.name,
            format_size(entry.size_bytes),
            f"{entry.idle_days}d",
            "yes" if entry.has_download else "[muted]no[/]",
            status,
        )
    return table


def print_cleaner_report(report: CleanerReport) -> None:
    """Print decision and reclaim tables followed by a summary line."""
    for repository, evaluation in report.evaluations.items():
        if evaluation.decisions or evaluation.skipped_groups:
            console.print(create_decisions_table(repository, evaluation))

    if report.reclaim.entries:
        console.print(create_reclaim_table(report.reclaim, dry_run=not report.deleting))

    print_reclaim_summary(report.reclaim, report.deleting)


def print_reclaim_summary(result: ReclaimResult, deleting: bool) -> None:
    """Print how much was (or would be) freed against the budget."""
    verb = "Freed" if deleting else "Would free"
    budget = format_mib(result.budget_bytes) if result.budget_bytes else "no limit"
    message = f"{verb} {format_size(result.freed_bytes)} ({len(result.selected)} components, budget {budget})"
    if result.met_budget:
        print_success(message)
    else:
        print_warning(f"{message}, budget not met")


def create_volumes_table(report: MonitorReport) -> Table:
    """Create a table with the free space of every checked volume."""
    table = create_table("Volumes")
    table.add_column("Kind", style="muted")
    table.add_column("Target", no_wrap=True)
    table.add_column("Free", justify="right", style="info")
    table.add_column("Minimum", justify="right", style="muted")
    table.add_column("Status", justify="center")

    for status in report.statuses:
        state = "[shortage]short[/]" if status.shortage else "[success]ok[/]"
        table.add_row(
            status.kind,
            status.target,
            f"{status.free_mib} MiB",
            f"{status.volume.min_free_size} MiB",
            state,
        )
    return table


def create_components_table(
    repository: str, components: Sequence[Component], now: datetime
) -> Table:
    """Create a table listing components with size and idle days."""
    table = create_table(f"Components ({repository})")
    table.add_column("Group", style="muted")
    table.add_column("Name", no_wrap=True)
    table.add_column("Size", justify="right", style="info")
    table.add_column("Idle", justify="right")
    table.add_column("Downloaded", justify="center")

    for component in components:
        freshness = compute_idle_duration(component, now)
        table.add_row(
            component.group,
            component.name,
            format_size(component.size_bytes),
            f"{freshness.idle_days}d",
            "yes" if freshness.has_download else "[muted]no[/]",
        )
    return table
