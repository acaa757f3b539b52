"""Collection completeness report.

Everything here is derived from the persisted ledger and the record store;
the verifier never fetches anything.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from config.walmart_config import REGION_NAMES
from src.directory.ledger import LedgerSnapshot
from src.directory.record_store import RecordStore

__all__ = [
    'CollectionVerifier',
    'VerificationReport',
    'format_report',
]


@dataclass
class VerificationReport:
    total_records: int
    by_region_counts: Dict[str, int]
    completed: List[str]
    in_progress: List[str]
    pending: List[str]
    completion_percent: float
    partial_regions: List[str] = field(default_factory=list)
    incomplete_records: int = 0
    records_without_phone: int = 0
    last_updated: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return not self.in_progress and not self.pending


class CollectionVerifier:
    """Compares the declared region universe against what was collected."""

    def __init__(self, snapshot: LedgerSnapshot, store: RecordStore, universe: Sequence[str]):
        self.snapshot = snapshot
        self.store = store
        self.universe = [code.lower() for code in universe]

    def report(self) -> VerificationReport:
        by_region = self.store.by_region()
        completed = set(self.snapshot.completed)
        partial = [region for region in by_region if region.lower() not in completed]

        records = self.store.records()
        return VerificationReport(
            total_records=len(records),
            by_region_counts=by_region,
            completed=list(self.snapshot.completed),
            in_progress=list(self.snapshot.in_progress),
            pending=list(self.snapshot.pending),
            completion_percent=round(len(completed) / len(self.universe) * 100, 1) if self.universe else 0.0,
            partial_regions=partial,
            incomplete_records=sum(1 for record in records if not record.is_complete),
            records_without_phone=sum(1 for record in records if not record.has_phone),
            last_updated=self.snapshot.last_updated,
        )


def _region_label(code: str) -> str:
    return f"{code.upper()} ({REGION_NAMES.get(code.lower(), 'unknown')})"


def format_report(report: VerificationReport) -> str:
    """Human-readable report for the verify command."""
    lines = [
        "=" * 60,
        "COLLECTION STATUS",
        "=" * 60,
        f"Last updated:     {report.last_updated or 'never'}",
        f"Total stores:     {report.total_records}",
        f"Completion:       {report.completion_percent}% "
        f"({len(report.completed)} completed, {len(report.in_progress)} in progress, "
        f"{len(report.pending)} pending)",
        f"Missing address:  {report.incomplete_records}",
        f"Missing phone:    {report.records_without_phone}",
        "",
        f"Completed ({len(report.completed)}):",
    ]
    lines.extend(f"  {_region_label(code)}" for code in report.completed)

    if report.in_progress:
        lines.append(f"In progress ({len(report.in_progress)}):")
        lines.extend(f"  {_region_label(code)}" for code in report.in_progress)

    if report.pending:
        lines.append(f"Pending ({len(report.pending)}):")
        lines.append("  " + ', '.join(code.upper() for code in report.pending))

    if report.by_region_counts:
        lines.append("")
        lines.append("Stores by state:")
        for region, count in sorted(report.by_region_counts.items(), key=lambda item: (-item[1], item[0])):
            lines.append(f"  {region:<8} {count:>5}")

    if report.partial_regions:
        lines.append("")
        lines.append("WARNING: stores collected for states not marked completed: "
                     + ', '.join(report.partial_regions))

    lines.append("=" * 60)
    return '\n'.join(lines)
