"""Checkpoint ledger tracking crawl progress by region.

Every region of the declared universe is in exactly one of three sets:
completed, in progress (at most one region), or pending. The ledger
document is written next to the record store snapshot after every locality
that produced records and after every region transition.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from src.directory.record_store import RecordStore
from src.shared.checkpoint import load_json_document, save_json_atomic
from src.shared.constants import SERIALIZATION
from src.shared.errors import InputFormatError, InvariantViolation

__all__ = [
    'CheckpointLedger',
    'LedgerSnapshot',
    'UnitStatus',
    'WorkUnit',
]


class UnitStatus(Enum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'


@dataclass
class WorkUnit:
    """A region (state code) or, inside a region, a locality (page URL)."""
    code: str
    name: str = ''
    status: UnitStatus = UnitStatus.PENDING


# Keys written by older progress files
_LEGACY_KEYS = {
    'completed': 'statesCompleted',
    'in_progress': 'statesInProgress',
    'pending': 'statesPending',
    'last_updated': 'lastUpdated',
}


@dataclass
class LedgerSnapshot:
    """Read-only view of a persisted ledger document."""
    completed: List[str] = field(default_factory=list)
    in_progress: List[str] = field(default_factory=list)
    pending: List[str] = field(default_factory=list)
    last_updated: Optional[str] = None


def _read_sets(data: object, path: str, universe_codes: Sequence[str]) -> LedgerSnapshot:
    """Parse the three sets from a ledger document, restricted to the universe."""
    if not isinstance(data, dict):
        raise InputFormatError(path, "progress document must be a JSON object")

    known = set(universe_codes)
    seen = set()
    sets = {}
    for key in ('completed', 'in_progress', 'pending'):
        raw = data.get(key, data.get(_LEGACY_KEYS[key], []))
        if raw is None:
            raw = []
        if not isinstance(raw, list) or not all(isinstance(code, str) for code in raw):
            raise InputFormatError(path, f"'{key}' must be a list of region codes")

        codes = []
        for code in raw:
            code = code.lower()
            if code not in known:
                logging.warning(f"Ignoring unknown region '{code}' in {path}")
                continue
            if code in seen:
                # First set wins so the partition stays disjoint
                logging.warning(f"Region '{code}' listed twice in {path}, keeping first status")
                continue
            seen.add(code)
            codes.append(code)
        sets[key] = codes

    last_updated = data.get('last_updated', data.get(_LEGACY_KEYS['last_updated']))
    snapshot = LedgerSnapshot(
        completed=sets['completed'],
        in_progress=sets['in_progress'],
        pending=sets['pending'],
        last_updated=last_updated if isinstance(last_updated, str) else None,
    )

    # Regions missing from every set have never been started
    for code in universe_codes:
        if code not in seen:
            snapshot.pending.append(code)

    return snapshot


class CheckpointLedger:
    """Progress state over a declared, ordered universe of regions."""

    def __init__(self, universe: Iterable, path: Optional[Union[str, Path]] = None):
        """
        Args:
            universe: Ordered regions, as RegionConfig objects or bare codes
            path: Where persist() writes the ledger document
        """
        self.path = Path(path) if path else None
        self.last_updated: Optional[str] = None
        self._units: Dict[str, WorkUnit] = {}
        for region in universe:
            code = getattr(region, 'code', region).lower()
            name = getattr(region, 'name', '') or code.upper()
            self._units[code] = WorkUnit(code, name)

        if not self._units:
            raise ValueError("Ledger universe cannot be empty")

    @property
    def universe(self) -> List[str]:
        return list(self._units)

    def unit(self, code: str) -> WorkUnit:
        return self._units[code.lower()]

    def _codes_with(self, status: UnitStatus) -> List[str]:
        return [code for code, unit in self._units.items() if unit.status == status]

    @property
    def completed(self) -> List[str]:
        return self._codes_with(UnitStatus.COMPLETED)

    @property
    def in_progress(self) -> List[str]:
        return self._codes_with(UnitStatus.IN_PROGRESS)

    @property
    def pending(self) -> List[str]:
        return self._codes_with(UnitStatus.PENDING)

    def next_pending(self, skip: Iterable[str] = ()) -> Optional[WorkUnit]:
        """First pending region in universe order, ignoring codes in skip."""
        skipped = {code.lower() for code in skip}
        for code, unit in self._units.items():
            if unit.status == UnitStatus.PENDING and code not in skipped:
                return unit
        return None

    def mark_in_progress(self, unit: WorkUnit) -> None:
        current = self.in_progress
        if current:
            raise InvariantViolation(
                f"Cannot start region {unit.code}: region {current[0]} is already in progress"
            )
        tracked = self._tracked(unit)
        if tracked.status != UnitStatus.PENDING:
            raise InvariantViolation(f"Cannot start region {unit.code}: status is {tracked.status.value}")
        tracked.status = UnitStatus.IN_PROGRESS
        unit.status = tracked.status

    def mark_completed(self, unit: WorkUnit) -> None:
        tracked = self._tracked(unit)
        if tracked.status != UnitStatus.IN_PROGRESS:
            raise InvariantViolation(f"Cannot complete region {unit.code}: it is not in progress")
        tracked.status = UnitStatus.COMPLETED
        unit.status = tracked.status

    def release(self, unit: WorkUnit) -> None:
        """Return the in-progress region to pending without completing it."""
        tracked = self._tracked(unit)
        if tracked.status != UnitStatus.IN_PROGRESS:
            raise InvariantViolation(f"Cannot release region {unit.code}: it is not in progress")
        tracked.status = UnitStatus.PENDING
        unit.status = tracked.status

    def _tracked(self, unit: WorkUnit) -> WorkUnit:
        tracked = self._units.get(unit.code.lower())
        if tracked is None:
            raise InvariantViolation(f"Region {unit.code} is not part of the universe")
        return tracked

    def validate(self) -> None:
        """Check the partition invariant.

        Raises:
            InvariantViolation: If the sets overlap, miss a region, or more
                than one region is in progress
        """
        completed, in_progress, pending = self.completed, self.in_progress, self.pending
        if len(in_progress) > 1:
            raise InvariantViolation(f"More than one region in progress: {', '.join(in_progress)}")

        covered = set(completed) | set(in_progress) | set(pending)
        total = len(completed) + len(in_progress) + len(pending)
        if covered != set(self._units) or total != len(self._units):
            raise InvariantViolation("Ledger sets do not partition the region universe")

    def to_document(self, total_records: int) -> Dict:
        return {
            'format_version': SERIALIZATION.LEDGER_FORMAT_VERSION,
            'last_updated': self.last_updated,
            'total_records': total_records,
            'completed': self.completed,
            'in_progress': self.in_progress,
            'pending': self.pending,
        }

    def persist(self, store: RecordStore) -> None:
        """Validate, then write the store snapshot followed by the ledger.

        Raises:
            InvariantViolation: If the ledger is inconsistent (nothing is written)
        """
        self.validate()
        if self.path is None:
            raise ValueError("CheckpointLedger has no path to persist to")

        store.save()
        self.last_updated = datetime.now().isoformat()
        save_json_atomic(self.to_document(len(store)), self.path)
        logging.info(
            f"Checkpoint saved: {len(store)} records, "
            f"{len(self.completed)}/{len(self._units)} regions completed"
        )

    @classmethod
    def load(cls, path: Union[str, Path], universe: Iterable) -> 'CheckpointLedger':
        """Rebuild the ledger from its last persisted document.

        A region left in progress by an interrupted run is re-queued as
        pending. A missing file yields a ledger with every region pending.

        Raises:
            InputFormatError: If the file exists but cannot be parsed
        """
        ledger = cls(universe, path)
        data = load_json_document(path)
        if data is None:
            logging.info(f"No progress file at {path}, all {len(ledger.universe)} regions pending")
            return ledger

        snapshot = _read_sets(data, str(path), ledger.universe)
        for code in snapshot.completed:
            ledger._units[code].status = UnitStatus.COMPLETED
        for code in snapshot.in_progress:
            logging.info(f"Re-queueing region {code} left in progress by a previous run")
        ledger.last_updated = snapshot.last_updated

        logging.info(
            f"Resuming: {len(ledger.completed)} completed, {len(ledger.pending)} pending"
        )
        return ledger

    @staticmethod
    def read_snapshot(path: Union[str, Path], universe: Iterable) -> LedgerSnapshot:
        """Read the persisted sets as written, without crash recovery.

        Raises:
            InputFormatError: If the file is missing or cannot be parsed
        """
        codes = [getattr(region, 'code', region).lower() for region in universe]
        data = load_json_document(path)
        if data is None:
            raise InputFormatError(str(path), "progress file not found")
        return _read_sets(data, str(path), codes)
