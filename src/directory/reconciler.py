"""Merge an out-of-band phone feed into the record store.

The feed maps store numbers to phone numbers. Entries for unknown store
numbers are counted and ignored; the reconciler never creates records.
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from src.directory.record_store import RecordStore
from src.directory.records import normalize_phone
from src.shared.checkpoint import load_json_document
from src.shared.errors import InputFormatError

__all__ = [
    'CoverageStats',
    'MergeStats',
    'PhoneReconciler',
    'load_enrichment',
]


@dataclass
class MergeStats:
    merged: int = 0
    skipped_identical: int = 0
    not_found: int = 0

    @property
    def total(self) -> int:
        return self.merged + self.skipped_identical + self.not_found

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CoverageStats:
    total_records: int
    with_phone: int
    without_phone: int
    phones_available: int
    percent: float

    def to_dict(self) -> dict:
        return asdict(self)


def load_enrichment(path: Union[str, Path]) -> Dict[str, str]:
    """Read a phone feed: a JSON object of store number -> phone.

    Raises:
        InputFormatError: If the file is missing, has the wrong shape or
            carries a blank phone
    """
    data = load_json_document(path)
    if data is None:
        raise InputFormatError(str(path), "enrichment file not found")
    if not isinstance(data, dict):
        raise InputFormatError(str(path), "enrichment feed must be a JSON object")

    for identifier, phone in data.items():
        if not identifier or not isinstance(phone, str):
            raise InputFormatError(str(path), f"entry {identifier!r} must map a store number to a phone string")
        if not phone.strip():
            raise InputFormatError(str(path), f"entry {identifier!r} has a blank phone")

    logging.info(f"Loaded {len(data)} phone entries from {path}")
    return data


class PhoneReconciler:
    """Applies a phone feed to a RecordStore."""

    def __init__(self, store: RecordStore):
        self.store = store

    def merge(self, entries: Dict[str, str], dry_run: bool = False) -> MergeStats:
        """Overwrite phones from the feed, counting what happened to each entry.

        Args:
            entries: Store number -> phone
            dry_run: Count only; the store is not modified or saved

        Returns:
            MergeStats whose counts add up to len(entries). An entry whose phone
            is blank changes nothing and is counted under skipped_identical.
        """
        stats = MergeStats()
        for identifier, raw_phone in entries.items():
            record = self.store.get(str(identifier))
            if record is None:
                logging.debug(f"Store {identifier} not in record store, skipping")
                stats.not_found += 1
                continue

            phone = normalize_phone(raw_phone) or raw_phone.strip()
            if not phone or phone == record.phone:
                stats.skipped_identical += 1
                continue

            if not dry_run:
                self.store.replace_phone(record.identifier, phone)
            stats.merged += 1

        action = "Would merge" if dry_run else "Merged"
        logging.info(
            f"{action} {stats.merged} phones, {stats.skipped_identical} unchanged, "
            f"{stats.not_found} not found"
        )

        if not dry_run and stats.merged and self.store.path is not None:
            self.store.save()
        return stats

    def coverage(self, entries: Optional[Dict[str, str]] = None) -> CoverageStats:
        """Phone coverage of the store, without modifying it."""
        total = len(self.store)
        with_phone = sum(1 for record in self.store.records() if record.has_phone)
        return CoverageStats(
            total_records=total,
            with_phone=with_phone,
            without_phone=total - with_phone,
            phones_available=len(entries) if entries else 0,
            percent=round(with_phone / total * 100, 1) if total else 0.0,
        )
