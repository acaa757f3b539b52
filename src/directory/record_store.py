"""Identifier-keyed store of facility records.

The store never removes a record and never overwrites a populated field
through upsert(). Replacing an existing phone number goes through
replace_phone(), which only the reconciler calls.
"""

import logging
import threading
from collections import Counter
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from src.directory.records import FacilityRecord
from src.shared.checkpoint import load_json_document, save_json_atomic
from src.shared.constants import SERIALIZATION
from src.shared.errors import InputFormatError

__all__ = [
    'RecordStore',
    'UpsertResult',
]


class UpsertResult(Enum):
    """Outcome of RecordStore.upsert()."""
    INSERTED = 'inserted'
    UPDATED = 'updated'
    UNCHANGED = 'unchanged'


class RecordStore:
    """In-memory record store persisted as one versioned JSON document."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._records: Dict[str, FacilityRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._records

    def count(self) -> int:
        return len(self._records)

    def get(self, identifier: str) -> Optional[FacilityRecord]:
        return self._records.get(identifier)

    def records(self) -> List[FacilityRecord]:
        """All records, ordered by identifier."""
        return [self._records[key] for key in sorted(self._records, key=_identifier_sort_key)]

    def __iter__(self) -> Iterator[FacilityRecord]:
        return iter(self.records())

    def by_region(self) -> Dict[str, int]:
        """Record counts keyed by region code, largest first."""
        counts = Counter(record.region or 'UNKNOWN' for record in self._records.values())
        return dict(counts.most_common())

    def upsert(self, record: FacilityRecord) -> UpsertResult:
        """Insert a new record or fill the missing fields of an existing one.

        Args:
            record: Candidate record from the extractor

        Returns:
            UpsertResult describing what happened
        """
        with self._lock:
            existing = self._records.get(record.identifier)
            if existing is None:
                if not record.collected_at:
                    record.collected_at = datetime.now().isoformat()
                self._records[record.identifier] = record
                return UpsertResult.INSERTED

            changed = existing.fill_missing(record)
            if changed:
                logging.debug(f"Record {record.identifier}: filled {', '.join(changed)}")
                return UpsertResult.UPDATED
            return UpsertResult.UNCHANGED

    def replace_phone(self, identifier: str, phone: str) -> bool:
        """Overwrite the phone of an existing record.

        Returns:
            True if the record exists and its phone changed
        """
        if not phone:
            raise ValueError(f"Refusing to clear phone of record {identifier}")

        with self._lock:
            record = self._records.get(identifier)
            if record is None or record.phone == phone:
                return False
            record.phone = phone
            return True

    def to_document(self) -> Dict:
        """Versioned JSON document for persistence."""
        return {
            'format_version': SERIALIZATION.STORE_FORMAT_VERSION,
            'generated_at': datetime.now().isoformat(),
            'total_records': len(self._records),
            'records': {record.identifier: record.to_dict() for record in self.records()},
        }

    def save(self, path: Optional[Union[str, Path]] = None) -> None:
        """Write the store atomically to path (or the path it was loaded from)."""
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("RecordStore has no path to save to")
        save_json_atomic(self.to_document(), target)
        logging.debug(f"Saved {len(self._records)} records to {target}")

    @classmethod
    def from_document(cls, data: object, path: Optional[Union[str, Path]] = None) -> 'RecordStore':
        """Rebuild a store from to_document() output.

        Raises:
            InputFormatError: If the document has the wrong shape
        """
        source = str(path) if path else '<document>'
        if not isinstance(data, dict):
            raise InputFormatError(source, "store document must be a JSON object")

        version = data.get('format_version')
        if version != SERIALIZATION.STORE_FORMAT_VERSION:
            raise InputFormatError(source, f"unsupported format_version {version!r}")

        records = data.get('records')
        if not isinstance(records, dict):
            raise InputFormatError(source, "'records' must be an object keyed by identifier")

        store = cls(path)
        for key, raw in records.items():
            try:
                record = FacilityRecord.from_dict(raw)
            except ValueError as e:
                raise InputFormatError(source, str(e)) from e
            if record.identifier != key:
                raise InputFormatError(source, f"record key {key} does not match identifier {record.identifier}")
            store._records[key] = record

        return store

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'RecordStore':
        """Load a persisted store; a missing file yields an empty store.

        Raises:
            InputFormatError: If the file exists but cannot be parsed
        """
        data = load_json_document(path)
        if data is None:
            logging.info(f"No record store at {path}, starting empty")
            return cls(path)

        store = cls.from_document(data, path)
        logging.info(f"Loaded {len(store)} records from {path}")
        return store


def _identifier_sort_key(identifier: str):
    # Numeric store numbers sort numerically, anything else after them
    return (0, int(identifier), '') if identifier.isdigit() else (1, 0, identifier)
