"""Facility record model.

FacilityRecord is the unit stored in the RecordStore. Its identifier is the
store number and the only dedup key; every other field may start empty and
be filled in by a later crawl pass.
"""

import re
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

__all__ = [
    'Category',
    'FacilityRecord',
    'normalize_phone',
]


class Category(str, Enum):
    """Store formats found in the directory."""
    SUPERCENTER = 'Supercenter'
    NEIGHBORHOOD_MARKET = 'Neighborhood Market'
    CLUB_STORE = "Sam's Club"
    GENERIC = 'Walmart'

    @classmethod
    def from_value(cls, value: str) -> 'Category':
        """Parse a persisted category value or member name.

        Raises:
            ValueError: If the value matches no category
        """
        for category in cls:
            if value in (category.value, category.name):
                return category
        raise ValueError(f"Unknown category: {value!r}")


_NON_DIGITS = re.compile(r'\D')


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """Normalize a US phone number to NNN-NNN-NNNN.

    Accepts any punctuation and an optional leading country code.

    Returns:
        Normalized phone, or None if the input doesn't hold exactly ten digits

    Examples:
        >>> normalize_phone('tel:+1 (217) 555-0100')
        '217-555-0100'
        >>> normalize_phone('555-0100') is None
        True
    """
    if not raw:
        return None
    digits = _NON_DIGITS.sub('', raw)
    if len(digits) == 11 and digits.startswith('1'):
        digits = digits[1:]
    if len(digits) != 10:
        return None
    return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"


@dataclass
class FacilityRecord:
    """A single store in the directory."""
    identifier: str
    display_name: str = ''
    category: Category = Category.GENERIC
    street_address: str = ''
    locality: str = ''
    region: str = ''
    postal_code: str = ''
    phone: Optional[str] = None
    source_url: str = ''
    collected_at: str = ''

    # Text fields a later pass may fill when they are empty on the stored record
    FILLABLE_FIELDS: ClassVar[Tuple[str, ...]] = (
        'display_name', 'street_address', 'locality', 'region', 'postal_code', 'source_url',
    )

    @property
    def is_complete(self) -> bool:
        """True when the postal address is fully known (phone is tracked separately)."""
        return bool(self.street_address and self.locality and self.region)

    @property
    def has_phone(self) -> bool:
        return bool(self.phone)

    @property
    def full_address(self) -> str:
        """Single-line address, e.g. '100 Main St, Springfield, IL 62701'."""
        tail = f"{self.region} {self.postal_code}".strip()
        return ', '.join(part for part in (self.street_address, self.locality, tail) if part)

    def fill_missing(self, other: 'FacilityRecord') -> List[str]:
        """Copy fields from other that are empty on this record.

        Populated fields are never overwritten. A Generic category is
        replaced by a specific one, and a missing phone is taken from
        other; replacing an existing phone is left to the reconciler.

        Returns:
            Names of the fields that changed
        """
        if other.identifier != self.identifier:
            raise ValueError(f"Cannot merge record {other.identifier} into {self.identifier}")

        changed = []
        for name in self.FILLABLE_FIELDS:
            if not getattr(self, name) and getattr(other, name):
                setattr(self, name, getattr(other, name))
                changed.append(name)

        if self.category == Category.GENERIC and other.category != Category.GENERIC:
            self.category = other.category
            changed.append('category')

        if not self.phone and other.phone:
            self.phone = other.phone
            changed.append('phone')

        return changed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        data['category'] = self.category.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FacilityRecord':
        """Rebuild a record from to_dict() output.

        Raises:
            ValueError: If the data is not a valid record
        """
        if not isinstance(data, dict):
            raise ValueError(f"record must be an object, got {type(data).__name__}")

        identifier = data.get('identifier')
        if not isinstance(identifier, str) or not identifier:
            raise ValueError("record is missing its identifier")

        kwargs: Dict[str, Any] = {'identifier': identifier}
        for field in fields(cls):
            if field.name in ('identifier', 'category', 'phone') or field.name not in data:
                continue
            value = data[field.name]
            if not isinstance(value, str):
                raise ValueError(f"record {identifier}: field '{field.name}' must be a string")
            kwargs[field.name] = value

        phone = data.get('phone')
        if phone is not None and not isinstance(phone, str):
            raise ValueError(f"record {identifier}: field 'phone' must be a string or null")
        kwargs['phone'] = phone

        if 'category' in data:
            kwargs['category'] = Category.from_value(data['category'])

        return cls(**kwargs)
