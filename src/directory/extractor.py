"""Facility extraction from directory pages.

Extraction is best-effort text matching organised as an ordered list of
named rules. A page that does not satisfy the completeness requirement
yields no record rather than a partial one:

- listing pages (a city in the directory) need identifier, phone and city;
- single facility pages need a street address and a phone.

Every function here is pure apart from debug logging: content in, records out.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple
from urllib.parse import unquote, urljoin, urlparse

from bs4 import BeautifulSoup

from config import walmart_config as config
from src.directory.records import Category, FacilityRecord, normalize_phone

__all__ = [
    'CATEGORY_PATTERNS',
    'ExtractionRule',
    'Locality',
    'SINGLE_PAGE_RULES',
    'extract_listings',
    'extract_locality_links',
    'extract_single',
    'is_street_line',
    'match_address',
    'match_category',
    'match_phone',
    'parse_card_lines',
]


# Ordered: the first pattern that matches decides the category
CATEGORY_PATTERNS: List[Tuple[Category, re.Pattern]] = [
    (Category.SUPERCENTER, re.compile(r"Walmart Supercenter\s*#\s*(\d+)", re.IGNORECASE)),
    (Category.NEIGHBORHOOD_MARKET, re.compile(r"(?:Walmart )?Neighborhood Market\s*#\s*(\d+)", re.IGNORECASE)),
    (Category.CLUB_STORE, re.compile(r"Sam'?s Club\s*#\s*(\d+)", re.IGNORECASE)),
    (Category.GENERIC, re.compile(r"Walmart(?: Store)?\s*#\s*(\d+)", re.IGNORECASE)),
]

# Street cannot start right after '#' or another digit, so '#1234 ...' is never an address
ADDRESS_PATTERN = re.compile(
    r"(?<![#\d])(\d+[A-Za-z]?(?: [A-Za-z0-9'&/#\-][A-Za-z0-9'&/#.\-]*)+),\s*"
    r"([A-Za-z][A-Za-z .'\-]*?),\s*([A-Z]{2})\s+(\d{5})(?:-\d{4})?\b"
)

PHONE_PATTERN = re.compile(r"(?<!\d)(?:\(\d{3}\)\s?|\d{3}[-.]?)\d{3}[-.]?\d{4}(?!\d)")

CITY_LINE_PATTERN = re.compile(r"^([^,]+),\s*([A-Z]{2})\s+(\d{5})$")

STORE_LINK_PATTERN = re.compile(r"/store/(\d+)-")

_ROAD_SUFFIX = re.compile(r"\b(?:St|Ave|Rd|Blvd|Dr|Hwy|Way|Ln|Ct|Pl)\b", re.IGNORECASE)
_NOT_STREET = re.compile(r"Walmart|Check|Call")
_LINK_NOISE = re.compile(r"Check\s+|#\s*\d+")


@dataclass
class Address:
    street: str
    locality: str
    region: str
    postal_code: str


@dataclass
class Locality:
    """A city page inside a region of the directory."""
    name: str
    url: str


def match_category(text: str) -> Optional[Tuple[Category, str]]:
    """Find the store format and number, e.g. 'Walmart Supercenter #1234'.

    Returns:
        (category, identifier) or None
    """
    for category, pattern in CATEGORY_PATTERNS:
        match = pattern.search(text)
        if match:
            return category, match.group(1)
    return None


def match_address(text: str) -> Optional[Address]:
    """First '<number> <street>, <city>, <ST> <zip>' in document order."""
    match = ADDRESS_PATTERN.search(text)
    if not match:
        return None
    street, locality, region, postal_code = match.groups()
    return Address(street.strip(), locality.strip(), region, postal_code)


def match_phone(soup: BeautifulSoup, text: Optional[str] = None) -> Optional[str]:
    """Phone from a tel: link, falling back to a phone-shaped run of text.

    Returns:
        Normalized NNN-NNN-NNNN phone, or None
    """
    for link in soup.find_all('a', href=True):
        href = link['href']
        if href.lower().startswith('tel:'):
            phone = normalize_phone(href[4:])
            if phone:
                return phone

    if text is None:
        text = soup.get_text(' ')
    for match in PHONE_PATTERN.finditer(text):
        phone = normalize_phone(match.group(0))
        if phone:
            return phone
    return None


def is_street_line(line: str) -> bool:
    """Street lines start with a digit or carry a road suffix, and aren't brand or action text."""
    if _NOT_STREET.search(line):
        return False
    return line[:1].isdigit() or bool(_ROAD_SUFFIX.search(line))


def parse_card_lines(lines: List[str]) -> Dict[str, str]:
    """Pull phone, city line and street from the text lines of a listing card.

    When several lines look like a street, the last one wins.
    """
    fields: Dict[str, str] = {}
    for line in lines:
        phone_match = PHONE_PATTERN.search(line)
        if phone_match and 'phone' not in fields:
            phone = normalize_phone(phone_match.group(0))
            if phone:
                fields['phone'] = phone
                continue

        city_match = CITY_LINE_PATTERN.match(line)
        if city_match:
            if 'locality' not in fields:
                fields['locality'] = city_match.group(1).strip()
                fields['region'] = city_match.group(2)
                fields['postal_code'] = city_match.group(3)
            continue

        # 'Phone: 217-555-0100' and the like are never streets
        if phone_match:
            continue

        if is_street_line(line):
            fields['street_address'] = line
    return fields


# Single-page rules, applied in order; a field set by an earlier rule is kept
@dataclass
class ExtractionRule:
    name: str
    apply: Callable[[BeautifulSoup, str], Dict[str, object]]


def _category_rule(soup: BeautifulSoup, text: str) -> Dict[str, object]:
    found = match_category(text)
    if not found:
        return {}
    category, identifier = found
    return {'category': category, 'identifier': identifier}


def _address_rule(soup: BeautifulSoup, text: str) -> Dict[str, object]:
    address = match_address(text)
    if not address:
        return {}
    return {
        'street_address': address.street,
        'locality': address.locality,
        'region': address.region,
        'postal_code': address.postal_code,
    }


def _phone_rule(soup: BeautifulSoup, text: str) -> Dict[str, object]:
    phone = match_phone(soup, text)
    return {'phone': phone} if phone else {}


def _heading_rule(soup: BeautifulSoup, text: str) -> Dict[str, object]:
    for tag in ('h1', 'h2'):
        heading = soup.find(tag)
        if heading:
            name = ' '.join(heading.get_text(' ').split())
            if name:
                return {'display_name': name}
    return {}


SINGLE_PAGE_RULES: List[ExtractionRule] = [
    ExtractionRule('category', _category_rule),
    ExtractionRule('address', _address_rule),
    ExtractionRule('phone', _phone_rule),
    ExtractionRule('heading', _heading_rule),
]


def _page_text(soup: BeautifulSoup) -> str:
    """Visible text with one line per block, joined so split addresses read as one."""
    lines = [line.strip().rstrip(',') for line in soup.get_text('\n').splitlines()]
    return ', '.join(line for line in lines if line)


def extract_single(content: str, identifier: Optional[str] = None) -> Optional[FacilityRecord]:
    """Extract one facility from a store page (HTML or rendered text).

    Args:
        content: Page content
        identifier: Store number from the page URL, used when the page text has none

    Returns:
        FacilityRecord, or None if address or phone is missing
    """
    soup = BeautifulSoup(content or '', 'html.parser')
    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()
    text = _page_text(soup)

    fields: Dict[str, object] = {}
    for rule in SINGLE_PAGE_RULES:
        for key, value in rule.apply(soup, text).items():
            fields.setdefault(key, value)

    identifier = fields.get('identifier') or identifier
    if not identifier or not fields.get('street_address') or not fields.get('phone'):
        return None

    return FacilityRecord(
        identifier=str(identifier),
        display_name=fields.get('display_name') or f"Walmart #{identifier}",
        category=fields.get('category', Category.GENERIC),
        street_address=fields['street_address'],
        locality=fields['locality'],
        region=fields['region'],
        postal_code=fields.get('postal_code', ''),
        phone=fields['phone'],
    )


def _card_record(anchor, identifier: str, base_url: str) -> Optional[FacilityRecord]:
    card = anchor.parent
    lines = [line.strip() for line in card.get_text('\n').splitlines() if line.strip()]
    fields = parse_card_lines(lines)

    tel_phone = match_phone(card, '')
    phone = tel_phone or fields.get('phone')
    if not phone or not fields.get('locality'):
        return None

    try:
        source_url = urljoin(base_url, anchor['href'])
    except ValueError:
        logging.debug(f"Dropping store {identifier} with unparseable link {anchor['href']!r}")
        return None

    link_text = ' '.join(anchor.get_text(' ').split())
    found = match_category(link_text)
    category = found[0] if found else Category.GENERIC
    label = ' '.join(_LINK_NOISE.sub(' ', link_text).split()) or category.value

    return FacilityRecord(
        identifier=identifier,
        display_name=f"{fields['locality']} {label}",
        category=category,
        street_address=fields.get('street_address', ''),
        locality=fields['locality'],
        region=fields['region'],
        postal_code=fields.get('postal_code', ''),
        phone=phone,
        source_url=source_url,
    )


def extract_listings(content: str, base_url: str = config.BASE_URL) -> Iterator[FacilityRecord]:
    """Yield the facilities listed on a city page of the directory.

    Each card is the parent element of a link to '/store/<number>-...'.
    The generator re-parses the content every time it is created.
    """
    soup = BeautifulSoup(content or '', 'html.parser')
    root = soup.find('main') or soup

    seen_cards = set()
    for anchor in root.find_all('a', href=True):
        match = STORE_LINK_PATTERN.search(anchor['href'])
        if not match or anchor.parent is None:
            continue
        card_key = id(anchor.parent)
        if card_key in seen_cards:
            continue
        seen_cards.add(card_key)

        record = _card_record(anchor, match.group(1), base_url)
        if record is not None:
            yield record


def extract_locality_links(content: str, region_code: str, base_url: str = config.BASE_URL) -> List[Locality]:
    """City pages linked from a region page, deduplicated in document order."""
    soup = BeautifulSoup(content or '', 'html.parser')
    marker = f"{config.DIRECTORY_PATH}/{region_code.lower()}/"

    localities = []
    seen = set()
    for anchor in soup.find_all('a', href=True):
        try:
            parsed = urlparse(urljoin(base_url, anchor['href']))
        except ValueError:
            logging.debug(f"Skipping unparseable city link {anchor['href']!r}")
            continue
        path = parsed.path.rstrip('/')
        if marker not in path.lower() + '/' or path.lower().endswith(marker.rstrip('/')):
            continue
        url = f"{parsed.scheme}://{parsed.netloc}{path}"
        if url in seen:
            continue
        seen.add(url)
        localities.append(Locality(name=unquote(path.rsplit('/', 1)[-1]), url=url))

    return localities
