"""Configuration constants for the Walmart store directory"""

from dataclasses import dataclass
from typing import Dict, List

BASE_URL = "https://www.walmart.com"
DIRECTORY_PATH = "/store-directory"
STORE_PATH = "/store"


@dataclass(frozen=True)
class RegionConfig:
    """A state (or DC) in the store directory."""
    code: str
    name: str


# Declared universe of regions, in crawl order (by directory code)
REGIONS: List[RegionConfig] = [
    RegionConfig('ak', 'Alaska'), RegionConfig('al', 'Alabama'),
    RegionConfig('ar', 'Arkansas'), RegionConfig('az', 'Arizona'),
    RegionConfig('ca', 'California'), RegionConfig('co', 'Colorado'),
    RegionConfig('ct', 'Connecticut'), RegionConfig('dc', 'District of Columbia'),
    RegionConfig('de', 'Delaware'), RegionConfig('fl', 'Florida'),
    RegionConfig('ga', 'Georgia'), RegionConfig('hi', 'Hawaii'),
    RegionConfig('ia', 'Iowa'), RegionConfig('id', 'Idaho'),
    RegionConfig('il', 'Illinois'), RegionConfig('in', 'Indiana'),
    RegionConfig('ks', 'Kansas'), RegionConfig('ky', 'Kentucky'),
    RegionConfig('la', 'Louisiana'), RegionConfig('ma', 'Massachusetts'),
    RegionConfig('md', 'Maryland'), RegionConfig('me', 'Maine'),
    RegionConfig('mi', 'Michigan'), RegionConfig('mn', 'Minnesota'),
    RegionConfig('mo', 'Missouri'), RegionConfig('ms', 'Mississippi'),
    RegionConfig('mt', 'Montana'), RegionConfig('nc', 'North Carolina'),
    RegionConfig('nd', 'North Dakota'), RegionConfig('ne', 'Nebraska'),
    RegionConfig('nh', 'New Hampshire'), RegionConfig('nj', 'New Jersey'),
    RegionConfig('nm', 'New Mexico'), RegionConfig('nv', 'Nevada'),
    RegionConfig('ny', 'New York'), RegionConfig('oh', 'Ohio'),
    RegionConfig('ok', 'Oklahoma'), RegionConfig('or', 'Oregon'),
    RegionConfig('pa', 'Pennsylvania'), RegionConfig('ri', 'Rhode Island'),
    RegionConfig('sc', 'South Carolina'), RegionConfig('sd', 'South Dakota'),
    RegionConfig('tn', 'Tennessee'), RegionConfig('tx', 'Texas'),
    RegionConfig('ut', 'Utah'), RegionConfig('va', 'Virginia'),
    RegionConfig('vt', 'Vermont'), RegionConfig('wa', 'Washington'),
    RegionConfig('wi', 'Wisconsin'), RegionConfig('wv', 'West Virginia'),
    RegionConfig('wy', 'Wyoming'),
]

REGION_NAMES: Dict[str, str] = {r.code: r.name for r in REGIONS}

# User agents for rotation
USER_AGENTS = [
    ("Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
     "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"),
    ("Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
     "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"),
    ("Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
     "(KHTML, like Gecko) Version/17.1 Safari/605.1.15"),
]


def get_region_url(code: str) -> str:
    """Directory page listing the localities of a region."""
    return f"{BASE_URL}{DIRECTORY_PATH}/{code.lower()}"


def get_store_url(identifier: str) -> str:
    """Facility page for a store number."""
    return f"{BASE_URL}{STORE_PATH}/{identifier}"
