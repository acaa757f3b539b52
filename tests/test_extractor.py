"""Tests for page extraction rules"""

from bs4 import BeautifulSoup

from src.directory.extractor import (
    SINGLE_PAGE_RULES,
    extract_listings,
    extract_locality_links,
    extract_single,
    is_street_line,
    match_address,
    match_category,
    match_phone,
    parse_card_lines,
)
from src.directory.records import Category

from tests.sample_pages import CHICAGO_URL, IL_REGION_HTML, SPRINGFIELD_HTML, SPRINGFIELD_URL, STORE_5678_HTML


class TestCategoryRule:
    """Test store format and number detection."""

    def test_supercenter(self):
        assert match_category('Walmart Supercenter #1234') == (Category.SUPERCENTER, '1234')

    def test_neighborhood_market_with_and_without_brand(self):
        assert match_category('Walmart Neighborhood Market #5678') == (Category.NEIGHBORHOOD_MARKET, '5678')
        assert match_category('Neighborhood Market #5678') == (Category.NEIGHBORHOOD_MARKET, '5678')

    def test_club_store(self):
        assert match_category("Sam's Club #6400") == (Category.CLUB_STORE, '6400')

    def test_generic(self):
        assert match_category('Walmart #4321') == (Category.GENERIC, '4321')
        assert match_category('Walmart Store #4321') == (Category.GENERIC, '4321')

    def test_supercenter_wins_over_generic(self):
        """Specific formats are tried before the generic pattern."""
        assert match_category('Walmart #1 and Walmart Supercenter #2') == (Category.SUPERCENTER, '2')

    def test_no_number(self):
        assert match_category('Walmart Supercenter') is None


class TestAddressRule:
    """Test street, city, state and zip matching."""

    def test_basic_address(self):
        address = match_address('100 Main St, Springfield, IL 62701')
        assert address.street == '100 Main St'
        assert address.locality == 'Springfield'
        assert address.region == 'IL'
        assert address.postal_code == '62701'

    def test_store_number_is_not_a_street(self):
        """'#1234' must not be read as the start of a street."""
        address = match_address('Walmart Supercenter #1234 ... 100 Main St, Springfield, IL 62701')
        assert address.street == '100 Main St'

    def test_first_match_in_document_order(self):
        text = '1 First Ave, Alton, IL 62002 then 2 Second Ave, Peoria, IL 61602'
        assert match_address(text).locality == 'Alton'

    def test_zip_plus_four(self):
        assert match_address('7325 N Keystone Ave, Indianapolis, IN 46240-1234').postal_code == '46240'

    def test_multi_word_city(self):
        assert match_address('4 Elm St, East St. Louis, IL 62201').locality == 'East St. Louis'

    def test_no_address(self):
        assert match_address('Springfield, IL 62701') is None


class TestPhoneRule:
    """Test tel: link preference and text fallback."""

    def test_tel_link_preferred(self):
        soup = BeautifulSoup('<p>217-555-9999</p><a href="tel:+12175550100">Call</a>', 'html.parser')
        assert match_phone(soup) == '217-555-0100'

    def test_text_fallback(self):
        soup = BeautifulSoup('<p>Phone: (217) 555-0100</p>', 'html.parser')
        assert match_phone(soup) == '217-555-0100'

    def test_unnormalizable_tel_falls_back(self):
        soup = BeautifulSoup('<a href="tel:555">Call</a><p>217.555.0100</p>', 'html.parser')
        assert match_phone(soup) == '217-555-0100'

    def test_zip_is_not_a_phone(self):
        soup = BeautifulSoup('<p>Springfield, IL 62701</p>', 'html.parser')
        assert match_phone(soup) is None


class TestCardLines:
    """Test listing card line classification."""

    def test_street_predicate(self):
        assert is_street_line('100 Main St')
        assert is_street_line('N Grand Ave')
        assert not is_street_line('Walmart Supercenter #1234')
        assert not is_street_line('Check store details')
        assert not is_street_line('Call 217-555-0100')
        assert not is_street_line('Open today')

    def test_parse_card(self):
        fields = parse_card_lines([
            'Walmart Supercenter #1234', '100 Main St', 'Springfield, IL 62701', '217-555-0100',
        ])
        assert fields == {
            'street_address': '100 Main St',
            'locality': 'Springfield',
            'region': 'IL',
            'postal_code': '62701',
            'phone': '217-555-0100',
        }

    def test_last_street_line_wins(self):
        fields = parse_card_lines(['1 Plaza Dr', '200 Route 66 Hwy', 'Springfield, IL 62701'])
        assert fields['street_address'] == '200 Route 66 Hwy'

    def test_phone_line_is_not_a_street(self):
        fields = parse_card_lines(['Springfield, IL 62701', '217-555-0100'])
        assert 'street_address' not in fields
        assert fields['phone'] == '217-555-0100'

    def test_phone_inside_labelled_line(self):
        fields = parse_card_lines(['Springfield, IL 62701', 'Phone: 217-555-0100'])
        assert fields['phone'] == '217-555-0100'
        assert 'street_address' not in fields

    def test_phone_after_call_prompt(self):
        assert parse_card_lines(['Call (217) 555-0100'])['phone'] == '217-555-0100'

    def test_uppercase_road_suffix(self):
        assert is_street_line('MAIN ST NW')
        assert parse_card_lines(['MAIN ST NW', 'Springfield, IL 62701'])['street_address'] == 'MAIN ST NW'


class TestExtractSingle:
    """Test single store page extraction."""

    def test_supercenter_text_scenario(self):
        record = extract_single('Walmart Supercenter #1234 ... 100 Main St, Springfield, IL 62701 ... 217-555-0100')
        assert record.identifier == '1234'
        assert record.category == Category.SUPERCENTER
        assert record.region == 'IL'
        assert record.phone == '217-555-0100'
        assert record.street_address == '100 Main St'
        assert record.display_name == 'Walmart #1234'

    def test_html_page_with_split_address(self):
        record = extract_single(STORE_5678_HTML)
        assert record.identifier == '5678'
        assert record.category == Category.NEIGHBORHOOD_MARKET
        assert record.street_address == '2500 W Wabash Ave'
        assert record.locality == 'Springfield'
        assert record.postal_code == '62704'
        assert record.phone == '217-555-0200'
        assert record.display_name == 'Springfield Neighborhood Market'

    def test_identifier_from_caller(self):
        record = extract_single('<p>100 Main St, Springfield, IL 62701</p><p>217-555-0100</p>', identifier='42')
        assert record.identifier == '42'
        assert record.category == Category.GENERIC

    def test_missing_phone_yields_nothing(self):
        assert extract_single('Walmart #1 100 Main St, Springfield, IL 62701') is None

    def test_missing_address_yields_nothing(self):
        assert extract_single('Walmart #1 call 217-555-0100') is None

    def test_missing_identifier_yields_nothing(self):
        assert extract_single('100 Main St, Springfield, IL 62701 217-555-0100') is None

    def test_empty_content(self):
        assert extract_single('') is None

    def test_rules_are_ordered(self):
        assert [rule.name for rule in SINGLE_PAGE_RULES] == ['category', 'address', 'phone', 'heading']


class TestExtractListings:
    """Test city listing page extraction."""

    def test_accepts_complete_cards_only(self):
        records = list(extract_listings(SPRINGFIELD_HTML))
        assert [r.identifier for r in records] == ['1234', '5678']

    def test_card_fields(self):
        record = next(extract_listings(SPRINGFIELD_HTML))
        assert record.display_name == 'Springfield Walmart Supercenter'
        assert record.category == Category.SUPERCENTER
        assert record.street_address == '100 Main St'
        assert record.region == 'IL'
        assert record.phone == '217-555-0100'
        assert record.source_url == 'https://www.walmart.com/store/1234-springfield-il'

    def test_card_without_street_is_kept(self):
        records = {r.identifier: r for r in extract_listings(SPRINGFIELD_HTML)}
        market = records['5678']
        assert market.street_address == ''
        assert market.category == Category.NEIGHBORHOOD_MARKET
        assert market.display_name == 'Springfield Neighborhood Market'
        assert not market.is_complete

    def test_links_outside_main_ignored(self):
        assert '1111' not in [r.identifier for r in extract_listings(SPRINGFIELD_HTML)]

    def test_generator_is_restartable(self):
        first = list(extract_listings(SPRINGFIELD_HTML))
        second = list(extract_listings(SPRINGFIELD_HTML))
        assert first == second

    def test_labelled_phone_without_tel_link(self):
        html = (
            '<main><div><a href="/store/4321-springfield-il">Walmart #4321</a>'
            '<span>100 Main St</span><span>Springfield, IL 62701</span>'
            '<span>Phone: 217-555-0100</span></div></main>'
        )
        records = list(extract_listings(html))
        assert [r.identifier for r in records] == ['4321']
        assert records[0].phone == '217-555-0100'
        assert records[0].street_address == '100 Main St'

    def test_unparseable_store_link_is_dropped(self):
        html = (
            '<main><div><a href="http://[bad/store/7777-x">Walmart #7777</a>'
            '<span>Springfield, IL 62701</span><span>217-555-0777</span></div>'
            '<div><a href="/store/4321-springfield-il">Walmart #4321</a>'
            '<span>Springfield, IL 62701</span><span>217-555-0100</span></div></main>'
        )
        assert [r.identifier for r in extract_listings(html)] == ['4321']

    def test_page_without_stores(self):
        assert list(extract_listings('<html><main><p>No stores</p></main></html>')) == []


class TestLocalityLinks:
    def test_dedup_in_document_order(self):
        localities = extract_locality_links(IL_REGION_HTML, 'il')
        assert [loc.url for loc in localities] == [SPRINGFIELD_URL, CHICAGO_URL]
        assert localities[0].name == 'springfield'

    def test_other_region_links_excluded(self):
        localities = extract_locality_links(IL_REGION_HTML, 'in')
        assert [loc.name for loc in localities] == ['indianapolis']

    def test_encoded_name_decoded(self):
        html = '<a href="/store-directory/ny/new%20york">NYC</a>'
        assert extract_locality_links(html, 'ny')[0].name == 'new york'

    def test_unparseable_link_is_skipped(self):
        html = (
            '<a href="http://[bad/store-directory/il/nowhere">Broken</a>'
            '<a href="/store-directory/il/springfield">Springfield</a>'
        )
        assert [loc.url for loc in extract_locality_links(html, 'il')] == [SPRINGFIELD_URL]
