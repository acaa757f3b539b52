"""Tests for the collection completeness report"""

from config.walmart_config import REGIONS
from src.directory.ledger import LedgerSnapshot
from src.directory.record_store import RecordStore
from src.directory.records import FacilityRecord
from src.directory.verifier import CollectionVerifier, format_report


FIFTY = [region.code for region in REGIONS if region.code != 'dc']


def make_store(*records):
    store = RecordStore()
    for record in records:
        store.upsert(record)
    return store


class TestReport:
    """Test derived completeness metrics."""

    def test_two_of_fifty_is_four_percent(self):
        snapshot = LedgerSnapshot(completed=['ak', 'al'], pending=FIFTY[2:])
        report = CollectionVerifier(snapshot, RecordStore(), FIFTY).report()
        assert report.completion_percent == 4.0
        assert not report.is_complete

    def test_all_completed(self):
        snapshot = LedgerSnapshot(completed=list(FIFTY))
        report = CollectionVerifier(snapshot, RecordStore(), FIFTY).report()
        assert report.completion_percent == 100.0
        assert report.is_complete

    def test_partial_regions(self):
        """Records for a region not yet completed are flagged."""
        store = make_store(
            FacilityRecord('1', street_address='1 A St', locality='Anchorage', region='AK', phone='907-555-0100'),
            FacilityRecord('2', street_address='2 B St', locality='Mobile', region='AL', phone='251-555-0100'),
        )
        snapshot = LedgerSnapshot(completed=['ak'], in_progress=['al'], pending=FIFTY[2:])
        report = CollectionVerifier(snapshot, store, FIFTY).report()
        assert report.partial_regions == ['AL']
        assert report.by_region_counts == {'AK': 1, 'AL': 1}

    def test_record_quality_counts(self):
        store = make_store(
            FacilityRecord('1', street_address='1 A St', locality='Anchorage', region='AK', phone='907-555-0100'),
            FacilityRecord('2', locality='Anchorage', region='AK', phone='907-555-0101'),
            FacilityRecord('3', street_address='3 C St', locality='Anchorage', region='AK'),
        )
        report = CollectionVerifier(LedgerSnapshot(completed=['ak']), store, FIFTY).report()
        assert report.total_records == 3
        assert report.incomplete_records == 1
        assert report.records_without_phone == 1

    def test_last_updated_passed_through(self):
        snapshot = LedgerSnapshot(pending=list(FIFTY), last_updated='2026-01-01T00:00:00')
        report = CollectionVerifier(snapshot, RecordStore(), FIFTY).report()
        assert report.last_updated == '2026-01-01T00:00:00'


class TestFormatReport:
    def test_lists_sections(self):
        store = make_store(
            FacilityRecord('1', street_address='1 A St', locality='Anchorage', region='AK', phone='907-555-0100'),
        )
        snapshot = LedgerSnapshot(completed=['ak'], in_progress=['al'], pending=FIFTY[2:])
        text = format_report(CollectionVerifier(snapshot, store, FIFTY).report())

        assert 'Completion:       2.0%' in text
        assert 'AK (Alaska)' in text
        assert 'In progress (1):' in text
        assert 'AL (Alabama)' in text
        assert 'Pending (48):' in text
        assert 'Stores by state:' in text

    def test_warns_about_partial_regions(self):
        store = make_store(
            FacilityRecord('2', street_address='2 B St', locality='Mobile', region='AL', phone='251-555-0100'),
        )
        snapshot = LedgerSnapshot(pending=list(FIFTY))
        text = format_report(CollectionVerifier(snapshot, store, FIFTY).report())
        assert 'WARNING' in text
        assert 'AL' in text
