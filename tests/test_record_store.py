"""Tests for the facility record model and the identifier-keyed record store"""

import json

import pytest

from src.directory.record_store import RecordStore, UpsertResult
from src.directory.records import Category, FacilityRecord, normalize_phone
from src.shared.errors import InputFormatError


def make_record(identifier='1234', **overrides):
    fields = {
        'display_name': 'Springfield Walmart Supercenter',
        'category': Category.SUPERCENTER,
        'street_address': '100 Main St',
        'locality': 'Springfield',
        'region': 'IL',
        'postal_code': '62701',
        'phone': '217-555-0100',
    }
    fields.update(overrides)
    return FacilityRecord(identifier=identifier, **fields)


class TestNormalizePhone:
    """Test phone normalization to NNN-NNN-NNNN."""

    def test_dashed_phone_unchanged(self):
        assert normalize_phone('217-555-0100') == '217-555-0100'

    def test_parenthesized_phone(self):
        assert normalize_phone('(217) 555-0100') == '217-555-0100'

    def test_country_code_dropped(self):
        """A leading 1 on an 11-digit number is the country code."""
        assert normalize_phone('+1 217.555.0100') == '217-555-0100'

    def test_too_short_is_absent(self):
        assert normalize_phone('555-0100') is None

    def test_empty_is_absent(self):
        assert normalize_phone('') is None
        assert normalize_phone(None) is None


class TestFacilityRecord:
    """Test record completeness and field filling."""

    def test_complete_requires_street_locality_region(self):
        assert make_record().is_complete
        assert not make_record(street_address='').is_complete
        assert not make_record(locality='').is_complete

    def test_phone_tracked_separately(self):
        """A record without phone is still address-complete."""
        record = make_record(phone=None)
        assert record.is_complete
        assert not record.has_phone

    def test_full_address(self):
        assert make_record().full_address == '100 Main St, Springfield, IL 62701'

    def test_fill_missing_never_overwrites(self):
        """Populated fields survive a merge with different values."""
        existing = make_record(street_address='')
        changed = existing.fill_missing(make_record(street_address='2 Elm St', locality='Chicago'))
        assert changed == ['street_address']
        assert existing.street_address == '2 Elm St'
        assert existing.locality == 'Springfield'

    def test_fill_missing_upgrades_generic_category(self):
        existing = make_record(category=Category.GENERIC)
        changed = existing.fill_missing(make_record(category=Category.SUPERCENTER))
        assert existing.category == Category.SUPERCENTER
        assert 'category' in changed

    def test_fill_missing_rejects_other_identifier(self):
        with pytest.raises(ValueError):
            make_record('1').fill_missing(make_record('2'))

    def test_from_dict_round_trip_keeps_null_phone(self):
        record = make_record(phone=None, collected_at='2026-01-01T00:00:00')
        assert FacilityRecord.from_dict(record.to_dict()) == record

    def test_from_dict_rejects_missing_identifier(self):
        with pytest.raises(ValueError):
            FacilityRecord.from_dict({'display_name': 'x'})

    def test_from_dict_rejects_unknown_category(self):
        with pytest.raises(ValueError):
            FacilityRecord.from_dict({'identifier': '1', 'category': 'Outlet'})


class TestUpsert:
    """Test insert and merge behavior of RecordStore.upsert."""

    def test_insert_new_record(self):
        store = RecordStore()
        assert store.upsert(make_record()) == UpsertResult.INSERTED
        assert '1234' in store
        assert store.count() == 1

    def test_insert_sets_collected_at(self):
        store = RecordStore()
        store.upsert(make_record())
        assert store.get('1234').collected_at

    def test_identical_record_unchanged(self):
        store = RecordStore()
        store.upsert(make_record())
        assert store.upsert(make_record()) == UpsertResult.UNCHANGED
        assert len(store) == 1

    def test_fills_missing_field(self):
        store = RecordStore()
        store.upsert(make_record(street_address=''))
        assert store.upsert(make_record()) == UpsertResult.UPDATED
        assert store.get('1234').street_address == '100 Main St'

    def test_never_regresses_to_empty(self):
        """Upserting a sparser candidate keeps every populated field."""
        store = RecordStore()
        store.upsert(make_record())
        sparse = FacilityRecord(identifier='1234', locality='Springfield')
        assert store.upsert(sparse) == UpsertResult.UNCHANGED
        assert store.get('1234') == make_record(collected_at=store.get('1234').collected_at)

    def test_upsert_does_not_replace_phone(self):
        store = RecordStore()
        store.upsert(make_record(phone='217-555-0100'))
        store.upsert(make_record(phone='217-555-0199'))
        assert store.get('1234').phone == '217-555-0100'

    def test_upsert_fills_absent_phone(self):
        store = RecordStore()
        store.upsert(make_record(phone=None))
        assert store.upsert(make_record(phone='217-555-0100')) == UpsertResult.UPDATED
        assert store.get('1234').phone == '217-555-0100'


class TestReplacePhone:
    def test_replaces_existing_phone(self):
        store = RecordStore()
        store.upsert(make_record())
        assert store.replace_phone('1234', '217-555-0199') is True
        assert store.get('1234').phone == '217-555-0199'

    def test_unknown_identifier(self):
        assert RecordStore().replace_phone('404', '217-555-0199') is False

    def test_refuses_empty_phone(self):
        store = RecordStore()
        store.upsert(make_record())
        with pytest.raises(ValueError):
            store.replace_phone('1234', '')


class TestQueries:
    def test_by_region_counts(self):
        store = RecordStore()
        store.upsert(make_record('1'))
        store.upsert(make_record('2'))
        store.upsert(make_record('3', region='IN'))
        assert store.by_region() == {'IL': 2, 'IN': 1}

    def test_records_sorted_numerically(self):
        store = RecordStore()
        for identifier in ('100', '20', '3'):
            store.upsert(make_record(identifier))
        assert [r.identifier for r in store.records()] == ['3', '20', '100']


class TestPersistence:
    """Test the versioned JSON document."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / 'stores.json'
        store = RecordStore(path)
        store.upsert(make_record())
        store.upsert(make_record('5678', phone=None, category=Category.NEIGHBORHOOD_MARKET))
        store.save()

        loaded = RecordStore.load(path)
        assert len(loaded) == 2
        assert loaded.get('5678').phone is None
        assert loaded.get('5678').category == Category.NEIGHBORHOOD_MARKET
        assert loaded.get('1234') == store.get('1234')

    def test_document_shape(self, tmp_path):
        path = tmp_path / 'stores.json'
        store = RecordStore(path)
        store.upsert(make_record())
        store.save()

        data = json.loads(path.read_text(encoding='utf-8'))
        assert data['format_version'] == 1
        assert data['total_records'] == 1
        assert data['records']['1234']['phone'] == '217-555-0100'
        assert 'generated_at' in data

    def test_missing_file_is_empty_store(self, tmp_path):
        store = RecordStore.load(tmp_path / 'missing.json')
        assert len(store) == 0

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / 'stores.json'
        path.write_text('{not json', encoding='utf-8')
        with pytest.raises(InputFormatError):
            RecordStore.load(path)

    def test_wrong_version_raises(self, tmp_path):
        path = tmp_path / 'stores.json'
        path.write_text(json.dumps({'format_version': 99, 'records': {}}), encoding='utf-8')
        with pytest.raises(InputFormatError):
            RecordStore.load(path)

    def test_mismatched_key_raises(self, tmp_path):
        path = tmp_path / 'stores.json'
        document = {'format_version': 1, 'records': {'1': make_record('2').to_dict()}}
        path.write_text(json.dumps(document), encoding='utf-8')
        with pytest.raises(InputFormatError):
            RecordStore.load(path)

    def test_save_without_path_raises(self):
        with pytest.raises(ValueError):
            RecordStore().save()
