"""Pytest configuration and fixtures for collector tests"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from unittest.mock import Mock

from config.walmart_config import RegionConfig
from src.directory.ledger import CheckpointLedger
from src.directory.record_store import RecordStore
from tests.sample_pages import (
    CHICAGO_HTML,
    CHICAGO_URL,
    IL_REGION_HTML,
    IL_URL,
    IN_REGION_HTML,
    IN_URL,
    INDIANAPOLIS_HTML,
    INDIANAPOLIS_URL,
    SPRINGFIELD_HTML,
    SPRINGFIELD_URL,
    STORE_5678_HTML,
    STORE_5678_URL,
)


@pytest.fixture
def site_pages():
    """Every page of a two-state directory."""
    return {
        IL_URL: IL_REGION_HTML,
        IN_URL: IN_REGION_HTML,
        SPRINGFIELD_URL: SPRINGFIELD_HTML,
        CHICAGO_URL: CHICAGO_HTML,
        INDIANAPOLIS_URL: INDIANAPOLIS_HTML,
        STORE_5678_URL: STORE_5678_HTML,
    }


@pytest.fixture
def two_regions():
    return [RegionConfig('il', 'Illinois'), RegionConfig('in', 'Indiana')]


@pytest.fixture
def data_paths(tmp_path):
    """Store and ledger paths inside a temporary data directory."""
    return {
        'store': tmp_path / 'stores.json',
        'ledger': tmp_path / 'checkpoints' / 'collection_progress.json',
    }


@pytest.fixture
def store(data_paths):
    return RecordStore(data_paths['store'])


@pytest.fixture
def ledger(data_paths, two_regions):
    return CheckpointLedger(two_regions, data_paths['ledger'])


@pytest.fixture
def mock_response_factory():
    """Factory for creating mock HTTP responses.

    Usage:
        response = mock_response_factory(status_code=200, text="<html>")
        response = mock_response_factory(status_code=404)
    """
    def _create_response(status_code: int = 200, text: str = ""):
        response = Mock()
        response.status_code = status_code
        response.text = text
        return response

    return _create_response
