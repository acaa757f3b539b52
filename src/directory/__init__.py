"""Store directory collection: record store, ledger, extraction, crawl, reconcile, verify"""

from .records import Category, FacilityRecord, normalize_phone
from .record_store import RecordStore, UpsertResult
from .ledger import CheckpointLedger, LedgerSnapshot, UnitStatus, WorkUnit
from .extractor import Locality, extract_listings, extract_locality_links, extract_single
from .crawler import CrawlState, CrawlSummary, DirectoryCrawler
from .reconciler import CoverageStats, MergeStats, PhoneReconciler, load_enrichment
from .verifier import CollectionVerifier, VerificationReport, format_report

__all__ = [
    'Category',
    'CheckpointLedger',
    'CollectionVerifier',
    'CoverageStats',
    'CrawlState',
    'CrawlSummary',
    'DirectoryCrawler',
    'FacilityRecord',
    'LedgerSnapshot',
    'Locality',
    'MergeStats',
    'PhoneReconciler',
    'RecordStore',
    'UnitStatus',
    'UpsertResult',
    'VerificationReport',
    'WorkUnit',
    'extract_listings',
    'extract_locality_links',
    'extract_single',
    'format_report',
    'load_enrichment',
    'normalize_phone',
]
