"""Resumable crawl of the store directory.

The crawler walks region -> locality -> facility, one region at a time:

    IDLE -> SELECT_REGION -> FETCH_REGION_PAGE -> ENUMERATE_LOCALITIES
         -> {FETCH_LOCALITY -> EXTRACT_LISTINGS -> STORE_RESULTS -> CHECKPOINT}*
         -> COMPLETE_REGION -> SELECT_REGION ... -> DONE

Progress is persisted after every locality that yielded records and after
every region transition, so an interrupted run resumes at the region it
was working on without duplicating stored records.
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set

from config import walmart_config as config
from src.directory.extractor import Locality, extract_listings, extract_locality_links, extract_single
from src.directory.ledger import CheckpointLedger, WorkUnit
from src.directory.record_store import RecordStore, UpsertResult
from src.shared.constants import CRAWL, HTTP
from src.shared.delays import random_delay
from src.shared.errors import CollectorError, ExtractionMiss, TransientFetchFailure
from src.shared.http import FetchResult
from src.shared.sentry_integration import set_region_context

__all__ = [
    'CrawlState',
    'CrawlSummary',
    'DirectoryCrawler',
]


class CrawlState(Enum):
    IDLE = 'idle'
    SELECT_REGION = 'select_region'
    FETCH_REGION_PAGE = 'fetch_region_page'
    ENUMERATE_LOCALITIES = 'enumerate_localities'
    FETCH_LOCALITY = 'fetch_locality'
    EXTRACT_LISTINGS = 'extract_listings'
    STORE_RESULTS = 'store_results'
    CHECKPOINT = 'checkpoint'
    COMPLETE_REGION = 'complete_region'
    DONE = 'done'


@dataclass
class CrawlSummary:
    """Counters for a single crawl run."""
    regions_completed: List[str] = field(default_factory=list)
    regions_failed: List[str] = field(default_factory=list)
    localities_visited: int = 0
    localities_failed: int = 0
    localities_empty: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    duplicates: int = 0
    details_fetched: int = 0
    details_failed: int = 0
    total_records: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class DirectoryCrawler:
    """Drives the crawl over a ledger, writing into a record store.

    The fetcher is any object with fetch(url) -> FetchResult that raises
    TransientFetchFailure when a page cannot be retrieved. A result with a
    non-2xx status is treated the same way.
    """

    def __init__(
        self,
        fetcher,
        store: RecordStore,
        ledger: CheckpointLedger,
        min_delay: float = HTTP.MIN_DELAY,
        max_delay: float = HTTP.MAX_DELAY,
        fetch_details: bool = CRAWL.FETCH_DETAILS,
        base_url: str = config.BASE_URL,
    ):
        self.fetcher = fetcher
        self.store = store
        self.ledger = ledger
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.fetch_details = fetch_details
        self.base_url = base_url
        self.state = CrawlState.IDLE
        self._has_fetched = False
        self._failed_regions: Set[str] = set()

    def _transition(self, state: CrawlState) -> None:
        logging.debug(f"Crawler state: {self.state.value} -> {state.value}")
        self.state = state

    def _fetch(self, url: str) -> FetchResult:
        # Courtesy delay between successive fetches, not before the first one
        if self._has_fetched:
            random_delay(self.min_delay, self.max_delay)
        self._has_fetched = True
        result = self.fetcher.fetch(url)
        if not 200 <= result.status < 300:
            raise TransientFetchFailure(url, f"HTTP {result.status}", result.status)
        return result

    def run(self, max_regions: Optional[int] = None, regions: Optional[Iterable[str]] = None) -> CrawlSummary:
        """Crawl pending regions until none remain.

        Args:
            max_regions: Stop after this many regions have been attempted
            regions: Restrict the run to these region codes

        Returns:
            CrawlSummary for this run

        Raises:
            InvariantViolation: If the ledger would become inconsistent
        """
        summary = CrawlSummary()
        skip = set(self._failed_regions)
        if regions is not None:
            wanted = {code.lower() for code in regions}
            skip |= {code for code in self.ledger.universe if code not in wanted}

        attempted = 0
        while True:
            self._transition(CrawlState.SELECT_REGION)
            if max_regions is not None and attempted >= max_regions:
                logging.info(f"Reached region limit ({max_regions}), stopping")
                break

            unit = self.ledger.next_pending(skip=skip)
            if unit is None:
                break

            attempted += 1
            if not self._crawl_region(unit, summary):
                skip.add(unit.code)

        self._transition(CrawlState.DONE)
        summary.total_records = len(self.store)
        self._log_summary(summary)
        return summary

    def _crawl_region(self, unit: WorkUnit, summary: CrawlSummary) -> bool:
        """Crawl one region; returns False if its page could not be fetched or read."""
        self.ledger.mark_in_progress(unit)
        self.ledger.persist(self.store)
        set_region_context(unit.code)
        logging.info(f"[{unit.code}] Starting {unit.name}")

        self._transition(CrawlState.FETCH_REGION_PAGE)
        region_url = config.get_region_url(unit.code)
        try:
            result = self._fetch(region_url)
        except TransientFetchFailure as e:
            logging.error(f"[{unit.code}] Could not fetch region page, re-queueing: {e}")
            self._requeue_region(unit, summary)
            return False

        self._transition(CrawlState.ENUMERATE_LOCALITIES)
        try:
            localities = extract_locality_links(result.content, unit.code, self.base_url)
        except CollectorError:
            raise
        except Exception as e:
            logging.error(f"[{unit.code}] Could not read cities from {region_url}, re-queueing: {e}")
            self._requeue_region(unit, summary)
            return False
        if localities:
            logging.info(f"[{unit.code}] Found {len(localities)} cities")
        else:
            logging.warning(f"[{unit.code}] No cities found on {region_url}")

        before = len(self.store)
        for index, locality in enumerate(localities, 1):
            found = self._crawl_locality(unit, locality, summary)
            logging.info(f"[{unit.code}/{locality.name}] {found} stores ({index}/{len(localities)})")

        self._transition(CrawlState.COMPLETE_REGION)
        self.ledger.mark_completed(unit)
        self.ledger.persist(self.store)
        summary.regions_completed.append(unit.code)
        logging.info(
            f"[{unit.code}] Completed {unit.name}: {len(self.store) - before} new stores, "
            f"{len(self.store)} total"
        )
        return True

    def _requeue_region(self, unit: WorkUnit, summary: CrawlSummary) -> None:
        """Put a region back to pending and leave it alone for the rest of the run."""
        self.ledger.release(unit)
        self.ledger.persist(self.store)
        self._failed_regions.add(unit.code)
        summary.regions_failed.append(unit.code)

    def _crawl_locality(self, unit: WorkUnit, locality: Locality, summary: CrawlSummary) -> int:
        """Fetch, extract and store one city page; returns the number of candidates."""
        prefix = f"[{unit.code}/{locality.name}]"

        self._transition(CrawlState.FETCH_LOCALITY)
        try:
            result = self._fetch(locality.url)
        except TransientFetchFailure as e:
            logging.warning(f"{prefix} Skipping city: {e}")
            summary.localities_failed += 1
            return 0
        summary.localities_visited += 1

        self._transition(CrawlState.EXTRACT_LISTINGS)
        try:
            candidates = list(extract_listings(result.content, self.base_url))
        except CollectorError:
            raise
        except Exception as e:
            logging.error(f"{prefix} Could not extract stores from {locality.url}: {e}")
            summary.localities_failed += 1
            return 0
        if not candidates:
            logging.warning(f"{prefix} No stores extracted from {locality.url}")
            summary.localities_empty += 1
            return 0

        self._transition(CrawlState.STORE_RESULTS)
        for candidate in candidates:
            outcome = self.store.upsert(candidate)
            if outcome == UpsertResult.INSERTED:
                summary.records_inserted += 1
            elif outcome == UpsertResult.UPDATED:
                summary.records_updated += 1
            else:
                summary.duplicates += 1

            stored = self.store.get(candidate.identifier)
            if self.fetch_details and not stored.is_complete:
                self._fill_details(prefix, stored.identifier, stored.source_url, summary)

        self._transition(CrawlState.CHECKPOINT)
        self.ledger.persist(self.store)
        return len(candidates)

    def _fill_details(self, prefix: str, identifier: str, url: str, summary: CrawlSummary) -> None:
        """Fetch a store page to fill the fields its listing card was missing."""
        url = url or config.get_store_url(identifier)
        try:
            result = self._fetch(url)
            record = extract_single(result.content, identifier)
            if record is None:
                raise ExtractionMiss(f"No address and phone on {url}")
            if record.identifier != identifier:
                raise ExtractionMiss(f"Page {url} describes store {record.identifier}, expected {identifier}")
        except (TransientFetchFailure, ExtractionMiss) as e:
            logging.warning(f"{prefix} Store {identifier} details unavailable: {e}")
            summary.details_failed += 1
            return

        record.source_url = url
        if self.store.upsert(record) == UpsertResult.UPDATED:
            summary.records_updated += 1
        summary.details_fetched += 1

    def _log_summary(self, summary: CrawlSummary) -> None:
        logging.info(
            f"Crawl finished: {len(summary.regions_completed)} regions completed, "
            f"{summary.records_inserted} new stores, {summary.records_updated} updated, "
            f"{summary.duplicates} duplicates, {summary.total_records} total"
        )
        if summary.localities_failed or summary.localities_empty:
            logging.warning(
                f"{summary.localities_failed} cities failed to load, "
                f"{summary.localities_empty} cities had no stores"
            )
        if summary.regions_failed:
            shown = summary.regions_failed[:CRAWL.SUMMARY_LOG_LIMIT]
            logging.error(f"Regions re-queued after errors: {', '.join(shown)}")
