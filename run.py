#!/usr/bin/env python3
"""
CLI for the Walmart store directory collector

Usage:
    python run.py                                  # Collect (resumes from checkpoint)
    python run.py collect --states il,in           # Only the given states
    python run.py collect --max-regions 2          # Stop after two states
    python run.py collect --fetch-details          # Fetch store pages for missing addresses
    python run.py enrich --input phone-data.json   # Merge a phone feed
    python run.py enrich --stats                   # Phone coverage only
    python run.py verify                           # Completeness report
    python run.py export --format csv              # Flat export of the record store
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from config.walmart_config import REGION_NAMES, REGIONS, USER_AGENTS
from src.directory.crawler import DirectoryCrawler
from src.directory.ledger import CheckpointLedger
from src.directory.reconciler import PhoneReconciler, load_enrichment
from src.directory.record_store import RecordStore
from src.directory.verifier import CollectionVerifier, format_report
from src.shared.constants import PATHS
from src.shared.delays import select_delays
from src.shared.errors import InputFormatError, InvariantViolation
from src.shared.export_service import ExportFormat, ExportService
from src.shared.http import DirectoryFetcher
from src.shared.logging_config import setup_logging
from src.shared.sentry_integration import capture_collector_error, flush, init_sentry
from src.shared.settings import get_path, load_collector_config, validate_config

COMMANDS = ('collect', 'enrich', 'verify', 'export')


def validate_states(states_str: str) -> Optional[List[str]]:
    """Validate and parse comma-separated state codes.

    Args:
        states_str: Comma-separated state codes (e.g., "il,IN,dc")

    Returns:
        List of lowercase directory codes, or None if empty

    Raises:
        argparse.ArgumentTypeError: If any state code is invalid
    """
    if not states_str:
        return None

    states = [s.strip().lower() for s in states_str.split(',') if s.strip()]
    if not states:
        return None

    invalid = [s.upper() for s in states if s not in REGION_NAMES]
    if invalid:
        raise argparse.ArgumentTypeError(
            f"Invalid state code(s): {', '.join(invalid)}. "
            f"Use standard 2-letter US state codes (e.g., IL, PA, DC)."
        )
    return states


def setup_parser() -> argparse.ArgumentParser:
    """Create argument parser"""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', default=PATHS.CONFIG_FILE, help='Collector config file (YAML)')
    common.add_argument('--log-file', default=None, help='Log file path (overrides config)')
    common.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    parser = argparse.ArgumentParser(
        description='Walmart store directory collector',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest='command')

    collect = subparsers.add_parser('collect', parents=[common], help='Crawl the directory (resumable)')
    collect.add_argument('--states', type=validate_states, default=None,
                         help='Comma-separated state codes to crawl (default: all pending)')
    collect.add_argument('--max-regions', type=int, default=None, help='Stop after this many states')
    collect.add_argument('--fetch-details', action='store_true', default=None,
                         help='Fetch store pages for stores listed without a street address')
    collect.add_argument('--min-delay', type=float, default=None, help='Minimum delay between requests (seconds)')
    collect.add_argument('--max-delay', type=float, default=None, help='Maximum delay between requests (seconds)')
    collect.add_argument('--reset', action='store_true',
                         help='Mark every state pending again (stored records are kept)')

    enrich = subparsers.add_parser('enrich', parents=[common], help='Merge a phone number feed')
    enrich.add_argument('--input', default=None, help=f'Phone feed JSON (default: <data_dir>/{PATHS.ENRICHMENT_FILE})')
    enrich.add_argument('--stats', action='store_true', help='Show phone coverage only')
    enrich.add_argument('--dry-run', action='store_true', help='Count changes without saving')

    subparsers.add_parser('verify', parents=[common], help='Report collection completeness')

    export = subparsers.add_parser('export', parents=[common], help='Export the record store')
    export.add_argument('--format', choices=[f.value for f in ExportFormat], default='json', help='Output format')
    export.add_argument('--output', default=None, help='Output file (default: <data_dir>/stores_export.<format>)')

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse arguments; without a subcommand the collect command runs."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ('-h', '--help')):
        argv.insert(0, 'collect')
    return setup_parser().parse_args(argv)


def apply_cli_overrides(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    """Apply collect flags on top of the YAML configuration.

    A malformed 'delays' entry is left for validate_config to report.
    """
    if isinstance(config.get('delays'), dict):
        if getattr(args, 'min_delay', None) is not None:
            config['delays']['min_delay'] = args.min_delay
        if getattr(args, 'max_delay', None) is not None:
            config['delays']['max_delay'] = args.max_delay
    if getattr(args, 'fetch_details', None) is not None:
        config['fetch_details'] = args.fetch_details
    if args.log_file:
        config['log_file'] = args.log_file


def run_collect(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    store = RecordStore.load(get_path(config, PATHS.STORE_FILE))
    ledger_path = get_path(config, PATHS.LEDGER_FILE)
    if args.reset:
        logging.info("Reset requested, all states marked pending")
        ledger = CheckpointLedger(REGIONS, ledger_path)
    else:
        ledger = CheckpointLedger.load(ledger_path, REGIONS)

    if args.max_regions is not None and args.max_regions < 1:
        print("--max-regions must be a positive integer")
        return 1

    min_delay, max_delay = select_delays(config)
    with DirectoryFetcher(
        timeout=config['timeout'],
        max_retries=config['max_retries'],
        user_agents=USER_AGENTS,
    ) as fetcher:
        crawler = DirectoryCrawler(
            fetcher,
            store,
            ledger,
            min_delay=min_delay,
            max_delay=max_delay,
            fetch_details=config['fetch_details'],
        )
        summary = crawler.run(max_regions=args.max_regions, regions=args.states)

    print(f"Collected {summary.records_inserted} new stores ({summary.total_records} total), "
          f"{len(ledger.completed)}/{len(ledger.universe)} states completed")
    return 0


def run_enrich(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    store = RecordStore.load(get_path(config, PATHS.STORE_FILE))
    input_path = Path(args.input) if args.input else get_path(config, PATHS.ENRICHMENT_FILE)
    reconciler = PhoneReconciler(store)

    if args.stats:
        entries = load_enrichment(input_path) if input_path.exists() else None
        coverage = reconciler.coverage(entries)
        print(f"Total stores:      {coverage.total_records}")
        print(f"With phone:        {coverage.with_phone} ({coverage.percent}%)")
        print(f"Without phone:     {coverage.without_phone}")
        print(f"Phones in feed:    {coverage.phones_available}")
        return 0

    entries = load_enrichment(input_path)
    stats = reconciler.merge(entries, dry_run=args.dry_run)
    prefix = "[dry run] " if args.dry_run else ""
    print(f"{prefix}Merged: {stats.merged}, unchanged: {stats.skipped_identical}, not found: {stats.not_found}")
    return 0


def run_verify(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    snapshot = CheckpointLedger.read_snapshot(get_path(config, PATHS.LEDGER_FILE), REGIONS)
    store = RecordStore.load(get_path(config, PATHS.STORE_FILE))
    report = CollectionVerifier(snapshot, store, [region.code for region in REGIONS]).report()
    print(format_report(report))
    for region in report.partial_regions:
        logging.warning(f"[{region.lower()}] {report.by_region_counts[region]} stores stored but state not completed")
    return 0


def run_export(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    store = RecordStore.load(get_path(config, PATHS.STORE_FILE))
    export_format = ExportFormat.from_string(args.format)
    output = args.output or str(get_path(config, f"stores_export.{export_format.value}"))
    count = ExportService.export_records([record.to_dict() for record in store.records()], export_format, output)
    print(f"Exported {count} stores to {output}")
    return 0


HANDLERS = {
    'collect': run_collect,
    'enrich': run_enrich,
    'verify': run_verify,
    'export': run_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    load_dotenv()
    args = parse_args(argv)

    config = load_collector_config(args.config)
    apply_cli_overrides(args, config)

    setup_logging(config['log_file'], level=logging.DEBUG if args.verbose else logging.INFO)

    config_errors = validate_config(config)
    if config_errors:
        print("Configuration errors found:")
        for error in config_errors:
            print(f"  - {error}")
        return 1

    init_sentry()

    try:
        return HANDLERS[args.command](args, config)
    except KeyboardInterrupt:
        logging.warning("Interrupted, progress is saved up to the last checkpoint")
        return 0
    except (InputFormatError, InvariantViolation) as e:
        logging.error(f"{args.command} failed: {e}")
        capture_collector_error(e, command=args.command)
        return 1
    finally:
        flush()


if __name__ == '__main__':
    sys.exit(main())
