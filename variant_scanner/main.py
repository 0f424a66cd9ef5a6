"""Main entry point for Variant Family Scanner."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable

from variant_scanner.core.asin_list import AsinListImporter, AsinListValidationError, is_valid_asin
from variant_scanner.core.config import Settings, get_config_dir, get_settings
from variant_scanner.core.projection import count_relationships_in_table, flat_table
from variant_scanner.core.scanner import FamilyScanner, ScanOutcome
from variant_scanner.db.repository import Repository
from variant_scanner.db.session import init_database
from variant_scanner.utils.export import ExportError

logger = logging.getLogger(__name__)

MENU = """
Options:
1. Fetch ASIN family
2. Write last raw result to file
3. Export family tables
4. Process store
5. Import ASIN list
6. Exit
---------------------"""


def setup_exception_handler() -> None:
    """Set up global exception handler for unhandled exceptions."""

    def handle_exception(exc_type, exc_value, exc_traceback):
        """Handle uncaught exceptions."""
        if issubclass(exc_type, KeyboardInterrupt):
            # Allow Ctrl+C to exit normally
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Unhandled exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )
        print(f"Unexpected error: {exc_value}. See log file for details.", file=sys.stderr)

    sys.excepthook = handle_exception


def setup_logging(level: str = "INFO") -> None:
    """Configure application logging."""
    log_dir = get_config_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "scanner.log"

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="variant-scanner",
        description="Reconcile Amazon variant families from the Rainforest API.",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--asin", help="Fetch the family of one ASIN and export it")
    target.add_argument("--store", help="Fetch every family in a store and export them")
    target.add_argument("--file", help="Fetch the families of an ASIN list (CSV or text)")
    target.add_argument("--serve", action="store_true", help="Run the web job server")
    parser.add_argument("--format", choices=["csv", "xlsx"], help="Export format")
    parser.add_argument("--mock", action="store_true", help="Use generated data instead of the API")
    return parser


def print_summary(outcome: ScanOutcome) -> None:
    """Print relationship counts per family."""
    for result in outcome.results:
        counts = count_relationships_in_table(flat_table(result))
        summary = ", ".join(f"{name}={count}" for name, count in counts.items())
        print(f"{result.seed_asin} (parent {result.parent_asin}): {summary}")


def import_asin_list(scanner: FamilyScanner, path: str) -> ScanOutcome | None:
    """Scan the ASINs listed in a file. Returns None when the file is unusable."""
    try:
        imported = AsinListImporter().import_file(path)
    except (FileNotFoundError, AsinListValidationError) as e:
        print(f"Error: {e}")
        return None

    for error in imported.errors:
        print(f"  {error}")
    if not imported.asins:
        print("No valid ASINs found.")
        return None

    print(f"Scanning {len(imported.asins)} ASINs ({imported.duplicates} duplicates skipped)...")
    return scanner.scan_asins(imported.asins, key="list")


def export_outcome(scanner: FamilyScanner, outcome: ScanOutcome, fmt: str | None) -> bool:
    try:
        files = scanner.export(outcome, fmt)
    except (ExportError, OSError) as e:
        logger.error(f"Export failed: {e}")
        print(f"Export failed: {e}")
        return False
    for path in files:
        print(f"Exported to {path}")
    return True


def run_menu(scanner: FamilyScanner, input_fn: Callable[[str], str] = input) -> int:
    """Interactive menu loop."""
    print("Variant Family Scanner")
    print("---------------------")
    last: ScanOutcome | None = None

    while True:
        print(MENU)
        choice = input_fn("Please select an option (1-6): ").strip()

        if choice == "1":
            asin = input_fn("Enter ASIN: ").strip().upper()
            if not is_valid_asin(asin):
                print(f"Invalid ASIN: {asin}")
                continue
            print("Fetching data...")
            last = scanner.scan_asin(asin)
            print_summary(last)

        elif choice == "2":
            path = scanner.write_last_raw(last)
            if path is None:
                print("No data available to write. Please fetch an ASIN first.")
            else:
                print(f"Data successfully written to {path}")

        elif choice == "3":
            if last is None or not last.results:
                print("No data available. Please fetch an ASIN first.")
                continue
            fmt = input_fn("Format (csv/xlsx) [csv]: ").strip().lower() or None
            export_outcome(scanner, last, fmt)

        elif choice == "4":
            store_id = input_fn("Enter store ID: ").strip()
            if not store_id:
                print("Store ID is required.")
                continue
            print("Fetching store catalog...")
            last = scanner.scan_store(store_id)
            print_summary(last)

        elif choice == "5":
            path = input_fn("Path to ASIN list: ").strip()
            outcome = import_asin_list(scanner, path)
            if outcome is not None:
                last = outcome
                print_summary(last)

        elif choice == "6":
            print("\nThank you for using Variant Family Scanner!")
            return 0

        else:
            print("Invalid option. Please try again.")


def run_once(scanner: FamilyScanner, args: argparse.Namespace) -> int:
    """Handle a single non-interactive scan."""
    if args.asin:
        if not is_valid_asin(args.asin.strip().upper()):
            print(f"Invalid ASIN: {args.asin}", file=sys.stderr)
            return 2
        outcome = scanner.scan_asin(args.asin)
    elif args.store:
        outcome = scanner.scan_store(args.store)
    else:
        outcome = import_asin_list(scanner, args.file)
        if outcome is None:
            return 1

    print_summary(outcome)
    return 0 if export_outcome(scanner, outcome, args.format) else 1


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    settings: Settings = get_settings()
    setup_logging(settings.log_level)
    setup_exception_handler()

    logger.info("Starting Variant Family Scanner")
    if args.mock:
        settings.api.mock_mode = True
    logger.info(f"Config dir: {get_config_dir()}")
    logger.info(f"Mock mode: {settings.api.mock_mode}")

    if not settings.api.mock_mode and not settings.api.rainforest_api_key:
        logger.warning("No Rainforest API key configured, requests will fail")

    try:
        init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.exception("Failed to initialize database")
        print(f"Error: Failed to initialize database: {e}", file=sys.stderr)
        return 1

    if args.serve:
        from variant_scanner.web.server import WebServer

        server = WebServer(settings)
        print(f"Server running at {server.start()}")
        try:
            server.join()
        except KeyboardInterrupt:
            server.stop()
        return 0

    scanner = FamilyScanner(settings, repo=Repository())
    if args.asin or args.store or args.file:
        return run_once(scanner, args)
    return run_menu(scanner)


if __name__ == "__main__":
    sys.exit(main())
