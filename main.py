import argparse
import sys
from typing import Optional, Sequence, TextIO

import structlog

from config import get_settings, get_settings_for_environment
from csv_io import read_transactions, write_accounts
from errors import InputSourceError
from logging_config import configure_logging
from models import ProcessingSummary
from repositories import InMemoryAccountLedger, InMemoryTransactionHistory
from services import get_transaction_processor

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Apply a CSV of transactions and print the final state of every client account.",
    )
    parser.add_argument("input", help="Path to the transactions CSV file")
    parser.add_argument(
        "--env",
        choices=("development", "production", "testing"),
        help="Use the settings preset for this environment",
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--log-format", choices=("json", "text"), help="Override the configured log format")
    return parser


def run(input_path: str, stdout: TextIO) -> ProcessingSummary:
    """Process the whole input, then write the account report. Nothing is written if the input fails."""
    ledger = InMemoryAccountLedger()
    history = InMemoryTransactionHistory()
    processor = get_transaction_processor(ledger, history)

    summary = processor.process_transactions(read_transactions(input_path))
    write_accounts(ledger.snapshots(), stdout)
    return summary


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings_for_environment(args.env) if args.env else get_settings()
    configure_logging(
        log_level=args.log_level or settings.log_level,
        log_format=args.log_format or settings.log_format
    )

    try:
        summary = run(args.input, sys.stdout)
    except InputSourceError as e:
        logger.error("Input source unavailable", input=args.input, error=e.detail)
        return 1

    if settings.report_summary:
        logger.info(
            "Processing complete",
            app=settings.app_name,
            version=settings.app_version,
            **summary.model_dump()
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
