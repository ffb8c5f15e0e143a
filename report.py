"""
Command-line portfolio report.
Prints the aggregate summary, or a snapshot as of a chosen date, for one account.

Usage:
    python report.py --account ACCOUNT
    python report.py --account ACCOUNT --date 2024-01-20
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from services.ledger import LedgerService
from services.portfolio import format_snapshot_report, format_summary_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portfolio ledger report")
    parser.add_argument("--account", required=True, help="Account whose ledger to report")
    parser.add_argument("--date", help="Reference date (YYYY-MM-DD) for a dated snapshot")
    parser.add_argument("--selic", type=float, help="Override the Selic rate shown in the summary")
    parser.add_argument("--ipca", type=float, help="Override the IPCA rate shown in the summary")
    return parser


def run(argv: Optional[List[str]] = None, service: Optional[LedgerService] = None) -> str:
    """Build the requested report text."""
    args = build_parser().parse_args(argv)
    if service is None:
        init_db()
        service = LedgerService(args.account)

    if args.date:
        logger.info(f"Computing snapshot for account {args.account} as of {args.date}")
        return format_snapshot_report(service.snapshot(args.date))

    logger.info(f"Computing summary for account {args.account}")
    return format_summary_report(service.summary(selic=args.selic, ipca=args.ipca))


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        print(run(argv))
    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
