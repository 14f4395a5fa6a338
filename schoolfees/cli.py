"""
Command line entry points for scheduled ledger jobs.

Usage:
    python -m schoolfees.cli bulk-generate --course-id <id> [--batch-id <id>]
        [--due-date YYYY-MM-DD] [--period <label>] [--created-by <user>]
    python -m schoolfees.cli init-db
"""

import argparse
import sys
from datetime import date
from typing import List, Optional

from schoolfees.config.logging import setup_logging
from schoolfees.config.settings import settings
from schoolfees.core.exceptions import BaseAppException
from schoolfees.core.logging import get_logger
from schoolfees.db.init_db import init_db
from schoolfees.db.session import Database
from schoolfees.services import InvoiceService

logger = get_logger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="schoolfees", description="School fee ledger jobs")
    commands = parser.add_subparsers(dest="command", required=True)

    bulk = commands.add_parser("bulk-generate", help="Invoice every active student of a course")
    bulk.add_argument("--course-id", required=True)
    bulk.add_argument("--batch-id", default=None)
    bulk.add_argument("--due-date", type=_parse_date, default=None)
    bulk.add_argument("--period", default=None, help="Billing period label")
    bulk.add_argument("--created-by", default="scheduler")

    commands.add_parser("init-db", help="Create missing tables")
    return parser


def run_bulk_generate(database: Database, args: argparse.Namespace) -> int:
    job_logger = get_logger("schoolfees.jobs.bulk_generate").add_context(
        course_id=args.course_id, batch_id=args.batch_id
    )
    with database.session_scope() as db:
        result = InvoiceService(db, settings).bulk_generate(
            course_id=args.course_id,
            batch_id=args.batch_id,
            due_date=args.due_date,
            period=args.period,
            created_by=args.created_by,
        )
    job_logger.info("Bulk generation finished", extra={"created": result.created, "skipped": result.skipped})
    print(f"created={result.created} skipped={result.skipped}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(settings)
    database = Database(config=settings)

    try:
        if args.command == "init-db":
            init_db(database.engine)
            return 0
        return run_bulk_generate(database, args)
    except BaseAppException as e:
        logger.error(f"{args.command} failed: {e}", extra={"details": e.details})
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    finally:
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
