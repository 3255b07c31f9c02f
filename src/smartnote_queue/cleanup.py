"""Purge terminal queue entries older than the retention window.

Usage:
    smartnote-queue-cleanup --days 30
    smartnote-queue-cleanup --database-url sqlite:////var/lib/smartnote/queue.db
"""

import argparse
import logging
import time

from .config import Config
from .database import create_db_engine, create_session_factory, init_db
from .queue_store import QueueEntryRepository

logger = logging.getLogger("smartnote-queue-cleanup")

_DAY_MS = 24 * 60 * 60 * 1000


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete Done/Failed queue entries")
    parser.add_argument(
        "--days",
        type=int,
        default=Config.TERMINAL_RETENTION_DAYS,
        help="Keep terminal entries created within this many days",
    )
    parser.add_argument(
        "--database-url",
        default=Config.QUEUE_DATABASE_URL,
        help="Queue database URL",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=Config.LOG_LEVEL)

    if args.days < 0:
        parser.error("--days must not be negative")

    engine = create_db_engine(args.database_url)
    try:
        init_db(engine)
        repository = QueueEntryRepository(create_session_factory(engine))

        cutoff_ms = int(time.time() * 1000) - args.days * _DAY_MS
        deleted = repository.purge_terminal_before(cutoff_ms)
        logger.info(f"Deleted {deleted} terminal queue entries older than {args.days} days")
    finally:
        engine.dispose()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
