"""Maintenance sweep: extend every active pattern of every owner.

Run periodically (cron, scheduler job) as an alternative or complement to
read-triggered extension:

    python -m studydash.recurrence.sweep [--window-days N]

Exits with status 1 when any pattern failed to extend.
"""

import argparse
import logging
import sys

from studydash.database.database import SessionLocal, init_db
from studydash.models.constants import SWEEP_WINDOW_DAYS
from studydash.recurrence.service import RecurrenceService

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Extend all active recurring patterns.")
    parser.add_argument("--window-days", type=int, default=SWEEP_WINDOW_DAYS)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db()

    db = SessionLocal()
    try:
        report = RecurrenceService(db).extend_all(window_days=args.window_days)
    finally:
        db.close()

    logger.info(
        f"Sweep done: {report.patterns_processed} patterns, "
        f"{report.instances_created} instances created, {len(report.errors)} errors"
    )
    for error in report.errors:
        logger.error(f"Pattern {error.pattern_id}: {error.error}")
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
