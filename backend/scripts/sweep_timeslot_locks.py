#!/usr/bin/env python3
"""
sweep_timeslot_locks.py - purge expired advisory timeslot locks.

Acquire already sweeps its own key lazily; this is for cron-style cleanup of
keys nobody asks for again.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

logger = logging.getLogger("sweep_timeslot_locks")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    from courtbook.core.timeslot_lock import TimeslotLockManager
    from courtbook.database import SessionLocal

    deleted = TimeslotLockManager(SessionLocal).sweep_expired()
    logger.info("Removed %d expired timeslot lock(s)", deleted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
