#!/usr/bin/env python3
"""
reconcile_reward_balances.py - rebuild materialized reward balances from the ledger.

Default behavior reconciles every user that has ledger entries. Pass
--user-id (repeatable) to limit the run.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

logger = logging.getLogger("reconcile_reward_balances")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--user-id", action="append", default=[], help="Only reconcile this user")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    from courtbook.database import SessionLocal
    from courtbook.models.reward import RewardLedgerEntry
    from courtbook.services.reward_service import RewardService

    db = SessionLocal()
    try:
        user_ids = args.user_id or [
            row[0] for row in db.query(RewardLedgerEntry.user_id).distinct().all()
        ]
        service = RewardService(db)
        for user_id in user_ids:
            balance = service.reconcile_balance(user_id)
            logger.info("user=%s balance=%d", user_id, balance)
    finally:
        db.close()

    logger.info("Reconciled %d user(s)", len(user_ids))
    return 0


if __name__ == "__main__":
    sys.exit(main())
