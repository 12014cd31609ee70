#!/usr/bin/env python3
"""
seed_demo_data.py - create demo courts and a promotion for local development.
"""

from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import logging
from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

logger = logging.getLogger("seed_demo_data")

DEMO_COURTS = [
    ("Center Court", Decimal("100000")),
    ("Court 2", Decimal("80000")),
    ("Indoor Court", Decimal("120000")),
]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--owner-id", default=None, help="ULID of the court owner")
    parser.add_argument("--discount", type=Decimal, default=Decimal("10"))
    parser.add_argument("--code", default=None, help="Promotion code (random when omitted)")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    from courtbook.database import SessionLocal
    from courtbook.models.court import Court
    from courtbook.services.promotion_service import PromotionService

    db = SessionLocal()
    try:
        for name, rate in DEMO_COURTS:
            court = Court(name=name, hourly_rate=rate, owner_id=args.owner_id, is_available=True)
            db.add(court)
            db.flush()
            logger.info("court %s id=%s rate=%s", name, court.id, rate)
        db.commit()

        now = datetime.now(timezone.utc)
        promotion = PromotionService(db).create_promotion(
            code=args.code,
            discount_percent=args.discount,
            start_date=now,
            end_date=now + timedelta(days=30),
            description="Demo discount",
        )
        logger.info("promotion code=%s discount=%s%%", promotion.code, promotion.discount_percent)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
