"""Maintenance scripts run against the per-test database."""

from decimal import Decimal
import importlib.util
from pathlib import Path

import pytest

from courtbook.core.enums import RewardActionType
from courtbook.models.court import Court
from courtbook.models.promotion import Promotion
from courtbook.models.reward import RewardBalance
from courtbook.models.timeslot_lock import TimeslotLock
from courtbook.services.reward_service import RewardService

from tests.helpers.booking import slot

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def use_test_sessions(monkeypatch, session_factory):
    monkeypatch.setattr("courtbook.database.SessionLocal", session_factory)


def test_sweep_timeslot_locks(db, court, user_id):
    start, end = slot(10)
    db.add(
        TimeslotLock(
            court_id=court.id,
            start_time=start,
            end_time=end,
            user_id=user_id,
            expires_at=start.replace(year=2001),
        )
    )
    db.commit()

    assert _load("sweep_timeslot_locks").main([]) == 0
    assert db.query(TimeslotLock).count() == 0


def test_reconcile_reward_balances(db, user_id, reward_settings):
    RewardService(db, config=reward_settings).award_points(
        user_id, RewardActionType.FIRST_BOOKING, f"first_booking:{user_id}"
    )
    db.query(RewardBalance).filter_by(user_id=user_id).update({"points": 3})
    db.commit()

    assert _load("reconcile_reward_balances").main([]) == 0

    balance = db.query(RewardBalance).filter_by(user_id=user_id).populate_existing().one()
    assert balance.points == 100


def test_seed_demo_data(db):
    assert _load("seed_demo_data").main(["--code", "demo10"]) == 0

    assert db.query(Court).count() == 3
    promotion = db.query(Promotion).one()
    assert promotion.code == "DEMO10"
    assert Decimal(promotion.discount_percent) == Decimal("10")
