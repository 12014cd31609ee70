# backend/courtbook/repositories/reward_repository.py
"""
Reward Repository

Append-only access to the points ledger and its materialized balance.
Balance changes are applied as SQL expressions so concurrent awards for the
same user add up instead of overwriting each other.
"""

from datetime import datetime, timezone
import logging
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database.session_utils import get_dialect_name
from ..models.reward import RewardBalance, RewardLedgerEntry, RewardRule
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


class RewardRepository(BaseRepository[RewardLedgerEntry]):
    def __init__(self, db: Session):
        super().__init__(db, RewardLedgerEntry)

    # Ledger

    def has_idempotency_key(self, idempotency_key: str) -> bool:
        return self.exists(idempotency_key=idempotency_key)

    def append_entry(
        self,
        *,
        user_id: str,
        points: int,
        action_type: str,
        idempotency_key: str,
        description: Optional[str] = None,
        source_id: Optional[str] = None,
        source_type: Optional[str] = None,
    ) -> RewardLedgerEntry:
        return self.create(
            user_id=user_id,
            points=points,
            action_type=action_type,
            idempotency_key=idempotency_key,
            description=description,
            source_id=source_id,
            source_type=source_type,
        )

    def recent_entries(self, user_id: str, *, limit: int = 10) -> List[RewardLedgerEntry]:
        query = (
            self.db.query(RewardLedgerEntry)
            .filter(RewardLedgerEntry.user_id == user_id)
            .order_by(RewardLedgerEntry.created_at.desc(), RewardLedgerEntry.id.desc())
            .limit(limit)
        )
        return self._execute_query(query)

    def ledger_totals(self, user_id: str) -> Dict[str, int]:
        """Sum of awarded and redeemed points for a user."""
        try:
            earned, redeemed = (
                self.db.query(
                    func.coalesce(
                        func.sum(
                            case((RewardLedgerEntry.points > 0, RewardLedgerEntry.points), else_=0)
                        ),
                        0,
                    ),
                    func.coalesce(
                        func.sum(
                            case((RewardLedgerEntry.points < 0, -RewardLedgerEntry.points), else_=0)
                        ),
                        0,
                    ),
                )
                .filter(RewardLedgerEntry.user_id == user_id)
                .one()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing reward ledger: {str(e)}")
            raise RepositoryException(f"Failed to sum reward ledger: {str(e)}") from e
        return {"earned": int(earned or 0), "redeemed": int(redeemed or 0)}

    # Balance

    def get_balance(self, user_id: str, *, for_update: bool = False) -> Optional[RewardBalance]:
        # increment_balance writes through SQL, so always refresh the identity map
        try:
            query = (
                self.db.query(RewardBalance)
                .filter(RewardBalance.user_id == user_id)
                .populate_existing()
            )
            if for_update:
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading reward balance: {str(e)}")
            raise RepositoryException(f"Failed to read reward balance: {str(e)}") from e

    def increment_balance(self, user_id: str, delta: int) -> None:
        """
        Add ``delta`` to the user's balance, creating the row on first use.

        A single ``INSERT .. ON CONFLICT DO UPDATE`` so two first awards for
        the same user cannot race on the primary key.
        """
        now = datetime.now(timezone.utc)
        insert = _UPSERT_INSERTS.get(get_dialect_name(self.db))
        if insert is None:
            raise RepositoryException(
                f"Reward balances need PostgreSQL or SQLite, not {get_dialect_name(self.db)}"
            )
        statement = insert(RewardBalance).values(user_id=user_id, points=delta, updated_at=now)
        statement = statement.on_conflict_do_update(
            index_elements=[RewardBalance.user_id],
            set_={"points": RewardBalance.points + delta, "updated_at": now},
        )
        try:
            self.db.flush()
            self.db.execute(statement)
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating reward balance for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to update reward balance: {str(e)}") from e

    def set_balance(self, user_id: str, points: int) -> RewardBalance:
        balance = self.get_balance(user_id, for_update=True)
        if balance is None:
            balance = RewardBalance(user_id=user_id, points=points)
            self.db.add(balance)
        else:
            balance.points = points
        self.db.flush()
        return balance

    # Rules

    def get_rule(self, action_type: str) -> Optional[RewardRule]:
        try:
            return self.db.query(RewardRule).filter(RewardRule.action_type == action_type).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading reward rule: {str(e)}")
            raise RepositoryException(f"Failed to read reward rule: {str(e)}") from e
