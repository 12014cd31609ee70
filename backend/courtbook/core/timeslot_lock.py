"""
Advisory timeslot locks.

A lock is a row in ``timeslot_locks`` keyed by the exact (court, start, end)
triple. It only filters out the obvious collisions before the booking
transaction starts; the transaction's own overlap check under the court row
lock is what guarantees non-overlap. Every call here runs in its own short
session so a lock is visible to other workers as soon as it is taken.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import math
from typing import Callable, Iterator, Optional, Union

from sqlalchemy.orm import Session

from courtbook.core.config import settings
from courtbook.core.exceptions import DuplicateEntryException, SlotHeldException
from courtbook.monitoring.prometheus_metrics import prometheus_metrics
from courtbook.repositories.factory import RepositoryFactory
from courtbook.utils.time_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class Lease:
    """Snapshot of a lock held by ``owner_id``."""

    court_id: str
    start_time: datetime
    end_time: datetime
    owner_id: str
    expires_at: datetime
    renewed: bool = False


@dataclass(frozen=True)
class LockConflict:
    """Returned instead of a lease when someone else holds the key."""

    court_id: str
    start_time: datetime
    end_time: datetime
    holder_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    def to_details(self) -> dict:
        return {
            "court_id": self.court_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "retry_after": self.expires_at.isoformat() if self.expires_at else None,
        }


AcquireResult = Union[Lease, LockConflict]


@contextmanager
def _managed_session(session_factory: Callable[[], Session]) -> Iterator[Session]:
    """Yield a session, rolling back on error and always closing it."""
    session = session_factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class TimeslotLockManager:
    """Acquire, renew and release advisory locks on court timeslots."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        ttl_seconds: Optional[int] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._session_factory = session_factory
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.soft_lock_ttl_seconds
        self._clock = clock or utc_now

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def acquire(
        self,
        court_id: str,
        start_time: datetime,
        end_time: datetime,
        owner_id: str,
        ttl_seconds: Optional[int] = None,
    ) -> AcquireResult:
        """
        Take or renew the lock for the key.

        Returns a ``Lease`` on success and a ``LockConflict`` when a live lock
        belongs to another owner. Never raises on contention.
        """
        start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        now = self._now()
        expires_at = now + timedelta(seconds=ttl)

        try:
            with _managed_session(self._session_factory) as session:
                repo = RepositoryFactory.create_timeslot_lock_repository(session)
                swept = repo.delete_expired_for_key(court_id, start_time, end_time, now)
                if swept:
                    logger.debug(
                        "timeslot_lock_swept",
                        extra={"court_id": court_id, "start_time": start_time.isoformat()},
                    )

                existing = repo.get_for_key(court_id, start_time, end_time)
                if existing is None:
                    repo.create(
                        court_id=court_id,
                        start_time=start_time,
                        end_time=end_time,
                        user_id=owner_id,
                        expires_at=expires_at,
                    )
                    session.commit()
                    prometheus_metrics.record_timeslot_lock("acquire", "success")
                    return Lease(court_id, start_time, end_time, owner_id, expires_at)

                if existing.user_id == owner_id:
                    existing.expires_at = expires_at
                    session.commit()
                    prometheus_metrics.record_timeslot_lock("acquire", "renewed")
                    return Lease(court_id, start_time, end_time, owner_id, expires_at, renewed=True)

                holder_id = existing.user_id
                holder_expires = ensure_utc(existing.expires_at)
                session.commit()
        except DuplicateEntryException:
            # Lost the check-then-insert race to another worker
            prometheus_metrics.record_timeslot_lock("acquire", "blocked")
            logger.info(
                "timeslot_lock_insert_race",
                extra={"court_id": court_id, "owner_id": owner_id},
            )
            return LockConflict(court_id, start_time, end_time)

        prometheus_metrics.record_timeslot_lock("acquire", "blocked")
        logger.info(
            "timeslot_lock_blocked",
            extra={"court_id": court_id, "owner_id": owner_id, "holder_id": holder_id},
        )
        return LockConflict(court_id, start_time, end_time, holder_id, holder_expires)

    def release(self, court_id: str, start_time: datetime, end_time: datetime, owner_id: str) -> bool:
        """Delete the owner's lock for the key. Idempotent; returns whether a row went away."""
        start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)
        with _managed_session(self._session_factory) as session:
            repo = RepositoryFactory.create_timeslot_lock_repository(session)
            deleted = repo.delete_for_owner(court_id, start_time, end_time, owner_id)
            session.commit()

        prometheus_metrics.record_timeslot_lock("release", "success" if deleted else "not_found")
        return bool(deleted)

    def check(self, court_id: str, start_time: datetime, end_time: datetime) -> Optional[Lease]:
        """Return the live lock for the key, if any, without modifying anything."""
        start_time, end_time = ensure_utc(start_time), ensure_utc(end_time)
        with _managed_session(self._session_factory) as session:
            repo = RepositoryFactory.create_timeslot_lock_repository(session)
            existing = repo.get_for_key(court_id, start_time, end_time)
            if existing is None:
                return None
            expires_at = ensure_utc(existing.expires_at)
            if expires_at <= self._now():
                return None
            return Lease(court_id, start_time, end_time, existing.user_id, expires_at)

    def sweep_expired(self) -> int:
        """Purge every expired lock. Meant for maintenance jobs; acquire sweeps lazily."""
        with _managed_session(self._session_factory) as session:
            repo = RepositoryFactory.create_timeslot_lock_repository(session)
            deleted = repo.delete_all_expired(self._now())
            session.commit()
        if deleted:
            logger.info("timeslot_locks_swept", extra={"count": deleted})
        return deleted

    @contextmanager
    def lease(
        self,
        court_id: str,
        start_time: datetime,
        end_time: datetime,
        owner_id: str,
        ttl_seconds: Optional[int] = None,
    ) -> Iterator[Lease]:
        """
        Hold the lock for the duration of the block.

        Raises ``SlotHeldException`` on conflict. The lock is released on
        every exit path; a failed release is logged and left to expire.
        """
        result = self.acquire(court_id, start_time, end_time, owner_id, ttl_seconds)
        if isinstance(result, LockConflict):
            retry_after = None
            if result.expires_at is not None:
                retry_after = math.ceil((result.expires_at - self._now()).total_seconds())
            raise SlotHeldException(details=result.to_details(), retry_after_seconds=retry_after)
        try:
            yield result
        finally:
            try:
                self.release(court_id, start_time, end_time, owner_id)
            except Exception as exc:
                prometheus_metrics.record_timeslot_lock("release", "error")
                logger.warning(
                    "timeslot_lock_release_failed",
                    extra={
                        "court_id": court_id,
                        "owner_id": owner_id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
