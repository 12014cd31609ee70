"""
Helpers for working with SQLAlchemy sessions in a dialect-agnostic way.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import NoInspectionAvailable, UnboundExecutionError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def resolve_session_bind(session: Session) -> Optional[Connection | Engine]:
    """Return the engine/connection bound to a session without direct .bind access."""
    try:
        bind = session.get_bind()
        if bind is not None:
            return bind
    except UnboundExecutionError:
        bind = None

    try:
        insp = inspect(session)
    except NoInspectionAvailable:
        return None

    return getattr(insp, "bind", None)


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """
    Return SQLAlchemy dialect name without touching Session.bind directly.

    Falls back to ``default`` when the bound engine cannot be resolved.
    """
    bind = resolve_session_bind(session)
    if bind is None:
        return default
    dialect = getattr(bind, "dialect", None)
    name = getattr(dialect, "name", None)
    return name or default


def apply_transaction_timeouts(
    session: Session, *, statement_timeout_ms: int, lock_timeout_ms: int
) -> bool:
    """
    Bound how long the current transaction may run or wait on row locks.

    PostgreSQL only; SET LOCAL does not accept bind parameters, so the values
    are coerced to int before interpolation. Returns whether anything was set.
    """
    if get_dialect_name(session) != "postgresql":
        return False

    if statement_timeout_ms > 0:
        session.execute(text(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}"))
    if lock_timeout_ms > 0:
        session.execute(text(f"SET LOCAL lock_timeout = {int(lock_timeout_ms)}"))
    logger.debug(
        "Applied transaction timeouts",
        extra={
            "statement_timeout_ms": statement_timeout_ms,
            "lock_timeout_ms": lock_timeout_ms,
        },
    )
    return True
