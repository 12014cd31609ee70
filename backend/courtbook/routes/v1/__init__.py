# backend/courtbook/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import bookings, courts, joins, promotions, rewards

__all__ = ["bookings", "courts", "joins", "promotions", "rewards"]
