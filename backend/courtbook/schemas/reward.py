"""Reward points schemas."""

from datetime import datetime
from typing import List, Optional

from ._strict_base import StrictModel


class RewardHistoryItem(StrictModel):
    id: str
    points: int
    action_type: str
    description: Optional[str] = None
    source_id: Optional[str] = None
    created_at: datetime


class RewardSummaryResponse(StrictModel):
    user_id: str
    balance: int
    total_earned: int
    total_redeemed: int
    history: List[RewardHistoryItem]
