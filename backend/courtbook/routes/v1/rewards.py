# backend/courtbook/routes/v1/rewards.py
"""
Reward routes - API v1

    GET /summary - Balance, lifetime totals and recent ledger entries
"""

import asyncio

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_current_user_id, get_reward_service
from ...schemas.reward import RewardHistoryItem, RewardSummaryResponse
from ...services.reward_service import RewardService

router = APIRouter(tags=["rewards-v1"])


@router.get("/summary", response_model=RewardSummaryResponse)
async def get_reward_summary(
    history_limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    reward_service: RewardService = Depends(get_reward_service),
) -> RewardSummaryResponse:
    summary = await asyncio.to_thread(
        reward_service.get_summary, user_id, history_limit=history_limit
    )
    return RewardSummaryResponse(
        user_id=summary["user_id"],
        balance=summary["balance"],
        total_earned=summary["total_earned"],
        total_redeemed=summary["total_redeemed"],
        history=[RewardHistoryItem.model_validate(entry) for entry in summary["history"]],
    )
