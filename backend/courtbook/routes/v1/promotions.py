# backend/courtbook/routes/v1/promotions.py
"""
Promotion routes - API v1

    POST /verify - Check whether the caller may use a promotion code
"""

import asyncio

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_current_user_id, get_promotion_service
from ...schemas.promotion import PromotionSummary, PromotionVerifyRequest, PromotionVerifyResponse
from ...services.promotion_service import PromotionService

router = APIRouter(tags=["promotions-v1"])


@router.post("/verify", response_model=PromotionVerifyResponse)
async def verify_promotion(
    payload: PromotionVerifyRequest = Body(...),
    user_id: str = Depends(get_current_user_id),
    promotion_service: PromotionService = Depends(get_promotion_service),
) -> PromotionVerifyResponse:
    """Read-only check; nothing is consumed until a booking applies the code."""
    verification = await asyncio.to_thread(promotion_service.verify, payload.code, user_id)
    if not verification.valid:
        return PromotionVerifyResponse(
            valid=False,
            reason=verification.reason.value if verification.reason else None,
            message=verification.message,
        )

    promotion = verification.promotion
    return PromotionVerifyResponse(
        valid=True,
        promotion=PromotionSummary(
            code=promotion.code,
            description=promotion.description,
            discount_percent=promotion.discount_percent,
            end_date=promotion.end_date,
        ),
    )
