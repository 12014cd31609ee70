"""Promotion schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from ._strict_base import StrictModel, StrictRequestModel
from .base import Percent


class PromotionVerifyRequest(StrictRequestModel):
    code: str = Field(..., min_length=1, max_length=32)


class PromotionSummary(StrictModel):
    code: str
    description: Optional[str] = None
    discount_percent: Percent
    end_date: datetime


class PromotionVerifyResponse(StrictModel):
    valid: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    promotion: Optional[PromotionSummary] = None
