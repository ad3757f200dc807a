"""Reward template and assigned prize schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from bribebank.models.reward import PrizeOrigin, PrizeStatus, PrizeType
from bribebank.schemas.common import ApiModel, PatchModel


class RewardTemplateCreate(ApiModel):
    title: str = Field(min_length=1)
    emoji: str = Field(min_length=1)
    description: Optional[str] = None
    type: PrizeType = PrizeType.CUSTOM
    theme_color: Optional[str] = None


class RewardTemplateUpdate(PatchModel):
    not_nullable = ("title", "emoji", "type")

    title: Optional[str] = Field(default=None, min_length=1)
    emoji: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[PrizeType] = None
    theme_color: Optional[str] = None


class RewardTemplateResponse(ApiModel):
    id: str
    family_id: str
    title: str
    emoji: str
    description: Optional[str]
    type: PrizeType
    theme_color: Optional[str]
    created_at: datetime


class AssignPrizeRequest(ApiModel):
    template_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class PrizeResponse(ApiModel):
    id: str
    family_id: str
    template_id: Optional[str]
    user_id: str
    assigned_by: str
    origin: PrizeOrigin
    status: PrizeStatus
    title: str
    emoji: str
    description: Optional[str]
    type: PrizeType
    theme_color: Optional[str]
    assigned_at: datetime
    claimed_at: Optional[datetime]
    redeemed_at: Optional[datetime]
