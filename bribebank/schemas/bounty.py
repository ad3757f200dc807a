"""Bounty template and assignment schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from bribebank.models.bounty import BountyStatus, RewardKind
from bribebank.schemas.auth import MemberSummary
from bribebank.schemas.common import ApiModel, PatchModel
from bribebank.schemas.reward import PrizeResponse


class BountyTemplateCreate(ApiModel):
    title: str = Field(min_length=1)
    emoji: str = Field(min_length=1)
    reward_type: RewardKind = RewardKind.VALUE
    reward_value: str = Field(min_length=1)
    is_fcfs: bool = False
    reward_template_id: Optional[str] = None
    theme_color: Optional[str] = None


class BountyTemplateUpdate(PatchModel):
    not_nullable = ("title", "emoji", "reward_type", "reward_value", "is_fcfs")

    title: Optional[str] = Field(default=None, min_length=1)
    emoji: Optional[str] = Field(default=None, min_length=1)
    reward_type: Optional[RewardKind] = None
    reward_value: Optional[str] = Field(default=None, min_length=1)
    is_fcfs: Optional[bool] = None
    reward_template_id: Optional[str] = None
    theme_color: Optional[str] = None


class BountyTemplateResponse(ApiModel):
    id: str
    family_id: str
    title: str
    emoji: str
    reward_type: RewardKind
    reward_value: str
    is_fcfs: bool
    reward_template_id: Optional[str]
    theme_color: Optional[str]
    created_at: datetime


class AssignBountyRequest(ApiModel):
    bounty_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class BountyAssignmentResponse(ApiModel):
    id: str
    family_id: str
    bounty_id: str
    user_id: str
    assigned_by: str
    status: BountyStatus
    assigned_at: datetime
    completed_at: Optional[datetime]
    bounty: Optional[BountyTemplateResponse] = None
    user: Optional[MemberSummary] = None


class VerifyResponse(ApiModel):
    assignment: BountyAssignmentResponse
    prize: Optional[PrizeResponse] = None
    tickets_awarded: Optional[int] = None
