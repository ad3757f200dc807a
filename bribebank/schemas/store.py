"""Store, ticket and wheel schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from bribebank.schemas.common import ApiModel, PatchModel


# --- Store ---

class StoreItemCreate(ApiModel):
    title: str = Field(min_length=1)
    cost: int = Field(ge=0)
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    description: Optional[str] = None


class StoreItemUpdate(PatchModel):
    not_nullable = ("title", "cost")

    title: Optional[str] = Field(default=None, min_length=1)
    cost: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    description: Optional[str] = None


class StoreItemResponse(ApiModel):
    id: str
    family_id: str
    title: str
    cost: int
    image_url: Optional[str]
    product_url: Optional[str]
    description: Optional[str]
    created_at: datetime


class PurchaseRequest(ApiModel):
    user_id: Optional[str] = None  # defaults to the caller


class PurchaseResponse(ApiModel):
    success: bool = True
    ticket_balance: int
    assignment_id: str


# --- Tickets ---

class TicketGrantRequest(ApiModel):
    amount: Any = None  # validated as a positive integer by the ledger


class TicketBalanceResponse(ApiModel):
    user_id: str
    ticket_balance: int


# --- Wheel ---

class WheelSegmentIn(ApiModel):
    label: str = Field(min_length=1)
    prob: float
    color: Optional[str] = None
    is_losing: Optional[bool] = None
    emoji: Optional[str] = None


class WheelSegmentResponse(ApiModel):
    id: str
    family_id: str
    position: int
    label: str
    color: Optional[str]
    prob: float
    is_losing: bool
    emoji: str


class WheelUpdateRequest(ApiModel):
    segments: list[WheelSegmentIn]
    spin_cost: Optional[int] = None


class WheelUpdateResponse(ApiModel):
    segments: list[WheelSegmentResponse]
    spin_cost: int


class WheelConfigResponse(ApiModel):
    spin_cost: int


class SpinRequest(ApiModel):
    user_id: Optional[str] = None  # defaults to the caller


class SpinResponse(ApiModel):
    won: bool
    prize: str
    emoji: str
    new_balance: int
    assignment_id: Optional[str] = None
