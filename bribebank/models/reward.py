"""Reward template and assigned prize models."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class PrizeType(str, Enum):
    FOOD = "FOOD"
    ACTIVITY = "ACTIVITY"
    PRIVILEGE = "PRIVILEGE"
    MONEY = "MONEY"
    CUSTOM = "CUSTOM"


class PrizeStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    REDEEMED = "REDEEMED"


class PrizeOrigin(str, Enum):
    TEMPLATE = "TEMPLATE"  # assigned directly by a parent
    TASK_REWARD = "TASK_REWARD"
    WHEEL = "WHEEL"
    STORE = "STORE"


class RewardTemplate(SQLModel, table=True):
    __tablename__ = "reward_templates"

    id: str = Field(default_factory=lambda: f"rwd_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    title: str
    emoji: str
    description: Optional[str] = None
    type: PrizeType = Field(default=PrizeType.CUSTOM)
    theme_color: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AssignedPrize(SQLModel, table=True):
    """A snapshot of a reward granted to one user.

    Display fields are copied at creation time so later edits to (or
    deletion of) the source template never change a granted prize.
    """

    __tablename__ = "assigned_prizes"

    id: str = Field(default_factory=lambda: f"prz_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    template_id: Optional[str] = None  # no FK, snapshot outlives its template
    user_id: str = Field(foreign_key="users.id", index=True)
    assigned_by: str
    origin: PrizeOrigin = Field(default=PrizeOrigin.TEMPLATE)
    status: PrizeStatus = Field(default=PrizeStatus.AVAILABLE, index=True)
    title: str
    emoji: str
    description: Optional[str] = None
    type: PrizeType = Field(default=PrizeType.PRIVILEGE)
    theme_color: Optional[str] = None
    assigned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    claimed_at: Optional[datetime] = None
    redeemed_at: Optional[datetime] = None
