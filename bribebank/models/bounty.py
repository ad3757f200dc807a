"""Bounty template and assignment models."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


class RewardKind(str, Enum):
    VALUE = "VALUE"  # free-text reward, paid out as an AssignedPrize
    TICKETS = "TICKETS"  # reward_value is a ticket count


class BountyStatus(str, Enum):
    OFFERED = "OFFERED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    VERIFIED = "VERIFIED"


class BountyTemplate(SQLModel, table=True):
    __tablename__ = "bounty_templates"

    id: str = Field(default_factory=lambda: f"bty_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    title: str
    emoji: str = Field(default="🧹")
    reward_type: RewardKind = Field(default=RewardKind.VALUE)
    reward_value: str
    is_fcfs: bool = Field(default=False)
    # No FK: the reward template may be deleted later, verify falls back to a synthesized snapshot
    reward_template_id: Optional[str] = None
    theme_color: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class BountyAssignment(SQLModel, table=True):
    __tablename__ = "bounty_assignments"

    id: str = Field(default_factory=lambda: f"bta_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    bounty_id: str = Field(foreign_key="bounty_templates.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    assigned_by: str  # display name snapshot
    status: BountyStatus = Field(default=BountyStatus.OFFERED, index=True)
    assigned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
