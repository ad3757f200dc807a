"""Store catalog and prize wheel models."""

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


class StoreItem(SQLModel, table=True):
    __tablename__ = "store_items"

    id: str = Field(default_factory=lambda: f"sto_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    title: str
    cost: int = Field(ge=0)
    image_url: Optional[str] = None
    product_url: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WheelSegment(SQLModel, table=True):
    __tablename__ = "wheel_segments"

    id: str = Field(default_factory=lambda: f"whl_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    position: int  # order of the cumulative-probability walk
    label: str
    color: Optional[str] = None
    prob: float
    is_losing: bool = Field(default=False)
    emoji: str = Field(default="🎁")
