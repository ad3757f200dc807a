"""Family and User models."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel


class Role(str, Enum):
    PARENT = "PARENT"
    CHILD = "CHILD"


class Family(SQLModel, table=True):
    __tablename__ = "families"

    id: str = Field(default_factory=lambda: f"fam_{secrets.token_hex(4)}", primary_key=True)
    name: str
    join_code: Optional[str] = Field(default=None, index=True)
    join_code_expiry: Optional[datetime] = None
    wheel_spin_cost: int = Field(default=1, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (CheckConstraint("ticket_balance >= 0", name="ck_users_ticket_balance"),)

    id: str = Field(default_factory=lambda: f"usr_{secrets.token_hex(4)}", primary_key=True)
    family_id: str = Field(foreign_key="families.id", index=True)
    username: str = Field(unique=True, index=True)  # canonical lowercase
    password_hash: str
    display_name: str
    role: Role = Field(default=Role.CHILD)
    avatar_color: Optional[str] = None
    ticket_balance: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_parent(self) -> bool:
        return self.role == Role.PARENT
