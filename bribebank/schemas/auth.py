"""Auth and family membership schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from bribebank.models.family import Role
from bribebank.schemas.common import ApiModel, PatchModel


# --- Registration / login ---

class RegisterRequest(ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    family_name: str = Field(min_length=1)


class JoinRequest(ApiModel):
    join_code: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    display_name: str = Field(min_length=1)


class LoginRequest(ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenResponse(ApiModel):
    token: str
    user_id: str
    family_id: str
    join_code: Optional[str] = None
    family_name: Optional[str] = None


class JoinCodeResponse(ApiModel):
    join_code: str
    expires: datetime


# --- Users ---

class UserResponse(ApiModel):
    id: str
    family_id: str
    username: str
    display_name: str
    role: Role
    avatar_color: Optional[str]
    ticket_balance: int


class MemberSummary(ApiModel):
    id: str
    display_name: str
    role: Role


class MeResponse(UserResponse):
    family_name: str
    join_code: Optional[str] = None
    join_code_expiry: Optional[datetime] = None


class CreateMemberRequest(ApiModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    role: Role = Role.CHILD


class UpdateUserRequest(PatchModel):
    not_nullable = ("username", "display_name", "role")

    username: Optional[str] = Field(default=None, min_length=1)
    display_name: Optional[str] = Field(default=None, min_length=1)
    role: Optional[Role] = None
    avatar_color: Optional[str] = None


class PasswordChangeRequest(ApiModel):
    new_password: str = Field(min_length=1)
