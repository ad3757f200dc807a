"""Security utilities: JWT tokens, password hashing, join codes."""

import secrets
import string
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from bribebank.config import settings


# --- Password Hashing ---

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return bcrypt.checkpw(password.encode(), hashed.encode())


# --- JWT Tokens ---

def create_access_token(user_id: str, family_id: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": user_id,
        "fam": family_id,
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


# --- Join codes ---

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_join_code() -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(settings.join_code_length))


def join_code_expiry() -> datetime:
    return datetime.now(timezone.utc) + timedelta(hours=settings.join_code_expire_hours)


# --- Avatars ---

AVATAR_COLORS = [
    "bg-pink-400",
    "bg-teal-400",
    "bg-blue-500",
    "bg-purple-500",
    "bg-orange-400",
    "bg-green-500",
    "bg-red-400",
    "bg-indigo-500",
]


def pick_avatar_color() -> str:
    return secrets.choice(AVATAR_COLORS)
