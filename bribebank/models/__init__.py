"""BribeBank Database Models."""

from bribebank.models.family import Family, Role, User
from bribebank.models.bounty import BountyAssignment, BountyStatus, BountyTemplate, RewardKind
from bribebank.models.reward import (
    AssignedPrize,
    PrizeOrigin,
    PrizeStatus,
    PrizeType,
    RewardTemplate,
)
from bribebank.models.store import StoreItem, WheelSegment
from bribebank.models.activity import HistoryEvent, Notification, PushSubscription

__all__ = [
    "Family",
    "Role",
    "User",
    "BountyTemplate",
    "BountyAssignment",
    "BountyStatus",
    "RewardKind",
    "RewardTemplate",
    "AssignedPrize",
    "PrizeOrigin",
    "PrizeStatus",
    "PrizeType",
    "StoreItem",
    "WheelSegment",
    "HistoryEvent",
    "Notification",
    "PushSubscription",
]
