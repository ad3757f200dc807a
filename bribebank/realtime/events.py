"""Realtime event shapes broadcast to every session of a family.

Clients treat these as refetch hints; payload fields beyond the type are
advisory only.
"""

import time
from typing import Any


def _now_ms() -> int:
    return int(time.time() * 1000)


def connected() -> dict[str, Any]:
    return {"type": "CONNECTED", "message": "connected", "timestamp": _now_ms()}


def wallet_update(family_id: str, reason: str) -> dict[str, Any]:
    return {"type": "WALLET_UPDATE", "familyId": family_id, "reason": reason, "timestamp": _now_ms()}


def child_action(family_id: str, subtype: str, assignment_id: str, user_id: str) -> dict[str, Any]:
    """A child did something a parent needs to act on (TASK_COMPLETED, REWARD_CLAIMED)."""
    return {
        "type": "CHILD_ACTION",
        "familyId": family_id,
        "subtype": subtype,
        "id": assignment_id,
        "userId": user_id,
        "timestamp": _now_ms(),
    }


def template_update(family_id: str, target: str, action: str) -> dict[str, Any]:
    return {
        "type": "TEMPLATE_UPDATE",
        "familyId": family_id,
        "target": target,
        "action": action,
        "timestamp": _now_ms(),
    }


def tickets_given(family_id: str, user_id: str, amount: int, new_balance: int) -> dict[str, Any]:
    return {
        "type": "TICKETS_GIVEN",
        "familyId": family_id,
        "userId": user_id,
        "amount": amount,
        "newBalance": new_balance,
        "timestamp": _now_ms(),
    }


def store_item_changed(family_id: str, item_id: str, action: str) -> dict[str, Any]:
    """action is one of ADDED, UPDATED, DELETED."""
    return {"type": f"STORE_ITEM_{action}", "familyId": family_id, "itemId": item_id, "timestamp": _now_ms()}


def store_purchase(
    family_id: str, user_id: str, item_id: str, assignment_id: str, new_balance: int
) -> dict[str, Any]:
    return {
        "type": "STORE_PURCHASE",
        "familyId": family_id,
        "userId": user_id,
        "itemId": item_id,
        "assignmentId": assignment_id,
        "newBalance": new_balance,
        "timestamp": _now_ms(),
    }
