"""Parent-managed catalogs: bounty templates, reward templates, store items."""

from typing import Any, Optional

from sqlalchemy import delete
from sqlmodel import Session, SQLModel, select

from bribebank.database import atomic
from bribebank.errors import NotFoundError
from bribebank.models.bounty import BountyAssignment, BountyTemplate, RewardKind
from bribebank.models.family import User
from bribebank.models.reward import RewardTemplate
from bribebank.models.store import StoreItem
from bribebank.realtime import events
from bribebank.services import ledger
from bribebank.services.guard import assert_family_member, assert_parent
from bribebank.services.outbox import Outbox

BOUNTY_TEMPLATE = "BOUNTY_TEMPLATE"
REWARD_TEMPLATE = "REWARD_TEMPLATE"


def _list(model, family_id: str, actor: User, session: Session, newest_first: bool = False):
    assert_family_member(actor, family_id)
    order = model.created_at.desc() if newest_first else model.created_at
    return list(session.exec(select(model).where(model.family_id == family_id).order_by(order)).all())


def _get_for_parent(model, obj_id: str, actor: User, session: Session, not_found: str):
    obj = session.get(model, obj_id)
    if obj is None:
        raise NotFoundError(not_found)
    assert_parent(assert_family_member(actor, obj.family_id))
    return obj


def _apply(obj: SQLModel, changes: dict[str, Any]) -> None:
    for key, value in changes.items():
        setattr(obj, key, value)


def _check_bounty_reward(reward_type: RewardKind, reward_value: str) -> None:
    if reward_type == RewardKind.TICKETS:
        ledger.parse_ticket_amount(reward_value, "INVALID_TICKET_AMOUNT")


def _check_reward_link(session: Session, family_id: str, reward_template_id: Optional[str]) -> None:
    """A bounty may only pay out a reward template of its own family."""
    if not reward_template_id:
        return
    template = session.get(RewardTemplate, reward_template_id)
    if template is None or template.family_id != family_id:
        raise NotFoundError("TEMPLATE_NOT_FOUND")


# --- Bounty templates ---

def list_bounties(family_id: str, actor: User, session: Session) -> list[BountyTemplate]:
    return _list(BountyTemplate, family_id, actor, session)


def create_bounty(
    family_id: str, fields: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> BountyTemplate:
    assert_parent(assert_family_member(actor, family_id))
    bounty = BountyTemplate(family_id=family_id, **fields)
    _check_bounty_reward(bounty.reward_type, bounty.reward_value)
    _check_reward_link(session, family_id, bounty.reward_template_id)
    with atomic(session, outbox):
        session.add(bounty)
    session.refresh(bounty)
    outbox.broadcast(events.template_update(family_id, BOUNTY_TEMPLATE, "CREATED"))
    return bounty


def update_bounty(
    bounty_id: str, changes: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> BountyTemplate:
    bounty = _get_for_parent(BountyTemplate, bounty_id, actor, session, "NOT_FOUND")
    _check_bounty_reward(
        changes.get("reward_type", bounty.reward_type),
        changes.get("reward_value", bounty.reward_value),
    )
    _check_reward_link(
        session, bounty.family_id, changes.get("reward_template_id", bounty.reward_template_id)
    )
    with atomic(session, outbox):
        _apply(bounty, changes)
        session.add(bounty)
    session.refresh(bounty)
    outbox.broadcast(events.template_update(bounty.family_id, BOUNTY_TEMPLATE, "UPDATED"))
    return bounty


def delete_bounty(bounty_id: str, actor: User, session: Session, outbox: Outbox) -> None:
    """Delete a bounty template together with all of its assignments."""
    bounty = _get_for_parent(BountyTemplate, bounty_id, actor, session, "NOT_FOUND")
    family_id = bounty.family_id
    with atomic(session, outbox):
        session.exec(delete(BountyAssignment).where(BountyAssignment.bounty_id == bounty_id))
        session.delete(bounty)
    outbox.broadcast(events.template_update(family_id, BOUNTY_TEMPLATE, "DELETED"))


# --- Reward templates ---

def list_rewards(family_id: str, actor: User, session: Session) -> list[RewardTemplate]:
    return _list(RewardTemplate, family_id, actor, session)


def create_reward(
    family_id: str, fields: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> RewardTemplate:
    assert_parent(assert_family_member(actor, family_id))
    reward = RewardTemplate(family_id=family_id, **fields)
    with atomic(session, outbox):
        session.add(reward)
    session.refresh(reward)
    outbox.broadcast(events.template_update(family_id, REWARD_TEMPLATE, "CREATED"))
    return reward


def update_reward(
    reward_id: str, changes: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> RewardTemplate:
    """Edits never touch prizes already granted from this template."""
    reward = _get_for_parent(RewardTemplate, reward_id, actor, session, "NOT_FOUND")
    with atomic(session, outbox):
        _apply(reward, changes)
        session.add(reward)
    session.refresh(reward)
    outbox.broadcast(events.template_update(reward.family_id, REWARD_TEMPLATE, "UPDATED"))
    return reward


def delete_reward(reward_id: str, actor: User, session: Session, outbox: Outbox) -> None:
    reward = _get_for_parent(RewardTemplate, reward_id, actor, session, "NOT_FOUND")
    family_id = reward.family_id
    with atomic(session, outbox):
        session.delete(reward)
    outbox.broadcast(events.template_update(family_id, REWARD_TEMPLATE, "DELETED"))


# --- Store items ---

def list_store_items(family_id: str, actor: User, session: Session) -> list[StoreItem]:
    return _list(StoreItem, family_id, actor, session, newest_first=True)


def create_store_item(
    family_id: str, fields: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> StoreItem:
    assert_parent(assert_family_member(actor, family_id))
    item = StoreItem(family_id=family_id, **fields)
    with atomic(session, outbox):
        session.add(item)
    session.refresh(item)
    outbox.broadcast(events.store_item_changed(family_id, item.id, "ADDED"))
    return item


def update_store_item(
    item_id: str, changes: dict[str, Any], actor: User, session: Session, outbox: Outbox
) -> StoreItem:
    item = _get_for_parent(StoreItem, item_id, actor, session, "ITEM_NOT_FOUND")
    with atomic(session, outbox):
        _apply(item, changes)
        session.add(item)
    session.refresh(item)
    outbox.broadcast(events.store_item_changed(item.family_id, item.id, "UPDATED"))
    return item


def delete_store_item(item_id: str, actor: User, session: Session, outbox: Outbox) -> None:
    item = _get_for_parent(StoreItem, item_id, actor, session, "ITEM_NOT_FOUND")
    family_id = item.family_id
    with atomic(session, outbox):
        session.delete(item)
    outbox.broadcast(events.store_item_changed(family_id, item_id, "DELETED"))
