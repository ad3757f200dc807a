"""Assigned prize lifecycle.

    AVAILABLE --claim--> PENDING_APPROVAL --approve--> REDEEMED
                         PENDING_APPROVAL --reject--> AVAILABLE (claimed_at cleared)
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlmodel import Session, select

from bribebank.database import atomic
from bribebank.errors import AuthorizationError, InvalidStateError, NotFoundError
from bribebank.models.family import User
from bribebank.models.reward import AssignedPrize, PrizeOrigin, PrizeStatus, RewardTemplate
from bribebank.realtime import events
from bribebank.services import recorders
from bribebank.services.guard import assert_family_member, assert_parent, display_name
from bribebank.services.outbox import Outbox

logger = logging.getLogger(__name__)

DEFAULT_PRIZE_EMOJI = "🎁"
WALLET_URL = "/?view=wallet"


def _get_prize(session: Session, prize_id: str) -> AssignedPrize:
    prize = session.get(AssignedPrize, prize_id)
    if prize is None:
        raise NotFoundError("NOT_FOUND")
    return prize


def _transition(session: Session, prize: AssignedPrize, expected: PrizeStatus, **values) -> None:
    result = session.exec(
        update(AssignedPrize)
        .where(AssignedPrize.id == prize.id, AssignedPrize.status == expected)
        .values(**values)
    )
    if result.rowcount == 0:
        raise InvalidStateError("INVALID_STATUS")
    session.refresh(prize)


def list_prizes(family_id: str, actor: User, session: Session) -> list[AssignedPrize]:
    assert_family_member(actor, family_id)
    return list(
        session.exec(
            select(AssignedPrize)
            .where(AssignedPrize.family_id == family_id)
            .order_by(AssignedPrize.assigned_at.desc())
        ).all()
    )


def assign_prize(
    family_id: str,
    template_id: str,
    user_id: str,
    actor: User,
    session: Session,
    outbox: Outbox,
) -> AssignedPrize:
    """Grant a snapshot of a reward template to a family member."""
    parent = assert_family_member(actor, family_id)
    assert_parent(parent)

    template = session.get(RewardTemplate, template_id)
    if template is None or template.family_id != family_id:
        raise NotFoundError("TEMPLATE_NOT_FOUND")
    child = session.get(User, user_id)
    if child is None or child.family_id != family_id:
        raise NotFoundError("USER_NOT_FOUND")

    parent_name = display_name(parent, "Parent")
    child_name = display_name(child, "Child")
    emoji = template.emoji or DEFAULT_PRIZE_EMOJI

    with atomic(session, outbox):
        prize = AssignedPrize(
            family_id=family_id,
            template_id=template.id,
            user_id=child.id,
            assigned_by=parent_name,
            origin=PrizeOrigin.TEMPLATE,
            status=PrizeStatus.AVAILABLE,
            title=template.title,
            emoji=emoji,
            description=template.description,
            type=template.type,
            theme_color=template.theme_color,
        )
        session.add(prize)
        recorders.add_history_event(
            session,
            family_id=family_id,
            user_id=child.id,
            user_name=child_name,
            title=template.title,
            emoji=emoji,
            action=recorders.REWARD_ASSIGNED,
            assigner_name=parent_name,
        )
        recorders.add_notification(
            session, child.id, f"{parent_name} gave you a new reward: {template.title}"
        )
    session.refresh(prize)

    outbox.push(
        child.id,
        f"New reward {emoji}",
        f"{parent_name} gave you: {template.title}",
        tag="reward-assigned",
        type="REWARD_ASSIGNED",
        familyId=family_id,
        assignmentId=prize.id,
        url=WALLET_URL,
    )
    outbox.broadcast(events.wallet_update(family_id, "REWARD_ASSIGNED"))
    return prize


def claim_prize(prize_id: str, actor: User, session: Session, outbox: Outbox) -> AssignedPrize:
    prize = _get_prize(session, prize_id)
    user = assert_family_member(actor, prize.family_id)
    if user.id != prize.user_id:
        raise AuthorizationError("ONLY_ASSIGNEE_CAN_CLAIM")
    if prize.status != PrizeStatus.AVAILABLE:
        raise InvalidStateError("INVALID_STATUS")

    child_name = display_name(user, "Child")
    title = prize.title or "Reward"
    emoji = prize.emoji or DEFAULT_PRIZE_EMOJI

    with atomic(session, outbox):
        _transition(
            session,
            prize,
            PrizeStatus.AVAILABLE,
            status=PrizeStatus.PENDING_APPROVAL,
            claimed_at=datetime.now(timezone.utc),
        )
        recorders.add_history_event(
            session,
            family_id=prize.family_id,
            user_id=prize.user_id,
            user_name=child_name,
            title=title,
            emoji=emoji,
            action=recorders.REWARD_CLAIMED,
            assigner_name=child_name,
        )
        parents = recorders.notify_parents(
            session, prize.family_id, f"{child_name} wants to claim their reward: {title}"
        )

    outbox.push_many(
        [p.id for p in parents],
        f"Reward claimed {emoji}",
        f"{child_name} wants to use: {title}",
        tag="reward-claimed",
        type="REWARD_CLAIMED",
        familyId=prize.family_id,
        assignmentId=prize.id,
        url="/?view=admin&adminTab=approvals",
    )
    outbox.broadcast(events.child_action(prize.family_id, "REWARD_CLAIMED", prize.id, user.id))
    return prize


def _review_prize(
    prize_id: str,
    actor: User,
    session: Session,
    outbox: Outbox,
    *,
    approve: bool,
) -> AssignedPrize:
    prize = _get_prize(session, prize_id)
    parent = assert_family_member(actor, prize.family_id)
    assert_parent(parent)
    if prize.status != PrizeStatus.PENDING_APPROVAL:
        raise InvalidStateError("INVALID_STATUS")

    child = session.get(User, prize.user_id)
    parent_name = display_name(parent, "Parent")
    child_name = display_name(child, "Child")
    title = prize.title or "Reward"
    emoji = prize.emoji or DEFAULT_PRIZE_EMOJI

    if approve:
        values = {"status": PrizeStatus.REDEEMED, "redeemed_at": datetime.now(timezone.utc)}
        action, verb, reason = recorders.REWARD_APPROVED, "approved", "REWARD_APPROVED"
    else:
        values = {"status": PrizeStatus.AVAILABLE, "claimed_at": None}
        action, verb, reason = recorders.REWARD_REJECTED, "rejected", "REWARD_REJECTED"

    with atomic(session, outbox):
        _transition(session, prize, PrizeStatus.PENDING_APPROVAL, **values)
        recorders.add_history_event(
            session,
            family_id=prize.family_id,
            user_id=prize.user_id,
            user_name=child_name,
            title=title,
            emoji=emoji,
            action=action,
            assigner_name=parent_name,
        )
        recorders.add_notification(session, prize.user_id, f"{parent_name} {verb} your reward: {title}")

    outbox.push(
        prize.user_id,
        f"Reward {verb} {emoji}",
        f"{parent_name} {verb} your reward: {title}",
        tag=f"reward-{verb}",
        type=reason,
        familyId=prize.family_id,
        assignmentId=prize.id,
        url=WALLET_URL,
    )
    outbox.broadcast(events.wallet_update(prize.family_id, reason))
    logger.info("Prize %s %s by %s", prize.id, verb, parent.id)
    return prize


def approve_prize(prize_id: str, actor: User, session: Session, outbox: Outbox) -> AssignedPrize:
    return _review_prize(prize_id, actor, session, outbox, approve=True)


def reject_prize(prize_id: str, actor: User, session: Session, outbox: Outbox) -> AssignedPrize:
    """Send a claim back: the prize returns to the child's available pool."""
    return _review_prize(prize_id, actor, session, outbox, approve=False)


def delete_prize(prize_id: str, actor: User, session: Session, outbox: Outbox) -> None:
    prize = _get_prize(session, prize_id)
    parent = assert_family_member(actor, prize.family_id)
    assert_parent(parent)

    family_id = prize.family_id
    with atomic(session, outbox):
        session.delete(prize)
    outbox.broadcast(events.wallet_update(family_id, "REWARD_DELETED"))
