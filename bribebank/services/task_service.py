"""Bounty assignment lifecycle.

    OFFERED --accept--> IN_PROGRESS --complete--> COMPLETED --verify--> VERIFIED

An OFFERED assignment may be withdrawn by its child; a parent may delete
an assignment in any state. Each operation commits its state change,
history rows, notifications and ticket credit in one transaction and
records realtime/push side effects in the outbox for after commit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, update
from sqlmodel import Session, select

from bribebank.database import atomic
from bribebank.errors import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from bribebank.models.bounty import BountyAssignment, BountyStatus, BountyTemplate, RewardKind
from bribebank.models.family import User
from bribebank.models.reward import AssignedPrize, PrizeOrigin, PrizeStatus, PrizeType, RewardTemplate
from bribebank.realtime import events
from bribebank.services import ledger, recorders
from bribebank.services.guard import assert_family_member, assert_parent, display_name
from bribebank.services.outbox import Outbox

logger = logging.getLogger(__name__)

DEFAULT_TASK_EMOJI = "🧹"
FALLBACK_REWARD_EMOJI = "💵"
FALLBACK_REWARD_COLOR = "#22c55e"
TICKET_EMOJI = "🎟️"

WALLET_URL = "/?view=wallet"
APPROVALS_URL = "/?view=admin&adminTab=approvals"


@dataclass
class VerifyResult:
    assignment: BountyAssignment
    prize: Optional[AssignedPrize] = None
    tickets_awarded: Optional[int] = None


def _get_assignment(session: Session, assignment_id: str) -> BountyAssignment:
    assignment = session.get(BountyAssignment, assignment_id)
    if assignment is None:
        raise NotFoundError("NOT_FOUND")
    return assignment


def _get_bounty(session: Session, bounty_id: str) -> BountyTemplate:
    bounty = session.get(BountyTemplate, bounty_id)
    if bounty is None:
        raise NotFoundError("BOUNTY_NOT_FOUND")
    return bounty


def _transition(
    session: Session, assignment: BountyAssignment, expected: BountyStatus, **values
) -> BountyAssignment:
    """Move an assignment out of ``expected`` only if it is still there."""
    result = session.exec(
        update(BountyAssignment)
        .where(BountyAssignment.id == assignment.id, BountyAssignment.status == expected)
        .values(**values)
    )
    if result.rowcount == 0:
        raise InvalidStateError("INVALID_STATUS")
    session.refresh(assignment)
    return assignment


def list_assignments(family_id: str, actor: User, session: Session) -> list[BountyAssignment]:
    assert_family_member(actor, family_id)
    return list(
        session.exec(
            select(BountyAssignment)
            .where(BountyAssignment.family_id == family_id)
            .order_by(BountyAssignment.assigned_at.desc())
        ).all()
    )


def assign_bounty(
    family_id: str,
    bounty_id: str,
    user_id: str,
    actor: User,
    session: Session,
    outbox: Outbox,
) -> BountyAssignment:
    """Offer a bounty to a family member."""
    assert_family_member(actor, family_id)
    assert_parent(actor)

    bounty = session.get(BountyTemplate, bounty_id)
    if bounty is None or bounty.family_id != family_id:
        raise NotFoundError("BOUNTY_NOT_FOUND")

    child = session.get(User, user_id)
    if child is None or child.family_id != family_id:
        raise NotFoundError("USER_NOT_FOUND")
    if child.id == actor.id:
        raise ValidationError("CANNOT_ASSIGN_TO_SELF")

    parent_name = display_name(actor, "Parent")
    child_name = display_name(child, "Child")
    emoji = bounty.emoji or DEFAULT_TASK_EMOJI

    with atomic(session, outbox):
        assignment = BountyAssignment(
            family_id=family_id,
            bounty_id=bounty.id,
            user_id=child.id,
            assigned_by=parent_name,
            status=BountyStatus.OFFERED,
        )
        session.add(assignment)
        recorders.add_history_event(
            session,
            family_id=family_id,
            user_id=child.id,
            user_name=child_name,
            title=bounty.title,
            emoji=emoji,
            action=recorders.TASK_ASSIGNED,
            assigner_name=parent_name,
        )
        recorders.add_notification(
            session, child.id, f"{parent_name} assigned you a new task: {bounty.title}"
        )
    session.refresh(assignment)

    outbox.push(
        child.id,
        f"New task {emoji}",
        f"{parent_name} assigned you: {bounty.title}",
        tag="task-assigned",
        type="TASK_ASSIGNED",
        familyId=family_id,
        assignmentId=assignment.id,
        url=WALLET_URL,
    )
    outbox.broadcast(events.wallet_update(family_id, "TASK_ASSIGNED"))
    logger.info("Bounty %s offered to %s (%s)", bounty.id, child.id, assignment.id)
    return assignment


def accept_bounty(
    assignment_id: str, actor: User, session: Session, outbox: Outbox
) -> BountyAssignment:
    """Child accepts an offer. For FCFS bounties every other pending offer is withdrawn.

    The OFFERED -> IN_PROGRESS step is a conditional update, so of two
    concurrent accepts on the same FCFS bounty only the first to write wins;
    the other finds its row deleted or no longer OFFERED.
    """
    assignment = _get_assignment(session, assignment_id)
    user = assert_family_member(actor, assignment.family_id)
    if user.id != assignment.user_id:
        raise AuthorizationError("ONLY_ASSIGNEE_CAN_ACCEPT")
    if assignment.status != BountyStatus.OFFERED:
        raise InvalidStateError("INVALID_STATUS")

    bounty = _get_bounty(session, assignment.bounty_id)
    child_name = display_name(user, "Child")
    emoji = bounty.emoji or DEFAULT_TASK_EMOJI
    loser_ids: list[str] = []

    with atomic(session, outbox):
        _transition(session, assignment, BountyStatus.OFFERED, status=BountyStatus.IN_PROGRESS)

        if bounty.is_fcfs:
            losers = session.exec(
                select(BountyAssignment).where(
                    BountyAssignment.bounty_id == bounty.id,
                    BountyAssignment.family_id == assignment.family_id,
                    BountyAssignment.status == BountyStatus.OFFERED,
                    BountyAssignment.id != assignment.id,
                )
            ).all()
            loser_ids = [loser.id for loser in losers]
            loser_users = sorted({loser.user_id for loser in losers if loser.user_id != user.id})
            if loser_ids:
                session.exec(
                    delete(BountyAssignment).where(BountyAssignment.id.in_(loser_ids))
                )
            for loser_user_id in loser_users:
                recorders.add_notification(
                    session,
                    loser_user_id,
                    f'"{bounty.title}" was claimed by someone else.',
                )
        else:
            loser_users = []

        recorders.add_history_event(
            session,
            family_id=assignment.family_id,
            user_id=assignment.user_id,
            user_name=child_name,
            title=bounty.title,
            emoji=emoji,
            action=recorders.TASK_ACCEPTED,
            assigner_name=child_name,
        )
        parents = recorders.notify_parents(
            session, assignment.family_id, f"{child_name} accepted task: {bounty.title}"
        )

    outbox.push_many(
        [p.id for p in parents],
        f"Task accepted {emoji}",
        f"{child_name} accepted: {bounty.title}",
        tag="task-accepted",
        type="TASK_ACCEPTED",
        familyId=assignment.family_id,
        assignmentId=assignment.id,
        url="/?view=admin",
    )
    outbox.push_many(
        loser_users,
        "Task already taken",
        f'"{bounty.title}" was claimed by someone else.',
        tag="task-claimed",
        type="TASK_CLAIMED_BY_OTHER",
        familyId=assignment.family_id,
        url=WALLET_URL,
    )
    outbox.broadcast(events.wallet_update(assignment.family_id, "TASK_ACCEPTED"))
    if loser_ids:
        logger.info("FCFS bounty %s taken by %s, withdrew %s", bounty.id, user.id, loser_ids)
    return assignment


def complete_bounty(
    assignment_id: str, actor: User, session: Session, outbox: Outbox
) -> BountyAssignment:
    assignment = _get_assignment(session, assignment_id)
    user = assert_family_member(actor, assignment.family_id)
    if user.id != assignment.user_id:
        raise AuthorizationError("ONLY_ASSIGNEE_CAN_COMPLETE")
    if assignment.status != BountyStatus.IN_PROGRESS:
        raise InvalidStateError("INVALID_STATUS")

    bounty = _get_bounty(session, assignment.bounty_id)
    child_name = display_name(user, "Child")
    emoji = bounty.emoji or DEFAULT_TASK_EMOJI

    with atomic(session, outbox):
        _transition(
            session,
            assignment,
            BountyStatus.IN_PROGRESS,
            status=BountyStatus.COMPLETED,
            completed_at=datetime.now(timezone.utc),
        )
        recorders.add_history_event(
            session,
            family_id=assignment.family_id,
            user_id=assignment.user_id,
            user_name=child_name,
            title=bounty.title,
            emoji=emoji,
            action=recorders.TASK_COMPLETED,
            assigner_name=child_name,
        )
        parents = recorders.notify_parents(
            session,
            assignment.family_id,
            f'{child_name} marked task "{bounty.title}" as complete. Waiting for verification.',
        )

    outbox.push_many(
        [p.id for p in parents],
        f"Task needs verification {emoji}",
        f"{child_name} finished: {bounty.title}",
        tag="task-completed",
        type="TASK_COMPLETED",
        familyId=assignment.family_id,
        assignmentId=assignment.id,
        url=APPROVALS_URL,
    )
    outbox.broadcast(
        events.child_action(assignment.family_id, "TASK_COMPLETED", assignment.id, user.id)
    )
    return assignment


def _reward_snapshot(session: Session, bounty: BountyTemplate) -> dict:
    """Display fields for the prize a verified bounty pays out.

    A missing template, or one owned by another family, falls back to a
    prize built from the bounty itself.
    """
    if bounty.reward_template_id:
        template = session.get(RewardTemplate, bounty.reward_template_id)
        if template is not None and template.family_id == bounty.family_id:
            return {
                "template_id": template.id,
                "title": template.title,
                "emoji": template.emoji,
                "description": template.description,
                "type": template.type,
                "theme_color": template.theme_color,
            }
    return {
        "template_id": None,
        "title": bounty.reward_value,
        "emoji": FALLBACK_REWARD_EMOJI,
        "description": f"Reward for completing: {bounty.title}",
        "type": PrizeType.PRIVILEGE,
        "theme_color": FALLBACK_REWARD_COLOR,
    }


def verify_bounty(
    assignment_id: str, actor: User, session: Session, outbox: Outbox
) -> VerifyResult:
    """Parent signs off a completed task and pays out its reward.

    Ticket bounties credit the child's balance and create no prize; all
    other bounties create an AVAILABLE prize snapshot.
    """
    assignment = _get_assignment(session, assignment_id)
    parent = assert_family_member(actor, assignment.family_id)
    assert_parent(parent)
    if parent.id == assignment.user_id:
        raise AuthorizationError("CANNOT_VERIFY_OWN_TASK")
    if assignment.status != BountyStatus.COMPLETED:
        raise InvalidStateError("INVALID_STATUS")

    bounty = _get_bounty(session, assignment.bounty_id)
    child = session.get(User, assignment.user_id)
    if child is None:
        raise NotFoundError("USER_NOT_FOUND")

    tickets = None
    snapshot = None
    if bounty.reward_type == RewardKind.TICKETS:
        tickets = ledger.parse_ticket_amount(bounty.reward_value, "INVALID_TICKET_AMOUNT")
    else:
        snapshot = _reward_snapshot(session, bounty)

    parent_name = display_name(parent, "Parent")
    child_name = display_name(child, "Child")
    emoji = bounty.emoji or DEFAULT_TASK_EMOJI
    result = VerifyResult(assignment=assignment)

    with atomic(session, outbox):
        _transition(
            session,
            assignment,
            BountyStatus.COMPLETED,
            status=BountyStatus.VERIFIED,
            completed_at=assignment.completed_at or datetime.now(timezone.utc),
        )
        recorders.add_history_event(
            session,
            family_id=assignment.family_id,
            user_id=child.id,
            user_name=child_name,
            title=bounty.title,
            emoji=emoji,
            action=recorders.VERIFIED_TASK,
            assigner_name=parent_name,
        )
        if tickets is not None:
            ledger.credit(session, child.id, tickets)
            recorders.add_history_event(
                session,
                family_id=assignment.family_id,
                user_id=child.id,
                user_name=child_name,
                title=f"{tickets} Tickets",
                emoji=TICKET_EMOJI,
                action=recorders.EARNED_TICKETS,
                assigner_name=parent_name,
            )
            recorders.add_notification(
                session, child.id, f'Task "{bounty.title}" verified! You earned {tickets} tickets.'
            )
            result.tickets_awarded = tickets
        else:
            prize = AssignedPrize(
                family_id=assignment.family_id,
                user_id=child.id,
                assigned_by=parent_name,
                origin=PrizeOrigin.TASK_REWARD,
                status=PrizeStatus.AVAILABLE,
                **snapshot,
            )
            session.add(prize)
            recorders.add_notification(
                session, child.id, f'Task "{bounty.title}" verified! Reward added.'
            )
            result.prize = prize

    if result.prize is not None:
        session.refresh(result.prize)

    body = (
        f"You earned {tickets} tickets for {bounty.title}!"
        if tickets is not None
        else f"{bounty.title} verified, reward added to your wallet."
    )
    outbox.push(
        child.id,
        f"Task verified {emoji}",
        body,
        tag="task-verified",
        type="TASK_VERIFIED",
        familyId=assignment.family_id,
        assignmentId=assignment.id,
        url=WALLET_URL,
    )
    outbox.broadcast(events.wallet_update(assignment.family_id, "TASK_VERIFIED"))
    logger.info("Bounty assignment %s verified by %s", assignment.id, parent.id)
    return result


def delete_assignment(assignment_id: str, actor: User, session: Session, outbox: Outbox) -> None:
    """Parents may delete any assignment; a child may only withdraw their own unaccepted offer."""
    assignment = _get_assignment(session, assignment_id)
    user = assert_family_member(actor, assignment.family_id)

    allowed = user.is_parent or (
        user.id == assignment.user_id and assignment.status == BountyStatus.OFFERED
    )
    if not allowed:
        raise AuthorizationError("FORBIDDEN")

    family_id = assignment.family_id
    # a child withdrawing an offer is a rejection
    reason = "TASK_DELETED" if user.is_parent else "TASK_REJECTED"
    with atomic(session, outbox):
        session.delete(assignment)

    outbox.broadcast(events.wallet_update(family_id, reason))
