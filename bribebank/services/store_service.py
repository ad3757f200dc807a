"""Ticket-gated store purchases and direct ticket grants."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlmodel import Session

from bribebank.database import atomic
from bribebank.errors import AuthorizationError, NotFoundError
from bribebank.models.family import User
from bribebank.models.reward import AssignedPrize, PrizeOrigin, PrizeStatus, PrizeType
from bribebank.models.store import StoreItem
from bribebank.realtime import events
from bribebank.services import ledger, recorders
from bribebank.services.guard import assert_family_member, assert_parent, display_name
from bribebank.services.outbox import Outbox

logger = logging.getLogger(__name__)

STORE_PREFIX = "STORE: "
STORE_EMOJI = "🛍️"
STORE_THEME = "bg-teal-100 text-teal-800 border-teal-200"
STORE_ASSIGNER = "Store"
TICKET_EMOJI = "🎟️"


@dataclass
class PurchaseResult:
    ticket_balance: int
    prize: AssignedPrize


def purchase(
    item_id: str, user_id: str, actor: User, session: Session, outbox: Outbox
) -> PurchaseResult:
    """Spend tickets on a store item.

    The resulting prize starts PENDING_APPROVAL: a parent still has to
    fulfil the purchase.
    """
    item = session.get(StoreItem, item_id)
    if item is None:
        raise NotFoundError("ITEM_NOT_FOUND")
    buyer = session.get(User, user_id)
    if buyer is None:
        raise NotFoundError("USER_NOT_FOUND")
    if item.family_id != buyer.family_id:
        raise AuthorizationError("FORBIDDEN")
    assert_family_member(actor, buyer.family_id)

    buyer_name = display_name(buyer, "Child")
    now = datetime.now(timezone.utc)

    with atomic(session, outbox):
        new_balance = ledger.debit(session, buyer.id, item.cost)
        prize = AssignedPrize(
            family_id=buyer.family_id,
            user_id=buyer.id,
            assigned_by=STORE_ASSIGNER,
            origin=PrizeOrigin.STORE,
            status=PrizeStatus.PENDING_APPROVAL,
            title=f"{STORE_PREFIX}{item.title}",
            emoji=STORE_EMOJI,
            description=f"Bought from store. Link: {item.product_url or 'N/A'}",
            type=PrizeType.PRIVILEGE,
            theme_color=STORE_THEME,
            claimed_at=now,
        )
        session.add(prize)
        recorders.add_history_event(
            session,
            family_id=buyer.family_id,
            user_id=buyer.id,
            user_name=buyer_name,
            title=item.title,
            emoji=STORE_EMOJI,
            action=recorders.STORE_PURCHASE,
            assigner_name=buyer_name,
        )
        parents = recorders.notify_parents(
            session,
            buyer.family_id,
            f'{buyer_name} bought "{item.title}" from the store! Please fulfill.',
        )
    session.refresh(prize)

    outbox.push_many(
        [p.id for p in parents],
        f"Store Purchase Request {STORE_EMOJI}",
        f'{buyer_name} bought "{item.title}" - Please fulfill!',
        tag="store-purchase",
        type="STORE_PURCHASE",
        familyId=buyer.family_id,
        assignmentId=prize.id,
        url="/?view=admin&adminTab=approvals",
    )
    outbox.broadcast(
        events.store_purchase(buyer.family_id, buyer.id, item.id, prize.id, new_balance)
    )
    logger.info("User %s bought %s for %d tickets", buyer.id, item.id, item.cost)
    return PurchaseResult(ticket_balance=new_balance, prize=prize)


def give_tickets(
    user_id: str, amount, actor: User, session: Session, outbox: Outbox
) -> int:
    """Parent grants tickets to a family member. Returns the new balance."""
    amount = ledger.parse_ticket_amount(amount)
    target = session.get(User, user_id)
    if target is None:
        raise NotFoundError("USER_NOT_FOUND")
    parent = assert_family_member(actor, target.family_id)
    assert_parent(parent)

    parent_name = display_name(parent, "Parent")
    target_name = display_name(target, "Child")

    with atomic(session, outbox):
        new_balance = ledger.credit(session, target.id, amount)
        recorders.add_history_event(
            session,
            family_id=target.family_id,
            user_id=target.id,
            user_name=target_name,
            title=f"{amount} Tickets",
            emoji=TICKET_EMOJI,
            action=recorders.RECEIVED_TICKETS,
            assigner_name=parent_name,
        )
        recorders.add_notification(session, target.id, f"{parent_name} gave you {amount} tickets!")

    outbox.push(
        target.id,
        f"You received tickets! {TICKET_EMOJI}",
        f"{parent_name} gave you {amount} tickets!",
        tag="tickets-received",
        type="TICKETS_GIVEN",
        familyId=target.family_id,
        userId=target.id,
        url="/?view=wallet&walletTab=wallet",
    )
    outbox.broadcast(events.tickets_given(target.family_id, target.id, amount, new_balance))
    return new_balance


def ticket_balance(user_id: str, actor: User, session: Session) -> int:
    target = session.get(User, user_id)
    if target is None:
        raise NotFoundError("USER_NOT_FOUND")
    assert_family_member(actor, target.family_id)
    return target.ticket_balance
