"""Probability-weighted prize wheel.

Segments are walked in ``position`` order, accumulating ``prob``; the first
segment whose cumulative bound reaches the draw wins. Whether a segment is
a losing slice and which emoji a win shows are stored on the segment when
the wheel is configured, never inferred at spin time.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from bribebank.database import atomic
from bribebank.errors import NotFoundError, ValidationError
from bribebank.models.family import Family, User
from bribebank.models.reward import AssignedPrize, PrizeOrigin, PrizeStatus, PrizeType
from bribebank.models.store import WheelSegment
from bribebank.realtime import events
from bribebank.services import ledger, recorders
from bribebank.services.guard import assert_family_member, assert_parent, display_name
from bribebank.services.outbox import Outbox

logger = logging.getLogger(__name__)

PROBABILITY_TOLERANCE = 0.01
WHEEL_ASSIGNER = "Prize Wheel"
WHEEL_THEME = "bg-gradient-to-r from-purple-400 to-pink-600"

LOSING_PHRASES = ("try again", "not this time")

# Checked in order, first match wins
EMOJI_KEYWORDS = (
    (("screen", "tv"), "📺"),
    (("candy",), "🍬"),
    (("pop", "soda"), "🥤"),
    (("movie",), "🎬"),
    (("money", "$"), "💵"),
    (("supper", "dinner"), "🍽️"),
    (("date",), "❤️"),
)
DEFAULT_WIN_EMOJI = "🎁"
LOSING_EMOJI = "❌"

DEFAULT_SEGMENTS = [
    {"label": "Not this time", "color": "#9CA3AF", "prob": 0.2},
    {"label": "30 Minute Screen Time", "color": "#60A5FA", "prob": 0.1},
    {"label": "Pick supper", "color": "#F472B6", "prob": 0.1},
    {"label": "Free Pop", "color": "#818CF8", "prob": 0.1},
    {"label": "Candy Run", "color": "#FCD34D", "prob": 0.1},
    {"label": "Date Night", "color": "#9CA3AF", "prob": 0.1},
    {"label": "1 Hour Screen Time", "color": "#34D399", "prob": 0.1},
    {"label": "Movie Night", "color": "#A78BFA", "prob": 0.1},
    {"label": "JACKPOT - $20", "color": "#EF4444", "prob": 0.1},
]


@dataclass
class SegmentSpec:
    label: str
    prob: float
    color: Optional[str] = None
    is_losing: Optional[bool] = None
    emoji: Optional[str] = None


@dataclass
class SpinResult:
    won: bool
    prize: str
    emoji: str
    new_balance: int
    segment: WheelSegment
    assigned_prize: Optional[AssignedPrize] = None


def label_is_losing(label: str) -> bool:
    lower = label.lower()
    return any(phrase in lower for phrase in LOSING_PHRASES)


def emoji_for_label(label: str) -> str:
    lower = label.lower()
    for keywords, emoji in EMOJI_KEYWORDS:
        if any(k in lower for k in keywords):
            return emoji
    return DEFAULT_WIN_EMOJI


def pick_segment(segments: list[WheelSegment], draw: float) -> WheelSegment:
    """Return the first segment whose cumulative probability reaches ``draw``.

    Falls back to the first segment when none does, which can only happen
    if stored probabilities sum to slightly under 1.0.
    """
    cumulative = 0.0
    for segment in segments:
        cumulative += segment.prob
        if draw <= cumulative:
            return segment
    return segments[0]


def _ordered_segments(session: Session, family_id: str) -> list[WheelSegment]:
    return list(
        session.exec(
            select(WheelSegment)
            .where(WheelSegment.family_id == family_id)
            .order_by(WheelSegment.position)
        ).all()
    )


def _get_family(session: Session, family_id: str) -> Family:
    family = session.get(Family, family_id)
    if family is None:
        raise NotFoundError("FAMILY_NOT_FOUND")
    return family


def list_segments(family_id: str, actor: User, session: Session) -> list[WheelSegment]:
    assert_family_member(actor, family_id)
    return _ordered_segments(session, family_id)


def get_spin_cost(family_id: str, actor: User, session: Session) -> int:
    assert_family_member(actor, family_id)
    return _get_family(session, family_id).wheel_spin_cost


def _replace_segments(session: Session, family_id: str, specs: list[SegmentSpec]) -> None:
    total = sum(spec.prob for spec in specs)
    session.exec(delete(WheelSegment).where(WheelSegment.family_id == family_id))
    for position, spec in enumerate(specs):
        is_losing = spec.is_losing if spec.is_losing is not None else label_is_losing(spec.label)
        emoji = spec.emoji or (LOSING_EMOJI if is_losing else emoji_for_label(spec.label))
        session.add(
            WheelSegment(
                family_id=family_id,
                position=position,
                label=spec.label,
                color=spec.color,
                # renormalised so the cumulative walk ends at exactly 1.0
                prob=spec.prob / total,
                is_losing=is_losing,
                emoji=emoji,
            )
        )


def update_segments(
    family_id: str,
    specs: Iterable[SegmentSpec],
    spin_cost: Optional[int],
    actor: User,
    session: Session,
    outbox: Outbox,
) -> tuple[list[WheelSegment], int]:
    """Replace the whole wheel. Returns the stored segments and the spin cost."""
    parent = assert_family_member(actor, family_id)
    assert_parent(parent)

    specs = list(specs)
    if any(spec.prob < 0 for spec in specs):
        raise ValidationError("INVALID_SEGMENTS")
    if abs(sum(spec.prob for spec in specs) - 1.0) > PROBABILITY_TOLERANCE:
        raise ValidationError("PROBABILITIES_MUST_SUM_TO_ONE")
    if spin_cost is not None and spin_cost < 0:
        raise ValidationError("INVALID_SPIN_COST")

    family = _get_family(session, family_id)
    with atomic(session, outbox):
        _replace_segments(session, family_id, specs)
        if spin_cost is not None:
            family.wheel_spin_cost = spin_cost
            session.add(family)

    outbox.broadcast(events.wallet_update(family_id, "WHEEL_UPDATED"))
    return _ordered_segments(session, family_id), family.wheel_spin_cost


def reset_segments(
    family_id: str, actor: User, session: Session, outbox: Outbox
) -> list[WheelSegment]:
    parent = assert_family_member(actor, family_id)
    assert_parent(parent)
    _get_family(session, family_id)

    with atomic(session, outbox):
        _replace_segments(session, family_id, [SegmentSpec(**seg) for seg in DEFAULT_SEGMENTS])

    outbox.broadcast(events.wallet_update(family_id, "WHEEL_RESET"))
    return _ordered_segments(session, family_id)


def spin(
    family_id: str,
    user_id: str,
    actor: User,
    session: Session,
    outbox: Outbox,
    rng: Callable[[], float] = random.random,
) -> SpinResult:
    """Spend the spin cost, then draw an outcome.

    The spend stands whatever the outcome; losing slices record nothing
    else. Wins create an AVAILABLE prize that needs no parent fulfilment.
    """
    assert_family_member(actor, family_id)
    family = _get_family(session, family_id)
    user = session.get(User, user_id)
    if user is None or user.family_id != family_id:
        raise NotFoundError("USER_NOT_FOUND")

    segments = _ordered_segments(session, family_id)
    if not segments:
        raise ValidationError("NO_WHEEL_SEGMENTS")

    spin_cost = family.wheel_spin_cost
    user_name = display_name(user, "Child")
    assigned_prize = None

    with atomic(session, outbox):
        new_balance = ledger.debit(session, user.id, spin_cost)
        winner = pick_segment(segments, rng())
        if not winner.is_losing:
            recorders.add_notification(
                session, user.id, f"You spun the wheel and won: {winner.label}!"
            )
            recorders.add_history_event(
                session,
                family_id=family_id,
                user_id=user.id,
                user_name=user_name,
                title=winner.label,
                emoji=winner.emoji,
                action=recorders.WHEEL_SPIN_WON,
                assigner_name=WHEEL_ASSIGNER,
            )
            assigned_prize = AssignedPrize(
                family_id=family_id,
                user_id=user.id,
                assigned_by=WHEEL_ASSIGNER,
                origin=PrizeOrigin.WHEEL,
                status=PrizeStatus.AVAILABLE,
                title=winner.label,
                emoji=winner.emoji,
                description="Won from Prize Wheel!",
                type=PrizeType.PRIVILEGE,
                theme_color=WHEEL_THEME,
            )
            session.add(assigned_prize)

    if assigned_prize is not None:
        session.refresh(assigned_prize)
    outbox.broadcast(events.wallet_update(family_id, "WHEEL_SPIN"))
    logger.info("User %s spun the wheel: %s", user.id, winner.label)
    return SpinResult(
        won=not winner.is_losing,
        prize=winner.label,
        emoji=winner.emoji,
        new_balance=new_balance,
        segment=winner,
        assigned_prize=assigned_prize,
    )
