"""Ticket balance mutations.

Balances change only through conditional UPDATE statements so the
check and the write are one statement: a debit that would take the
balance below zero matches no row and is reported as insufficient funds.
"""

from sqlalchemy import update
from sqlmodel import Session, select

from bribebank.errors import InsufficientTicketsError, ValidationError
from bribebank.models.family import User


def parse_ticket_amount(value, code: str = "INVALID_AMOUNT") -> int:
    """Accept a positive integer (or its decimal string form), reject everything else."""
    if isinstance(value, bool):
        raise ValidationError(code)
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        amount = int(value.strip())
    else:
        raise ValidationError(code)
    if amount <= 0:
        raise ValidationError(code)
    return amount


def get_balance(session: Session, user_id: str) -> int:
    return session.exec(select(User.ticket_balance).where(User.id == user_id)).one()


def credit(session: Session, user_id: str, amount: int) -> int:
    """Add tickets. Returns the new balance."""
    session.exec(
        update(User)
        .where(User.id == user_id)
        .values(ticket_balance=User.ticket_balance + amount)
    )
    return get_balance(session, user_id)


def debit(session: Session, user_id: str, amount: int) -> int:
    """Spend tickets, failing without change if the balance is short. Returns the new balance."""
    result = session.exec(
        update(User)
        .where(User.id == user_id, User.ticket_balance >= amount)
        .values(ticket_balance=User.ticket_balance - amount)
    )
    if result.rowcount == 0:
        raise InsufficientTicketsError()
    return get_balance(session, user_id)
