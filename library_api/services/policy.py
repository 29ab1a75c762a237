"""
Pure lending rules: who may borrow, when a loan is due, what a caller is.

Nothing in here touches the database or the Flask app, so these are the
functions the rest of the core is tested against first.
"""
from collections import namedtuple
from datetime import datetime, timedelta

from library_api.models.user import Role

DEFAULT_LOAN_PERIOD_DAYS = 14


# what the core knows about the authenticated caller
Caller = namedtuple("Caller", ["user_id", "role"])


def can_borrow(active_loan_count: int, max_loans: int) -> bool:
    return active_loan_count < max_loans


def due_date_for(borrowed_at: datetime, days: int = DEFAULT_LOAN_PERIOD_DAYS) -> datetime:
    return borrowed_at + timedelta(days=days)


def may_act_on_loan(caller: Caller, loan_owner_id: int) -> bool:
    if caller.role is Role.LIBRARIAN:
        return True
    if caller.role is Role.BORROWER:
        return caller.user_id == loan_owner_id
    raise ValueError(f"unknown role: {caller.role!r}")
