# -*- coding: utf-8 -*-
"""
Late-fee and status rules for student dues.

Everything here is a pure function of its arguments: the current date is
always passed in as ``as_of`` and nothing touches the database. The store,
the routes, the gateway and the scripts all go through these functions so
there is a single definition of "how much is owed" and "what is the status".
"""
from datetime import date
from decimal import Decimal, ROUND_FLOOR

from portal.exceptions import InvalidAmount
from portal.models.due import DueStatus, TERMINAL_STATUSES


def _as_decimal(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def late_fee(base_amount: int, due_date: date, late_fee_percentage, as_of: date) -> int:
    """
    Late fee owed on ``base_amount`` as of ``as_of``.

    Zero up to and including the due date; afterwards
    ``floor(base_amount * late_fee_percentage / 100)`` in minor units.
    """
    if base_amount < 0:
        raise InvalidAmount(f"Base amount cannot be negative: {base_amount}")
    percentage = _as_decimal(late_fee_percentage or 0)
    if percentage < 0 or percentage > 100:
        raise ValueError(f"Late fee percentage must be between 0 and 100, got {percentage}")

    if as_of <= due_date:
        return 0
    fee = Decimal(base_amount) * percentage / Decimal(100)
    return int(fee.to_integral_value(rounding=ROUND_FLOOR))


def _fee_date(due, as_of: date) -> date:
    # Once paid, the fee stays what it was on the day it was settled
    if due.status == DueStatus.PAID.value and due.paid_on is not None:
        return due.paid_on
    return as_of


def total_owed(due, as_of: date) -> int:
    return due.amount + late_fee(due.amount, due.due_date, due.late_fee_percentage, _fee_date(due, as_of))


def current_late_fee(due, as_of: date) -> int:
    return late_fee(due.amount, due.due_date, due.late_fee_percentage, _fee_date(due, as_of))


def paid_sum(payments) -> int:
    return sum(payment.amount for payment in payments)


def compute_status(due, payments, as_of: date) -> str:
    """
    Authoritative status of ``due`` given all of its ``payments``.

    ``paid`` and ``failed`` are terminal and come back unchanged. Otherwise
    the due is ``paid`` once the payments cover base amount plus late fee,
    ``overdue`` after the due date and ``pending`` before it.
    """
    if due.status in TERMINAL_STATUSES:
        return due.status

    if paid_sum(payments) >= total_owed(due, as_of):
        return DueStatus.PAID.value
    if as_of > due.due_date:
        return DueStatus.OVERDUE.value
    return DueStatus.PENDING.value


def days_until_due(due_date: date, as_of: date) -> int:
    """Negative once the due date has passed."""
    return (due_date - as_of).days
