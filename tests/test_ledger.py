from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from portal import ledger
from portal.exceptions import InvalidAmount

DUE_DATE = date(2025, 1, 10)


def make_due(amount=50000, due_date=DUE_DATE, pct=Decimal("5.00"), status="pending", paid_on=None):
    return SimpleNamespace(amount=amount, due_date=due_date, late_fee_percentage=pct,
                           status=status, paid_on=paid_on)


def payments(*amounts):
    return [SimpleNamespace(amount=amount) for amount in amounts]


# --- late fee ---

@pytest.mark.parametrize("as_of", [date(2024, 12, 1), date(2025, 1, 9), DUE_DATE])
def test_no_late_fee_on_or_before_due_date(as_of):
    assert ledger.late_fee(50000, DUE_DATE, Decimal("5"), as_of) == 0


def test_late_fee_after_due_date():
    assert ledger.late_fee(50000, DUE_DATE, Decimal("5"), date(2025, 1, 11)) == 2500


@pytest.mark.parametrize("amount,pct,expected", [
    (999, Decimal("5.5"), 54),
    (12345, Decimal("2.5"), 308),
    (1, Decimal("99.99"), 0),
    (100, Decimal("100"), 100),
    (0, Decimal("5"), 0),
])
def test_late_fee_rounds_down(amount, pct, expected):
    assert ledger.late_fee(amount, DUE_DATE, pct, date(2025, 2, 1)) == expected


def test_zero_percentage_never_accrues():
    assert ledger.late_fee(50000, DUE_DATE, Decimal("0"), date(2030, 1, 1)) == 0


def test_late_fee_accepts_plain_numbers():
    assert ledger.late_fee(50000, DUE_DATE, 5, date(2025, 1, 15)) == 2500
    assert ledger.late_fee(50000, DUE_DATE, "7.25", date(2025, 1, 15)) == 3625


@pytest.mark.parametrize("amount", [0, 1, 333, 50000, 10 ** 9])
@pytest.mark.parametrize("pct", ["0", "0.01", "5", "33.33", "100"])
@pytest.mark.parametrize("offset", [-30, -1, 0, 1, 365])
def test_late_fee_is_never_negative(amount, pct, offset):
    as_of = DUE_DATE + timedelta(days=offset)
    fee = ledger.late_fee(amount, DUE_DATE, Decimal(pct), as_of)
    assert fee >= 0
    assert isinstance(fee, int)
    if offset <= 0:
        assert fee == 0


def test_late_fee_rejects_negative_base():
    with pytest.raises(InvalidAmount):
        ledger.late_fee(-1, DUE_DATE, Decimal("5"), date(2025, 1, 15))


@pytest.mark.parametrize("pct", [Decimal("-0.01"), Decimal("100.01")])
def test_late_fee_rejects_out_of_range_percentage(pct):
    with pytest.raises(ValueError):
        ledger.late_fee(100, DUE_DATE, pct, date(2025, 1, 15))


# --- total owed ---

def test_total_owed_scenario_a():
    assert ledger.total_owed(make_due(), date(2025, 1, 15)) == 52500


def test_total_owed_before_due_date():
    assert ledger.total_owed(make_due(), date(2025, 1, 5)) == 50000


def test_total_owed_is_frozen_once_paid():
    on_time = make_due(status="paid", paid_on=date(2025, 1, 5))
    late = make_due(status="paid", paid_on=date(2025, 1, 15))
    assert ledger.total_owed(on_time, date(2025, 6, 1)) == 50000
    assert ledger.total_owed(late, date(2025, 6, 1)) == 52500


# --- status ---

def test_status_pending_before_due_date():
    assert ledger.compute_status(make_due(), payments(30000), date(2025, 1, 5)) == "pending"


def test_status_paid_on_due_date_without_fee():
    assert ledger.compute_status(make_due(), payments(50000), DUE_DATE) == "paid"


def test_status_overdue_when_fee_not_covered():
    assert ledger.compute_status(make_due(), payments(50000), date(2025, 1, 11)) == "overdue"


def test_status_paid_after_due_date_with_fee():
    assert ledger.compute_status(make_due(), payments(50000, 2500), date(2025, 1, 15)) == "paid"


def test_overpayment_is_paid():
    assert ledger.compute_status(make_due(), payments(80000), date(2025, 1, 15)) == "paid"


def test_no_payments_overdue_after_date():
    assert ledger.compute_status(make_due(), [], date(2025, 1, 15)) == "overdue"


def test_paid_never_reopens():
    due = make_due(status="paid", paid_on=date(2025, 1, 5))
    for days in (0, 1, 30, 400):
        assert ledger.compute_status(due, payments(50000), date(2025, 1, 5) + timedelta(days=days)) == "paid"


def test_failed_is_left_alone():
    due = make_due(status="failed")
    assert ledger.compute_status(due, [], date(2025, 1, 5)) == "failed"
    assert ledger.compute_status(due, payments(90000), date(2025, 1, 15)) == "failed"


def test_overdue_due_becomes_paid_once_covered():
    due = make_due(status="overdue")
    assert ledger.compute_status(due, payments(52500), date(2025, 1, 15)) == "paid"


def test_days_until_due():
    assert ledger.days_until_due(DUE_DATE, date(2025, 1, 7)) == 3
    assert ledger.days_until_due(DUE_DATE, DUE_DATE) == 0
    assert ledger.days_until_due(DUE_DATE, date(2025, 1, 12)) == -2
