from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from portal import ledger, store
from portal.exceptions import NotFound, InvalidAmount, OwnershipMismatch, ConcurrentUpdateConflict
from portal.models.due import Due
from portal.models.payment import Payment


def pay(db, due, amount, when, student_id=None, method="upi", as_of=None, **kwargs):
    return store.record_payment(
        db,
        due_id=due.id,
        student_id=student_id if student_id is not None else due.student_id,
        amount=amount,
        payment_method=method,
        paid_at=when,
        as_of=as_of or when.date(),
        **kwargs
    )


# --- create / read ---

def test_create_due_defaults(db, student):
    due = store.create_due(db, student_id=student.id, description="Library fine", amount=1500,
                           due_date=date(2025, 3, 1), as_of=date(2025, 2, 1))
    assert due.id is not None
    assert due.status == "pending"
    assert due.subject_id is None
    assert due.late_fee_percentage == Decimal("5.00")
    assert due.paid_on is None


def test_create_due_rejects_negative_amount(db, student):
    with pytest.raises(InvalidAmount):
        store.create_due(db, student_id=student.id, description="x", amount=-1,
                         due_date=date(2025, 3, 1), as_of=date(2025, 2, 1))


def test_create_due_unknown_student(db, professor):
    with pytest.raises(NotFound):
        store.create_due(db, student_id=9999, description="x", amount=100,
                         due_date=date(2025, 3, 1), as_of=date(2025, 2, 1))
    # professors cannot be billed
    with pytest.raises(NotFound):
        store.create_due(db, student_id=professor.id, description="x", amount=100,
                         due_date=date(2025, 3, 1), as_of=date(2025, 2, 1))


def test_create_due_unknown_subject(db, student):
    with pytest.raises(NotFound):
        store.create_due(db, student_id=student.id, subject_id=42, description="x", amount=100,
                         due_date=date(2025, 3, 1), as_of=date(2025, 2, 1))


def test_zero_amount_due_starts_paid(db, student):
    due = store.create_due(db, student_id=student.id, description="Free workshop", amount=0,
                           due_date=date(2025, 3, 1), as_of=date(2025, 2, 1))
    assert due.status == "paid"
    assert due.paid_on == date(2025, 2, 1)


def test_due_created_after_its_date_starts_overdue(db, student):
    due = store.create_due(db, student_id=student.id, description="Backdated", amount=1000,
                           due_date=date(2025, 1, 1), as_of=date(2025, 2, 1))
    assert due.status == "overdue"


def test_get_due_not_found(db):
    with pytest.raises(NotFound):
        store.get_due(db, 12345)


def test_list_dues_filters(db, student, other_student, subject, professor):
    store.create_due(db, student_id=student.id, subject_id=subject.id, description="Jan", amount=100,
                     due_date=date(2025, 1, 10), as_of=date(2025, 1, 1))
    store.create_due(db, student_id=student.id, description="Feb", amount=100,
                     due_date=date(2025, 2, 10), as_of=date(2025, 1, 1))
    store.create_due(db, student_id=other_student.id, subject_id=subject.id, description="Jan", amount=100,
                     due_date=date(2025, 1, 10), as_of=date(2025, 1, 1))

    assert len(store.list_dues(db)) == 3
    assert len(store.list_dues(db, student_id=student.id)) == 2
    assert len(store.list_dues(db, professor_id=professor.id)) == 2
    assert len(store.list_dues(db, subject_id=subject.id, student_id=other_student.id)) == 1
    assert [d.description for d in store.list_dues(db, due_from=date(2025, 2, 1))] == ["Feb"]
    assert len(store.list_dues(db, status="paid")) == 0
    assert len(store.list_dues(db, skip=1, limit=1)) == 1
    assert store.count_dues(db) == 3
    assert store.count_dues(db, professor_id=professor.id) == 2
    assert store.count_dues(db, due_from=date(2025, 2, 1), status="pending") == 1


# --- scenarios ---

def test_scenario_a_sweep_marks_overdue(db, scenario_due):
    as_of = date(2025, 1, 15)
    assert scenario_due.status == "pending"
    assert ledger.total_owed(scenario_due, as_of) == 52500

    assert store.sweep_overdue(db, as_of) == 1
    db.refresh(scenario_due)
    assert scenario_due.status == "overdue"


def test_scenario_b_full_payment_with_late_fee(db, scenario_due):
    payment = pay(db, scenario_due, 52500, datetime(2025, 1, 15, 10, 30))

    due = store.get_due(db, scenario_due.id)
    assert payment.amount == 52500
    assert due.status == "paid"
    assert due.paid_on == date(2025, 1, 15)


def test_scenario_c_partial_payment_before_due_date(db, scenario_due):
    pay(db, scenario_due, 30000, datetime(2025, 1, 5, 9, 0))

    due = store.get_due(db, scenario_due.id)
    assert ledger.total_owed(due, date(2025, 1, 5)) == 50000
    assert store.get_paid_sum(db, due.id) == 30000
    assert due.status == "pending"


def test_scenario_d_interleaved_payments_keep_both_writes(SessionTesting, scenario_due):
    session_a = SessionTesting()
    session_b = SessionTesting()
    try:
        # B reads the due before A writes, so its copy is stale
        stale = store.get_due(session_b, scenario_due.id)
        assert stale.status == "pending"

        pay(session_a, store.get_due(session_a, scenario_due.id), 26000, datetime(2025, 1, 15, 10, 0))
        pay(session_b, stale, 26000, datetime(2025, 1, 15, 10, 0))

        check = SessionTesting()
        due = store.get_due(check, scenario_due.id)
        assert store.get_paid_sum(check, due.id) == 52000
        assert check.query(Payment).filter(Payment.due_id == due.id).count() == 2
        assert due.status == "overdue"
        check.close()
    finally:
        session_a.close()
        session_b.close()


def test_split_payments_settle_the_due(db, scenario_due):
    pay(db, scenario_due, 20000, datetime(2025, 1, 3))
    pay(db, scenario_due, 20000, datetime(2025, 1, 8))
    assert store.get_due(db, scenario_due.id).status == "pending"
    pay(db, scenario_due, 10000, datetime(2025, 1, 10, 23, 59))

    due = store.get_due(db, scenario_due.id)
    assert due.status == "paid"
    assert due.paid_on == date(2025, 1, 10)


def test_payment_on_due_date_is_on_time(db, scenario_due):
    pay(db, scenario_due, 50000, datetime(2025, 1, 10, 18, 0))
    assert store.get_due(db, scenario_due.id).status == "paid"


def test_base_only_payment_after_due_date_stays_overdue(db, scenario_due):
    pay(db, scenario_due, 50000, datetime(2025, 1, 11))
    assert store.get_due(db, scenario_due.id).status == "overdue"
    pay(db, scenario_due, 2500, datetime(2025, 1, 12))
    assert store.get_due(db, scenario_due.id).status == "paid"


# --- properties ---

def test_sweep_is_idempotent(db, scenario_due, student):
    store.create_due(db, student_id=student.id, description="Later", amount=100,
                     due_date=date(2025, 2, 1), as_of=date(2025, 1, 1))
    as_of = date(2025, 1, 15)

    assert store.sweep_overdue(db, as_of) == 1
    assert store.sweep_overdue(db, as_of) == 0
    statuses = sorted(d.status for d in store.list_dues(db))
    assert statuses == ["overdue", "pending"]


def test_sweep_leaves_paid_and_failed_alone(db, scenario_due, student):
    other = store.create_due(db, student_id=student.id, description="Lab", amount=1000,
                             due_date=date(2025, 1, 10), as_of=date(2025, 1, 1))
    pay(db, scenario_due, 50000, datetime(2025, 1, 9))
    store.mark_due_failed(db, other.id)

    assert store.sweep_overdue(db, date(2025, 3, 1)) == 0
    assert store.get_due(db, scenario_due.id).status == "paid"
    assert store.get_due(db, other.id).status == "failed"


def test_paid_due_stays_paid(db, scenario_due):
    pay(db, scenario_due, 50000, datetime(2025, 1, 5))
    due = store.get_due(db, scenario_due.id)
    payments = store.list_payments(db, due_id=due.id)

    for as_of in (date(2025, 1, 11), date(2025, 6, 1), date(2026, 1, 1)):
        assert ledger.compute_status(due, payments, as_of) == "paid"
    store.sweep_overdue(db, date(2026, 1, 1))
    assert store.get_due(db, due.id).status == "paid"


def test_paid_due_reconciles_with_its_payments(db, scenario_due, student):
    late = store.create_due(db, student_id=student.id, description="Late one", amount=33333,
                            due_date=date(2025, 1, 10), as_of=date(2025, 1, 1),
                            late_fee_percentage=Decimal("7.5"))
    pay(db, scenario_due, 50000, datetime(2025, 1, 2))
    pay(db, late, 20000, datetime(2025, 1, 20))
    pay(db, late, 20000, datetime(2025, 1, 25))

    for due in store.list_dues(db, status="paid"):
        payments = store.list_payments(db, due_id=due.id)
        assert sum(p.amount for p in payments) >= ledger.total_owed(due, due.paid_on)
    assert store.get_due(db, late.id).paid_on == date(2025, 1, 25)


def test_payment_after_paid_is_accepted(db, scenario_due):
    pay(db, scenario_due, 50000, datetime(2025, 1, 5))
    pay(db, scenario_due, 1000, datetime(2025, 2, 5))

    due = store.get_due(db, scenario_due.id)
    assert due.status == "paid"
    assert due.paid_on == date(2025, 1, 5)
    assert store.get_paid_sum(db, due.id) == 51000


# --- errors ---

@pytest.mark.parametrize("amount", [0, -100])
def test_record_payment_rejects_non_positive(db, scenario_due, amount):
    with pytest.raises(InvalidAmount):
        pay(db, scenario_due, amount, datetime(2025, 1, 5))
    assert store.get_paid_sum(db, scenario_due.id) == 0


def test_record_payment_unknown_due(db, student):
    with pytest.raises(NotFound):
        store.record_payment(db, due_id=404, student_id=student.id, amount=100,
                             payment_method="cash", paid_at=datetime(2025, 1, 5),
                             as_of=date(2025, 1, 5))


def test_record_payment_ownership_mismatch(db, scenario_due, other_student):
    with pytest.raises(OwnershipMismatch):
        pay(db, scenario_due, 100, datetime(2025, 1, 5), student_id=other_student.id)
    assert store.list_payments(db, due_id=scenario_due.id) == []


def test_record_payment_rejects_unknown_method(db, scenario_due):
    with pytest.raises(ValueError):
        pay(db, scenario_due, 100, datetime(2025, 1, 5), method="cheque")


def test_gateway_payment_id_is_idempotent(db, scenario_due):
    first = pay(db, scenario_due, 10000, datetime(2025, 1, 5), gateway_payment_id="mp-1")
    again = pay(db, scenario_due, 10000, datetime(2025, 1, 5), gateway_payment_id="mp-1")
    assert first.id == again.id
    assert store.get_paid_sum(db, scenario_due.id) == 10000


# --- status compare-and-set ---

def test_update_due_status_conflict(db, scenario_due):
    store.sweep_overdue(db, date(2025, 1, 15))
    with pytest.raises(ConcurrentUpdateConflict):
        store.update_due_status(db, scenario_due.id, "paid", expected="pending", paid_on=date(2025, 1, 15))
    db.rollback()
    assert store.get_due(db, scenario_due.id).status == "overdue"


def test_update_due_status_already_there_is_noop(db, scenario_due):
    store.sweep_overdue(db, date(2025, 1, 15))
    assert store.update_due_status(db, scenario_due.id, "overdue", expected="pending") is False


def test_update_due_status_applies(db, scenario_due):
    assert store.update_due_status(db, scenario_due.id, "overdue", expected="pending") is True
    db.commit()
    db.expire_all()
    assert db.get(Due, scenario_due.id).status == "overdue"


def test_update_due_status_unknown_due(db):
    with pytest.raises(NotFound):
        store.update_due_status(db, 999, "overdue", expected="pending")


# --- failed ---

def test_failed_due_keeps_status_on_payment(db, scenario_due):
    store.mark_due_failed(db, scenario_due.id)
    pay(db, scenario_due, 60000, datetime(2025, 1, 15))

    due = store.get_due(db, scenario_due.id)
    assert due.status == "failed"
    assert store.get_paid_sum(db, due.id) == 60000


def test_mark_failed_ignores_paid_due(db, scenario_due):
    pay(db, scenario_due, 50000, datetime(2025, 1, 5))
    assert store.mark_due_failed(db, scenario_due.id).status == "paid"


def test_mark_failed_from_overdue(db, scenario_due):
    store.sweep_overdue(db, date(2025, 1, 15))
    assert store.mark_due_failed(db, scenario_due.id).status == "failed"
    # second notice is a no-op
    assert store.mark_due_failed(db, scenario_due.id).status == "failed"


def test_create_due_rejects_out_of_range_late_fee(db, student):
    with pytest.raises(InvalidAmount):
        store.create_due(db, student_id=student.id, description="x", amount=100,
                         due_date=date(2025, 3, 1), as_of=date(2025, 2, 1),
                         late_fee_percentage=Decimal("150"))


# --- recording date ---

def test_backdated_partial_payment_keeps_overdue(db, scenario_due):
    store.sweep_overdue(db, date(2025, 1, 15))
    assert store.get_due(db, scenario_due.id).status == "overdue"

    pay(db, scenario_due, 30000, datetime(2025, 1, 5, 9, 0), as_of=date(2025, 1, 15))

    due = store.get_due(db, scenario_due.id)
    assert due.status == "overdue"
    assert store.get_paid_sum(db, due.id) == 30000


def test_partial_payment_recorded_late_is_overdue_without_sweep(db, scenario_due):
    pay(db, scenario_due, 30000, datetime(2025, 1, 5, 9, 0), as_of=date(2025, 1, 20))
    assert store.get_due(db, scenario_due.id).status == "overdue"


def test_recording_before_sweep_date_never_reopens_overdue(db, scenario_due):
    store.sweep_overdue(db, date(2025, 1, 15))
    # recorded with an as_of on the due date itself
    pay(db, scenario_due, 1000, datetime(2025, 1, 9), as_of=date(2025, 1, 10))
    assert store.get_due(db, scenario_due.id).status == "overdue"


def test_backdated_on_time_payment_settles_without_fee(db, scenario_due):
    store.sweep_overdue(db, date(2025, 1, 15))
    pay(db, scenario_due, 50000, datetime(2025, 1, 9, 16, 0), as_of=date(2025, 1, 15))

    due = store.get_due(db, scenario_due.id)
    assert due.status == "paid"
    assert due.paid_on == date(2025, 1, 9)
    assert ledger.total_owed(due, date(2025, 1, 15)) == 50000


# --- transaction failures ---

def test_status_conflict_rolls_back_the_payment(db, scenario_due, monkeypatch):
    real_compute_status = ledger.compute_status

    def compute_status_while_gateway_fails_the_due(due, payments, as_of):
        # another writer marks the due failed between the lock and the status write
        db.query(Due).filter(Due.id == due.id).update({Due.status: "failed"}, synchronize_session=False)
        monkeypatch.setattr(ledger, "compute_status", real_compute_status)
        return "paid"

    monkeypatch.setattr(ledger, "compute_status", compute_status_while_gateway_fails_the_due)

    with pytest.raises(ConcurrentUpdateConflict):
        pay(db, scenario_due, 50000, datetime(2025, 1, 5))

    assert store.list_payments(db, due_id=scenario_due.id) == []
    due = store.get_due(db, scenario_due.id)
    db.refresh(due)
    assert due.status == "pending"
    assert due.paid_on is None


def test_duplicate_gateway_insert_returns_the_winner(db, scenario_due, monkeypatch):
    winner = pay(db, scenario_due, 10000, datetime(2025, 1, 5), gateway_payment_id="mp-race")
    winner_id = winner.id
    real_find = store._find_gateway_payment
    calls = []

    def find_after_losing_the_race(session, gateway_payment_id):
        calls.append(gateway_payment_id)
        # the first lookup runs before the other delivery has committed
        if len(calls) == 1:
            return None
        return real_find(session, gateway_payment_id)

    monkeypatch.setattr(store, "_find_gateway_payment", find_after_losing_the_race)

    again = pay(db, scenario_due, 10000, datetime(2025, 1, 5), gateway_payment_id="mp-race")

    assert again.id == winner_id
    assert len(calls) == 2
    assert store.get_paid_sum(db, scenario_due.id) == 10000
    assert store.get_due(db, scenario_due.id).status == "pending"


def test_duplicate_insert_without_gateway_id_propagates(db, scenario_due, monkeypatch):
    def flush_fails(*args, **kwargs):
        raise IntegrityError("INSERT INTO payments", {}, Exception("constraint failed"))

    monkeypatch.setattr(db, "flush", flush_fails)

    with pytest.raises(IntegrityError):
        pay(db, scenario_due, 10000, datetime(2025, 1, 5))
    monkeypatch.undo()

    assert not db.new
    assert store.get_paid_sum(db, scenario_due.id) == 0
