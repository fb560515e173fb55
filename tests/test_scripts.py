from datetime import date

import pytest

import generate_subject_dues
import run_overdue_sweep
from portal import store


@pytest.fixture
def script_env(monkeypatch, database_url, engine):
    monkeypatch.setenv("DATABASE_URL", database_url)
    return database_url


def test_run_sweep_script(script_env, db, scenario_due):
    assert run_overdue_sweep.run_sweep(["--as-of", "2025-01-15"]) == 1
    assert run_overdue_sweep.run_sweep(["--as-of", "2025-01-15"]) == 0
    db.expire_all()
    assert store.get_due(db, scenario_due.id).status == "overdue"


def test_run_sweep_script_bad_date(script_env):
    assert run_overdue_sweep.run_sweep(["--as-of", "15/01/2025"]) is None


def test_target_due_date_defaults_to_next_month():
    assert generate_subject_dues.target_due_date(date(2024, 12, 20)) == date(2025, 1, 10)
    assert generate_subject_dues.target_due_date(date(2025, 1, 31)) == date(2025, 2, 10)
    assert generate_subject_dues.target_due_date(date(2025, 1, 31), month=5, year=2025, day=3) == date(2025, 5, 3)


def test_generate_dues_script(script_env, db, subject, student):
    assert generate_subject_dues.generate_dues(["--month", "3", "--year", "2031"]) == 1
    assert generate_subject_dues.generate_dues(["--month", "3", "--year", "2031"]) == 0

    dues = store.list_dues(db, student_id=student.id)
    assert [(d.amount, d.due_date) for d in dues] == [(50000, date(2031, 3, 10))]


def test_generate_dues_script_invalid_month(script_env):
    assert generate_subject_dues.generate_dues(["--month", "13", "--year", "2031"]) is None
