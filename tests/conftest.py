import os

# The app-level engine must never touch a real database during tests
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from portal.database import Base, get_db, make_engine
from portal import models, store
from portal.models.profile import Profile
from portal.models.subject import Subject, Enrollment


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path}/portal_test.db"


@pytest.fixture
def engine(database_url):
    engine = make_engine(database_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def SessionTesting(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(SessionTesting):
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(SessionTesting):
    from main import app

    def override_get_db():
        session = SessionTesting()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def professor(db):
    db_professor = Profile(first_name="Ana", last_name="Souza", email="ana@portal.edu", role="professor")
    db.add(db_professor)
    db.commit()
    db.refresh(db_professor)
    return db_professor


@pytest.fixture
def student(db):
    db_student = Profile(first_name="Ravi", last_name="Kumar", email="ravi@portal.edu", role="student")
    db.add(db_student)
    db.commit()
    db.refresh(db_student)
    return db_student


@pytest.fixture
def other_student(db):
    db_student = Profile(first_name="Lia", last_name="Mendes", email="lia@portal.edu", role="student")
    db.add(db_student)
    db.commit()
    db.refresh(db_student)
    return db_student


@pytest.fixture
def subject(db, professor, student):
    db_subject = Subject(name="Algorithms", code="CS201", professor_id=professor.id, fee_amount=50000)
    db.add(db_subject)
    db.flush()
    db.add(Enrollment(student_id=student.id, subject_id=db_subject.id))
    db.commit()
    db.refresh(db_subject)
    return db_subject


@pytest.fixture
def scenario_due(db, student, subject):
    """Base 50000 due on 2025-01-10 with a 5% late fee, created on 2025-01-01."""
    return store.create_due(
        db,
        student_id=student.id,
        subject_id=subject.id,
        description="Tuition - January",
        amount=50000,
        due_date=date(2025, 1, 10),
        as_of=date(2025, 1, 1),
        late_fee_percentage=Decimal("5.00"),
    )
