# portal/routes/dashboard_fastapi.py

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from portal import reports
from portal.config import Config
from portal.database import get_db
from portal.models.profile import Profile
from portal.schemas.report import DashboardRead
from portal.routes.dues_fastapi import build_due_read

router = APIRouter(
    tags=["Dashboard"],
)


def _get_profile(db: Session, profile_id: int, role: str) -> Profile:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile or profile.role != role:
        raise HTTPException(status_code=404, detail=f"{role.capitalize()} not found")
    return profile


def _dashboard(dues, as_of: date, within_days: int):
    due_soon = reports.due_within_days(dues, within_days, as_of)
    return {
        "as_of": as_of,
        "summary": reports.summarize(dues, as_of, within_days=within_days),
        "due_soon": [build_due_read(due, as_of) for due in due_soon],
    }


@router.get("/student/{student_id}", response_model=DashboardRead)
def student_dashboard(
    student_id: int,
    as_of: Optional[date] = Query(None),
    within_days: int = Query(Config.DUE_SOON_DAYS, ge=0),
    db: Session = Depends(get_db)
):
    """
    Totals for one student: outstanding (with late fees), collected,
    overdue count and the dues falling due in the next days.
    """
    _get_profile(db, student_id, "student")
    dues = reports.dues_for_student(db, student_id)
    return _dashboard(dues, as_of or date.today(), within_days)


@router.get("/professor/{professor_id}", response_model=DashboardRead)
def professor_dashboard(
    professor_id: int,
    as_of: Optional[date] = Query(None),
    within_days: int = Query(Config.DUE_SOON_DAYS, ge=0),
    db: Session = Depends(get_db)
):
    """
    Same totals over the dues of every subject the professor owns.
    """
    _get_profile(db, professor_id, "professor")
    dues = reports.dues_for_professor(db, professor_id)
    return _dashboard(dues, as_of or date.today(), within_days)
