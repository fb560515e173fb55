# -*- coding: utf-8 -*-
"""
FastAPI routes for portal profiles (students and professors).
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from portal.database import get_db
from portal.models.profile import Profile
from portal.schemas.profile import ProfileCreate, ProfileRead

router = APIRouter(
    tags=["Profiles"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=ProfileRead, status_code=status.HTTP_201_CREATED)
def create_profile(profile: ProfileCreate, db: Session = Depends(get_db)):
    if db.query(Profile).filter(Profile.email == profile.email).first():
        raise HTTPException(status_code=400, detail="A profile with this email already exists.")

    db_profile = Profile(**profile.dict())
    db.add(db_profile)
    db.commit()
    db.refresh(db_profile)
    return db_profile


@router.get("", response_model=List[ProfileRead])
def read_profiles(role: Optional[str] = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    query = db.query(Profile)
    if role:
        query = query.filter(Profile.role == role)
    return query.order_by(Profile.first_name.asc()).offset(skip).limit(limit).all()


@router.get("/{profile_id}", response_model=ProfileRead)
def read_profile(profile_id: int, db: Session = Depends(get_db)):
    db_profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if db_profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return db_profile
