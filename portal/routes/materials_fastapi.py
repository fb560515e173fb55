# -*- coding: utf-8 -*-
"""
FastAPI routes for study materials.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from portal import coursework
from portal.database import get_db
from portal.schemas.material import MaterialCreate, MaterialRead

router = APIRouter(
    tags=["Materials"],
    responses={404: {"description": "Not found"}},
)


@router.post("", response_model=MaterialRead, status_code=status.HTTP_201_CREATED)
def create_material(material: MaterialCreate, db: Session = Depends(get_db)):
    return coursework.create_material(db, **material.dict())


@router.get("", response_model=List[MaterialRead])
def read_materials(
    subject_id: Optional[int] = None,
    professor_id: Optional[int] = None,
    student_id: Optional[int] = None,
    topic: Optional[str] = None,
    db: Session = Depends(get_db)
):
    return coursework.list_materials(
        db, subject_id=subject_id, professor_id=professor_id, student_id=student_id, topic=topic
    )


@router.delete("/{material_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_material(material_id: int, professor_id: int, db: Session = Depends(get_db)):
    coursework.deactivate_material(db, material_id, professor_id)
    return None
