"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Create or update own profile
GET /students/applications - Get own applications
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List

from app.core.auth import get_current_student
from app.services.db_service import DatabaseService, get_db_service
from app.utils.timeout import run_read
from app.schemas.schemas import (
    StudentProfileUpdate, StudentProfileResponse, StudentApplicationResponse
)

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("/profile", response_model=StudentProfileResponse)
async def get_profile(
    force_fresh: bool = Query(False),
    student: dict = Depends(get_current_student),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Get current student's profile."""
    profile = await run_read(db_service.get_user_profile, student["user_id"], "student", force_fresh=force_fresh)
    if not profile:
        raise HTTPException(status_code=404, detail="Student profile not found. Create profile first.")
    return profile


@router.put("/profile", response_model=StudentProfileResponse)
async def save_profile(
    data: StudentProfileUpdate,
    student: dict = Depends(get_current_student),
    db_service: DatabaseService = Depends(get_db_service)
):
    """
    Create or replace the student's profile.

    Email defaults to the account email when left empty.
    """
    payload = data.model_dump()
    if not payload.get("email"):
        payload["email"] = student["email"]
    return db_service.upsert_student_profile(student["user_id"], payload)


@router.get("/applications", response_model=List[StudentApplicationResponse])
async def get_my_applications(
    force_fresh: bool = Query(False),
    student: dict = Depends(get_current_student),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Get all applications made by current student, newest first."""
    rows = await run_read(db_service.get_student_applications, student["user_id"], force_fresh=force_fresh)
    if rows is None:
        raise HTTPException(status_code=503, detail="Could not load applications, try again shortly")
    return rows
