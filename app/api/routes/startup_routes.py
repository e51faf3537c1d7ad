"""
Startup Routes

GET /startups - Startup directory (cached)
POST /startups - Register own startup (startup only)
GET /startups/me - Own startup profile
GET /startups/me/positions - Own positions with application counts
GET /startups/me/applications - Applications received
PUT /startups/applications/{application_id}/status - Accept/reject an application
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List

from app.core.auth import get_current_startup
from app.services.db_service import DatabaseService, get_db_service
from app.utils.timeout import run_read
from app.schemas.schemas import (
    StartupCreate, StartupResponse, PositionResponse, StartupApplicationResponse,
    ApplicationStatusUpdate, CreatedResponse, MessageResponse
)

router = APIRouter(prefix="/startups", tags=["Startups"])


async def _own_startup(db_service: DatabaseService, user_id: str) -> dict:
    profile = await run_read(db_service.get_user_profile, user_id, "startup")
    if not profile:
        raise HTTPException(status_code=404, detail="Startup profile not found. Register your startup first.")
    return profile


@router.get("", response_model=List[StartupResponse])
async def list_startups(
    force_fresh: bool = Query(False),
    db_service: DatabaseService = Depends(get_db_service)
):
    """List all registered startups."""
    rows = await run_read(db_service.get_startups, force_fresh)
    if rows is None:
        raise HTTPException(status_code=503, detail="Could not load startups, try again shortly")
    return rows


@router.post("", response_model=CreatedResponse, status_code=201)
async def register_startup(
    data: StartupCreate,
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Register the caller's startup. One startup per account."""
    if await run_read(db_service.startup_exists, startup["user_id"]):
        raise HTTPException(status_code=400, detail="Startup already registered")

    row = db_service.register_startup(startup["user_id"], data.model_dump())
    return CreatedResponse(id=row["id"], message="Startup registered successfully")


@router.get("/me", response_model=StartupResponse)
async def get_my_startup(
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Get the caller's startup profile."""
    return await _own_startup(db_service, startup["user_id"])


@router.get("/me/positions", response_model=List[PositionResponse])
async def get_my_positions(
    force_fresh: bool = Query(False),
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """All of the caller's positions, active or closed, with application counts."""
    profile = await _own_startup(db_service, startup["user_id"])
    rows = await run_read(db_service.get_startup_positions, profile["id"], force_fresh=force_fresh)
    if rows is None:
        raise HTTPException(status_code=503, detail="Could not load positions, try again shortly")
    return rows


@router.get("/me/applications", response_model=List[StartupApplicationResponse])
async def get_my_applications(
    force_fresh: bool = Query(False),
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Applications received across all of the caller's positions."""
    rows = await run_read(db_service.get_startup_applications, startup["user_id"], force_fresh=force_fresh)
    if rows is None:
        raise HTTPException(status_code=503, detail="Could not load applications, try again shortly")
    return rows


@router.put("/applications/{application_id}/status", response_model=MessageResponse)
async def update_application_status(
    application_id: str,
    update: ApplicationStatusUpdate,
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Accept or reject an application to one of the caller's positions."""
    db_service.update_application_status(application_id, update.status, owner_id=startup["user_id"])
    return MessageResponse(message=f"Application marked {update.status.value}")
