"""
Position Routes

GET /positions - List active positions (cached, ?force_fresh=true to bypass)
POST /positions - Create position for own startup (startup only)
PUT /positions/{position_id}/status - Open/close own position (startup only)
POST /positions/{position_id}/apply - Apply to position (student only)
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List

from app.core.auth import get_current_student, get_current_startup
from app.services.db_service import DatabaseService, get_db_service
from app.utils.timeout import run_read
from app.schemas.schemas import (
    PositionCreate, PositionStatusUpdate, PositionResponse,
    ApplicationCreate, CreatedResponse, MessageResponse
)

router = APIRouter(prefix="/positions", tags=["Positions"])


@router.get("", response_model=List[PositionResponse])
async def list_active_positions(
    force_fresh: bool = Query(False, description="Skip the cache and query the store"),
    db_service: DatabaseService = Depends(get_db_service)
):
    """List all active positions with their startup's name and logo."""
    rows = await run_read(db_service.get_active_positions, force_fresh)
    if rows is None:
        raise HTTPException(status_code=503, detail="Could not load positions, try again shortly")
    return rows


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_position(
    position: PositionCreate,
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Create a new position. The caller must have registered a startup."""
    profile = await run_read(db_service.get_user_profile, startup["user_id"], "startup")
    if not profile:
        raise HTTPException(status_code=404, detail="Register your startup before posting positions")

    data = position.model_dump()
    data["startup_id"] = profile["id"]
    row = db_service.create_position(data)
    return CreatedResponse(id=row["id"], message="Position created successfully")


@router.put("/{position_id}/status", response_model=MessageResponse)
async def update_position_status(
    position_id: str,
    update: PositionStatusUpdate,
    startup: dict = Depends(get_current_startup),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Open or close a position. Only the owning startup can change it."""
    db_service.update_position_status(position_id, update.status, owner_id=startup["user_id"])
    return MessageResponse(message=f"Position marked {update.status.value}")


@router.post("/{position_id}/apply", response_model=CreatedResponse, status_code=201)
async def apply_to_position(
    position_id: str,
    application: ApplicationCreate,
    student: dict = Depends(get_current_student),
    db_service: DatabaseService = Depends(get_db_service)
):
    """Apply to an active position. Students only, once per position, complete profile required."""
    row = db_service.apply_for_position(position_id, student["user_id"], application.cover_letter)
    return CreatedResponse(id=row["id"], message="Application submitted successfully")
