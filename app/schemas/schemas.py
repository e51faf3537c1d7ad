"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserType(str, Enum):
    student = "student"
    startup = "startup"


class PositionStatus(str, Enum):
    active = "active"
    closed = "closed"


class ApplicationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


# ============================================================
# STARTUP SCHEMAS
# ============================================================

class StartupCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    website: Optional[str] = None
    domain: Optional[str] = None
    summary: Optional[str] = None
    logo_url: Optional[str] = None
    founder_name: Optional[str] = None
    founder_email: Optional[EmailStr] = None
    founder_linkedin: Optional[str] = None

    @field_validator("website", "founder_linkedin", "logo_url")
    @classmethod
    def check_url(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return v

class StartupResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    website: Optional[str] = None
    domain: Optional[str] = None
    summary: Optional[str] = None
    logo_url: Optional[str] = None
    founder_name: Optional[str] = None
    founder_email: Optional[str] = None
    founder_linkedin: Optional[str] = None
    created_at: Optional[datetime] = None


# ============================================================
# POSITION SCHEMAS
# ============================================================

class PositionCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    stipend: Optional[str] = None
    requirements: Optional[str] = None

class PositionStatusUpdate(BaseModel):
    status: PositionStatus

class PositionResponse(BaseModel):
    id: str
    startup_id: str
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    duration: Optional[str] = None
    stipend: Optional[str] = None
    requirements: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    startup_name: Optional[str] = None
    startup_logo_url: Optional[str] = None
    application_count: Optional[int] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=5000)

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus

class StartupApplicationResponse(BaseModel):
    """An application as seen by the startup that owns the position."""
    id: str
    position_id: str
    position_title: str
    student_id: str
    student_name: Optional[str] = None
    student_email: Optional[str] = None
    status: str
    cover_letter: Optional[str] = None
    applied_at: Optional[datetime] = None

class StartupSummary(BaseModel):
    id: str
    name: str
    logo_url: Optional[str] = None

class PositionSummary(BaseModel):
    id: str
    title: str
    location: Optional[str] = None
    duration: Optional[str] = None
    stipend: Optional[str] = None
    startup: StartupSummary

class StudentApplicationResponse(BaseModel):
    """An application as seen by the student who made it."""
    id: str
    status: str
    applied_at: Optional[datetime] = None
    cover_letter: Optional[str] = None
    position: PositionSummary


# ============================================================
# STUDENT PROFILE SCHEMAS
# ============================================================

class StudentProfileUpdate(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    bio: Optional[str] = None
    profile_photo_url: Optional[str] = None
    resume_url: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    bits_id: Optional[str] = None
    graduation_year: Optional[str] = None
    degree: Optional[str] = "B.Tech"
    major: Optional[str] = None
    campus: Optional[str] = None
    cgpa: Optional[str] = None
    skills: List[str] = []
    phone_number: Optional[str] = None
    projects: Optional[str] = None
    experience: Optional[str] = None

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.replace("+", "", 1).replace(" ", "").isdigit():
            raise ValueError("phone number may only contain digits, spaces and a leading +")
        return v

    @field_validator("skills")
    @classmethod
    def strip_skills(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]

class StudentProfileResponse(StudentProfileUpdate):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    updated_at: Optional[datetime] = None
    profile_complete: bool = False


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class CreatedResponse(MessageResponse):
    id: str

class ErrorResponse(BaseModel):
    detail: str
