"""
Table definitions for the backing store.

Queries are written as plain SQL in the services; these definitions exist so
that a fresh database (or the in-memory test database) can be created with
init_tables(). Ids are UUID strings, matching the identity provider's user ids.

Tables:
1. user_profiles        - one row per signed-up user, with user_type
2. startups             - alumni-founded startups, owned by a user
3. internship_positions - postings, status active/closed
4. applications         - student applications, status pending/accepted/rejected
5. student_profiles     - multi-step student profile (skills stored as JSON text)
"""
import logging

from sqlalchemy import (
    Column, DateTime, ForeignKey, MetaData, String, Table, Text, UniqueConstraint
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

user_profiles = Table(
    "user_profiles", metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False),
    Column("user_type", String(16), nullable=False),
    Column("created_at", DateTime),
)

startups = Table(
    "startups", metadata,
    Column("id", String(36), primary_key=True),
    Column("owner_id", String(36), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("website", String(500)),
    Column("domain", String(200)),
    Column("summary", Text),
    Column("logo_url", String(500)),
    Column("founder_name", String(200)),
    Column("founder_email", String(255)),
    Column("founder_linkedin", String(500)),
    Column("created_at", DateTime),
)

internship_positions = Table(
    "internship_positions", metadata,
    Column("id", String(36), primary_key=True),
    Column("startup_id", String(36), ForeignKey("startups.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("description", Text),
    Column("location", String(200)),
    Column("duration", String(100)),
    Column("stipend", String(100)),
    Column("requirements", Text),
    Column("status", String(16), nullable=False, server_default="active"),
    Column("created_at", DateTime),
)

applications = Table(
    "applications", metadata,
    Column("id", String(36), primary_key=True),
    Column("position_id", String(36), ForeignKey("internship_positions.id", ondelete="CASCADE"), nullable=False),
    Column("student_id", String(36), nullable=False, index=True),
    Column("status", String(16), nullable=False, server_default="pending"),
    Column("cover_letter", Text),
    Column("applied_at", DateTime),
    Column("updated_at", DateTime),
    UniqueConstraint("position_id", "student_id", name="uq_application_position_student"),
)

student_profiles = Table(
    "student_profiles", metadata,
    Column("id", String(36), primary_key=True),
    Column("full_name", String(200)),
    Column("email", String(255)),
    Column("bio", Text),
    Column("profile_photo_url", String(500)),
    Column("resume_url", String(500)),
    Column("github_url", String(500)),
    Column("linkedin_url", String(500)),
    Column("bits_id", String(50)),
    Column("graduation_year", String(10)),
    Column("degree", String(100)),
    Column("major", String(100)),
    Column("campus", String(100)),
    Column("cgpa", String(10)),
    Column("skills", Text),
    Column("phone_number", String(30)),
    Column("projects", Text),
    Column("experience", Text),
    Column("updated_at", DateTime),
)


def init_tables(engine: Engine) -> None:
    """
    Create missing tables.
    Call this once during app startup.
    """
    metadata.create_all(engine)
    logger.info("Tables initialized")
