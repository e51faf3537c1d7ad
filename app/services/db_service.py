"""
Database Service - every read and write the app makes against the store.

Reads go through the QueryCache and return None when the store fails (the
failure is logged). Writes are never cached; each one invalidates the cached
reads it could make stale, then returns the written row.

Cache keys and tags:
    active_positions                    {positions}
    startups                            {startups}
    user_profile_<user_id>_<type>       {profiles, user:<user_id>}
    startup_applications_<owner_id>     {applications, owner:<owner_id>}
    startup_positions_<startup_id>      {positions, startup:<startup_id>}
    student_applications_<student_id>   {applications, student:<student_id>}
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings
from app.core.exceptions import (
    AlreadyAppliedError,
    NotFoundError,
    PositionNotAvailableError,
    ProfileIncompleteError,
)
from app.db.postgres import execute_raw_sql, get_db_session, get_session_factory
from app.schemas.schemas import ApplicationStatus, PositionStatus, UserType
from app.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

ACTIVE_POSITIONS_KEY = "active_positions"
STARTUPS_KEY = "startups"

STARTUP_COLUMNS = (
    "id", "owner_id", "name", "website", "domain", "summary", "logo_url",
    "founder_name", "founder_email", "founder_linkedin",
)
STUDENT_PROFILE_COLUMNS = (
    "full_name", "email", "bio", "profile_photo_url", "resume_url", "github_url",
    "linkedin_url", "bits_id", "graduation_year", "degree", "major", "campus",
    "cgpa", "skills", "phone_number", "projects", "experience",
)


def user_profile_key(user_id: str, user_type: str) -> str:
    return f"user_profile_{user_id}_{user_type}"


def startup_applications_key(owner_id: str) -> str:
    return f"startup_applications_{owner_id}"


def startup_positions_key(startup_id: str) -> str:
    return f"startup_positions_{startup_id}"


def student_applications_key(student_id: str) -> str:
    return f"student_applications_{student_id}"


def is_profile_complete(profile: Optional[dict]) -> bool:
    """A student may apply once name, bio and at least one skill are filled in."""
    if not profile:
        return False
    return bool(profile.get("full_name") and profile.get("bio") and profile.get("skills"))


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _decode_skills(raw: Any) -> List[str]:
    if not raw:
        return []
    if isinstance(raw, list):
        return raw
    try:
        skills = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return skills if isinstance(skills, list) else []


class DatabaseService:
    """
    Cached reads and invalidating writes over the relational store.

    Usage:
        service = DatabaseService(session_factory, QueryCache(ttl_seconds=60))
        positions = service.get_active_positions()
    """

    def __init__(self, session_factory: sessionmaker, cache: QueryCache):
        self.session_factory = session_factory
        self.cache = cache

    def _rows(self, sql: str, params: Optional[dict] = None) -> List[dict]:
        return execute_raw_sql(sql, params, self.session_factory)

    # ============================================================
    # CACHED READS
    # ============================================================

    def get_active_positions(self, force_fresh: bool = False) -> Optional[List[dict]]:
        """Active positions with their startup's name and logo, newest first."""
        return self.cache.get_or_fetch(
            ACTIVE_POSITIONS_KEY,
            lambda: self._rows("""
                SELECT p.id, p.startup_id, p.title, p.description, p.location, p.duration,
                       p.stipend, p.requirements, p.status, p.created_at,
                       s.name AS startup_name, s.logo_url AS startup_logo_url
                FROM internship_positions p
                JOIN startups s ON p.startup_id = s.id
                WHERE p.status = 'active'
                ORDER BY p.created_at DESC
            """),
            force_fresh=force_fresh,
            tags=["positions"],
        )

    def get_startups(self, force_fresh: bool = False) -> Optional[List[dict]]:
        return self.cache.get_or_fetch(
            STARTUPS_KEY,
            lambda: self._rows(f"""
                SELECT {', '.join(STARTUP_COLUMNS)}, created_at
                FROM startups ORDER BY name
            """),
            force_fresh=force_fresh,
            tags=["startups"],
        )

    def get_user_profile(
        self, user_id: str, user_type: Union[UserType, str], force_fresh: bool = False
    ) -> Optional[dict]:
        """
        The startup owned by user_id, or the student profile with id user_id.

        Exactly one row must match; anything else counts as a failed fetch.
        """
        user_type = UserType(user_type).value

        def fetch() -> dict:
            if user_type == UserType.startup.value:
                rows = self._rows(
                    f"SELECT {', '.join(STARTUP_COLUMNS)}, created_at FROM startups WHERE owner_id = :id",
                    {"id": user_id},
                )
            else:
                rows = self._rows(
                    f"SELECT id, {', '.join(STUDENT_PROFILE_COLUMNS)}, updated_at "
                    "FROM student_profiles WHERE id = :id",
                    {"id": user_id},
                )
            if len(rows) != 1:
                raise NotFoundError(f"Expected one {user_type} profile for {user_id}, found {len(rows)}")
            profile = rows[0]
            if user_type == UserType.student.value:
                profile["skills"] = _decode_skills(profile.get("skills"))
                profile["profile_complete"] = is_profile_complete(profile)
            return profile

        return self.cache.get_or_fetch(
            user_profile_key(user_id, user_type),
            fetch,
            force_fresh=force_fresh,
            tags=["profiles", f"user:{user_id}"],
        )

    def get_startup_applications(self, owner_id: str, force_fresh: bool = False) -> Optional[List[dict]]:
        """Applications to any position of any startup owned by owner_id."""
        return self.cache.get_or_fetch(
            startup_applications_key(owner_id),
            lambda: self._rows("""
                SELECT a.id, a.position_id, p.title AS position_title, a.student_id,
                       sp.full_name AS student_name, sp.email AS student_email,
                       a.status, a.cover_letter, a.applied_at
                FROM applications a
                JOIN internship_positions p ON a.position_id = p.id
                JOIN startups s ON p.startup_id = s.id
                LEFT JOIN student_profiles sp ON sp.id = a.student_id
                WHERE s.owner_id = :owner_id
                ORDER BY a.applied_at DESC
            """, {"owner_id": owner_id}),
            force_fresh=force_fresh,
            tags=["applications", f"owner:{owner_id}"],
        )

    def get_startup_positions(self, startup_id: str, force_fresh: bool = False) -> Optional[List[dict]]:
        """All positions of a startup (any status) with their application count."""
        return self.cache.get_or_fetch(
            startup_positions_key(startup_id),
            lambda: self._rows("""
                SELECT p.id, p.startup_id, p.title, p.description, p.location, p.duration,
                       p.stipend, p.requirements, p.status, p.created_at,
                       COUNT(a.id) AS application_count
                FROM internship_positions p
                LEFT JOIN applications a ON a.position_id = p.id
                WHERE p.startup_id = :startup_id
                GROUP BY p.id, p.startup_id, p.title, p.description, p.location, p.duration,
                         p.stipend, p.requirements, p.status, p.created_at
                ORDER BY p.created_at DESC
            """, {"startup_id": startup_id}),
            force_fresh=force_fresh,
            tags=["positions", f"startup:{startup_id}"],
        )

    def get_student_applications(self, student_id: str, force_fresh: bool = False) -> Optional[List[dict]]:
        """A student's applications, newest first, with position and startup nested."""

        def fetch() -> List[dict]:
            rows = self._rows("""
                SELECT a.id, a.status, a.applied_at, a.cover_letter,
                       p.id AS position_id, p.title, p.location, p.duration, p.stipend,
                       s.id AS startup_id, s.name AS startup_name, s.logo_url
                FROM applications a
                JOIN internship_positions p ON a.position_id = p.id
                JOIN startups s ON p.startup_id = s.id
                WHERE a.student_id = :student_id
                ORDER BY a.applied_at DESC
            """, {"student_id": student_id})
            return [
                {
                    "id": r["id"],
                    "status": r["status"],
                    "applied_at": r["applied_at"],
                    "cover_letter": r["cover_letter"],
                    "position": {
                        "id": r["position_id"],
                        "title": r["title"],
                        "location": r["location"],
                        "duration": r["duration"],
                        "stipend": r["stipend"],
                        "startup": {
                            "id": r["startup_id"],
                            "name": r["startup_name"],
                            "logo_url": r["logo_url"],
                        },
                    },
                }
                for r in rows
            ]

        return self.cache.get_or_fetch(
            student_applications_key(student_id),
            fetch,
            force_fresh=force_fresh,
            tags=["applications", f"student:{student_id}"],
        )

    # ============================================================
    # USER PROFILES (identity provider side-table)
    # ============================================================

    def get_user_type(self, user_id: str) -> Optional[str]:
        rows = self._rows("SELECT user_type FROM user_profiles WHERE id = :id", {"id": user_id})
        return rows[0]["user_type"] if rows else None

    def ensure_user_profile(self, user_id: str, email: str, user_type: Union[UserType, str]) -> str:
        """Create the user_profiles row on first sight. Returns the stored user_type."""
        user_type = UserType(user_type).value
        with get_db_session(self.session_factory) as db:
            row = db.execute(
                text("SELECT user_type FROM user_profiles WHERE id = :id"), {"id": user_id}
            ).fetchone()
            if row:
                return row[0]
            db.execute(
                text("""
                    INSERT INTO user_profiles (id, email, user_type, created_at)
                    VALUES (:id, :email, :user_type, :created_at)
                """),
                {"id": user_id, "email": email, "user_type": user_type, "created_at": _now()}
            )
        logger.info("Created %s user profile for %s", user_type, user_id)
        return user_type

    def startup_exists(self, owner_id: str) -> bool:
        """Uncached check for the registration guard."""
        rows = self._rows("SELECT id FROM startups WHERE owner_id = :id", {"id": owner_id})
        return bool(rows)

    # ============================================================
    # MUTATIONS
    # ============================================================

    def register_startup(self, owner_id: str, data: Dict[str, Any]) -> dict:
        """Insert a startup owned by owner_id."""
        row = {col: data.get(col) for col in STARTUP_COLUMNS}
        row.update({"id": str(uuid.uuid4()), "owner_id": owner_id, "created_at": _now()})
        columns = list(STARTUP_COLUMNS) + ["created_at"]
        try:
            with get_db_session(self.session_factory) as db:
                db.execute(
                    text(f"""
                        INSERT INTO startups ({', '.join(columns)})
                        VALUES ({', '.join(':' + c for c in columns)})
                    """),
                    row
                )
        except SQLAlchemyError:
            logger.exception("Error registering startup for owner %s", owner_id)
            raise

        self.cache.invalidate(STARTUPS_KEY)
        self.cache.invalidate(user_profile_key(owner_id, UserType.startup.value))
        return row

    def create_position(self, data: Dict[str, Any]) -> dict:
        """Insert an active position. data must carry startup_id."""
        startup_id = data.get("startup_id")
        if not startup_id:
            raise ValueError("startup_id is required")

        row = {
            "id": str(uuid.uuid4()),
            "startup_id": startup_id,
            "title": data.get("title"),
            "description": data.get("description"),
            "location": data.get("location"),
            "duration": data.get("duration"),
            "stipend": data.get("stipend"),
            "requirements": data.get("requirements"),
            "status": PositionStatus.active.value,
            "created_at": _now(),
        }
        try:
            with get_db_session(self.session_factory) as db:
                db.execute(
                    text("""
                        INSERT INTO internship_positions
                            (id, startup_id, title, description, location, duration, stipend,
                             requirements, status, created_at)
                        VALUES (:id, :startup_id, :title, :description, :location, :duration, :stipend,
                                :requirements, :status, :created_at)
                    """),
                    row
                )
        except SQLAlchemyError:
            logger.exception("Error creating position for startup %s", startup_id)
            raise

        self.cache.invalidate(ACTIVE_POSITIONS_KEY)
        self.cache.invalidate(startup_positions_key(startup_id))
        return row

    def apply_for_position(self, position_id: str, student_id: str, cover_letter: Optional[str] = None) -> dict:
        """
        Create a pending application.

        Raises PositionNotAvailableError, ProfileIncompleteError or
        AlreadyAppliedError before anything is written.
        """
        row = {
            "id": str(uuid.uuid4()),
            "position_id": position_id,
            "student_id": student_id,
            "status": ApplicationStatus.pending.value,
            "cover_letter": cover_letter.strip() if cover_letter else None,
            "applied_at": _now(),
        }
        row["updated_at"] = row["applied_at"]

        try:
            with get_db_session(self.session_factory) as db:
                position = db.execute(
                    text("""
                        SELECT p.status, p.startup_id, s.owner_id
                        FROM internship_positions p JOIN startups s ON p.startup_id = s.id
                        WHERE p.id = :pid
                    """),
                    {"pid": position_id}
                ).mappings().fetchone()
                if not position or position["status"] != PositionStatus.active.value:
                    raise PositionNotAvailableError()

                profile = db.execute(
                    text("SELECT full_name, bio, skills FROM student_profiles WHERE id = :sid"),
                    {"sid": student_id}
                ).mappings().fetchone()
                if not profile or not is_profile_complete(
                    {**profile, "skills": _decode_skills(profile["skills"])}
                ):
                    raise ProfileIncompleteError()

                existing = db.execute(
                    text("SELECT id FROM applications WHERE position_id = :pid AND student_id = :sid"),
                    {"pid": position_id, "sid": student_id}
                ).fetchall()
                if existing:
                    raise AlreadyAppliedError()

                db.execute(
                    text("""
                        INSERT INTO applications
                            (id, position_id, student_id, status, cover_letter, applied_at, updated_at)
                        VALUES (:id, :position_id, :student_id, :status, :cover_letter, :applied_at, :updated_at)
                    """),
                    row
                )
        except SQLAlchemyError:
            logger.exception("Error applying for position %s", position_id)
            raise

        self.cache.invalidate(student_applications_key(student_id))
        self.cache.invalidate(startup_applications_key(position["owner_id"]))
        self.cache.invalidate(startup_positions_key(position["startup_id"]))
        return row

    def update_application_status(
        self,
        application_id: str,
        status: Union[ApplicationStatus, str],
        owner_id: Optional[str] = None,
    ) -> dict:
        """
        Set an application's status. With owner_id, only applications to that
        owner's positions can be changed.
        """
        status = ApplicationStatus(status).value
        params = {"aid": application_id, "status": status, "now": _now()}
        sql = "UPDATE applications SET status = :status, updated_at = :now WHERE id = :aid"
        if owner_id is not None:
            sql += """
                AND position_id IN (
                    SELECT p.id FROM internship_positions p JOIN startups s ON p.startup_id = s.id
                    WHERE s.owner_id = :owner_id
                )
            """
            params["owner_id"] = owner_id

        try:
            with get_db_session(self.session_factory) as db:
                result = db.execute(text(sql), params)
                if result.rowcount == 0:
                    raise NotFoundError("Application not found or access denied")
        except SQLAlchemyError:
            logger.exception("Error updating application %s", application_id)
            raise

        self.cache.invalidate_tags("applications")
        return {"id": application_id, "status": status}

    def update_position_status(
        self,
        position_id: str,
        status: Union[PositionStatus, str],
        owner_id: Optional[str] = None,
    ) -> dict:
        """Open or close a position. With owner_id, only that owner's positions."""
        status = PositionStatus(status).value
        params = {"pid": position_id, "status": status}
        sql = "UPDATE internship_positions SET status = :status WHERE id = :pid"
        if owner_id is not None:
            sql += " AND startup_id IN (SELECT id FROM startups WHERE owner_id = :owner_id)"
            params["owner_id"] = owner_id

        try:
            with get_db_session(self.session_factory) as db:
                result = db.execute(text(sql), params)
                if result.rowcount == 0:
                    raise NotFoundError("Position not found or access denied")
        except SQLAlchemyError:
            logger.exception("Error updating position %s", position_id)
            raise

        # active_positions carries the "positions" tag too
        self.cache.invalidate_tags("positions")
        return {"id": position_id, "status": status}

    def upsert_student_profile(self, student_id: str, data: Dict[str, Any]) -> dict:
        """Insert or replace the student's profile."""
        row = {col: data.get(col) for col in STUDENT_PROFILE_COLUMNS}
        row["skills"] = json.dumps(list(data.get("skills") or []))
        row["id"] = student_id
        row["updated_at"] = _now()

        try:
            with get_db_session(self.session_factory) as db:
                exists = db.execute(
                    text("SELECT id FROM student_profiles WHERE id = :id"), {"id": student_id}
                ).fetchone()
                if exists:
                    assignments = ", ".join(f"{c} = :{c}" for c in STUDENT_PROFILE_COLUMNS)
                    db.execute(
                        text(f"UPDATE student_profiles SET {assignments}, updated_at = :updated_at WHERE id = :id"),
                        row
                    )
                else:
                    columns = ["id"] + list(STUDENT_PROFILE_COLUMNS) + ["updated_at"]
                    db.execute(
                        text(f"""
                            INSERT INTO student_profiles ({', '.join(columns)})
                            VALUES ({', '.join(':' + c for c in columns)})
                        """),
                        row
                    )
        except SQLAlchemyError:
            logger.exception("Error saving student profile %s", student_id)
            raise

        self.cache.invalidate(user_profile_key(student_id, UserType.student.value))
        row["skills"] = _decode_skills(row["skills"])
        row["profile_complete"] = is_profile_complete(row)
        return row


# ============================================================
# SINGLETON: process-wide service for the API
# ============================================================

@lru_cache()
def get_db_service() -> DatabaseService:
    """
    Get the app's DatabaseService (created once).
    Tests build their own DatabaseService instead of calling this.
    """
    settings = get_settings()
    cache = QueryCache(
        ttl_seconds=settings.cache_ttl_seconds,
        single_flight=settings.cache_single_flight,
    )
    return DatabaseService(get_session_factory(), cache)
