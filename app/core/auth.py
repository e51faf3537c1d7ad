"""
Authentication Utility - verify tokens issued by the hosted identity provider.

Sign-up, sign-in and password resets happen at the provider. This service
only:
- verifies the bearer JWT (shared secret, "authenticated" audience)
- resolves the user's type (student/startup) from user_profiles, falling
  back to the token's user_metadata on first sight
- provides FastAPI dependencies for protected routes
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.core.config import get_settings
from app.schemas.schemas import UserType
from app.services.db_service import DatabaseService, get_db_service

logger = logging.getLogger(__name__)

# Bearer token extractor
bearer_scheme = HTTPBearer()


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a provider JWT. Returns None if invalid or expired."""
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.auth_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        logger.info("Rejected token: %s", e)
        return None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db_service: DatabaseService = Depends(get_db_service),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    email = payload.get("email", "")
    user_type = db_service.get_user_type(user_id)
    if user_type is None:
        claimed = (payload.get("user_metadata") or {}).get("user_type")
        if claimed not in (UserType.student.value, UserType.startup.value):
            raise HTTPException(status_code=403, detail="Account type not set")
        user_type = db_service.ensure_user_profile(user_id, email, claimed)

    return {"user_id": user_id, "email": email, "user_type": user_type}


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require a student account."""
    if user["user_type"] != UserType.student.value:
        raise HTTPException(status_code=403, detail="Students only")
    return user


async def get_current_startup(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require a startup account."""
    if user["user_type"] != UserType.startup.value:
        raise HTTPException(status_code=403, detail="Startups only")
    return user
