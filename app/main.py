"""
Startup Internship Connect - Main Application

FastAPI backend with:
- PostgreSQL for startups, positions, applications and student profiles
- Hosted identity provider for auth (we only verify its JWTs)
- Read-through query cache in front of the read-heavy queries

Run: uvicorn app.main:app --reload
"""

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.routes import api_router
from app.core.exceptions import AppError
from app.core.logging_conf import setup_logging
from app.db import check_connection, get_engine, init_tables
from app.services.db_service import DatabaseService, get_db_service

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Startup Internship Connect",
    description="""
    Connects students with alumni-founded startups for internships.

    ## Features
    - **Positions**: Browse active internships, startups post and close them
    - **Startups**: Directory, registration, dashboard of positions and applications
    - **Students**: Profile, applications and their status
    - **Caching**: Listing and profile reads are cached for 60 seconds and
      invalidated by the writes that affect them
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Domain errors raised by services become plain {"detail": ...} responses."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create missing tables on startup."""
    try:
        init_tables(get_engine())
    except SQLAlchemyError as e:
        logger.warning("Table initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check(db_service: DatabaseService = Depends(get_db_service)):
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if check_connection(db_service.session_factory) else "disconnected",
        "cache_entries": len(db_service.cache)
    }
