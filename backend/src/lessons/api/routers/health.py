"""Health check endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from lessons.api.deps import get_database, get_settings
from lessons.logging_config import get_logger
from lessons.settings import Settings
from lessons.storage.db import Database, DatabaseNotConfigured

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/")
def database_version(db: Database = Depends(get_database)):
    """Report the database server version."""
    try:
        version = db.version()
    except DatabaseNotConfigured as e:
        return PlainTextResponse(str(e), status_code=500)
    except SQLAlchemyError as e:
        logger.error("database_query_failed", error=str(e))
        return PlainTextResponse("Failed to connect to database", status_code=500)

    return {"version": version}


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "env": settings.env,
    }
