from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from vehicle_tracking.config import settings
from vehicle_tracking.infrastructure.database.connection import engine

router = APIRouter(tags=["health"])


async def _database_status() -> str:
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT postgis_version()"))
    except SQLAlchemyError as exc:
        return f"error: {exc}"
    except OSError as exc:
        return f"unreachable: {exc}"
    return "connected"


@router.get("/health")
async def health_check() -> dict:  # type: ignore[type-arg]
    """Database (with PostGIS) reachability and the configured provider portals."""
    database = await _database_status()
    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "providers": {
            portal.name: {
                "kind": portal.kind,
                "base_url": portal.base_url,
                "session_per_vehicle": portal.session_per_vehicle,
            }
            for portal in settings.providers
        },
    }
