import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vehicle_tracking.application.interfaces.location_store import LocationStore
from vehicle_tracking.domain.entities.location import LocationRecord
from vehicle_tracking.domain.errors import StorageError
from vehicle_tracking.infrastructure.database.models import VehicleLocationModel

logger = structlog.get_logger(__name__)


def _to_model(record: LocationRecord) -> VehicleLocationModel:
    return VehicleLocationModel(
        vehicle_id=record.vehicle_id,
        manifest_id=record.manifest_id,
        provider=record.provider,
        latitude=record.latitude,
        longitude=record.longitude,
        location=record.location,
        speed=record.speed,
        timestamp=record.timestamp,
        created=record.created,
        is_active=record.is_active,
        reason=record.reason,
        driver=record.driver,
        georeference=record.georeference,
        in_zone=record.in_zone,
        detention_time=record.detention_time,
        distance_traveled=record.distance_traveled,
        temperature=record.temperature,
        angle=record.angle,
    )


class SqlAlchemyLocationStore(LocationStore):
    """Appends one row per call, each in its own short-lived session."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def append_location(self, record: LocationRecord) -> None:
        try:
            async with self._session_maker() as session:
                session.add(_to_model(record))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "location_append_failed",
                vehicle_id=record.vehicle_id,
                manifest_id=record.manifest_id,
                error=str(exc),
            )
            raise StorageError(
                f"Could not store location for vehicle {record.vehicle_id}: {exc}"
            ) from exc
