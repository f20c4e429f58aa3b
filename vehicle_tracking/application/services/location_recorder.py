from collections.abc import Callable
from datetime import datetime, timezone

import structlog

from vehicle_tracking.application.interfaces.location_store import LocationStore
from vehicle_tracking.domain.entities.location import (
    LocationRecord,
    LocationSnapshot,
    normalize_snapshot,
)
from vehicle_tracking.domain.entities.vehicle import Vehicle

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocationRecorder:
    """Normalizes a fetched snapshot and appends it to the location store."""

    def __init__(
        self,
        store: LocationStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    async def record(self, vehicle: Vehicle, snapshot: LocationSnapshot) -> LocationRecord:
        record = normalize_snapshot(vehicle, snapshot, fetched_at=self._clock())
        await self._store.append_location(record)
        logger.debug(
            "location_recorded",
            vehicle_id=vehicle.id,
            manifest_id=record.manifest_id,
            provider=record.provider,
        )
        return record
