from dataclasses import dataclass

import structlog

from vehicle_tracking.application.interfaces.location_store import LocationStore
from vehicle_tracking.application.interfaces.scraper_session import ScraperSessionFactory
from vehicle_tracking.application.interfaces.vehicle_source import VehicleSource
from vehicle_tracking.application.services.location_recorder import LocationRecorder
from vehicle_tracking.domain.entities.location import LocationSnapshot
from vehicle_tracking.domain.entities.vehicle import Vehicle

logger = structlog.get_logger(__name__)


@dataclass
class GetVehicleStatusInput:
    patent: str
    acting_user: str
    acting_ip: str


def _same_patent(left: str, right: str) -> bool:
    return left.strip().upper() == right.strip().upper()


class GetVehicleStatus:
    """
    Use case: fetch and record the current position of one vehicle.

    Returns None when the vehicle is not eligible for tracking, when the portal
    rejects its credentials, or when the portal has no data for it. Unlike the
    batch run, any other failure propagates to the caller.
    """

    def __init__(
        self,
        vehicle_source: VehicleSource,
        scraper_factory: ScraperSessionFactory,
        location_store: LocationStore,
        *,
        recorder: LocationRecorder | None = None,
    ) -> None:
        self._vehicle_source = vehicle_source
        self._scraper_factory = scraper_factory
        self._recorder = recorder or LocationRecorder(location_store)

    async def execute(self, input_data: GetVehicleStatusInput) -> LocationSnapshot | None:
        log = logger.bind(
            actor=input_data.acting_user, ip=input_data.acting_ip, patent=input_data.patent
        )
        log.info("vehicle_status_requested")

        try:
            vehicle = await self._find_vehicle(input_data.patent)
            if vehicle is None:
                log.info("vehicle_not_found")
                return None

            log = log.bind(provider=vehicle.provider)
            session = self._scraper_factory.create_session(
                vehicle.provider, input_data.acting_user, input_data.acting_ip
            )
            async with session:
                if not await session.login(vehicle.user, vehicle.password):
                    log.error("vehicle_login_failed")
                    return None

                snapshot = await session.fetch_location(vehicle.patent)
                if snapshot is None:
                    log.warning("vehicle_location_unavailable")
                    return None

                await self._recorder.record(vehicle, snapshot)
        except Exception:
            log.exception("vehicle_status_failed")
            raise

        log.info("vehicle_status_recorded", latitude=snapshot.latitude, longitude=snapshot.longitude)
        return snapshot

    async def _find_vehicle(self, patent: str) -> Vehicle | None:
        vehicles = await self._vehicle_source.list_active_vehicles_with_open_manifest()
        return next((v for v in vehicles if _same_patent(v.patent, patent)), None)
