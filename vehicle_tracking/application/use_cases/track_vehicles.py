import asyncio
from dataclasses import dataclass

import structlog

from vehicle_tracking.application.interfaces.location_store import LocationStore
from vehicle_tracking.application.interfaces.scraper_session import (
    ScraperSession,
    ScraperSessionFactory,
)
from vehicle_tracking.application.interfaces.vehicle_source import VehicleSource
from vehicle_tracking.application.services.location_recorder import LocationRecorder
from vehicle_tracking.domain.entities.tracking_outcome import TrackingOutcome, TrackingReport
from vehicle_tracking.domain.entities.vehicle import Vehicle
from vehicle_tracking.domain.enums.outcome_status import OutcomeStatus
from vehicle_tracking.domain.errors import TrackingError

logger = structlog.get_logger(__name__)


@dataclass
class TrackVehiclesInput:
    acting_user: str
    acting_ip: str


def group_by_provider(vehicles: list[Vehicle]) -> dict[str, list[Vehicle]]:
    """Group vehicles by provider, keeping first-seen provider order and source order within a group."""
    groups: dict[str, list[Vehicle]] = {}
    for vehicle in vehicles:
        groups.setdefault(vehicle.provider, []).append(vehicle)
    return groups


def _status_for(exc: Exception) -> OutcomeStatus:
    if isinstance(exc, TrackingError):
        return OutcomeStatus.for_error(exc.kind)
    return OutcomeStatus.INTERNAL_ERROR


class TrackVehicles:
    """
    Use case: locate every eligible vehicle through its provider portal and
    record the positions.

    Vehicles are grouped by provider and each group shares one scraper session,
    so credentials are only re-sent when the portal needs them. Failures are
    isolated per vehicle; a group whose session cannot be created reports every
    one of its vehicles as failed and the run moves on to the next group. Only
    a failure to list the vehicles aborts the run.
    """

    def __init__(
        self,
        vehicle_source: VehicleSource,
        scraper_factory: ScraperSessionFactory,
        location_store: LocationStore,
        *,
        parallel_groups: bool = False,
        inter_vehicle_delay: float = 0.0,
        recorder: LocationRecorder | None = None,
    ) -> None:
        self._vehicle_source = vehicle_source
        self._scraper_factory = scraper_factory
        self._recorder = recorder or LocationRecorder(location_store)
        self._parallel_groups = parallel_groups
        self._inter_vehicle_delay = inter_vehicle_delay

    async def execute(self, input_data: TrackVehiclesInput) -> TrackingReport:
        log = logger.bind(actor=input_data.acting_user, ip=input_data.acting_ip)
        log.info("tracking_run_started")

        try:
            vehicles = await self._vehicle_source.list_active_vehicles_with_open_manifest()
        except Exception:
            log.exception("tracking_run_aborted")
            raise

        if not vehicles:
            log.info("no_vehicles_to_track")
            return TrackingReport.empty()

        groups = group_by_provider(vehicles)
        if self._parallel_groups:
            per_group = await asyncio.gather(
                *(
                    self._track_group(provider, group, input_data, log)
                    for provider, group in groups.items()
                )
            )
        else:
            per_group = [
                await self._track_group(provider, group, input_data, log)
                for provider, group in groups.items()
            ]

        report = TrackingReport.from_outcomes([o for outcomes in per_group for o in outcomes])
        log.info(
            "tracking_run_completed",
            total=report.total_records,
            succeeded=report.succeeded,
            failed=report.failed,
        )
        return report

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    async def _track_group(
        self,
        provider: str,
        vehicles: list[Vehicle],
        input_data: TrackVehiclesInput,
        log: structlog.BoundLogger,
    ) -> list[TrackingOutcome]:
        log = log.bind(provider=provider)
        log.info("provider_group_started", vehicles=len(vehicles))

        if not self._scraper_factory.session_per_vehicle(provider):
            return await self._track_with_session(provider, vehicles, input_data, log)

        outcomes: list[TrackingOutcome] = []
        for index, vehicle in enumerate(vehicles):
            if index:
                await self._pause()
            outcomes.extend(
                await self._track_with_session(provider, [vehicle], input_data, log)
            )
        return outcomes

    async def _track_with_session(
        self,
        provider: str,
        vehicles: list[Vehicle],
        input_data: TrackVehiclesInput,
        log: structlog.BoundLogger,
    ) -> list[TrackingOutcome]:
        try:
            session = self._scraper_factory.create_session(
                provider, input_data.acting_user, input_data.acting_ip
            )
        except Exception as exc:
            status = _status_for(exc)
            log.error(
                "provider_session_failed",
                status=status.value,
                error=str(exc),
                patents=[v.patent for v in vehicles],
            )
            return [TrackingOutcome.failed(v.patent, status) for v in vehicles]

        outcomes: list[TrackingOutcome] = []
        try:
            async with session:
                for index, vehicle in enumerate(vehicles):
                    if index:
                        await self._pause()
                    outcomes.append(await self._track_vehicle(session, vehicle, log))
        except Exception as exc:
            # Only release() can raise here; every outcome is already recorded
            log.warning("scraper_release_failed", error=str(exc))
        return outcomes

    async def _pause(self) -> None:
        if self._inter_vehicle_delay > 0:
            await asyncio.sleep(self._inter_vehicle_delay)

    # -------------------------------------------------------------------------
    # Single vehicle
    # -------------------------------------------------------------------------

    async def _track_vehicle(
        self, session: ScraperSession, vehicle: Vehicle, log: structlog.BoundLogger
    ) -> TrackingOutcome:
        log = log.bind(patent=vehicle.patent)
        try:
            if not await session.login(vehicle.user, vehicle.password):
                log.error("vehicle_login_failed", status=OutcomeStatus.AUTHENTICATION_ERROR.value)
                return TrackingOutcome.failed(vehicle.patent, OutcomeStatus.AUTHENTICATION_ERROR)

            snapshot = await session.fetch_location(vehicle.patent)
            if snapshot is None:
                log.warning("vehicle_location_unavailable", status=OutcomeStatus.NO_DATA.value)
                return TrackingOutcome.failed(vehicle.patent, OutcomeStatus.NO_DATA)

            record = await self._recorder.record(vehicle, snapshot)
        except TrackingError as exc:
            status = _status_for(exc)
            log.error("vehicle_tracking_failed", status=status.value, error=str(exc))
            return TrackingOutcome.failed(vehicle.patent, status)
        except Exception:
            log.exception("vehicle_tracking_failed", status=OutcomeStatus.INTERNAL_ERROR.value)
            return TrackingOutcome.failed(vehicle.patent, OutcomeStatus.INTERNAL_ERROR)

        log.info("vehicle_tracked", latitude=record.latitude, longitude=record.longitude)
        return TrackingOutcome.processed(vehicle.patent, record.latitude, record.longitude)
