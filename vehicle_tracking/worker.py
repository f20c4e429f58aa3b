"""
Scheduled tracking worker.

Runs a full tracking pass under the system identity, then sleeps for the
shortest polling interval among the configured providers.

    python -m vehicle_tracking.worker [--once]
"""
import argparse
import asyncio

import structlog

from vehicle_tracking.application.use_cases.track_vehicles import (
    TrackVehicles,
    TrackVehiclesInput,
)
from vehicle_tracking.config import Settings, settings
from vehicle_tracking.domain.entities.tracking_outcome import TrackingReport
from vehicle_tracking.logging_config import configure_logging

logger = structlog.get_logger(__name__)


def build_use_case(config: Settings = settings) -> TrackVehicles:
    from vehicle_tracking.infrastructure.database.connection import AsyncSessionLocal
    from vehicle_tracking.infrastructure.database.repositories.location_repository import (
        SqlAlchemyLocationStore,
    )
    from vehicle_tracking.infrastructure.database.repositories.vehicle_repository import (
        SqlAlchemyVehicleSource,
    )
    from vehicle_tracking.infrastructure.scraping.factory import ProviderCatalog, ScraperFactory

    return TrackVehicles(
        SqlAlchemyVehicleSource(AsyncSessionLocal),
        ScraperFactory(ProviderCatalog.from_settings(config.providers)),
        SqlAlchemyLocationStore(AsyncSessionLocal),
        parallel_groups=config.parallel_provider_groups,
        inter_vehicle_delay=config.inter_vehicle_delay_seconds,
    )


def polling_interval(config: Settings = settings) -> int:
    intervals = [portal.polling_interval_seconds for portal in config.providers]
    return min(intervals) if intervals else 300


async def run_once(use_case: TrackVehicles, config: Settings = settings) -> TrackingReport:
    return await use_case.execute(
        TrackVehiclesInput(acting_user=config.system_user, acting_ip=config.system_ip)
    )


async def run_forever(use_case: TrackVehicles, config: Settings = settings) -> None:
    interval = polling_interval(config)
    while True:
        try:
            report = await run_once(use_case, config)
            logger.info("scheduled_run_finished", detail=report.summary_text())
        except Exception:
            # Keep polling after a failed run (e.g. database down)
            logger.exception("scheduled_run_failed")
        await asyncio.sleep(interval)


def main() -> None:
    parser = argparse.ArgumentParser(description="Track fleet vehicles through provider portals.")
    parser.add_argument("--once", action="store_true", help="Run a single tracking pass and exit.")
    args = parser.parse_args()

    configure_logging(settings.log_level, json=settings.log_json)
    use_case = build_use_case()
    if args.once:
        asyncio.run(run_once(use_case))
    else:
        asyncio.run(run_forever(use_case))


if __name__ == "__main__":
    main()
