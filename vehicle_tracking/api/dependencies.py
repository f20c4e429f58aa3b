"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, keeping the route handlers thin.
"""
from fastapi import Depends, Request

from vehicle_tracking.application.interfaces.location_store import LocationStore
from vehicle_tracking.application.interfaces.scraper_session import ScraperSessionFactory
from vehicle_tracking.application.interfaces.vehicle_source import VehicleSource
from vehicle_tracking.application.use_cases.get_vehicle_status import GetVehicleStatus
from vehicle_tracking.application.use_cases.track_vehicles import TrackVehicles
from vehicle_tracking.config import settings
from vehicle_tracking.infrastructure.database.connection import AsyncSessionLocal
from vehicle_tracking.infrastructure.database.repositories.location_repository import (
    SqlAlchemyLocationStore,
)
from vehicle_tracking.infrastructure.database.repositories.vehicle_repository import (
    SqlAlchemyVehicleSource,
)
from vehicle_tracking.infrastructure.scraping.factory import ProviderCatalog, ScraperFactory


# ---- Low-level dependencies ------------------------------------------------

def get_vehicle_source() -> VehicleSource:
    return SqlAlchemyVehicleSource(AsyncSessionLocal)


def get_location_store() -> LocationStore:
    return SqlAlchemyLocationStore(AsyncSessionLocal)


def get_scraper_factory() -> ScraperSessionFactory:
    return ScraperFactory(ProviderCatalog.from_settings(settings.providers))


# ---- Caller context ----------------------------------------------------------

def get_acting_user(request: Request) -> str:
    """Acting user id from the IdUsuario header ("Bearer <id>" or "<id>")."""
    header = request.headers.get("IdUsuario", "")
    parts = header.split()
    return parts[-1] if parts else settings.system_user


def get_acting_ip(request: Request) -> str:
    return request.client.host if request.client else settings.system_ip


# ---- Use-case dependencies -------------------------------------------------

def get_track_vehicles_use_case(
    vehicle_source: VehicleSource = Depends(get_vehicle_source),
    scraper_factory: ScraperSessionFactory = Depends(get_scraper_factory),
    location_store: LocationStore = Depends(get_location_store),
) -> TrackVehicles:
    return TrackVehicles(
        vehicle_source,
        scraper_factory,
        location_store,
        parallel_groups=settings.parallel_provider_groups,
        inter_vehicle_delay=settings.inter_vehicle_delay_seconds,
    )


def get_vehicle_status_use_case(
    vehicle_source: VehicleSource = Depends(get_vehicle_source),
    scraper_factory: ScraperSessionFactory = Depends(get_scraper_factory),
    location_store: LocationStore = Depends(get_location_store),
) -> GetVehicleStatus:
    return GetVehicleStatus(vehicle_source, scraper_factory, location_store)
