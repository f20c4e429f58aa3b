"""Eligible-vehicle queries against the fleet database."""
import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vehicle_tracking.application.interfaces.vehicle_source import VehicleSource
from vehicle_tracking.config import settings
from vehicle_tracking.domain.entities.vehicle import Vehicle
from vehicle_tracking.domain.errors import VehicleListError
from vehicle_tracking.infrastructure.database.models import ManifestModel, VehicleModel

logger = structlog.get_logger(__name__)


class SqlAlchemyVehicleSource(VehicleSource):
    """
    Lists vehicles that are active and have an open manifest.

    A vehicle with several open manifests is returned once, bound to the most
    recent one. Pass `provider` to restrict the list to one provider's fleet.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        provider: str | None = None,
        closed_processes: list[int] | None = None,
        closed_states: list[int] | None = None,
    ) -> None:
        self._session_maker = session_maker
        self._provider = provider
        self._closed_processes = (
            closed_processes if closed_processes is not None else settings.closed_manifest_processes
        )
        self._closed_states = (
            closed_states if closed_states is not None else settings.closed_manifest_states
        )

    async def list_active_vehicles_with_open_manifest(self) -> list[Vehicle]:
        query = (
            select(VehicleModel, ManifestModel.id)
            .join(ManifestModel, ManifestModel.vehicle_id == VehicleModel.id)
            .where(ManifestModel.active.is_(True))
            .order_by(VehicleModel.id.asc(), ManifestModel.id.desc())
        )
        if self._closed_processes:
            query = query.where(ManifestModel.process.not_in(self._closed_processes))
        if self._closed_states:
            query = query.where(ManifestModel.state.not_in(self._closed_states))
        if self._provider is not None:
            query = query.where(VehicleModel.provider == self._provider)

        try:
            async with self._session_maker() as session:
                result = await session.execute(query)
                rows = result.all()
        except SQLAlchemyError as exc:
            logger.error("vehicle_list_query_failed", provider=self._provider, error=str(exc))
            raise VehicleListError(f"Could not list vehicles to track: {exc}") from exc

        vehicles: list[Vehicle] = []
        seen: set[int] = set()
        for model, manifest_id in rows:
            if model.id in seen:
                continue
            seen.add(model.id)
            vehicles.append(
                Vehicle(
                    id=model.id,
                    patent=model.patent,
                    provider=model.provider,
                    user=model.user,
                    password=model.password,
                    manifest_id=manifest_id,
                )
            )

        logger.debug("eligible_vehicles_listed", provider=self._provider, count=len(vehicles))
        return vehicles
