from abc import ABC, abstractmethod

from vehicle_tracking.domain.entities.vehicle import Vehicle


class VehicleSource(ABC):
    """Port for the set of vehicles that are active and have an open manifest."""

    @abstractmethod
    async def list_active_vehicles_with_open_manifest(self) -> list[Vehicle]:
        """Raises VehicleListError when the list cannot be produced."""
        ...
