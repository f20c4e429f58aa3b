from abc import ABC, abstractmethod

from vehicle_tracking.domain.entities.location import LocationRecord


class LocationStore(ABC):
    """Port for appending normalized location records."""

    @abstractmethod
    async def append_location(self, record: LocationRecord) -> None:
        """Raises StorageError on write failure."""
        ...
