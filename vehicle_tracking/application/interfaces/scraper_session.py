from abc import ABC, abstractmethod
from types import TracebackType

from vehicle_tracking.domain.entities.location import LocationSnapshot


class ScraperSession(ABC):
    """
    Port for one stateful, authenticated handle on a provider portal.

    A session holds a single login context, so it must never be shared between
    concurrent tasks. Use it as an async context manager to guarantee release.
    """

    def __init__(self, actor: str, ip: str) -> None:
        # Audit context only, carries no authorization meaning
        self.actor = actor
        self.ip = ip

    @abstractmethod
    async def login(self, user: str, password: str) -> bool:
        ...

    @abstractmethod
    async def fetch_location(self, patent: str) -> LocationSnapshot | None:
        """Return None when the portal has no data for the vehicle."""
        ...

    @abstractmethod
    async def release(self) -> None:
        ...

    async def __aenter__(self) -> "ScraperSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release()


class ScraperSessionFactory(ABC):
    """Port for resolving a provider name into a fresh ScraperSession."""

    @abstractmethod
    def create_session(self, provider: str, actor: str, ip: str) -> ScraperSession:
        ...

    @abstractmethod
    def create_system_session(self, provider: str) -> ScraperSession:
        ...

    def session_per_vehicle(self, provider: str) -> bool:
        """Whether vehicles of this provider each need their own session."""
        return False
