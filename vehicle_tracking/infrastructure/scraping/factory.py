from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

import httpx
import structlog

from vehicle_tracking.application.interfaces.scraper_session import (
    ScraperSession,
    ScraperSessionFactory,
)
from vehicle_tracking.config import ProviderPortalSettings, settings
from vehicle_tracking.domain.errors import UnsupportedProviderError
from vehicle_tracking.infrastructure.scraping.portal_session import PortalSession
from vehicle_tracking.infrastructure.scraping.providers.detektor import DetektorSession
from vehicle_tracking.infrastructure.scraping.providers.satrack import SatrackSession
from vehicle_tracking.infrastructure.scraping.providers.simon_movilidad import (
    SimonMovilidadSession,
)

logger = structlog.get_logger(__name__)

# Provider kind -> session implementation
SESSION_TYPES: Mapping[str, type[PortalSession]] = MappingProxyType(
    {
        "detektor": DetektorSession,
        "satrack": SatrackSession,
        "simon_movilidad": SimonMovilidadSession,
    }
)


@dataclass(frozen=True)
class ProviderCatalog:
    """Immutable, case-insensitive lookup of the configured provider portals."""

    portals: tuple[ProviderPortalSettings, ...]

    @classmethod
    def from_settings(cls, portals: Iterable[ProviderPortalSettings]) -> "ProviderCatalog":
        return cls(portals=tuple(portals))

    def resolve(self, provider: str) -> ProviderPortalSettings:
        wanted = provider.strip().upper()
        for portal in self.portals:
            if portal.name.upper() == wanted:
                return portal
        raise UnsupportedProviderError(provider)

    @property
    def names(self) -> list[str]:
        return [portal.name for portal in self.portals]


class ScraperFactory(ScraperSessionFactory):
    """Builds the provider-specific ScraperSession for a provider name."""

    def __init__(
        self,
        catalog: ProviderCatalog,
        *,
        system_user: str = settings.system_user,
        system_ip: str = settings.system_ip,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._catalog = catalog
        self._system_user = system_user
        self._system_ip = system_ip
        self._transport = transport

    def create_session(self, provider: str, actor: str, ip: str) -> ScraperSession:
        portal = self._catalog.resolve(provider)
        session_type = SESSION_TYPES.get(portal.kind)
        if session_type is None:
            logger.error("unknown_provider_kind", provider=portal.name, kind=portal.kind)
            raise UnsupportedProviderError(provider)

        logger.debug("creating_scraper_session", provider=portal.name, actor=actor, ip=ip)
        return session_type(portal, actor, ip, transport=self._transport)

    def create_system_session(self, provider: str) -> ScraperSession:
        return self.create_session(provider, self._system_user, self._system_ip)

    def session_per_vehicle(self, provider: str) -> bool:
        try:
            return self._catalog.resolve(provider).session_per_vehicle
        except UnsupportedProviderError:
            # create_session reports the unsupported provider for the whole group
            return False
