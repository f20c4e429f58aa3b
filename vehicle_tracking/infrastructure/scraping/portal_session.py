"""
HTTP session against a GPS provider portal.

Every portal follows the same shape: a form login that sets a session
cookie, then a per-vehicle info panel rendered as "Label: value" lines.
Provider subclasses only describe their paths and how to read the panel.
"""
import asyncio
import re
import unicodedata
from abc import abstractmethod
from collections.abc import Awaitable, Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation
from urllib.parse import quote
from zoneinfo import ZoneInfo

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from vehicle_tracking.application.interfaces.scraper_session import ScraperSession
from vehicle_tracking.config import ProviderPortalSettings
from vehicle_tracking.domain.entities.location import LocationSnapshot
from vehicle_tracking.domain.errors import (
    AuthenticationFailedError,
    InvalidConfigurationError,
    UpstreamUnavailableError,
)

logger = structlog.get_logger(__name__)

_PANEL_LINE = re.compile(r"^\s*([^:\r\n]+?)\s*:\s*(.*?)\s*$")
_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")
_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d-%m-%Y %H:%M:%S",
)


def normalize_label(label: str) -> str:
    """Lower-case a panel label and strip its accents ("Ángulo" -> "angulo")."""
    decomposed = unicodedata.normalize("NFKD", label)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.casefold().split())


def parse_info_panel(text: str) -> dict[str, str]:
    """Split an info panel into {normalized label: raw value}. First occurrence wins."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        match = _PANEL_LINE.match(line)
        if match:
            fields.setdefault(normalize_label(match.group(1)), match.group(2))
    return fields


def parse_decimal(value: str | None, *, decimal_comma: bool = False) -> Decimal | None:
    """
    Read the first number in a value, ignoring units.

    Commas are thousands separators ("1,523.4") unless `decimal_comma` is set,
    in which case they are the decimal point ("85,5").
    """
    if not value:
        return None
    text = value.replace(",", ".") if decimal_comma else value.replace(",", "")
    match = _NUMBER.search(text)
    if match is None:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def parse_coordinate(value: str | None, name: str) -> float:
    number = parse_decimal(value)
    if number is None:
        raise ValueError(f"Could not read {name} from {value!r}")
    return float(number)


def parse_timestamp(value: str | None, tz: ZoneInfo) -> datetime | None:
    if not value:
        return None
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value.strip(), fmt).replace(tzinfo=tz)
        except ValueError:
            continue
    logger.warning("unparseable_portal_timestamp", value=value)
    return None


class TransientPortalError(Exception):
    """A portal call failed in a way worth retrying (transport error or 5xx)."""


class PortalSession(ScraperSession):
    """Base ScraperSession over httpx with retries and failure classification."""

    login_path: str = "/login"
    location_path: str = "/vehicles/{patent}/info"
    user_field: str = "username"
    password_field: str = "password"
    # Text the portal renders on its login page when credentials are rejected
    login_failure_markers: tuple[str, ...] = ()

    def __init__(
        self,
        portal: ProviderPortalSettings,
        actor: str,
        ip: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(actor, ip)
        self._portal = portal
        self._tz = ZoneInfo(portal.timezone)
        self._client = httpx.AsyncClient(
            base_url=portal.base_url.rstrip("/"),
            timeout=portal.timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )
        self._sleep = sleep
        # (user, password) of the active login
        self._credentials: tuple[str, str] | None = None
        self._log = logger.bind(provider=portal.name, actor=actor, ip=ip)

    @property
    def provider(self) -> str:
        return self._portal.name

    async def login(self, user: str, password: str) -> bool:
        user = (user or "").strip()
        password = (password or "").strip()
        if not user or not password:
            self._log.warning("portal_login_skipped", reason="empty_credentials")
            return False
        if self._credentials == (user, password):
            return True

        response = await self._request(
            "POST",
            self.login_path,
            context="login",
            data={self.user_field: user, self.password_field: password},
        )
        success = response.status_code not in (401, 403) and self._login_succeeded(response)
        self._credentials = (user, password) if success else None
        self._log.info("portal_login", user=user, success=success)
        return success

    async def fetch_location(self, patent: str) -> LocationSnapshot | None:
        if self._credentials is None:
            raise AuthenticationFailedError(f"No active {self.provider} session to query {patent}")

        response = await self._request(
            "GET",
            self.location_path.format(patent=quote(patent, safe="")),
            context="fetch_location",
        )
        if response.status_code in (401, 403):
            self._credentials = None
            raise AuthenticationFailedError(f"{self.provider} session expired while querying {patent}")
        if response.status_code == 404:
            raise InvalidConfigurationError(
                f"Vehicle {patent} is not available with the current {self.provider} credentials"
            )
        if response.status_code == 204:
            return None
        response.raise_for_status()

        fields = parse_info_panel(response.text)
        if not fields:
            self._log.warning("empty_info_panel", patent=patent)
            return None
        return self._parse_location(fields)

    async def release(self) -> None:
        self._credentials = None
        await self._client.aclose()
        self._log.debug("portal_session_released")

    def _login_succeeded(self, response: httpx.Response) -> bool:
        if not response.is_success:
            return False
        body = response.text.casefold()
        return not any(marker.casefold() in body for marker in self.login_failure_markers)

    async def _request(self, method: str, url: str, *, context: str, **kwargs) -> httpx.Response:  # type: ignore[no-untyped-def]
        """Send one portal request, retrying transient failures with exponential backoff."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TransientPortalError),
            wait=wait_exponential(
                multiplier=self._portal.retry_backoff_seconds,
                min=self._portal.retry_backoff_seconds,
                max=self._portal.retry_backoff_max_seconds,
            ),
            stop=stop_after_attempt(max(1, self._portal.max_retry_attempts)),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return await retrying(self._send, method, url, context=context, **kwargs)
        except TransientPortalError as exc:
            raise UpstreamUnavailableError(f"{self.provider} {exc} during {context}") from exc

    async def _send(self, method: str, url: str, *, context: str, **kwargs) -> httpx.Response:  # type: ignore[no-untyped-def]
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            raise TransientPortalError(f"unreachable: {exc}") from exc
        if response.status_code >= 500:
            raise TransientPortalError(f"returned {response.status_code}")
        return response

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self._log.warning(
            "portal_request_retry",
            context=retry_state.kwargs.get("context"),
            attempt=retry_state.attempt_number,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(error),
        )

    @abstractmethod
    def _parse_location(self, fields: dict[str, str]) -> LocationSnapshot:
        ...
