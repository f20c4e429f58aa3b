"""Unit tests for the batch tracking use case. Portals and storage are faked."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vehicle_tracking.application.interfaces.scraper_session import (
    ScraperSession,
    ScraperSessionFactory,
)
from vehicle_tracking.application.use_cases.track_vehicles import (
    TrackVehicles,
    TrackVehiclesInput,
    group_by_provider,
)
from vehicle_tracking.domain.entities.location import LocationSnapshot
from vehicle_tracking.domain.entities.vehicle import Vehicle
from vehicle_tracking.domain.enums.outcome_status import OutcomeStatus
from vehicle_tracking.domain.errors import (
    InvalidConfigurationError,
    StorageError,
    UnsupportedProviderError,
    UpstreamUnavailableError,
    VehicleListError,
)

INPUT = TrackVehiclesInput(acting_user="42", acting_ip="10.0.0.5")


class FakeSession(ScraperSession):
    def __init__(
        self,
        actor: str,
        ip: str,
        *,
        login_ok: bool = True,
        snapshots: dict[str, LocationSnapshot | BaseException | None] | None = None,
        release_error: Exception | None = None,
    ) -> None:
        super().__init__(actor, ip)
        self.login_ok = login_ok
        self.snapshots = snapshots or {}
        self.release_error = release_error
        self.logins: list[str] = []
        self.fetched: list[str] = []
        self.released = False

    async def login(self, user: str, password: str) -> bool:
        self.logins.append(user)
        return self.login_ok

    async def fetch_location(self, patent: str) -> LocationSnapshot | None:
        self.fetched.append(patent)
        result = self.snapshots.get(patent, LocationSnapshot(latitude=4.6, longitude=-74.08))
        if isinstance(result, BaseException):
            raise result
        return result

    async def release(self) -> None:
        self.released = True
        if self.release_error is not None:
            raise self.release_error


class FakeFactory(ScraperSessionFactory):
    """Hands out sessions built by per-provider builders, remembering each one."""

    def __init__(self, builders: dict, per_vehicle: frozenset[str] = frozenset()) -> None:
        self.builders = builders
        self.per_vehicle = per_vehicle
        self.sessions: list[FakeSession] = []
        self.requests: list[tuple[str, str, str]] = []

    def create_session(self, provider: str, actor: str, ip: str) -> ScraperSession:
        self.requests.append((provider, actor, ip))
        builder = self.builders.get(provider)
        if builder is None:
            raise UnsupportedProviderError(provider)
        session = builder(actor, ip)
        self.sessions.append(session)
        return session

    def create_system_session(self, provider: str) -> ScraperSession:
        return self.create_session(provider, "SYSTEM", "SYSTEM")

    def session_per_vehicle(self, provider: str) -> bool:
        return provider in self.per_vehicle


def _vehicle(vehicle_id: int, patent: str, provider: str) -> Vehicle:
    return Vehicle(
        id=vehicle_id,
        patent=patent,
        provider=provider,
        user=f"user-{provider.lower()}",
        password="secret",
        manifest_id=1000 + vehicle_id,
    )


def _make_source(vehicles: list[Vehicle]) -> MagicMock:
    source = MagicMock()
    source.list_active_vehicles_with_open_manifest = AsyncMock(return_value=vehicles)
    return source


def _make_store() -> MagicMock:
    store = MagicMock()
    store.append_location = AsyncMock()
    return store


def _statuses(report) -> dict[str, OutcomeStatus]:  # type: ignore[no-untyped-def]
    return {item.patent: item.status for item in report.items}


class TestGroupByProvider:
    def test_keeps_first_seen_order(self) -> None:
        vehicles = [
            _vehicle(1, "B1", "Satrack"),
            _vehicle(2, "A1", "Detektor"),
            _vehicle(3, "B2", "Satrack"),
        ]
        groups = group_by_provider(vehicles)
        assert list(groups) == ["Satrack", "Detektor"]
        assert [v.patent for v in groups["Satrack"]] == ["B1", "B2"]


class TestTrackVehicles:
    @pytest.mark.asyncio
    async def test_failed_group_login_does_not_stop_other_groups(self) -> None:
        vehicles = [
            _vehicle(1, "AAA111", "Detektor"),
            _vehicle(2, "AAA222", "Detektor"),
            _vehicle(3, "BBB333", "SimonMovilidad"),
        ]
        store = _make_store()
        factory = FakeFactory(
            {
                "Detektor": lambda actor, ip: FakeSession(actor, ip, login_ok=False),
                "SimonMovilidad": lambda actor, ip: FakeSession(actor, ip),
            }
        )
        use_case = TrackVehicles(_make_source(vehicles), factory, store)

        report = await use_case.execute(INPUT)

        assert report.total_records == 3
        assert report.succeeded == 1
        assert report.failed == 2
        assert _statuses(report) == {
            "AAA111": OutcomeStatus.AUTHENTICATION_ERROR,
            "AAA222": OutcomeStatus.AUTHENTICATION_ERROR,
            "BBB333": OutcomeStatus.PROCESSED,
        }
        store.append_location.assert_awaited_once()
        assert report.summary_text() == (
            "Se procesaron 3 vehículos en total. Exitosos: 1, Con errores: 2"
        )

    @pytest.mark.asyncio
    async def test_one_session_per_provider_group(self) -> None:
        vehicles = [
            _vehicle(1, "AAA111", "Detektor"),
            _vehicle(2, "AAA222", "Detektor"),
        ]
        factory = FakeFactory({"Detektor": lambda actor, ip: FakeSession(actor, ip)})
        use_case = TrackVehicles(_make_source(vehicles), factory, _make_store())

        await use_case.execute(INPUT)

        assert len(factory.sessions) == 1
        assert factory.sessions[0].fetched == ["AAA111", "AAA222"]
        assert factory.sessions[0].released is True
        assert factory.requests == [("Detektor", "42", "10.0.0.5")]

    @pytest.mark.asyncio
    async def test_processed_outcome_carries_stored_coordinates(self) -> None:
        factory = FakeFactory(
            {
                "Detektor": lambda actor, ip: FakeSession(
                    actor,
                    ip,
                    snapshots={"AAA111": LocationSnapshot(latitude=12.34, longitude=-56.78)},
                )
            }
        )
        store = _make_store()
        use_case = TrackVehicles(
            _make_source([_vehicle(1, "AAA111", "Detektor")]), factory, store
        )

        report = await use_case.execute(INPUT)

        outcome = report.items[0]
        assert outcome.success is True
        assert (outcome.latitude, outcome.longitude) == (12.34, -56.78)
        record = store.append_location.await_args.args[0]
        assert record.vehicle_id == 1
        assert record.manifest_id == 1001
        assert record.location.matches(12.34, -56.78)

    @pytest.mark.asyncio
    async def test_no_vehicles_returns_empty_report(self) -> None:
        store = _make_store()
        factory = FakeFactory({})
        use_case = TrackVehicles(_make_source([]), factory, store)

        report = await use_case.execute(INPUT)

        assert report.total_records == 0
        assert report.items == []
        store.append_location.assert_not_awaited()
        assert factory.requests == []

    @pytest.mark.asyncio
    async def test_vehicle_list_failure_propagates(self) -> None:
        source = MagicMock()
        source.list_active_vehicles_with_open_manifest = AsyncMock(
            side_effect=VehicleListError("db down")
        )
        use_case = TrackVehicles(source, FakeFactory({}), _make_store())

        with pytest.raises(VehicleListError):
            await use_case.execute(INPUT)

    @pytest.mark.asyncio
    async def test_unsupported_provider_fails_only_its_group(self) -> None:
        vehicles = [
            _vehicle(1, "XXX111", "Unknown"),
            _vehicle(2, "XXX222", "Unknown"),
            _vehicle(3, "AAA111", "Detektor"),
        ]
        factory = FakeFactory({"Detektor": lambda actor, ip: FakeSession(actor, ip)})
        use_case = TrackVehicles(_make_source(vehicles), factory, _make_store())

        report = await use_case.execute(INPUT)

        assert _statuses(report) == {
            "XXX111": OutcomeStatus.UNSUPPORTED_PROVIDER,
            "XXX222": OutcomeStatus.UNSUPPORTED_PROVIDER,
            "AAA111": OutcomeStatus.PROCESSED,
        }

    @pytest.mark.asyncio
    async def test_errors_are_classified_per_vehicle(self) -> None:
        vehicles = [
            _vehicle(1, "CFG001", "Detektor"),
            _vehicle(2, "SRV002", "Detektor"),
            _vehicle(3, "NOD003", "Detektor"),
            _vehicle(4, "BUG004", "Detektor"),
            _vehicle(5, "OKK005", "Detektor"),
        ]
        snapshots = {
            "CFG001": InvalidConfigurationError("not in this account"),
            "SRV002": UpstreamUnavailableError("portal down"),
            "NOD003": None,
            "BUG004": ValueError("Could not read latitud"),
        }
        factory = FakeFactory(
            {"Detektor": lambda actor, ip: FakeSession(actor, ip, snapshots=snapshots)}
        )
        use_case = TrackVehicles(_make_source(vehicles), factory, _make_store())

        report = await use_case.execute(INPUT)

        assert _statuses(report) == {
            "CFG001": OutcomeStatus.CONFIGURATION_ERROR,
            "SRV002": OutcomeStatus.SERVER_ERROR,
            "NOD003": OutcomeStatus.NO_DATA,
            "BUG004": OutcomeStatus.INTERNAL_ERROR,
            "OKK005": OutcomeStatus.PROCESSED,
        }
        assert [item.patent for item in report.items] == [v.patent for v in vehicles]

    @pytest.mark.asyncio
    async def test_storage_failure_is_reported_and_run_continues(self) -> None:
        vehicles = [_vehicle(1, "AAA111", "Detektor"), _vehicle(2, "AAA222", "Detektor")]
        store = _make_store()
        store.append_location = AsyncMock(side_effect=[StorageError("disk full"), None])
        factory = FakeFactory({"Detektor": lambda actor, ip: FakeSession(actor, ip)})
        use_case = TrackVehicles(_make_source(vehicles), factory, store)

        report = await use_case.execute(INPUT)

        assert _statuses(report) == {
            "AAA111": OutcomeStatus.PERSISTENCE_ERROR,
            "AAA222": OutcomeStatus.PROCESSED,
        }

    @pytest.mark.asyncio
    async def test_invalid_coordinates_are_internal_errors(self) -> None:
        factory = FakeFactory(
            {
                "Detektor": lambda actor, ip: FakeSession(
                    actor, ip, snapshots={"AAA111": LocationSnapshot(latitude=120, longitude=0)}
                )
            }
        )
        store = _make_store()
        use_case = TrackVehicles(
            _make_source([_vehicle(1, "AAA111", "Detektor")]), factory, store
        )

        report = await use_case.execute(INPUT)

        assert report.items[0].status is OutcomeStatus.INTERNAL_ERROR
        store.append_location.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_release_failure_keeps_outcomes(self) -> None:
        factory = FakeFactory(
            {
                "Detektor": lambda actor, ip: FakeSession(
                    actor, ip, release_error=RuntimeError("socket already closed")
                )
            }
        )
        use_case = TrackVehicles(
            _make_source([_vehicle(1, "AAA111", "Detektor")]), factory, _make_store()
        )

        report = await use_case.execute(INPUT)

        assert report.succeeded == 1
        assert factory.sessions[0].released is True

    @pytest.mark.asyncio
    async def test_session_per_vehicle_provider(self) -> None:
        vehicles = [_vehicle(1, "SAT001", "Satrack"), _vehicle(2, "SAT002", "Satrack")]
        factory = FakeFactory(
            {"Satrack": lambda actor, ip: FakeSession(actor, ip)},
            per_vehicle=frozenset({"Satrack"}),
        )
        use_case = TrackVehicles(_make_source(vehicles), factory, _make_store())

        report = await use_case.execute(INPUT)

        assert report.succeeded == 2
        assert len(factory.sessions) == 2
        assert [s.fetched for s in factory.sessions] == [["SAT001"], ["SAT002"]]
        assert all(s.released for s in factory.sessions)

    @pytest.mark.asyncio
    async def test_pauses_between_vehicles(self) -> None:
        vehicles = [
            _vehicle(1, "AAA111", "Detektor"),
            _vehicle(2, "AAA222", "Detektor"),
            _vehicle(3, "AAA333", "Detektor"),
        ]
        factory = FakeFactory({"Detektor": lambda actor, ip: FakeSession(actor, ip)})
        use_case = TrackVehicles(
            _make_source(vehicles), factory, _make_store(), inter_vehicle_delay=0.5
        )

        with patch(
            "vehicle_tracking.application.use_cases.track_vehicles.asyncio.sleep",
            new_callable=AsyncMock,
        ) as sleep:
            await use_case.execute(INPUT)

        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_parallel_groups(self) -> None:
        vehicles = [
            _vehicle(1, "AAA111", "Detektor"),
            _vehicle(2, "BBB222", "SimonMovilidad"),
            _vehicle(3, "AAA333", "Detektor"),
        ]
        factory = FakeFactory(
            {
                "Detektor": lambda actor, ip: FakeSession(actor, ip),
                "SimonMovilidad": lambda actor, ip: FakeSession(actor, ip, login_ok=False),
            }
        )
        use_case = TrackVehicles(
            _make_source(vehicles), factory, _make_store(), parallel_groups=True
        )

        report = await use_case.execute(INPUT)

        assert report.total_records == 3
        assert report.succeeded == 2
        assert [item.patent for item in report.items] == ["AAA111", "AAA333", "BBB222"]
        assert _statuses(report)["BBB222"] is OutcomeStatus.AUTHENTICATION_ERROR

    @pytest.mark.asyncio
    async def test_cancellation_is_not_swallowed(self) -> None:
        factory = FakeFactory(
            {
                "Detektor": lambda actor, ip: FakeSession(
                    actor, ip, snapshots={"AAA111": asyncio.CancelledError()}
                )
            }
        )
        use_case = TrackVehicles(
            _make_source([_vehicle(1, "AAA111", "Detektor")]), factory, _make_store()
        )

        with pytest.raises(asyncio.CancelledError):
            await use_case.execute(INPUT)
        assert factory.sessions[0].released is True
