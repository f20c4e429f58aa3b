"""Unit tests for the scheduled worker helpers."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from vehicle_tracking.config import ProviderPortalSettings, Settings
from vehicle_tracking.domain.entities.tracking_outcome import TrackingReport
from vehicle_tracking.worker import polling_interval, run_once


def _settings(**overrides) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(system_user="SYSTEM", system_ip="127.0.0.1", **overrides)


class TestPollingInterval:
    def test_uses_shortest_provider_interval(self) -> None:
        config = _settings(
            providers=[
                ProviderPortalSettings(
                    name="Detektor",
                    kind="detektor",
                    base_url="https://detektor.test",
                    polling_interval_seconds=600,
                ),
                ProviderPortalSettings(
                    name="Satrack",
                    kind="satrack",
                    base_url="https://satrack.test",
                    polling_interval_seconds=120,
                ),
            ]
        )
        assert polling_interval(config) == 120

    def test_default_without_providers(self) -> None:
        assert polling_interval(_settings(providers=[])) == 300


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_runs_under_system_identity(self) -> None:
        use_case = MagicMock()
        use_case.execute = AsyncMock(return_value=TrackingReport.empty())

        report = await run_once(use_case, _settings())

        assert report.total_records == 0
        input_data = use_case.execute.await_args.args[0]
        assert input_data.acting_user == "SYSTEM"
        assert input_data.acting_ip == "127.0.0.1"
