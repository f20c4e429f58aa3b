from dataclasses import dataclass, field
from datetime import datetime, timezone

from vehicle_tracking.domain.enums.outcome_status import STATUS_MESSAGES, OutcomeStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TrackingOutcome:
    """Result of one orchestration attempt for one vehicle. Never persisted."""

    patent: str
    success: bool
    status: OutcomeStatus
    message: str
    processed_at: datetime = field(default_factory=_utcnow)
    latitude: float | None = None
    longitude: float | None = None

    @classmethod
    def processed(cls, patent: str, latitude: float, longitude: float) -> "TrackingOutcome":
        return cls(
            patent=patent,
            success=True,
            status=OutcomeStatus.PROCESSED,
            message=STATUS_MESSAGES[OutcomeStatus.PROCESSED],
            latitude=latitude,
            longitude=longitude,
        )

    @classmethod
    def failed(
        cls, patent: str, status: OutcomeStatus, message: str | None = None
    ) -> "TrackingOutcome":
        return cls(
            patent=patent,
            success=False,
            status=status,
            message=message or STATUS_MESSAGES[status],
        )


@dataclass(frozen=True)
class TrackingReport:
    """
    Single-page envelope over every outcome of a run.

    Pagination fields exist for API-shape compatibility; a run is never
    paginated, so page and total_pages are always 1.
    """

    items: list[TrackingOutcome]
    page: int = 1
    total_pages: int = 1

    @classmethod
    def from_outcomes(cls, outcomes: list[TrackingOutcome]) -> "TrackingReport":
        return cls(items=list(outcomes))

    @classmethod
    def empty(cls) -> "TrackingReport":
        return cls(items=[])

    @property
    def total_records(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.items if outcome.success)

    @property
    def failed(self) -> int:
        return self.total_records - self.succeeded

    def summary_text(self) -> str:
        return (
            f"Se procesaron {self.total_records} vehículos en total. "
            f"Exitosos: {self.succeeded}, Con errores: {self.failed}"
        )
