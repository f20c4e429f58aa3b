from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from vehicle_tracking.domain.enums.outcome_status import OutcomeStatus


class TrackingOutcomeResponse(BaseModel):
    patent: str
    success: bool
    message: str
    status: OutcomeStatus
    processed_at: datetime
    latitude: float | None = None
    longitude: float | None = None

    model_config = {"from_attributes": True}


class TrackingStatisticsResponse(BaseModel):
    total: int
    succeeded: int
    failed: int


class TrackingReportResponse(BaseModel):
    items: list[TrackingOutcomeResponse]
    page: int
    total_pages: int
    total_records: int
    statistics: TrackingStatisticsResponse
    detail: str


class LocationSnapshotResponse(BaseModel):
    patent: str
    latitude: float
    longitude: float
    speed: Decimal | None = None
    timestamp: datetime | None = None
    reason: str | None = None
    driver: str | None = None
    georeference: str | None = None
    in_zone: str | None = None
    detention_time: str | None = None
    distance_traveled: Decimal | None = None
    temperature: Decimal | None = None
    angle: int | None = None
