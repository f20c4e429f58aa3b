from dataclasses import asdict

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from vehicle_tracking.api.dependencies import (
    get_acting_ip,
    get_acting_user,
    get_track_vehicles_use_case,
    get_vehicle_status_use_case,
)
from vehicle_tracking.api.schemas.tracking_responses import (
    LocationSnapshotResponse,
    TrackingOutcomeResponse,
    TrackingReportResponse,
    TrackingStatisticsResponse,
)
from vehicle_tracking.application.use_cases.get_vehicle_status import (
    GetVehicleStatus,
    GetVehicleStatusInput,
)
from vehicle_tracking.application.use_cases.track_vehicles import (
    TrackVehicles,
    TrackVehiclesInput,
)
from vehicle_tracking.domain.errors import UpstreamUnavailableError

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.post("/track", response_model=TrackingReportResponse)
async def track_vehicles(
    acting_user: str = Depends(get_acting_user),
    acting_ip: str = Depends(get_acting_ip),
    use_case: TrackVehicles = Depends(get_track_vehicles_use_case),
) -> TrackingReportResponse:
    """Locate every eligible vehicle and record its position."""
    report = await use_case.execute(
        TrackVehiclesInput(acting_user=acting_user, acting_ip=acting_ip)
    )
    return TrackingReportResponse(
        items=[TrackingOutcomeResponse.model_validate(o) for o in report.items],
        page=report.page,
        total_pages=report.total_pages,
        total_records=report.total_records,
        statistics=TrackingStatisticsResponse(
            total=report.total_records,
            succeeded=report.succeeded,
            failed=report.failed,
        ),
        detail=report.summary_text(),
    )


@router.get("/vehicle/{patent}", response_model=LocationSnapshotResponse)
async def get_vehicle_status(
    patent: str,
    acting_user: str = Depends(get_acting_user),
    acting_ip: str = Depends(get_acting_ip),
    use_case: GetVehicleStatus = Depends(get_vehicle_status_use_case),
) -> LocationSnapshotResponse:
    try:
        snapshot = await use_case.execute(
            GetVehicleStatusInput(patent=patent, acting_user=acting_user, acting_ip=acting_ip)
        )
    except UpstreamUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))

    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No information found for vehicle {patent}.",
        )
    return LocationSnapshotResponse(patent=patent, **asdict(snapshot))
