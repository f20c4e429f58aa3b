from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from vehicle_tracking.domain.entities.vehicle import Vehicle
from vehicle_tracking.domain.geo.geo_point import GeoPoint


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class LocationSnapshot:
    """What a provider portal reports for one vehicle at fetch time."""

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


@dataclass(frozen=True)
class LocationRecord:
    """Append-only persisted position. Scalar coordinates always equal `location`."""

    vehicle_id: int
    manifest_id: int
    provider: str
    latitude: float
    longitude: float
    location: GeoPoint
    speed: Decimal
    timestamp: datetime
    created: datetime
    is_active: bool
    reason: str
    driver: str
    georeference: str
    in_zone: str
    detention_time: str
    distance_traveled: Decimal
    temperature: Decimal
    angle: int


def normalize_snapshot(
    vehicle: Vehicle,
    snapshot: LocationSnapshot,
    fetched_at: datetime | None = None,
) -> LocationRecord:
    """
    Turn a provider snapshot into a persistable record.

    Missing numbers become 0, missing strings become "", the record is always
    active and `created` is the fetch time. Raises GeoEncodingError when the
    coordinates cannot be encoded.
    """
    fetched_at = fetched_at or _utcnow()
    point = GeoPoint.from_coordinates(snapshot.latitude, snapshot.longitude)

    return LocationRecord(
        vehicle_id=vehicle.id,
        manifest_id=vehicle.manifest_id,
        provider=vehicle.provider,
        latitude=point.latitude,
        longitude=point.longitude,
        location=point,
        speed=snapshot.speed if snapshot.speed is not None else Decimal("0"),
        timestamp=snapshot.timestamp or fetched_at,
        created=fetched_at,
        is_active=True,
        reason=snapshot.reason or "",
        driver=snapshot.driver or "",
        georeference=snapshot.georeference or "",
        in_zone=snapshot.in_zone or "",
        detention_time=snapshot.detention_time or "",
        distance_traveled=(
            snapshot.distance_traveled if snapshot.distance_traveled is not None else Decimal("0")
        ),
        temperature=snapshot.temperature if snapshot.temperature is not None else Decimal("0"),
        angle=snapshot.angle or 0,
    )
