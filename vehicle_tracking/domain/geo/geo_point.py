"""
Geo encoding for tracked positions.

A GeoPoint is the spatial representation stored next to the scalar
latitude/longitude columns. Storage uses EWKB so the doubles round-trip
bit for bit.
"""
import math
from dataclasses import dataclass
from decimal import Decimal
from numbers import Real

import shapely
from shapely import wkb, wkt
from shapely.geometry import Point

from vehicle_tracking.domain.errors import GeoEncodingError

WGS84_SRID = 4326


def _coerce(value: object, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (Real, Decimal)):
        raise GeoEncodingError(f"{name} must be numeric, got {value!r}")
    number = float(value)
    if not math.isfinite(number):
        raise GeoEncodingError(f"{name} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    srid: int = WGS84_SRID

    @classmethod
    def from_coordinates(cls, latitude: object, longitude: object) -> "GeoPoint":
        """Validate and build a point. Out-of-range values are rejected, never clamped."""
        lat = _coerce(latitude, "latitude")
        lon = _coerce(longitude, "longitude")
        if not -90.0 <= lat <= 90.0:
            raise GeoEncodingError(f"latitude {lat} outside [-90, 90]")
        if not -180.0 <= lon <= 180.0:
            raise GeoEncodingError(f"longitude {lon} outside [-180, 180]")
        return cls(latitude=lat, longitude=lon)

    def to_shape(self) -> Point:
        return Point(self.longitude, self.latitude)

    def to_ewkb_hex(self) -> str:
        return wkb.dumps(self.to_shape(), hex=True, srid=self.srid)

    def to_wkt(self) -> str:
        return f"POINT({self.longitude!r} {self.latitude!r})"

    @classmethod
    def from_shape(cls, point: Point, srid: int = WGS84_SRID) -> "GeoPoint":
        return cls(latitude=point.y, longitude=point.x, srid=srid)

    @classmethod
    def from_ewkb_hex(cls, value: str) -> "GeoPoint":
        try:
            geometry = wkb.loads(value, hex=True)
        except Exception as exc:
            raise GeoEncodingError(f"Invalid EWKB value: {exc}") from exc
        if not isinstance(geometry, Point):
            raise GeoEncodingError(f"Expected a POINT, got {geometry.geom_type}")
        return cls.from_shape(geometry, srid=shapely.get_srid(geometry) or WGS84_SRID)

    @classmethod
    def from_wkt(cls, value: str) -> "GeoPoint":
        try:
            geometry = wkt.loads(value)
        except Exception as exc:
            raise GeoEncodingError(f"Invalid WKT value {value!r}: {exc}") from exc
        if not isinstance(geometry, Point):
            raise GeoEncodingError(f"Expected a POINT, got {geometry.geom_type}")
        return cls.from_shape(geometry)

    def matches(self, latitude: float, longitude: float) -> bool:
        """True when the point holds exactly the given scalar coordinates."""
        return self.latitude == float(latitude) and self.longitude == float(longitude)
