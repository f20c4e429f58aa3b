"""PostGIS point column bound as EWKB hex."""
from typing import Any

from sqlalchemy.types import UserDefinedType

from vehicle_tracking.domain.geo.geo_point import WGS84_SRID, GeoPoint


class PointGeometry(UserDefinedType):  # type: ignore[type-arg]
    cache_ok = True

    def __init__(self, srid: int = WGS84_SRID) -> None:
        self.srid = srid

    def get_col_spec(self, **kw: Any) -> str:
        return f"geometry(POINT,{self.srid})"

    def bind_processor(self, dialect: Any):  # type: ignore[no-untyped-def]
        def process(value: GeoPoint | None) -> str | None:
            return value.to_ewkb_hex() if value is not None else None

        return process

    def result_processor(self, dialect: Any, coltype: Any):  # type: ignore[no-untyped-def]
        def process(value: str | bytes | None) -> GeoPoint | None:
            if value is None:
                return None
            if isinstance(value, bytes):
                value = value.hex()
            return GeoPoint.from_ewkb_hex(value)

        return process
