from vehicle_tracking.domain.entities.location import LocationSnapshot
from vehicle_tracking.infrastructure.scraping.portal_session import (
    PortalSession,
    parse_coordinate,
    parse_decimal,
    parse_timestamp,
)


class DetektorSession(PortalSession):
    """Detektor GPS portal. The vehicle popup lists every field as "Label : value"."""

    login_path = "/login"
    location_path = "/tracking/popup/{patent}"
    user_field = "usuario"
    password_field = "clave"
    login_failure_markers = ("usuario o clave incorrectos", "credenciales invalidas")

    def _parse_location(self, fields: dict[str, str]) -> LocationSnapshot:
        return LocationSnapshot(
            latitude=parse_coordinate(fields.get("latitud"), "latitud"),
            longitude=parse_coordinate(fields.get("longitud"), "longitud"),
            speed=parse_decimal(fields.get("velocidad")),
            timestamp=parse_timestamp(fields.get("fecha gps"), self._tz),
            reason=fields.get("motivo"),
            driver=fields.get("conductor"),
            georeference=fields.get("georeferencia"),
            in_zone=fields.get("en zona"),
            detention_time=fields.get("tiempo detencion") or "0",
            distance_traveled=parse_decimal(fields.get("distancia recorrida (km)")),
            temperature=parse_decimal(fields.get("temperatura")),
        )
