from vehicle_tracking.domain.entities.location import LocationSnapshot
from vehicle_tracking.infrastructure.scraping.portal_session import (
    PortalSession,
    parse_coordinate,
    parse_decimal,
    parse_timestamp,
)


class SatrackSession(PortalSession):
    """
    Satrack portal.

    Satrack keeps one browser-like session per plate, so its portal settings
    usually enable `session_per_vehicle`.
    """

    login_path = "/auth/login"
    location_path = "/monitoreo/vehiculo/{patent}/detalle"
    user_field = "txtUser"
    password_field = "txtPassword"
    login_failure_markers = ("usuario o contraseña incorrectos", "acceso denegado")

    def _parse_location(self, fields: dict[str, str]) -> LocationSnapshot:
        heading = parse_decimal(fields.get("rumbo"))
        return LocationSnapshot(
            latitude=parse_coordinate(fields.get("latitud"), "latitud"),
            longitude=parse_coordinate(fields.get("longitud"), "longitud"),
            speed=parse_decimal(fields.get("velocidad")),
            timestamp=parse_timestamp(fields.get("fecha"), self._tz),
            reason=fields.get("evento"),
            driver=fields.get("conductor"),
            georeference=fields.get("ubicacion"),
            in_zone=fields.get("geozona"),
            detention_time=fields.get("tiempo detenido"),
            distance_traveled=parse_decimal(fields.get("odometro")),
            temperature=parse_decimal(fields.get("temperatura")),
            angle=int(heading) if heading is not None else None,
        )
