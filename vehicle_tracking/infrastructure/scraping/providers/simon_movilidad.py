from vehicle_tracking.domain.entities.location import LocationSnapshot
from vehicle_tracking.infrastructure.scraping.portal_session import (
    PortalSession,
    parse_coordinate,
    parse_decimal,
    parse_timestamp,
)


class SimonMovilidadSession(PortalSession):
    """
    Simon Movilidad portal. Details come from the unit's "Detalles" tab.

    Speed, temperature and heading use a decimal comma ("85,5").
    """

    login_path = "/ingresar"
    location_path = "/unidades/{patent}/detalles"
    user_field = "email"
    password_field = "password"
    login_failure_markers = ("datos de acceso incorrectos",)

    def _parse_location(self, fields: dict[str, str]) -> LocationSnapshot:
        odometer = fields.get("odometro avl") or fields.get("odometro can")
        temperature = (fields.get("temperatura motor") or "").replace("°C", "")
        heading = parse_decimal(fields.get("angulo"), decimal_comma=True)
        engine_off = fields.get("estado", "").strip().casefold() == "apagado"

        return LocationSnapshot(
            latitude=parse_coordinate(fields.get("latitud"), "latitud"),
            longitude=parse_coordinate(fields.get("longitud"), "longitud"),
            speed=parse_decimal(fields.get("velocidad"), decimal_comma=True),
            timestamp=parse_timestamp(
                fields.get("fecha evento") or fields.get("fecha"), self._tz
            ),
            reason=fields.get("motivo"),
            driver=fields.get("evento"),
            georeference=fields.get("direccion"),
            in_zone=fields.get("cobertura") or "No se encontró información",
            detention_time="Vehículo detenido" if engine_off else "En movimiento",
            # Odometer commas group thousands ("20,500 Km")
            distance_traveled=parse_decimal(odometer),
            temperature=parse_decimal(temperature, decimal_comma=True),
            angle=int(heading) if heading is not None else None,
        )
