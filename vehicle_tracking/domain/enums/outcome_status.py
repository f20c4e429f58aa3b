from enum import Enum

from vehicle_tracking.domain.errors import ErrorKind


class OutcomeStatus(str, Enum):
    """Status tags shown to operators for each tracked vehicle."""

    PROCESSED = "Procesado"
    AUTHENTICATION_ERROR = "Error de autenticación"
    CONFIGURATION_ERROR = "Error de configuración"
    SERVER_ERROR = "Error de servidor"
    NO_DATA = "Sin datos"
    PERSISTENCE_ERROR = "Error de persistencia"
    UNSUPPORTED_PROVIDER = "Proveedor no soportado"
    INTERNAL_ERROR = "Error interno"

    @classmethod
    def for_error(cls, kind: ErrorKind | None) -> "OutcomeStatus":
        """Map an error discriminant to the status tag it is reported under."""
        return _STATUS_BY_KIND.get(kind, cls.INTERNAL_ERROR) if kind else cls.INTERNAL_ERROR


_STATUS_BY_KIND: dict[ErrorKind, OutcomeStatus] = {
    ErrorKind.UNSUPPORTED_PROVIDER: OutcomeStatus.UNSUPPORTED_PROVIDER,
    ErrorKind.AUTHENTICATION_FAILED: OutcomeStatus.AUTHENTICATION_ERROR,
    ErrorKind.INVALID_CONFIGURATION: OutcomeStatus.CONFIGURATION_ERROR,
    ErrorKind.UPSTREAM_UNAVAILABLE: OutcomeStatus.SERVER_ERROR,
    ErrorKind.STORAGE_FAILURE: OutcomeStatus.PERSISTENCE_ERROR,
}

# Operator-facing messages, one per status tag
STATUS_MESSAGES: dict[OutcomeStatus, str] = {
    OutcomeStatus.PROCESSED: "Ubicación registrada exitosamente",
    OutcomeStatus.AUTHENTICATION_ERROR: "No se pudo iniciar sesión con las credenciales proporcionadas",
    OutcomeStatus.CONFIGURATION_ERROR: "El vehículo no está disponible con las credenciales actuales",
    OutcomeStatus.SERVER_ERROR: "Error de conectividad con el servidor",
    OutcomeStatus.NO_DATA: "No se pudo obtener información de ubicación",
    OutcomeStatus.PERSISTENCE_ERROR: "Error al guardar en base de datos",
    OutcomeStatus.UNSUPPORTED_PROVIDER: "El proveedor GPS del vehículo no está soportado",
    OutcomeStatus.INTERNAL_ERROR: "Error durante el procesamiento del vehículo",
}
