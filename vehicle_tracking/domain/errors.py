from enum import Enum


class ErrorKind(str, Enum):
    """Discriminant used to classify tracking failures."""

    UNSUPPORTED_PROVIDER = "UNSUPPORTED_PROVIDER"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    VEHICLE_LIST_FAILURE = "VEHICLE_LIST_FAILURE"
    GEO_ENCODING = "GEO_ENCODING"


class TrackingError(Exception):
    """Base class for every failure raised by the tracking subsystem."""

    kind: ErrorKind


class UnsupportedProviderError(TrackingError):
    kind = ErrorKind.UNSUPPORTED_PROVIDER

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"Provider {provider!r} is not supported.")


class AuthenticationFailedError(TrackingError):
    kind = ErrorKind.AUTHENTICATION_FAILED


class InvalidConfigurationError(TrackingError):
    """The vehicle/credential/provider pairing is structurally wrong."""

    kind = ErrorKind.INVALID_CONFIGURATION


class UpstreamUnavailableError(TrackingError):
    """The provider portal could not be reached or answered with a server error."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class StorageError(TrackingError):
    kind = ErrorKind.STORAGE_FAILURE


class VehicleListError(TrackingError):
    kind = ErrorKind.VEHICLE_LIST_FAILURE


class GeoEncodingError(TrackingError):
    kind = ErrorKind.GEO_ENCODING
