"""Error taxonomy and user-facing messages for location and provider failures."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from models import ErrorDescriptor


class LocationErrorKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


# W3C geolocation error codes
PERMISSION_DENIED_CODE = 1
POSITION_UNAVAILABLE_CODE = 2
TIMEOUT_CODE = 3

_LOCATION_CODES = {
    PERMISSION_DENIED_CODE: LocationErrorKind.PERMISSION_DENIED,
    POSITION_UNAVAILABLE_CODE: LocationErrorKind.POSITION_UNAVAILABLE,
    TIMEOUT_CODE: LocationErrorKind.TIMEOUT,
}

LOCATION_ERROR_MESSAGES = {
    LocationErrorKind.PERMISSION_DENIED: (
        "Acceso a la ubicación denegado. Por favor, permite el acceso a la ubicación "
        "en la configuración del navegador y recarga la página."
    ),
    LocationErrorKind.POSITION_UNAVAILABLE: (
        "La información de ubicación no está disponible. Verifica que tu dispositivo "
        "tenga GPS activado y una conexión a internet."
    ),
    LocationErrorKind.TIMEOUT: (
        "La ubicación está tardando más de lo esperado. Si persiste, verifica tu "
        "conexión GPS o ingresa tu ubicación manualmente."
    ),
    LocationErrorKind.UNKNOWN: (
        "Error desconocido al obtener la ubicación. Por favor, verifica tu conexión "
        "a internet y los permisos de ubicación."
    ),
}

UNSUPPORTED_MESSAGE = "La geolocalización no es compatible con este dispositivo."


class ProviderErrorKind(str, Enum):
    ZERO_RESULTS = "zero_results"
    QUOTA_EXCEEDED = "quota_exceeded"
    REQUEST_DENIED = "request_denied"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


_PROVIDER_STATUSES = {
    "ZERO_RESULTS": ProviderErrorKind.ZERO_RESULTS,
    "OVER_QUERY_LIMIT": ProviderErrorKind.QUOTA_EXCEEDED,
    "REQUEST_DENIED": ProviderErrorKind.REQUEST_DENIED,
    "INVALID_REQUEST": ProviderErrorKind.INVALID_REQUEST,
    "UNKNOWN_ERROR": ProviderErrorKind.UNKNOWN,
}

PROVIDER_ERROR_MESSAGES = {
    ProviderErrorKind.ZERO_RESULTS: (
        "No se encontraron resultados. Intenta con una dirección o búsqueda más específica."
    ),
    ProviderErrorKind.QUOTA_EXCEEDED: (
        "Se ha excedido el límite de consultas. Intenta de nuevo en unos momentos."
    ),
    ProviderErrorKind.REQUEST_DENIED: (
        "La solicitud fue denegada. Verifica la configuración de la API."
    ),
    ProviderErrorKind.INVALID_REQUEST: (
        "La solicitud es inválida. Verifica que la dirección esté completa."
    ),
    ProviderErrorKind.UNKNOWN: (
        "No se pudo completar la búsqueda. Verifica tu conexión a internet e intenta de nuevo."
    ),
}

# Retrying the same request cannot fix these.
_NON_RETRYABLE_PROVIDER = {ProviderErrorKind.REQUEST_DENIED, ProviderErrorKind.INVALID_REQUEST}


def _read_field(raw: Any, name: str) -> Any:
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def location_error_code(raw: Any) -> Optional[int]:
    """Extract the numeric platform code from *raw*, or None if there isn't one."""
    if raw is None or isinstance(raw, (str, bytes, int, float, bool)):
        return None
    code = _read_field(raw, "code")
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def classify_location_error(raw: Any) -> ErrorDescriptor:
    """
    Turn whatever the platform reported into a typed descriptor.

    Accepts exceptions with a ``code`` attribute, mappings with a ``code``
    key, and anything else (None, empty objects, strings), which is
    classified as UNKNOWN. Never raises.
    """
    unknown = ErrorDescriptor(
        kind=LocationErrorKind.UNKNOWN.value,
        message=LOCATION_ERROR_MESSAGES[LocationErrorKind.UNKNOWN],
    )
    if raw is None or isinstance(raw, (str, bytes, int, float, bool)):
        return unknown
    if isinstance(raw, Mapping) and not raw:
        return unknown

    code = location_error_code(raw)
    kind = _LOCATION_CODES.get(code) if code is not None else None
    if kind is not None:
        return ErrorDescriptor(kind=kind.value, message=LOCATION_ERROR_MESSAGES[kind])

    detail = _read_field(raw, "message")
    if isinstance(detail, str) and detail.strip():
        return ErrorDescriptor(
            kind=LocationErrorKind.UNKNOWN.value,
            message=f"Error de ubicación: {detail.strip()}",
        )
    return unknown


def unsupported_location_error() -> ErrorDescriptor:
    return ErrorDescriptor(
        kind=LocationErrorKind.POSITION_UNAVAILABLE.value,
        message=UNSUPPORTED_MESSAGE,
        retryable=False,
    )


def classify_provider_status(status: Optional[str]) -> ProviderErrorKind:
    if not status:
        return ProviderErrorKind.UNKNOWN
    return _PROVIDER_STATUSES.get(str(status).upper(), ProviderErrorKind.UNKNOWN)


def provider_error_descriptor(status: Optional[str]) -> ErrorDescriptor:
    kind = classify_provider_status(status)
    return ErrorDescriptor(
        kind=kind.value,
        message=PROVIDER_ERROR_MESSAGES[kind],
        retryable=kind not in _NON_RETRYABLE_PROVIDER,
    )
