from __future__ import annotations

import pytest

from services.errors import (
    LOCATION_ERROR_MESSAGES,
    LocationErrorKind,
    ProviderErrorKind,
    classify_location_error,
    classify_provider_status,
    provider_error_descriptor,
    unsupported_location_error,
)
from services.geolocation import PositionError


@pytest.mark.parametrize(
    "code, kind",
    [
        (1, LocationErrorKind.PERMISSION_DENIED),
        (2, LocationErrorKind.POSITION_UNAVAILABLE),
        (3, LocationErrorKind.TIMEOUT),
    ],
)
def test_standard_codes_map_to_kinds(code: int, kind: LocationErrorKind) -> None:
    from_exc = classify_location_error(PositionError(code, "boom"))
    from_dict = classify_location_error({"code": code})
    assert from_exc.kind == kind.value
    assert from_dict.kind == kind.value
    assert from_exc.message == LOCATION_ERROR_MESSAGES[kind]


@pytest.mark.parametrize("raw", [None, {}, "oops", 42, object()])
def test_malformed_errors_are_unknown(raw) -> None:
    error = classify_location_error(raw)
    assert error.kind == LocationErrorKind.UNKNOWN.value
    assert error.message == LOCATION_ERROR_MESSAGES[LocationErrorKind.UNKNOWN]


def test_unknown_code_with_message_keeps_detail() -> None:
    error = classify_location_error({"code": 99, "message": "sensor offline"})
    assert error.kind == LocationErrorKind.UNKNOWN.value
    assert error.message == "Error de ubicación: sensor offline"


def test_unsupported_is_position_unavailable_and_final() -> None:
    error = unsupported_location_error()
    assert error.kind == LocationErrorKind.POSITION_UNAVAILABLE.value
    assert error.retryable is False


def test_provider_status_classification() -> None:
    assert classify_provider_status("OVER_QUERY_LIMIT") is ProviderErrorKind.QUOTA_EXCEEDED
    assert classify_provider_status("zero_results") is ProviderErrorKind.ZERO_RESULTS
    assert classify_provider_status(None) is ProviderErrorKind.UNKNOWN
    assert classify_provider_status("SOMETHING_NEW") is ProviderErrorKind.UNKNOWN


def test_denied_and_invalid_requests_are_not_retryable() -> None:
    assert provider_error_descriptor("REQUEST_DENIED").retryable is False
    assert provider_error_descriptor("INVALID_REQUEST").retryable is False
    assert provider_error_descriptor("OVER_QUERY_LIMIT").retryable is True
