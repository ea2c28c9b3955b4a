from __future__ import annotations

import asyncio
from typing import Any, List

from models import Coordinate, LocationSource
from services.errors import LocationErrorKind
from services.geolocation import (
    GeolocationTracker,
    PositionError,
    PositionOptions,
    TrackerStatus,
)
from services.location_store import LocationStore

MIRAFLORES = Coordinate(-12.1211, -77.0297)


class FakePlatform:
    """Replays queued results for one-shot requests and records watch calls."""

    def __init__(self, results: List[Any]) -> None:
        self.results = list(results)
        self.calls: List[PositionOptions] = []
        self.on_position = None
        self.on_error = None
        self.watch_calls = 0
        self.cleared: List[Any] = []

    async def get_current_position(self, options: PositionOptions) -> Coordinate:
        self.calls.append(options)
        result = self.results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def watch_position(self, on_position, on_error, options):
        self.watch_calls += 1
        self.on_position = on_position
        self.on_error = on_error
        return f"watch-{self.watch_calls}"

    def clear_watch(self, watch_id) -> None:
        self.cleared.append(watch_id)


def test_first_fix_sets_gps_source() -> None:
    store = LocationStore()
    tracker = GeolocationTracker(FakePlatform([MIRAFLORES]), store)

    state = asyncio.run(tracker.request_once())

    assert state.current == MIRAFLORES
    assert state.source is LocationSource.GPS
    assert state.loading is False
    assert tracker.status is TrackerStatus.ACTIVE


def test_timeout_retries_once_with_reduced_accuracy() -> None:
    platform = FakePlatform([PositionError(3, "slow"), MIRAFLORES])
    store = LocationStore()
    tracker = GeolocationTracker(platform, store)

    state = asyncio.run(tracker.request_once())

    assert len(platform.calls) == 2
    assert platform.calls[0].enable_high_accuracy is True
    assert platform.calls[1].enable_high_accuracy is False
    assert platform.calls[1].maximum_age_ms == 300_000
    assert platform.calls[1].timeout_ms == 10_000
    assert state.current == MIRAFLORES
    assert state.error is None


def test_second_timeout_is_reported() -> None:
    platform = FakePlatform([PositionError(3), PositionError(3)])
    tracker = GeolocationTracker(platform, LocationStore())

    state = asyncio.run(tracker.request_once())

    assert len(platform.calls) == 2
    assert state.error is not None
    assert state.error.kind == LocationErrorKind.TIMEOUT.value
    assert tracker.status is TrackerStatus.FAILED


def test_permission_denied_has_no_fallback() -> None:
    platform = FakePlatform([PositionError(1, "denied"), MIRAFLORES])
    tracker = GeolocationTracker(platform, LocationStore())

    state = asyncio.run(tracker.request_once())

    assert len(platform.calls) == 1
    assert state.error.kind == LocationErrorKind.PERMISSION_DENIED.value
    assert state.current is None


def test_malformed_platform_error_becomes_unknown() -> None:
    platform = FakePlatform([RuntimeError("weird")])
    tracker = GeolocationTracker(platform, LocationStore())

    state = asyncio.run(tracker.request_once())

    assert state.error.kind == LocationErrorKind.UNKNOWN.value


def test_missing_platform_reports_unsupported() -> None:
    tracker = GeolocationTracker(None, LocationStore())

    state = asyncio.run(tracker.request_once())

    assert state.error.kind == LocationErrorKind.POSITION_UNAVAILABLE.value
    assert state.error.retryable is False


def test_watch_applies_only_significant_moves() -> None:
    platform = FakePlatform([MIRAFLORES])
    store = LocationStore()
    tracker = GeolocationTracker(platform, store, movement_threshold_deg=0.001)
    asyncio.run(tracker.request_once())
    tracker.start_watching()

    platform.on_position(Coordinate(-12.1214, -77.0299))
    assert store.state.current == MIRAFLORES

    moved = Coordinate(-12.1260, -77.0297)
    platform.on_position(moved)
    assert store.state.current == moved


def test_watch_is_ignored_while_location_is_fixed() -> None:
    platform = FakePlatform([])
    store = LocationStore()
    tracker = GeolocationTracker(platform, store)
    pinned = Coordinate(-12.0977, -77.0365)
    store.apply_fixed(pinned, LocationSource.MANUAL)
    tracker.start_watching()

    platform.on_position(MIRAFLORES)

    assert store.state.current == pinned
    assert store.state.source is LocationSource.MANUAL


def test_watch_errors_and_garbage_never_raise() -> None:
    platform = FakePlatform([])
    store = LocationStore()
    tracker = GeolocationTracker(platform, store)
    tracker.start_watching()

    platform.on_error(None)
    platform.on_error({"code": 2})
    platform.on_position("not a coordinate")

    assert store.state.current is None


def test_start_and_stop_watching_are_idempotent() -> None:
    platform = FakePlatform([])
    tracker = GeolocationTracker(platform, LocationStore())

    tracker.start_watching()
    tracker.start_watching()
    assert platform.watch_calls == 1
    assert tracker.is_watching

    tracker.stop_watching()
    tracker.stop_watching()
    assert platform.cleared == ["watch-1"]
    assert not tracker.is_watching


def test_reset_baseline_applies_next_small_move() -> None:
    platform = FakePlatform([MIRAFLORES])
    store = LocationStore()
    tracker = GeolocationTracker(platform, store, movement_threshold_deg=0.001)
    asyncio.run(tracker.request_once())
    tracker.start_watching()
    assert tracker.last_gps_fix == MIRAFLORES

    tracker.reset_gps_baseline()
    assert tracker.last_gps_fix is None
    nudged = Coordinate(-12.1214, -77.0299)
    platform.on_position(nudged)

    assert store.state.current == nudged
    assert tracker.last_gps_fix == nudged
