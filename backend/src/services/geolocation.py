from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from loguru import logger

from models import Coordinate, LocationState
from services.errors import (
    LocationErrorKind,
    classify_location_error,
    unsupported_location_error,
)
from services.location_store import LocationStore
from utils import degree_delta


@dataclass(frozen=True)
class PositionOptions:
    enable_high_accuracy: bool = True
    maximum_age_ms: int = 0
    timeout_ms: int = 15_000


HIGH_ACCURACY = PositionOptions(enable_high_accuracy=True, maximum_age_ms=0, timeout_ms=15_000)
# One-shot retry after a timeout: coarse fix, accept a cached one up to 5 minutes old.
REDUCED_ACCURACY = PositionOptions(enable_high_accuracy=False, maximum_age_ms=300_000, timeout_ms=10_000)
WATCH_OPTIONS = PositionOptions(enable_high_accuracy=True, maximum_age_ms=0, timeout_ms=15_000)

DEFAULT_MOVEMENT_THRESHOLD_DEG = 0.001  # roughly 100 m around Lima


class PositionError(Exception):
    """Failure reported by the device location API (W3C codes 1-3)."""

    def __init__(self, code: Optional[int], message: str = ""):
        self.code = code
        self.message = message
        super().__init__(message or f"geolocation error code={code}")


class GeolocationPlatform(Protocol):
    async def get_current_position(self, options: PositionOptions) -> Coordinate:
        ...

    def watch_position(
        self,
        on_position: Callable[[Coordinate], None],
        on_error: Callable[[Any], None],
        options: PositionOptions,
    ) -> Any:
        ...

    def clear_watch(self, watch_id: Any) -> None:
        ...


class TrackerStatus(str, Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    ACTIVE = "active"
    FAILED = "failed"


class GeolocationTracker:
    """Acquires the device position and feeds it into a LocationStore."""

    def __init__(
        self,
        platform: Optional[GeolocationPlatform],
        store: LocationStore,
        *,
        movement_threshold_deg: float = DEFAULT_MOVEMENT_THRESHOLD_DEG,
    ) -> None:
        self._platform = platform
        self._store = store
        self._threshold = movement_threshold_deg
        self._status = TrackerStatus.IDLE
        self._watch_id: Any = None
        self._last_gps: Optional[Coordinate] = None

    @property
    def status(self) -> TrackerStatus:
        return self._status

    @property
    def is_watching(self) -> bool:
        return self._watch_id is not None

    @property
    def last_gps_fix(self) -> Optional[Coordinate]:
        return self._last_gps

    async def request_once(self) -> LocationState:
        """
        Ask the platform for a single fix.

        A TIMEOUT gets exactly one reduced-accuracy retry; every other failure
        is reported straight away. Errors end up in the store, never raised.
        """
        if self._platform is None:
            self._status = TrackerStatus.FAILED
            self._store.set_error(unsupported_location_error())
            return self._store.state

        self._status = TrackerStatus.ACQUIRING
        self._store.begin_loading()

        try:
            coord = await self._acquire(HIGH_ACCURACY)
        except Exception as exc:
            error = classify_location_error(exc)
            if error.kind != LocationErrorKind.TIMEOUT.value:
                return self._fail(error)
            logger.info("gps timeout, retrying with reduced accuracy")
            try:
                coord = await self._acquire(REDUCED_ACCURACY)
            except Exception as final_exc:
                return self._fail(classify_location_error(final_exc))

        self._accept(coord)
        return self._store.state

    def start_watching(self) -> None:
        if self._platform is None or self._watch_id is not None:
            return
        self._watch_id = self._platform.watch_position(
            self._on_watch_position, self._on_watch_error, WATCH_OPTIONS
        )
        logger.debug("gps watch started id={}", self._watch_id)

    def stop_watching(self) -> None:
        if self._watch_id is None or self._platform is None:
            return
        watch_id, self._watch_id = self._watch_id, None
        try:
            self._platform.clear_watch(watch_id)
        except Exception as exc:
            logger.warning("failed to clear gps watch {}: {}", watch_id, exc)
        else:
            logger.debug("gps watch stopped id={}", watch_id)

    def reset_gps_baseline(self) -> None:
        """Forget the last accepted fix so the next update is always applied."""
        self._last_gps = None

    async def _acquire(self, options: PositionOptions) -> Coordinate:
        assert self._platform is not None
        position = await self._platform.get_current_position(options)
        if not isinstance(position, Coordinate):
            raise PositionError(None, f"malformed position: {position!r}")
        return position

    def _accept(self, coord: Coordinate) -> None:
        self._last_gps = coord
        self._status = TrackerStatus.ACTIVE
        self._store.apply_gps(coord)

    def _fail(self, error) -> LocationState:
        logger.warning("location request failed kind={} message={}", error.kind, error.message)
        self._status = TrackerStatus.FAILED
        self._store.set_error(error)
        return self._store.state

    def _on_watch_position(self, position: Any) -> None:
        if not isinstance(position, Coordinate):
            logger.warning("ignoring malformed watch position {!r}", position)
            return
        if self._store.state.is_fixed:
            return
        last = self._last_gps
        if last is not None:
            moved = degree_delta(last.latitude, last.longitude, position.latitude, position.longitude)
            if moved <= self._threshold:
                return
        self._accept(position)

    def _on_watch_error(self, raw: Any) -> None:
        # The platform keeps the watch alive and retries on its own.
        error = classify_location_error(raw)
        logger.warning("gps watch error kind={} message={}", error.kind, error.message)
