from __future__ import annotations

from dataclasses import replace
from typing import Callable, List, Optional

from loguru import logger

from models import Coordinate, ErrorDescriptor, LocationSource, LocationState

Listener = Callable[[LocationState], None]


class LocationStore:
    """Owns the session's single LocationState.

    Only the tracker and the manual override write here; everybody else reads
    ``state`` or subscribes. A fixed location always wins over GPS output.
    """

    def __init__(self) -> None:
        self._state = LocationState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> LocationState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def begin_loading(self) -> None:
        self._set(replace(self._state, loading=True, error=None))

    def apply_gps(self, coord: Coordinate) -> bool:
        """Record a GPS fix. Returns False when a fixed location suppresses it."""
        if self._state.is_fixed:
            logger.debug("gps fix {} suppressed by fixed location", coord)
            if self._state.loading:
                self._set(replace(self._state, loading=False))
            return False
        self._set(
            replace(
                self._state,
                current=coord,
                source=LocationSource.GPS,
                error=None,
                loading=False,
            )
        )
        return True

    def apply_fixed(self, coord: Coordinate, source: LocationSource) -> None:
        if source not in (LocationSource.MANUAL, LocationSource.ADDRESS):
            raise ValueError(f"fixed location needs a manual or address source, got {source}")
        self._set(
            LocationState(current=coord, source=source, fixed=coord, error=None, loading=False)
        )

    def clear_fixed(self) -> None:
        self._set(replace(self._state, fixed=None, source=LocationSource.NONE))

    def set_error(self, error: Optional[ErrorDescriptor]) -> None:
        self._set(replace(self._state, error=error, loading=False))

    def reset(self) -> None:
        self._set(LocationState())

    def _set(self, state: LocationState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as exc:
                logger.exception("location listener failed: {}", exc)
