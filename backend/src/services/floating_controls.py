from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Schedules callbacks on the running asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class Visibility(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


INTERACTION_SETTLE_S = 0.5
HIDE_AFTER_MAP_S = 3.0
IDLE_HIDE_S = 10.0


class FloatingControlsVisibility:
    """Shows map chrome on activity and hides it again once the user goes quiet."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        *,
        settle_s: float = INTERACTION_SETTLE_S,
        hide_after_map_s: float = HIDE_AFTER_MAP_S,
        idle_s: float = IDLE_HIDE_S,
    ) -> None:
        self._scheduler = scheduler or AsyncioScheduler()
        self._settle_s = settle_s
        self._hide_after_map_s = hide_after_map_s
        self._idle_s = idle_s
        self._timers: Dict[str, Any] = {}
        self._listeners: List[Callable[[Visibility], None]] = []
        self._disposed = False

        self.visibility = Visibility.VISIBLE
        self.map_moved_recently = False
        self.has_user_interacted = False
        self.is_user_interacting = False

    @property
    def visible(self) -> bool:
        return self.visibility is Visibility.VISIBLE

    @property
    def offer_tap_to_reveal(self) -> bool:
        return not self.visible and self.has_user_interacted

    def on_change(self, listener: Callable[[Visibility], None]) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        """Arm the initial idle timer."""
        if self._disposed:
            return
        self._restart("idle", self._idle_s, self._on_idle)

    # ── Events ────────────────────────────────────────────────────

    def map_interaction_start(self) -> None:
        if self._disposed:
            return
        self.map_moved_recently = True
        self.has_user_interacted = True
        self.is_user_interacting = True
        self._cancel("hide")
        self._restart("settle", self._settle_s, self._on_settled)
        self._restart("idle", self._idle_s, self._on_idle)
        self._set(Visibility.VISIBLE)

    def map_interaction_end(self) -> None:
        if self._disposed:
            return
        self._restart("hide", self._hide_after_map_s, self._hide)

    def user_activity(self) -> None:
        """Any click, touch, scroll or key press."""
        if self._disposed:
            return
        self._restart("idle", self._idle_s, self._on_idle)
        self._set(Visibility.VISIBLE)

    def show_controls(self) -> None:
        if self._disposed:
            return
        self.map_moved_recently = False
        self.has_user_interacted = True
        self.is_user_interacting = False
        self._restart("idle", self._idle_s, self._on_idle)
        self._set(Visibility.VISIBLE)

    def dispose(self) -> None:
        for name in list(self._timers):
            self._cancel(name)
        self._listeners.clear()
        self._disposed = True

    # ── Timers ────────────────────────────────────────────────────

    def _on_settled(self) -> None:
        self._timers.pop("settle", None)
        self.is_user_interacting = False
        self._restart("idle", self._idle_s, self._on_idle)

    def _on_idle(self) -> None:
        self._timers.pop("idle", None)
        # A map gesture still in progress keeps the controls up.
        if not self.has_user_interacted or not self.is_user_interacting:
            self._hide()

    def _hide(self) -> None:
        self._timers.pop("hide", None)
        if self._disposed:
            return
        self.map_moved_recently = False
        self._set(Visibility.HIDDEN)

    def _restart(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        self._cancel(name)
        self._timers[name] = self._scheduler.call_later(delay, callback)

    def _cancel(self, name: str) -> None:
        handle = self._timers.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _set(self, visibility: Visibility) -> None:
        if visibility is self.visibility:
            return
        self.visibility = visibility
        for listener in list(self._listeners):
            listener(visibility)
