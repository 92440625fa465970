from __future__ import annotations

from typing import Callable, List

from councildata.utils.logger import get_logger

log = get_logger(__name__)

ACTIVE = "active"
INACTIVE = "inactive"
BACKGROUND = "background"
APP_STATES = (ACTIVE, INACTIVE, BACKGROUND)

StateListener = Callable[[str, str], None]


class AppStateMonitor:
    """Tracks whether the host application is foregrounded.

    Listeners receive ``(previous, current)`` on every real transition.
    """

    def __init__(self, initial: str = ACTIVE) -> None:
        if initial not in APP_STATES:
            raise ValueError(f"unknown app state: {initial}")
        self._current = initial
        self._listeners: List[StateListener] = []

    @property
    def current(self) -> str:
        return self._current

    @property
    def is_active(self) -> bool:
        return self._current == ACTIVE

    def set_state(self, state: str) -> None:
        if state not in APP_STATES:
            raise ValueError(f"unknown app state: {state}")
        previous = self._current
        if previous == state:
            return

        self._current = state
        log.debug("App state {} -> {}", previous, state)
        for listener in list(self._listeners):
            try:
                listener(previous, state)
            except Exception as exc:  # noqa: BLE001
                log.exception("App state listener failed: {}", exc)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe


__all__ = ["AppStateMonitor", "ACTIVE", "INACTIVE", "BACKGROUND", "APP_STATES"]
