"""
Cooperative timers for the question countdown and the feedback pause.

Nothing here runs in the background. Time only moves when the owner
calls tick() or advance(), which makes every timer deterministic to
test. A cancelled timer never fires and cancelling has no other effect.

The countdown counts whole ticks instead of subtracting floats, so a
3.5 second limit is exactly 35 ticks of 0.1 s.
"""

import math
from collections.abc import Callable

TICK_SECONDS = 0.1
FEEDBACK_DELAY_SECONDS = 1.0

# Absorbs float noise such as 0.30000000000000004 / 0.1
_EPSILON = 1e-9


def seconds_to_ticks(seconds: float) -> int:
    return max(0, math.floor(seconds / TICK_SECONDS + _EPSILON))


class Countdown:
    """Per-question countdown that calls on_expire once when it reaches zero."""

    def __init__(
        self,
        seconds: float,
        on_expire: Callable[[], None],
        on_tick: Callable[[float], None] | None = None,
    ):
        self._remaining_ticks = max(0, round(seconds / TICK_SECONDS))
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def remaining(self) -> float:
        """Seconds left, never negative."""
        return self._remaining_ticks * TICK_SECONDS

    @property
    def remaining_ticks(self) -> int:
        return self._remaining_ticks

    def tick(self) -> None:
        """Advance the countdown by one tick."""
        if not self._active:
            return

        self._remaining_ticks = max(0, self._remaining_ticks - 1)
        if self._on_tick is not None:
            self._on_tick(self.remaining)

        if self._remaining_ticks == 0:
            self._active = False
            self._on_expire()

    def advance(self, seconds: float) -> None:
        """Advance by as many whole ticks as fit into seconds."""
        for _ in range(seconds_to_ticks(seconds)):
            if not self._active:
                break
            self.tick()

    def cancel(self) -> None:
        self._active = False


class DeferredAction:
    """One-shot action that runs after a delay unless cancelled first."""

    def __init__(self, delay: float, action: Callable[[], None]):
        self._ticks_left = seconds_to_ticks(delay)
        self._action = action
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def tick(self) -> None:
        if not self._active:
            return
        self._ticks_left -= 1
        if self._ticks_left <= 0:
            self.fire()

    def advance(self, seconds: float) -> None:
        for _ in range(seconds_to_ticks(seconds)):
            if not self._active:
                break
            self.tick()

    def fire(self) -> None:
        """Run the action now (at most once over the object's life)."""
        if not self._active:
            return
        self._active = False
        self._action()

    def cancel(self) -> None:
        self._active = False


class TimerSlot:
    """
    Holds at most one timer.

    Starting a timer cancels whatever the slot held before, so a game
    never has two countdowns (or two pending feedback actions) running.
    """

    def __init__(self):
        self._timer: Countdown | DeferredAction | None = None

    @property
    def timer(self) -> Countdown | DeferredAction | None:
        return self._timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.active

    def start(self, timer: Countdown | DeferredAction) -> Countdown | DeferredAction:
        self.cancel()
        self._timer = timer
        return timer

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def tick(self) -> None:
        if self._timer is not None:
            self._timer.tick()

    def advance(self, seconds: float) -> None:
        if self._timer is not None:
            self._timer.advance(seconds)
