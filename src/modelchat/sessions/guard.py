"""Re-entrancy guard for thread switches.

A boolean held for the duration of a switch plus a cooldown window after
it. Calls arriving while the guard is held or cooling down are dropped.
This is a debounce, not a lock: a switch requested inside the window is
lost, which is accepted.
"""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager


class SwitchGuard:
    """Debounce flag with a cooldown timer.

    Args:
        cooldown: Seconds after release during which the guard stays busy
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, cooldown: float = 0.1, clock: Callable[[], float] = time.monotonic):
        self._cooldown = cooldown
        self._clock = clock
        self._active = False
        self._busy_until = 0.0

    @property
    def cooldown(self) -> float:
        return self._cooldown

    @property
    def busy(self) -> bool:
        """True while a switch runs or its cooldown has not elapsed."""
        return self._active or self._clock() < self._busy_until

    @contextmanager
    def hold(self) -> Iterator[None]:
        """Hold the guard for the duration of the block.

        The cooldown starts when the block exits, whether or not it raised.
        """
        self._active = True
        try:
            yield
        finally:
            self._active = False
            self._busy_until = self._clock() + self._cooldown

    def reset(self) -> None:
        """Release the guard and cancel any pending cooldown."""
        self._active = False
        self._busy_until = 0.0
