"""Two-step confirmation for destructive actions (clear list, reset history)."""
from __future__ import annotations

import time
from enum import Enum
from typing import Callable


class GateState(Enum):
    IDLE = "idle"
    ARMED = "armed"


class ConfirmGate:
    """The first ``press`` arms the gate, a second one within ``timeout`` confirms.

    Expiry is evaluated lazily against ``clock`` so no timer outlives the owner.
    """

    def __init__(self, timeout: float = 3.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout = timeout
        self._clock = clock
        self._armed_at: float | None = None

    @property
    def state(self) -> GateState:
        if self._armed_at is None:
            return GateState.IDLE
        if self._clock() - self._armed_at >= self.timeout:
            self._armed_at = None
            return GateState.IDLE
        return GateState.ARMED

    @property
    def armed(self) -> bool:
        return self.state is GateState.ARMED

    def press(self) -> bool:
        """Return True when the press confirms the action."""
        if self.armed:
            self._armed_at = None
            return True
        self._armed_at = self._clock()
        return False

    def disarm(self) -> None:
        self._armed_at = None
