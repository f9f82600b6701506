"""Lucky draw: uniform single-winner selection with optional repeat exclusion."""
from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable, Iterator, Optional, Sequence

from hrdraw.core.errors import DrawInProgressError, EmptyPoolError
from hrdraw.entities import Candidate, DrawFrame
from hrdraw.services.confirm_gate import ConfirmGate

logger = logging.getLogger(__name__)

FrameHandler = Callable[[DrawFrame], Awaitable[None]]


class DrawEngine:
    """Draws winners from ``pool`` and keeps the history most-recent-first.

    Only ``draw`` and ``run_draw`` commit winners. Frames produced while
    cycling are display-only and never touch the history.
    """

    def __init__(
        self,
        pool: Optional[Sequence[Candidate]] = None,
        allow_repeats: bool = False,
        rng: Optional[random.Random] = None,
        confirm_timeout: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._pool: list[Candidate] = list(pool or [])
        self.allow_repeats = allow_repeats
        self.history: list[Candidate] = []
        self.current_winner: Optional[Candidate] = None
        self._rng = rng or random.Random()
        self._pending = False
        self.reset_gate = ConfirmGate(timeout=confirm_timeout, clock=clock)

    @property
    def pool(self) -> list[Candidate]:
        return list(self._pool)

    def set_pool(self, candidates: Sequence[Candidate]) -> None:
        self._pool = list(candidates)

    @property
    def is_drawing(self) -> bool:
        return self._pending

    @property
    def eligible(self) -> list[Candidate]:
        if self.allow_repeats:
            return list(self._pool)
        won = {winner.id for winner in self.history}
        return [candidate for candidate in self._pool if candidate.id not in won]

    def draw(self) -> Candidate:
        if self._pending:
            raise DrawInProgressError()
        return self._commit()

    def cycle(self, ticks: int) -> Iterator[DrawFrame]:
        """Yield display-only frames, each picked from the pool as it is now."""
        if not self.eligible:
            raise EmptyPoolError()
        for tick in range(max(0, ticks)):
            eligible = self.eligible
            if not eligible:
                return
            yield self._frame(tick, eligible)

    async def run_draw(
        self,
        on_frame: Optional[FrameHandler] = None,
        ticks: int = 20,
        interval: float = 0.1,
    ) -> Candidate:
        """Cycle through random picks, then commit the final winner.

        Cancelling the coroutine abandons the draw without committing.
        """
        if self._pending:
            raise DrawInProgressError()
        if not self.eligible:
            raise EmptyPoolError()

        self._pending = True
        try:
            for frame in self.cycle(ticks):
                if on_frame:
                    await on_frame(frame)
                await asyncio.sleep(interval)
            return self._commit()
        except asyncio.CancelledError:
            logger.info("Draw cancelled before commit")
            raise
        finally:
            self._pending = False

    def reset_history(self) -> bool:
        """Two-step reset. Returns True once the history has been cleared."""
        if not self.reset_gate.press():
            return False
        self.history.clear()
        self.current_winner = None
        logger.info("Winner history cleared")
        return True

    def clear(self) -> None:
        self.history.clear()
        self.current_winner = None
        self.reset_gate.disarm()

    def _frame(self, tick: int, eligible: Sequence[Candidate]) -> DrawFrame:
        return DrawFrame(tick=tick, candidate=eligible[self._rng.randrange(len(eligible))])

    def _commit(self) -> Candidate:
        eligible = self.eligible
        if not eligible:
            raise EmptyPoolError()
        winner = eligible[self._rng.randrange(len(eligible))]
        self.history.insert(0, winner)
        self.current_winner = winner
        logger.info(f"Draw committed: {winner.name} ({len(eligible)} eligible)")
        return winner
