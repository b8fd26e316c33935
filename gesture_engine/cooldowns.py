"""
Cooldown bookkeeping and deferred actions for the parameter mapper.
"""
import heapq
import itertools
import logging
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


class CooldownRegistry:
    """
    Advisory locks keyed by action name.

    An entry stores the time its cooldown expires; expired entries are simply
    ignored and overwritten by the next set().
    """

    def __init__(self):
        self.expiries: Dict[str, float] = {}

    def set(self, action: str, duration_s: float, t_now: float) -> None:
        """Block ``action`` until ``t_now + duration_s``."""
        self.expiries[action] = t_now + duration_s

    def is_active(self, action: str, t_now: float) -> bool:
        return t_now < self.expiries.get(action, float("-inf"))

    def remaining(self, action: str, t_now: float) -> float:
        """Seconds left on the cooldown, 0 when inactive."""
        return max(0.0, self.expiries.get(action, t_now) - t_now)

    def clear(self) -> None:
        self.expiries.clear()


class TimerQueue:
    """
    One-shot deferred callbacks driven by the frame loop.

    Nothing runs on its own thread: due callbacks execute inside run_due(),
    which the owner calls once per frame.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, str, Callable[[], None]]] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._heap)

    def schedule(self, due_at: float, action: Callable[[], None], name: str = "timer") -> None:
        heapq.heappush(self._heap, (due_at, next(self._counter), name, action))

    def run_due(self, t_now: float) -> int:
        """
        Run every callback whose due time has passed, oldest first.

        Returns:
            Number of callbacks executed
        """
        ran = 0
        while self._heap and self._heap[0][0] <= t_now:
            _, _, name, action = heapq.heappop(self._heap)
            try:
                action()
            except Exception:
                logger.exception("Deferred action %s failed", name)
            ran += 1
        return ran

    def cancel(self, name: str) -> None:
        """Drop every pending callback registered under ``name``."""
        self._heap = [entry for entry in self._heap if entry[2] != name]
        heapq.heapify(self._heap)

    def clear(self) -> None:
        self._heap.clear()
