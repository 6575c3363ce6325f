"""Map a steps-per-tick rate to how many simulation steps run on each host frame."""

import math
import sys


class TickScheduler:
    """
    rate >= 1: floor(rate) steps every tick.
    0 < rate < 1: one step every ceil(1/rate) ticks, counted down by a skip counter.
    rate <= 0, inf or nan: no steps.
    """

    __slots__ = ("frames_to_skip",)

    def __init__(self) -> None:
        self.frames_to_skip = 0

    def reset(self) -> None:
        self.frames_to_skip = 0

    @staticmethod
    def max_skip(rate: float) -> int:
        interval = 1.0 / rate
        # Subnormal rates overflow to inf
        if not math.isfinite(interval) or interval >= sys.maxsize:
            return sys.maxsize
        # Tolerance so 1/(1/3) does not ceil to 4
        return max(1, math.ceil(interval - 1e-9))

    def steps_for_tick(self, rate: float) -> int:
        if not math.isfinite(rate) or rate <= 0.0:
            return 0
        if rate >= 1.0:
            return max(1, int(math.floor(rate)))
        max_skip = self.max_skip(rate)
        # Rate may have been raised live; never wait longer than the new interval
        self.frames_to_skip = min(self.frames_to_skip, max_skip) - 1
        if self.frames_to_skip > 0:
            return 0
        self.frames_to_skip = max_skip
        return 1
