"""Conversion of counter deltas into busy fractions."""

import math
from enum import Enum

from cpuline.models import CpuTimes, LoadDelta


class NormalizationMode(Enum):
    """How a delta is turned into a fraction."""

    BUSY_FRACTION = "busy"
    TICK_RATE = "ticks"


def clamp_fraction(value: float) -> float:
    """Clamp a value to [0, 1]; NaN becomes 0.0."""
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


class UtilizationCalculator:
    """
    Turns a `LoadDelta` into per-core and aggregate fractions in [0, 1].

    In busy-fraction mode the fraction is busy time over total time of the
    delta itself. In tick-rate mode the elapsed wall-clock duration is
    converted into the number of ticks a fully busy core would have
    accumulated, and user, nice and system ticks are measured against that.
    """

    def __init__(
        self,
        mode: NormalizationMode = NormalizationMode.BUSY_FRACTION,
        ticks_per_second: int | None = None,
        core_count: int | None = None,
    ) -> None:
        if ticks_per_second is not None and ticks_per_second <= 0:
            raise ValueError(f"ticks_per_second must be positive, got {ticks_per_second}")
        if mode is NormalizationMode.TICK_RATE and ticks_per_second is None:
            raise ValueError("tick-rate mode requires ticks_per_second")
        if core_count is not None and core_count < 1:
            raise ValueError(f"core_count must be at least 1, got {core_count}")
        self._mode = mode
        self._ticks_per_second = ticks_per_second
        self._core_count = core_count

    @property
    def mode(self) -> NormalizationMode:
        return self._mode

    @property
    def needs_duration(self) -> bool:
        """Whether deltas must carry the elapsed capture duration."""
        return self._mode is NormalizationMode.TICK_RATE

    def fraction(self, times: CpuTimes, duration: float | None = None, cores: int = 1) -> float:
        """
        Compute the busy fraction of one delta.

        Args:
            times: Ticks spent in each state between two readings.
            duration: Seconds between the readings (tick-rate mode only).
            cores: Number of cores summed into `times` (tick-rate mode only).
        """
        if self._mode is NormalizationMode.BUSY_FRACTION:
            total = times.total_time
            if total == 0:
                return 0.0
            return clamp_fraction(times.busy_time / total)

        if duration is None:
            raise ValueError("tick-rate mode needs the delta duration")
        duration_ticks = round(duration * self._ticks_per_second * cores)
        if duration_ticks <= 0:
            return 0.0
        return clamp_fraction((times.user + times.nice + times.system) / duration_ticks)

    def core_fractions(self, delta: LoadDelta) -> list[tuple[int, float]]:
        """Per-core fractions in ascending core order."""
        return [
            (index, self.fraction(delta.per_core[index], delta.duration))
            for index in sorted(delta.per_core)
        ]

    def aggregate_fraction(self, delta: LoadDelta) -> float | None:
        """
        Fraction for the system-wide line, if the delta has one.

        The aggregate line sums every CPU, so in tick-rate mode its budget is
        scaled by the core count given at construction, or by the cores in
        the delta when none was given.
        """
        if delta.aggregate is None:
            return None
        cores = self._core_count or max(len(delta.per_core), 1)
        return self.fraction(delta.aggregate, delta.duration, cores=cores)
