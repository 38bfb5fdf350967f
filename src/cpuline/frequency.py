"""Load derived from scaled CPU frequency."""

from collections.abc import Iterable

from cpuline.errors import TopologyError
from cpuline.utilization import clamp_fraction
from cpuline.window import SlidingWindow

DEFAULT_FREQ_WINDOW = 8


class Core:
    """A core's fixed frequency bounds and its window of recent readings."""

    __slots__ = ("index", "min_freq", "max_freq", "freq_window")

    def __init__(
        self,
        index: int,
        min_freq: int,
        max_freq: int,
        window_capacity: int = DEFAULT_FREQ_WINDOW,
    ) -> None:
        if index < 0:
            raise TopologyError(f"core index must be non-negative, got {index}")
        if max_freq <= min_freq:
            raise TopologyError(
                f"core {index}: max frequency {max_freq} must exceed min frequency {min_freq}"
            )
        self.index = index
        self.min_freq = min_freq
        self.max_freq = max_freq
        self.freq_window: SlidingWindow[int] = SlidingWindow(window_capacity)

    def __repr__(self) -> str:
        return f"Core(index={self.index}, min_freq={self.min_freq}, max_freq={self.max_freq})"


class FrequencyLoadModel:
    """
    Estimates per-core load from where the current frequency sits between
    the core's minimum and maximum.

    Raw readings are averaged before the fraction is computed; frequency
    drivers report noisy instantaneous values and the noise is amplified
    near the bounds if fractions are averaged instead.
    """

    def __init__(self, cores: Iterable[Core]) -> None:
        self._cores = {core.index: core for core in cores}

    @property
    def cores(self) -> list[Core]:
        """Known cores in ascending index order."""
        return [self._cores[index] for index in sorted(self._cores)]

    def sample(self, core: Core, raw_freq: int) -> None:
        """Feed one frequency reading into the core's window."""
        core.freq_window.sample(raw_freq)

    def load(self, core: Core) -> float:
        """Smoothed load fraction of a core; 0.0 before the first sample."""
        if not len(core.freq_window):
            return 0.0
        span = core.max_freq - core.min_freq
        return clamp_fraction((core.freq_window.average() - core.min_freq) / span)

    def sample_all(self, readings: dict[int, int]) -> None:
        """Feed one reading per known core; cores without a reading are skipped."""
        for index, core in self._cores.items():
            if index in readings:
                self.sample(core, readings[index])

    def loads(self) -> list[tuple[int, float]]:
        """(core_index, fraction) for every core, ascending by index."""
        return [(core.index, self.load(core)) for core in self.cores]
