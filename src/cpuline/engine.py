"""Per-tick pipeline: diff, compute fractions, feed the system trend."""

from cpuline.differ import diff_snapshots
from cpuline.models import CounterSnapshot, TickResult
from cpuline.utilization import UtilizationCalculator
from cpuline.window import SlidingWindow

DEFAULT_TREND_WINDOW = 32


class LoadEngine:
    """
    Stateless apart from the system-wide trend window.

    The driver owns the previous snapshot and passes it into each `tick`.
    """

    def __init__(
        self,
        calculator: UtilizationCalculator | None = None,
        trend_capacity: int = DEFAULT_TREND_WINDOW,
    ) -> None:
        self._calculator = calculator or UtilizationCalculator()
        self._trend: SlidingWindow[float] = SlidingWindow(trend_capacity)

    @property
    def calculator(self) -> UtilizationCalculator:
        return self._calculator

    @property
    def trend(self) -> SlidingWindow[float]:
        """Window of per-tick mean core fractions."""
        return self._trend

    def tick(self, current: CounterSnapshot, previous: CounterSnapshot) -> TickResult:
        """Compute the fractions for the interval between two snapshots."""
        delta = diff_snapshots(current, previous, time_aware=self._calculator.needs_duration)
        return self.record(
            self._calculator.core_fractions(delta),
            self._calculator.aggregate_fraction(delta),
        )

    def record(
        self,
        per_core: list[tuple[int, float]],
        aggregate: float | None = None,
    ) -> TickResult:
        """Sample the trend with the mean of `per_core` and build the result."""
        per_core = sorted(per_core)
        if per_core:
            self._trend.sample(sum(fraction for _, fraction in per_core) / len(per_core))
        return TickResult(per_core=per_core, aggregate=aggregate, trend=self._trend.elements())
