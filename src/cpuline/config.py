"""Runtime settings for cpuline."""

from argparse import Namespace
from dataclasses import dataclass
from enum import Enum

from cpuline.engine import DEFAULT_TREND_WINDOW
from cpuline.frequency import DEFAULT_FREQ_WINDOW
from cpuline.utilization import NormalizationMode

DEFAULT_INTERVAL_MS = 1000


class View(Enum):
    """What a rendered line shows."""

    CORES = "cores"
    TREND = "trend"


class Source(Enum):
    """Where per-core load comes from."""

    STAT = "stat"
    FREQ = "freq"


@dataclass(slots=True, frozen=True)
class Settings:
    """Immutable runtime configuration."""

    view: View = View.CORES
    interval_ms: int = DEFAULT_INTERVAL_MS
    source: Source = Source.STAT
    normalization: NormalizationMode = NormalizationMode.BUSY_FRACTION
    freq_window: int = DEFAULT_FREQ_WINDOW
    trend_window: int = DEFAULT_TREND_WINDOW
    count: int | None = None  # Stop after this many lines (plain mode)
    plain: bool = False
    verbosity: int = 0

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {self.interval_ms} ms")
        if self.freq_window < 1 or self.trend_window < 1:
            raise ValueError("window sizes must be at least 1")
        if self.count is not None and self.count < 1:
            raise ValueError(f"count must be at least 1, got {self.count}")

    @property
    def interval(self) -> float:
        """Refresh interval in seconds."""
        return self.interval_ms / 1000

    @classmethod
    def from_args(cls, args: Namespace) -> "Settings":
        """Build settings from parsed command-line arguments."""
        return cls(
            view=View(args.view),
            interval_ms=args.interval,
            source=Source(args.source),
            normalization=(
                NormalizationMode.TICK_RATE if args.ticks else NormalizationMode.BUSY_FRACTION
            ),
            freq_window=args.window,
            trend_window=args.trend_window,
            count=args.count,
            plain=args.plain,
            verbosity=args.verbose,
        )
