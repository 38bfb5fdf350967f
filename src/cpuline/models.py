"""Data models for cpuline."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType

COUNTER_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)


@dataclass(slots=True, frozen=True)
class CpuTimes:
    """
    Cumulative time-in-state counters for one core (or the whole system).

    Values are ticks since boot in the kernel's USER_HZ unit. Only the first
    four fields are required; older kernels report fewer columns.
    """

    user: int
    nice: int
    system: int
    idle: int
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0  # Already included in user
    guest_nice: int = 0  # Already included in nice

    def __post_init__(self) -> None:
        for name in COUNTER_FIELDS:
            if getattr(self, name) < 0:
                raise ValueError(f"counter {name!r} must be non-negative")

    @property
    def idle_time(self) -> int:
        return self.idle + self.iowait

    @property
    def user_time(self) -> int:
        return self.user + self.nice

    @property
    def system_time(self) -> int:
        return self.system + self.irq + self.softirq

    @property
    def busy_time(self) -> int:
        return self.user_time + self.system_time + self.steal

    @property
    def total_time(self) -> int:
        return self.busy_time + self.idle_time

    def counters(self) -> dict[str, int]:
        """Return the raw counters keyed by field name."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _freeze(per_core: Mapping[int, CpuTimes]) -> Mapping[int, CpuTimes]:
    for index in per_core:
        if index < 0:
            raise ValueError(f"core index must be non-negative, got {index}")
    return MappingProxyType(dict(per_core))


@dataclass(slots=True, frozen=True)
class CounterSnapshot:
    """Immutable point-in-time reading of the aggregate and per-core counters."""

    captured_at: float  # time.monotonic() seconds
    aggregate: CpuTimes | None = None
    per_core: Mapping[int, CpuTimes] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_core", _freeze(self.per_core))

    @property
    def core_indices(self) -> list[int]:
        """Core indices present in this snapshot, ascending."""
        return sorted(self.per_core)


@dataclass(slots=True, frozen=True)
class LoadDelta:
    """Field-wise difference between two snapshots."""

    aggregate: CpuTimes | None = None
    per_core: Mapping[int, CpuTimes] = field(default_factory=dict)
    duration: float | None = None  # Seconds, only in the time-aware variant

    def __post_init__(self) -> None:
        object.__setattr__(self, "per_core", _freeze(self.per_core))


@dataclass(slots=True)
class TickResult:
    """Fractions produced by one tick, handed to rendering."""

    per_core: list[tuple[int, float]]
    aggregate: float | None = None
    trend: list[float] = field(default_factory=list)

    @property
    def fractions(self) -> list[float]:
        """Per-core fractions in ascending core order."""
        return [fraction for _, fraction in self.per_core]
