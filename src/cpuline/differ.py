"""Differencing of cumulative counter snapshots."""

from cpuline.errors import CounterRegressionError
from cpuline.log import get_logger
from cpuline.models import COUNTER_FIELDS, CounterSnapshot, CpuTimes, LoadDelta

logger = get_logger(__name__)


def diff_times(current: CpuTimes, previous: CpuTimes) -> CpuTimes:
    """
    Return the ticks spent in each state between two readings of one core.

    Raises:
        CounterRegressionError: A counter decreased (wraparound, reset, or a
            core that was unplugged and replugged).
    """
    deltas: dict[str, int] = {}
    for name in COUNTER_FIELDS:
        now = getattr(current, name)
        old = getattr(previous, name)
        if now < old:
            raise CounterRegressionError(name, now, old)
        deltas[name] = now - old
    return CpuTimes(**deltas)


def diff_snapshots(
    current: CounterSnapshot,
    previous: CounterSnapshot,
    time_aware: bool = False,
) -> LoadDelta:
    """
    Diff two snapshots taken by the same source.

    Only cores present in both snapshots are compared. A core whose counters
    went backwards is left out for this tick, the same as a missing core.

    Args:
        current: The newer snapshot.
        previous: The older snapshot.
        time_aware: Also record the elapsed time between the captures.

    Raises:
        ValueError: `time_aware` is set and the captures are not strictly
            increasing in time.
    """
    duration = None
    if time_aware:
        duration = current.captured_at - previous.captured_at
        if duration <= 0:
            raise ValueError(f"snapshot duration must be positive, got {duration}")

    aggregate = None
    if current.aggregate is not None and previous.aggregate is not None:
        try:
            aggregate = diff_times(current.aggregate, previous.aggregate)
        except CounterRegressionError as exc:
            logger.debug("Aggregate delta unavailable: %s", exc)

    per_core: dict[int, CpuTimes] = {}
    for index in current.per_core.keys() & previous.per_core.keys():
        try:
            per_core[index] = diff_times(current.per_core[index], previous.per_core[index])
        except CounterRegressionError as exc:
            logger.debug("Core %d delta unavailable: %s", index, exc)

    return LoadDelta(aggregate=aggregate, per_core=per_core, duration=duration)
