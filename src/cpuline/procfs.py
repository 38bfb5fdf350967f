"""Acquisition of raw counters, frequencies and topology from the OS."""

import os
import time

import psutil

from cpuline.errors import AcquisitionError, TopologyError
from cpuline.frequency import DEFAULT_FREQ_WINDOW, Core
from cpuline.log import get_logger
from cpuline.models import COUNTER_FIELDS, CounterSnapshot, CpuTimes

logger = get_logger(__name__)

PROC_STAT = "/proc/stat"
SYSFS_CPU = "/sys/devices/system/cpu"
CPU_MARKER = "cpu"
MIN_FIELDS = 4  # user nice system idle


def _parse_times(values: list[str]) -> CpuTimes:
    """Build CpuTimes from the numeric columns of a cpu line."""
    if len(values) < MIN_FIELDS:
        raise ValueError(f"expected at least {MIN_FIELDS} fields, got {len(values)}")
    counters = [int(value) for value in values[: len(COUNTER_FIELDS)]]
    return CpuTimes(**dict(zip(COUNTER_FIELDS, counters)))


def parse_stat(text: str, captured_at: float) -> CounterSnapshot:
    """
    Parse the cpu lines of a /proc/stat style table.

    The line starting with "cpu " holds the aggregate counters and lines
    starting with "cpuN" hold core N. Other lines are ignored; cpu lines that
    fail to parse are skipped so the rest of the table is still usable.
    Columns missing on older kernels count as zero.
    """
    aggregate = None
    per_core: dict[int, CpuTimes] = {}

    for line in text.splitlines():
        if not line.startswith(CPU_MARKER):
            continue
        label, *values = line.split()
        try:
            times = _parse_times(values)
            if label == CPU_MARKER:
                aggregate = times
                continue
            index = int(label[len(CPU_MARKER) :])
            if index < 0:
                raise ValueError(f"negative core index {index}")
        except ValueError as exc:
            logger.debug("Skipping malformed stat line %r: %s", line, exc)
            continue
        per_core[index] = times

    return CounterSnapshot(captured_at=captured_at, aggregate=aggregate, per_core=per_core)


def read_snapshot(path: str = PROC_STAT) -> CounterSnapshot:
    """
    Read and parse the counter table.

    Raises:
        AcquisitionError: The file could not be read.
    """
    try:
        with open(path, encoding="ascii", errors="replace") as f:
            text = f.read()
    except OSError as exc:
        raise AcquisitionError(f"cannot read {path}: {exc}") from exc
    return parse_stat(text, time.monotonic())


def _cpu_indices(cpu_root: str) -> list[int]:
    """CPU numbers with a cpuN directory under `cpu_root`, ascending."""
    indices = []
    for name in os.listdir(cpu_root):
        suffix = name[len(CPU_MARKER) :]
        if name.startswith(CPU_MARKER) and suffix.isdigit():
            indices.append(int(suffix))
    return sorted(indices)


def _read_khz(cpu_root: str, index: int, name: str) -> int:
    with open(os.path.join(cpu_root, f"cpu{index}", "cpufreq", name), encoding="ascii") as f:
        return int(f.read().strip())


def read_frequencies(cpu_root: str = SYSFS_CPU) -> dict[int, int]:
    """
    Current frequency in kHz keyed by CPU number.

    Offline CPUs and CPUs without cpufreq are left out, so the model keeps
    their window unchanged for this tick.

    Raises:
        AcquisitionError: No CPU reports a frequency.
    """
    try:
        indices = _cpu_indices(cpu_root)
    except OSError as exc:
        raise AcquisitionError(f"cannot list {cpu_root}: {exc}") from exc

    readings: dict[int, int] = {}
    for index in indices:
        try:
            freq = _read_khz(cpu_root, index, "scaling_cur_freq")
        except (OSError, ValueError) as exc:
            logger.debug("No frequency for cpu%d: %s", index, exc)
            continue
        if freq > 0:
            readings[index] = freq

    if not readings:
        raise AcquisitionError("cpu frequency unavailable on this system")
    return readings


def read_frequency_bounds(cpu_root: str = SYSFS_CPU) -> dict[int, tuple[int, int]]:
    """
    Minimum and maximum frequency in kHz keyed by CPU number, read once at startup.

    CPUs that are offline or report no usable range are left out.

    Raises:
        TopologyError: No CPU reports usable bounds.
    """
    try:
        indices = _cpu_indices(cpu_root)
    except OSError as exc:
        raise TopologyError(f"cannot list {cpu_root}: {exc}") from exc

    bounds: dict[int, tuple[int, int]] = {}
    for index in indices:
        try:
            low = _read_khz(cpu_root, index, "cpuinfo_min_freq")
            high = _read_khz(cpu_root, index, "cpuinfo_max_freq")
        except (OSError, ValueError) as exc:
            logger.debug("No frequency bounds for cpu%d: %s", index, exc)
            continue
        if high <= low:
            logger.debug("Skipping cpu%d: no usable frequency range (%d-%d kHz)", index, low, high)
            continue
        bounds[index] = (low, high)

    if not bounds:
        raise TopologyError("no CPU reports a usable frequency range")
    return bounds


def build_cores(
    window_capacity: int = DEFAULT_FREQ_WINDOW,
    cpu_root: str = SYSFS_CPU,
) -> list[Core]:
    """Create a `Core` per CPU with usable startup frequency bounds."""
    return [
        Core(index, low, high, window_capacity)
        for index, (low, high) in sorted(read_frequency_bounds(cpu_root).items())
    ]


def ticks_per_second() -> int:
    """
    The kernel's USER_HZ counter rate.

    Raises:
        TopologyError: The rate cannot be queried.
    """
    try:
        rate = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError) as exc:
        raise TopologyError(f"cannot determine clock tick rate: {exc}") from exc
    if rate <= 0:
        raise TopologyError(f"invalid clock tick rate {rate}")
    return rate


def core_count() -> int:
    """
    Number of logical CPUs.

    Raises:
        TopologyError: The count is unknown.
    """
    count = psutil.cpu_count(logical=True)
    if not count:
        raise TopologyError("cannot determine the number of CPUs")
    return count
