"""Exceptions raised by cpuline."""


class CpulineError(Exception):
    """Base class for all cpuline errors."""


class AcquisitionError(CpulineError):
    """Counter or frequency data could not be read for this tick."""


class TopologyError(CpulineError):
    """Core topology, frequency bounds or tick rate cannot be determined."""


class CounterRegressionError(CpulineError):
    """A cumulative counter went backwards between two readings."""

    def __init__(self, field: str, current: int, previous: int) -> None:
        super().__init__(f"counter {field!r} decreased from {previous} to {current}")
        self.field = field
        self.current = current
        self.previous = previous
