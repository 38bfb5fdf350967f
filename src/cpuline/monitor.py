"""Sampling loop driving the load engine for cpuline."""

import threading
from collections.abc import Callable
from queue import Queue

from cpuline.config import Settings, Source
from cpuline.engine import LoadEngine
from cpuline.errors import AcquisitionError
from cpuline.frequency import FrequencyLoadModel
from cpuline.log import get_logger
from cpuline.models import CounterSnapshot, TickResult
from cpuline.procfs import (
    build_cores,
    core_count,
    read_frequencies,
    read_snapshot,
    ticks_per_second,
)
from cpuline.utilization import NormalizationMode, UtilizationCalculator

logger = get_logger(__name__)

MIN_INTERVAL = 0.01


class CpuLoadMonitor:
    """
    Timer loop that acquires counters, runs the engine and queues the results.

    Each tick is sequential: acquire, diff, compute fractions, sample windows.
    `poll()` runs one tick in the caller's thread; `start()` runs ticks in a
    daemon thread and pushes every `TickResult` onto the update queue.
    """

    def __init__(
        self,
        update_queue: Queue[TickResult],
        interval: float = 1.0,
        engine: LoadEngine | None = None,
        source: Callable[[], CounterSnapshot] = read_snapshot,
        frequency: FrequencyLoadModel | None = None,
        frequency_source: Callable[[], dict[int, int]] = read_frequencies,
    ) -> None:
        """
        Initialize the CpuLoadMonitor.

        Args:
            update_queue: Thread-safe queue to push results to.
            interval: Seconds between ticks.
            engine: Engine computing fractions; a busy-fraction engine by default.
            source: Callable returning a fresh counter snapshot.
            frequency: When set, per-core load comes from frequency readings
                instead of counter snapshots.
            frequency_source: Callable returning kHz readings by core index.
        """
        self._queue = update_queue
        self._interval = max(MIN_INTERVAL, interval)
        self._engine = engine or LoadEngine()
        self._source = source
        self._frequency = frequency
        self._frequency_source = frequency_source
        self._previous: CounterSnapshot | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @classmethod
    def from_settings(cls, settings: Settings, update_queue: Queue[TickResult]) -> "CpuLoadMonitor":
        """
        Wire a monitor from settings, querying the topology once.

        Raises:
            TopologyError: Core count, tick rate or frequency bounds are unavailable.
        """
        cores = core_count()
        logger.info("Monitoring %d CPUs", cores)

        if settings.normalization is NormalizationMode.TICK_RATE:
            calculator = UtilizationCalculator(
                settings.normalization, ticks_per_second(), core_count=cores
            )
        else:
            calculator = UtilizationCalculator(settings.normalization, core_count=cores)
        engine = LoadEngine(calculator, trend_capacity=settings.trend_window)

        frequency = None
        if settings.source is Source.FREQ:
            frequency = FrequencyLoadModel(build_cores(settings.freq_window))

        return cls(update_queue, interval=settings.interval, engine=engine, frequency=frequency)

    @property
    def interval(self) -> float:
        """Get the current interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the interval."""
        self._interval = max(MIN_INTERVAL, value)

    @property
    def engine(self) -> LoadEngine:
        return self._engine

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="CpuLoadMonitor",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def poll(self) -> TickResult | None:
        """
        Run one tick.

        Returns None when there is nothing to render yet: the first counter
        snapshot only primes the comparison, and a failed acquisition skips
        the tick while keeping the previous snapshot.
        """
        if self._frequency is not None:
            return self._poll_frequency(self._frequency)

        try:
            current = self._source()
        except AcquisitionError as exc:
            logger.warning("Skipping tick: %s", exc)
            return None

        previous, self._previous = self._previous, current
        if previous is None:
            return None
        return self._engine.tick(current, previous)

    def _poll_frequency(self, model: FrequencyLoadModel) -> TickResult | None:
        try:
            readings = self._frequency_source()
        except AcquisitionError as exc:
            logger.warning("Skipping tick: %s", exc)
            return None

        model.sample_all(readings)
        return self._engine.record(model.loads())

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                result = self.poll()
                if result is not None:
                    self._queue.put(result)
            except Exception:
                # Keep the loop alive; the next tick starts from fresh data
                logger.exception("Tick failed")

            # Wait for the interval or until stop is requested
            self._stop_event.wait(timeout=self._interval)
