"""Command-line entry point for cpuline."""

import argparse
import sys
import time
from queue import Queue

from cpuline.app import CpuLineApp
from cpuline.config import DEFAULT_INTERVAL_MS, Settings, Source, View
from cpuline.engine import DEFAULT_TREND_WINDOW
from cpuline.errors import TopologyError
from cpuline.frequency import DEFAULT_FREQ_WINDOW
from cpuline.log import configure, get_logger, level_for_verbosity
from cpuline.models import TickResult
from cpuline.monitor import CpuLoadMonitor
from cpuline.render import render_cores, render_trend

logger = get_logger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpuline",
        description="Live CPU load sparklines from kernel time counters.",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=_positive_int,
        default=DEFAULT_INTERVAL_MS,
        metavar="MS",
        help="refresh interval in milliseconds (default: %(default)s)",
    )
    parser.add_argument(
        "--source",
        choices=[source.value for source in Source],
        default=Source.STAT.value,
        help="per-core load from time counters or from scaled frequency (default: %(default)s)",
    )
    parser.add_argument(
        "--ticks",
        action="store_true",
        help="normalize by elapsed time and the clock tick rate instead of total ticks",
    )
    parser.add_argument(
        "--window",
        type=_positive_int,
        default=DEFAULT_FREQ_WINDOW,
        metavar="N",
        help="frequency samples averaged per core (default: %(default)s)",
    )
    parser.add_argument(
        "--trend-window",
        type=_positive_int,
        default=DEFAULT_TREND_WINDOW,
        metavar="N",
        help="ticks kept in the system trend (default: %(default)s)",
    )
    parser.add_argument(
        "--count",
        type=_positive_int,
        default=None,
        metavar="N",
        help="exit after N lines (plain mode only)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="print one line per tick instead of running the full-screen UI",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="log more (repeat for debug output)",
    )
    parser.add_argument(
        "view",
        choices=[view.value for view in View],
        help="cores: one glyph per core each tick; trend: system-wide load history",
    )
    return parser


def format_line(result: TickResult, view: View) -> str:
    if view is View.TREND:
        return render_trend(result)
    return render_cores(result)


def run_plain(settings: Settings, monitor: CpuLoadMonitor) -> None:
    """Print a line per tick until `settings.count` lines have been written."""
    printed = 0
    while True:
        try:
            result = monitor.poll()
        except Exception:
            # Keep printing; the next tick starts from fresh data
            logger.exception("Tick failed")
            result = None
        if result is not None:
            print(format_line(result, settings.view), flush=True)
            printed += 1
            if settings.count is not None and printed >= settings.count:
                break
        time.sleep(settings.interval)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the cpuline command."""
    args = build_parser().parse_args(argv)
    settings = Settings.from_args(args)
    configure(level_for_verbosity(settings.verbosity))

    try:
        if settings.plain:
            run_plain(settings, CpuLoadMonitor.from_settings(settings, Queue()))
        else:
            CpuLineApp(settings).run()
    except TopologyError as exc:
        logger.debug("Startup failed", exc_info=True)
        print(f"cpuline: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
