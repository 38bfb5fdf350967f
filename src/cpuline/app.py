"""cpuline - Textual application."""

from collections import deque
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.widgets import Footer, Static

from cpuline.config import Settings, View
from cpuline.log import get_logger
from cpuline.models import TickResult
from cpuline.monitor import CpuLoadMonitor
from cpuline.render import format_percent, render_cores, render_trend

logger = get_logger(__name__)

HISTORY_ROWS = 30


class CoreHistory(Static):
    """Scrolling per-core sparkline, one row per tick, newest at the bottom."""

    DEFAULT_CSS = """
    CoreHistory {
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize CoreHistory."""
        super().__init__("Waiting for samples...", *args, **kwargs)
        self._rows: deque[str] = deque(maxlen=HISTORY_ROWS)

    @property
    def rows(self) -> list[str]:
        return list(self._rows)

    def add_result(self, result: TickResult) -> None:
        """Append the row for one tick."""
        self._rows.append(f"{format_percent(result.aggregate)} {render_cores(result)}")
        self.update("\n".join(self._rows))


class TrendLine(Static):
    """System-wide load trend with the current mean."""

    DEFAULT_CSS = """
    TrendLine {
        height: 1fr;
        padding: 0 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize TrendLine."""
        super().__init__("Waiting for samples...", *args, **kwargs)
        self._trend: list[float] = []

    @property
    def trend(self) -> list[float]:
        return self._trend

    def add_result(self, result: TickResult) -> None:
        """Show the trend carried by the latest tick."""
        self._trend = result.trend
        current = result.trend[-1] if result.trend else None
        self.update(f"{format_percent(current)} {render_trend(result)}")


class CpuLineApp(App):
    """Main cpuline application."""

    TITLE = "cpuline"
    SUB_TITLE = "CPU load sparklines"

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("v", "toggle_view", "View"),
    ]

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the CpuLineApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._view = self._settings.view
        self._update_queue: Queue[TickResult] = Queue()
        self._monitor = CpuLoadMonitor.from_settings(self._settings, self._update_queue)

    @property
    def view(self) -> View:
        return self._view

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield CoreHistory(id="cores")
        yield TrendLine(id="trend")
        yield Footer()

    def on_mount(self) -> None:
        """Start the monitor when the app is mounted."""
        self._show_view()
        self._monitor.start()
        self.set_interval(self._settings.interval / 2, self._check_for_updates)

    def _show_view(self) -> None:
        self.query_one(CoreHistory).display = self._view is View.CORES
        self.query_one(TrendLine).display = self._view is View.TREND

    def _check_for_updates(self) -> None:
        """Drain the queue and render every result in order."""
        while True:
            try:
                result = self._update_queue.get_nowait()
            except Empty:
                break
            self.show_result(result)

    def show_result(self, result: TickResult) -> None:
        """Render one tick in both views."""
        self.query_one(CoreHistory).add_result(result)
        self.query_one(TrendLine).add_result(result)

    def action_toggle_view(self) -> None:
        """Switch between per-core rows and the system trend."""
        self._view = View.TREND if self._view is View.CORES else View.CORES
        self._show_view()
        self.notify(f"View: {self._view.value}")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._monitor.stop()
        self.exit()
