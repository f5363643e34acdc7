"""Run log and console rendering of diagnostic results."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..models.results import Severity, TestSummary, Verdict


SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SEVERITY_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: SUCCESS,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

LEVEL_STYLES = {
    "SUCCESS": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "INFO": "",
}

SEVERITY_STYLES = {
    Severity.SUCCESS: "green",
    Severity.WARNING: "yellow",
    Severity.ERROR: "red",
    Severity.INFO: "dim",
}


class RichConsoleHandler(logging.Handler):
    """Logging handler printing each record through a rich console."""

    def __init__(self, console: Console):
        super().__init__()
        self.console = console

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
            self.console.print(Text(line, style=LEVEL_STYLES.get(record.levelname, "")))
        except Exception:
            self.handleError(record)


def log_filename(started: Optional[datetime] = None) -> str:
    started = started or datetime.now()
    return f"avd_diagnostics_{started.strftime('%Y%m%d_%H%M%S')}.log"


class Reporter:
    """
    Writes `[timestamp] [LEVEL] message` lines to an append-only run log
    and mirrors them, colored by severity, on the console.
    """

    def __init__(self, log_path: Union[str, Path], console: Optional[Console] = None):
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.console = console or Console()

        self.logger = logging.getLogger(f"avd_diagnostics.run.{id(self):x}")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False
        self.logger.handlers.clear()

        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        file_handler = logging.FileHandler(self.log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        self.logger.addHandler(file_handler)

        console_handler = RichConsoleHandler(self.console)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

    @classmethod
    def for_run(
        cls,
        log_dir: Union[str, Path],
        started: Optional[datetime] = None,
        console: Optional[Console] = None,
    ) -> "Reporter":
        """Reporter writing to a new log file named after the start time."""
        return cls(Path(log_dir) / log_filename(started), console=console)

    def log_line(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.logger.log(SEVERITY_LEVELS[severity], message)

    def info(self, message: str) -> None:
        self.log_line(message, Severity.INFO)

    def success(self, message: str) -> None:
        self.log_line(message, Severity.SUCCESS)

    def warning(self, message: str) -> None:
        self.log_line(message, Severity.WARNING)

    def error(self, message: str) -> None:
        self.log_line(message, Severity.ERROR)

    def section(self, title: str) -> None:
        self.info(f"===== {title} =====")

    def log_verdict(self, verdict: Verdict, prefix: str = "") -> None:
        """Render a verdict as a single log line at its own severity."""
        message = verdict.message()
        if prefix:
            message = f"[{prefix}] {message}"
        self.log_line(message, verdict.severity)

    def summary_table(self, summary: TestSummary) -> Table:
        """Create Rich table for one suite run."""
        table = Table(
            title=f"AVD Diagnostics - {summary.timestamp:%Y-%m-%d %H:%M:%S}",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold cyan",
        )

        columns = [
            ("DNS", "dns"),
            ("TCP 443", "tcp443"),
            ("HTTPS", "https"),
            ("Latency", "latency"),
            ("Loss", "packet_loss"),
            ("Jitter", "jitter"),
            ("Stability", "stability"),
            ("MTU", "mtu"),
        ]

        table.add_column("Endpoint", style="bold")
        for title, _ in columns:
            table.add_column(title, justify="right")

        for endpoint in summary.endpoints:
            cells = []
            for _, key in columns:
                verdict = endpoint.get(key)
                if verdict is None:
                    cells.append(Text("-", style="dim"))
                else:
                    cells.append(Text(verdict.label, style=SEVERITY_STYLES[verdict.severity]))
            table.add_row(endpoint.host, *cells)

        rate = summary.success_rate
        rate_style = "green" if rate >= 90 else ("yellow" if rate >= 70 else "red")
        table.caption = Text(
            f"Tests: {summary.total} | Passed: {summary.passed} | "
            f"Failed: {summary.failed} | Success: {rate:.1f}%",
            style=rate_style,
        )
        return table

    def print_summary(self, summary: TestSummary) -> None:
        self.console.print(self.summary_table(summary))

    def close(self) -> None:
        """Flush and detach the log handlers."""
        for handler in list(self.logger.handlers):
            handler.flush()
            handler.close()
            self.logger.removeHandler(handler)
