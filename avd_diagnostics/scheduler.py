"""Fixed-interval loop around the diagnostic suite."""

import csv
import threading
from typing import Optional, Sequence

from .export.csv_exporter import CSVExporter
from .export.reporter import Reporter
from .runner.suite_runner import DiagnosticSuiteRunner


class SchedulerLoop:
    """
    Runs the suite, appends its CSV row, then waits out the interval.

    The interval only separates completed runs; stop() cuts a wait short
    but lets an in-flight run finish and be reported.
    """

    def __init__(
        self,
        suite_runner: DiagnosticSuiteRunner,
        exporter: CSVExporter,
        reporter: Reporter,
        endpoints: Sequence[str],
        interval_minutes: int = 5,
        max_runs: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.suite_runner = suite_runner
        self.exporter = exporter
        self.reporter = reporter
        self.endpoints = list(endpoints)
        self.interval_minutes = interval_minutes
        self.max_runs = max_runs
        self._stop = stop_event or threading.Event()
        self.completed_runs = 0

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    def stop(self) -> None:
        """Request shutdown after the current run."""
        self._stop.set()

    @property
    def is_running(self) -> bool:
        return not self._stop.is_set()

    def run(self) -> int:
        """Loop until stopped. Returns the number of completed runs."""
        self.reporter.info(
            f"Monitoring {len(self.endpoints)} endpoints every {self.interval_minutes} minutes"
        )
        try:
            while not self._stop.is_set():
                summary = self.suite_runner.run_suite(self.endpoints)
                self.export(summary)
                self.reporter.print_summary(summary)
                self.completed_runs += 1

                if self.max_runs is not None and self.completed_runs >= self.max_runs:
                    break

                self.reporter.info(f"Next run in {self.interval_minutes} minutes")
                self._stop.wait(self.interval_seconds)
        except KeyboardInterrupt:
            self.reporter.warning("Interrupted during a run, results of that run discarded")
        finally:
            self.reporter.info(f"Stopped - {self.completed_runs} runs completed")

        return self.completed_runs

    def export(self, summary) -> Optional[str]:
        """Append the run to the daily CSV. Failures are logged, never raised."""
        try:
            path = self.exporter.export_summary(summary)
        except (OSError, csv.Error) as e:
            self.reporter.warning(f"CSV export failed: {e}")
            return None
        self.reporter.info(f"Summary appended to {path}")
        return path
