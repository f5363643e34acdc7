"""One complete diagnostic pass over all endpoints."""

from datetime import datetime
from typing import Callable, List, Sequence

from ..analysis.thresholds import unavailable
from ..export.reporter import Reporter
from ..models.results import EndpointResult, TestSummary, Verdict
from .advanced import AdvancedDiagnostics
from .endpoint_runner import EndpointTestRunner


class DiagnosticSuiteRunner:
    """
    Runs the endpoint probes over every endpoint in order, then the
    suite-level diagnostics once, and folds the results into a summary.

    Nothing raised by a single endpoint or check aborts the suite.
    """

    def __init__(
        self,
        endpoint_runner: EndpointTestRunner,
        advanced: AdvancedDiagnostics,
        reporter: Reporter,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.endpoint_runner = endpoint_runner
        self.advanced = advanced
        self.reporter = reporter
        self.now = now

    def run_suite(self, endpoints: Sequence[str]) -> TestSummary:
        started = self.now()
        self.reporter.info(f"Starting diagnostic suite over {len(endpoints)} endpoints")

        results: List[EndpointResult] = []
        for host in endpoints:
            results.append(self._run_endpoint(host))

        self.reporter.section("Advanced diagnostics")
        advanced: List[Verdict] = []
        for title, key, metric, check in self.advanced.checks(endpoints):
            self.reporter.info(f"Running {title}")
            try:
                verdicts = check()
            except Exception as e:
                self.reporter.warning(f"{title} failed: {e}")
                verdicts = [unavailable(metric, key=key, name=title, detail=str(e))]
            for verdict in verdicts:
                self.reporter.log_verdict(verdict)
            advanced.extend(verdicts)

        summary = TestSummary.build(timestamp=started, endpoints=results, advanced=advanced)
        self.reporter.info(
            f"Suite complete: {summary.passed}/{summary.total} passed, "
            f"{summary.failed} failed ({summary.success_rate:.1f}%)"
        )
        return summary

    def _run_endpoint(self, host: str) -> EndpointResult:
        try:
            return self.endpoint_runner.run(host)
        except Exception as e:
            self.reporter.error(f"[{host}] endpoint tests aborted: {e}")
            return EndpointResult(host=host, verdicts=(), skipped=True)
