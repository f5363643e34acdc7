"""Daily CSV summary export."""

import csv
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..models.results import EndpointResult, TestSummary, short_names


class CSVExporter:
    """
    Append one row per suite run to a per-day CSV file.

    The column layout is fixed when the exporter is built from the
    configured endpoint list; metrics an endpoint did not measure are
    written as empty cells.
    """

    # (column suffix, verdict key)
    ENDPOINT_COLUMNS = [
        ("dns", "dns"),
        ("tcp443", "tcp443"),
        ("https", "https"),
        ("latency_ms", "latency"),
        ("packet_loss_pct", "packet_loss"),
        ("jitter_ms", "jitter"),
        ("stability_pct", "stability"),
    ]

    SUMMARY_COLUMNS = ["timestamp", "total_tests", "passed", "failed", "success_rate"]

    def __init__(self, output_dir: Union[str, Path], endpoints: Sequence[str]):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.endpoints = list(endpoints)
        self.short_names = short_names(self.endpoints)

    @property
    def header(self) -> List[str]:
        header = list(self.SUMMARY_COLUMNS)
        for host in self.endpoints:
            short = self.short_names[host]
            header.extend(f"{short}_{suffix}" for suffix, _ in self.ENDPOINT_COLUMNS)
        return header

    def summary_path(self, day: date) -> Path:
        return self.output_dir / f"avd_summary_{day.strftime('%Y%m%d')}.csv"

    def build_row(self, summary: TestSummary) -> List[str]:
        row = [
            summary.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            str(summary.total),
            str(summary.passed),
            str(summary.failed),
            f"{summary.success_rate:.2f}",
        ]

        results = {e.host: e for e in summary.endpoints}
        for host in self.endpoints:
            result = results.get(host)
            for _, key in self.ENDPOINT_COLUMNS:
                row.append(self._cell(result, key))
        return row

    @staticmethod
    def _cell(result: Optional[EndpointResult], key: str) -> str:
        if result is None:
            return ""
        value = result.value(key)
        if value is None:
            return ""
        if isinstance(value, bool):
            return str(value)
        return f"{value:.2f}"

    def export_summary(
        self,
        summary: TestSummary,
        path: Optional[Union[str, Path]] = None,
    ) -> str:
        """Append the run to the day's file, writing the header on first use."""
        filepath = Path(path) if path else self.summary_path(summary.timestamp.date())
        write_header = not filepath.exists() or filepath.stat().st_size == 0

        with open(filepath, 'a', newline='') as f:
            writer = csv.writer(f)
            if write_header:
                writer.writerow(self.header)
            writer.writerow(self.build_row(summary))

        return str(filepath)
