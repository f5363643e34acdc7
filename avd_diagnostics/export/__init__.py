"""Export module for run logs and CSV summaries."""

from .csv_exporter import CSVExporter
from .reporter import Reporter, SUCCESS

__all__ = [
    "CSVExporter",
    "Reporter",
    "SUCCESS",
]
