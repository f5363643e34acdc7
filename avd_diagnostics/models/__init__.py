"""Data models for AVD diagnostics."""

from .measurement import Measurement, MeasurementKind
from .results import MetricKind, Severity, Verdict, EndpointResult, TestSummary, short_names

__all__ = [
    "Measurement",
    "MeasurementKind",
    "MetricKind",
    "Severity",
    "Verdict",
    "EndpointResult",
    "TestSummary",
    "short_names",
]
