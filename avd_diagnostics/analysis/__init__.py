"""Measurement grading and sample statistics."""

from .thresholds import MetricThresholds, classify, unavailable, UNDETERMINED
from .ping_stats import average_latency, packet_loss_percent, jitter

__all__ = [
    "MetricThresholds",
    "classify",
    "unavailable",
    "UNDETERMINED",
    "average_latency",
    "packet_loss_percent",
    "jitter",
]
