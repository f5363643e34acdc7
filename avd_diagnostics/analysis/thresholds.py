"""Fixed grading thresholds for remote desktop connectivity metrics."""

import operator
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from ..models.measurement import Measurement, MeasurementKind
from ..models.results import MetricKind, Severity, Verdict


UNDETERMINED = "UNDETERMINED"


@dataclass(frozen=True)
class Bucket:
    """One grade of a threshold table. Buckets are tested in order."""
    label: str
    compare: Optional[Callable[[float, float], bool]] = None
    bound: float = 0.0

    def matches(self, value: float) -> bool:
        if self.compare is None:
            return True
        return self.compare(value, self.bound)


def below(bound: float, label: str) -> Bucket:
    return Bucket(label, operator.lt, bound)


def at_most(bound: float, label: str) -> Bucket:
    return Bucket(label, operator.le, bound)


def above(bound: float, label: str) -> Bucket:
    return Bucket(label, operator.gt, bound)


def at_least(bound: float, label: str) -> Bucket:
    return Bucket(label, operator.ge, bound)


def exactly(bound: float, label: str) -> Bucket:
    return Bucket(label, operator.eq, bound)


def otherwise(label: str) -> Bucket:
    return Bucket(label)


class MetricThresholds:
    """
    Threshold tables used to grade every measurement the tool takes.

    Upper bounds are exclusive unless the bucket is an exact match or an
    inclusive at_least/at_most bound.
    """

    TABLES: Dict[MetricKind, List[Bucket]] = {
        MetricKind.REACHABILITY: [exactly(True, "PASS"), otherwise("FAIL")],
        MetricKind.LATENCY: [
            below(50, "EXCELLENT"),
            below(100, "GOOD"),
            below(200, "FAIR"),
            otherwise("POOR"),
        ],
        MetricKind.PACKET_LOSS: [
            exactly(0, "NONE"),
            below(5, "MINIMAL"),
            below(15, "MODERATE"),
            otherwise("HIGH"),
        ],
        MetricKind.JITTER: [
            below(5, "EXCELLENT"),
            below(15, "ACCEPTABLE"),
            below(30, "MODERATE"),
            otherwise("HIGH"),
        ],
        MetricKind.CONNECTION_SUCCESS: [
            exactly(100, "EXCELLENT"),
            at_least(95, "GOOD"),
            at_least(80, "FAIR"),
            otherwise("POOR"),
        ],
        MetricKind.DISCONNECT_RATE: [
            exactly(0, "EXCELLENT"),
            below(5, "GOOD"),
            below(15, "FAIR"),
            otherwise("POOR"),
        ],
        MetricKind.BROKER_SUCCESS: [
            exactly(100, "EXCELLENT"),
            at_least(90, "GOOD"),
            at_least(70, "FAIR"),
            otherwise("POOR"),
        ],
        MetricKind.DNS_LOOKUP: [
            below(50, "FAST"),
            below(200, "ACCEPTABLE"),
            otherwise("SLOW"),
        ],
        MetricKind.MTU: [
            at_least(1500, "OPTIMAL"),
            at_least(1280, "REDUCED"),
            otherwise("LOW"),
        ],
        MetricKind.HOP_COUNT: [at_most(20, "OPTIMAL"), otherwise("SUBOPTIMAL")],
        # Ratio is IPv6 time over IPv4 time
        MetricKind.PROTOCOL_RATIO: [
            above(1.5, "IPV6_SLOWER"),
            below(1 / 1.5, "IPV4_SLOWER"),
            otherwise("COMPARABLE"),
        ],
        MetricKind.BACKGROUND_ACTIVITY: [
            exactly(0, "NONE"),
            below(3, "MODERATE"),
            otherwise("HIGH"),
        ],
        MetricKind.POWER_SAVING: [exactly(0, "DISABLED"), otherwise("ENABLED")],
        MetricKind.UDP_REACHABILITY: [
            exactly(100, "OPTIMAL"),
            above(0, "REDUCED"),
            otherwise("FILTERED"),
        ],
        MetricKind.CLOCK_SKEW: [
            below(2, "SYNCED"),
            below(30, "DRIFTING"),
            otherwise("UNSYNCED"),
        ],
        MetricKind.INFORMATIONAL: [otherwise("RECORDED")],
    }

    LABEL_SEVERITY: Dict[str, Severity] = {
        "EXCELLENT": Severity.SUCCESS,
        "GOOD": Severity.SUCCESS,
        "FAST": Severity.SUCCESS,
        "OPTIMAL": Severity.SUCCESS,
        "NONE": Severity.SUCCESS,
        "MINIMAL": Severity.SUCCESS,
        "PASS": Severity.SUCCESS,
        "SYNCED": Severity.SUCCESS,
        "COMPARABLE": Severity.SUCCESS,
        "DISABLED": Severity.SUCCESS,
        "FAIR": Severity.WARNING,
        "MODERATE": Severity.WARNING,
        "ACCEPTABLE": Severity.WARNING,
        "REDUCED": Severity.WARNING,
        "SUBOPTIMAL": Severity.WARNING,
        "DRIFTING": Severity.WARNING,
        "ENABLED": Severity.WARNING,
        "FILTERED": Severity.WARNING,
        "IPV6_SLOWER": Severity.WARNING,
        "IPV4_SLOWER": Severity.WARNING,
        "POOR": Severity.ERROR,
        "HIGH": Severity.ERROR,
        "SLOW": Severity.ERROR,
        "LOW": Severity.ERROR,
        "FAIL": Severity.ERROR,
        "UNSYNCED": Severity.ERROR,
        "RECORDED": Severity.INFO,
        UNDETERMINED: Severity.INFO,
    }

    MEASUREMENT_KINDS: Dict[MetricKind, MeasurementKind] = {
        MetricKind.REACHABILITY: MeasurementKind.REACHABILITY,
        MetricKind.LATENCY: MeasurementKind.DURATION_MS,
        MetricKind.PACKET_LOSS: MeasurementKind.PERCENTAGE,
        MetricKind.JITTER: MeasurementKind.DURATION_MS,
        MetricKind.CONNECTION_SUCCESS: MeasurementKind.PERCENTAGE,
        MetricKind.DISCONNECT_RATE: MeasurementKind.PERCENTAGE,
        MetricKind.BROKER_SUCCESS: MeasurementKind.PERCENTAGE,
        MetricKind.DNS_LOOKUP: MeasurementKind.DURATION_MS,
        MetricKind.MTU: MeasurementKind.BYTES,
        MetricKind.HOP_COUNT: MeasurementKind.COUNT,
        MetricKind.PROTOCOL_RATIO: MeasurementKind.RATIO,
        MetricKind.BACKGROUND_ACTIVITY: MeasurementKind.COUNT,
        MetricKind.POWER_SAVING: MeasurementKind.COUNT,
        MetricKind.UDP_REACHABILITY: MeasurementKind.PERCENTAGE,
        MetricKind.CLOCK_SKEW: MeasurementKind.COUNT,
        MetricKind.INFORMATIONAL: MeasurementKind.COUNT,
    }

    def grade(self, metric: MetricKind, value: Union[bool, float, int, None]) -> str:
        """Return the bucket label for a raw value."""
        if value is None:
            return UNDETERMINED
        if metric == MetricKind.CLOCK_SKEW:
            value = abs(value)
        for bucket in self.TABLES[metric]:
            if bucket.matches(value):
                return bucket.label
        return UNDETERMINED

    def severity_for(self, label: str) -> Severity:
        return self.LABEL_SEVERITY.get(label, Severity.INFO)


_thresholds = MetricThresholds()


def classify(
    metric: MetricKind,
    value: Union[bool, float, int, None],
    key: Optional[str] = None,
    name: Optional[str] = None,
    detail: str = "",
) -> Verdict:
    """
    Grade a raw measurement.

    Total over its input: a missing value yields an UNDETERMINED verdict
    with INFO severity instead of raising.
    """
    label = _thresholds.grade(metric, value)
    return Verdict(
        key=key or metric.value,
        metric=metric,
        name=name or metric.value.replace("_", " ").title(),
        measurement=Measurement(_thresholds.MEASUREMENT_KINDS[metric], value),
        severity=_thresholds.severity_for(label),
        label=label,
        detail=detail,
    )


def unavailable(
    metric: MetricKind, key: Optional[str] = None, name: Optional[str] = None, detail: str = ""
) -> Verdict:
    """Verdict for a probe that was skipped or could not measure."""
    return classify(metric, None, key=key, name=name, detail=detail)
