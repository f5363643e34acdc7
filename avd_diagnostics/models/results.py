"""Verdict and result records produced by a suite run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .measurement import Measurement, MeasurementKind


class MetricKind(Enum):
    """Metrics the classifier holds a threshold table for."""
    REACHABILITY = "reachability"
    LATENCY = "latency"
    PACKET_LOSS = "packet_loss"
    JITTER = "jitter"
    CONNECTION_SUCCESS = "connection_success"
    DISCONNECT_RATE = "disconnect_rate"
    BROKER_SUCCESS = "broker_success"
    DNS_LOOKUP = "dns_lookup"
    MTU = "mtu"
    HOP_COUNT = "hop_count"
    PROTOCOL_RATIO = "protocol_ratio"
    BACKGROUND_ACTIVITY = "background_activity"
    POWER_SAVING = "power_saving"
    UDP_REACHABILITY = "udp_reachability"
    CLOCK_SKEW = "clock_skew"
    INFORMATIONAL = "informational"


class Severity(Enum):
    """Log severity a verdict maps to."""
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Verdict:
    """Graded classification of one measurement."""
    key: str
    metric: MetricKind
    name: str
    measurement: Measurement
    severity: Severity
    label: str
    detail: str = ""

    @property
    def counted(self) -> bool:
        """Whether this verdict contributes to pass/fail counts."""
        return (
            self.measurement.kind == MeasurementKind.REACHABILITY
            and self.measurement.available
        )

    @property
    def passed(self) -> bool:
        return self.severity == Severity.SUCCESS

    @property
    def value(self):
        return self.measurement.value

    def message(self) -> str:
        """One-line rendering used by the reporter."""
        text = f"{self.name}: {self.label} ({self.measurement.format()})"
        if self.detail:
            text += f" - {self.detail}"
        return text


def short_names(hosts: Sequence[str]) -> Dict[str, str]:
    """First DNS label of each host, suffixed when two hosts share it (login, login2)."""
    names: Dict[str, str] = {}
    seen: Dict[str, int] = {}
    for host in hosts:
        short = host.split(".")[0]
        seen[short] = seen.get(short, 0) + 1
        names[host] = short if seen[short] == 1 else f"{short}{seen[short]}"
    return names


@dataclass(frozen=True)
class EndpointResult:
    """All verdicts produced for one endpoint during one suite run."""
    host: str
    verdicts: Tuple[Verdict, ...] = ()
    skipped: bool = False

    def get(self, key: str) -> Optional[Verdict]:
        for verdict in self.verdicts:
            if verdict.key == key:
                return verdict
        return None

    def value(self, key: str):
        verdict = self.get(key)
        return verdict.value if verdict else None

    @property
    def total(self) -> int:
        return sum(1 for v in self.verdicts if v.counted)

    @property
    def passed(self) -> int:
        return sum(1 for v in self.verdicts if v.counted and v.passed)

    @property
    def failed(self) -> int:
        return self.total - self.passed


@dataclass(frozen=True)
class TestSummary:
    """Finalized outcome of one suite run."""
    timestamp: datetime
    total: int
    passed: int
    failed: int
    endpoints: Tuple[EndpointResult, ...] = ()
    advanced: Tuple[Verdict, ...] = field(default_factory=tuple)

    __test__ = False  # not a pytest class

    @classmethod
    def build(
        cls,
        timestamp: datetime,
        endpoints: Iterable[EndpointResult],
        advanced: Iterable[Verdict] = (),
    ) -> "TestSummary":
        """Fold endpoint results into a summary."""
        endpoints = tuple(endpoints)
        return cls(
            timestamp=timestamp,
            total=sum(e.total for e in endpoints),
            passed=sum(e.passed for e in endpoints),
            failed=sum(e.failed for e in endpoints),
            endpoints=endpoints,
            advanced=tuple(advanced),
        )

    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.passed / self.total * 100, 2)

