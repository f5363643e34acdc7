"""Fixed probe sequence against a single endpoint."""

import logging
import time
from typing import List, Optional

from ..analysis.ping_stats import average_latency, jitter, packet_loss_percent, replies
from ..analysis.thresholds import classify, unavailable
from ..config import ProbeConfig
from ..export.reporter import Reporter
from ..models.results import EndpointResult, MetricKind, Verdict
from ..probes.base import NetworkProbes, ProbeError, ProbeReset, ProbeTimeout, ProbeUnavailable


logger = logging.getLogger(__name__)

HTTPS_PORT = 443
ICMP_IP_OVERHEAD = 28

# Probes that depend on DNS, in run order: (key, name, metric)
DEPENDENT_PROBES = [
    ("dns_time", "DNS Lookup Time", MetricKind.DNS_LOOKUP),
    ("tcp443", "TCP 443", MetricKind.REACHABILITY),
    ("https", "HTTPS", MetricKind.REACHABILITY),
    ("latency", "Latency", MetricKind.LATENCY),
    ("packet_loss", "Packet Loss", MetricKind.PACKET_LOSS),
    ("jitter", "Jitter", MetricKind.JITTER),
    ("stability", "Connection Stability", MetricKind.CONNECTION_SUCCESS),
    ("mtu", "MTU", MetricKind.MTU),
]

PROBE_METHODS = {
    "tcp443": "test_tcp",
    "https": "test_https",
    "latency": "test_latency",
    "packet_loss": "test_packet_loss",
    "jitter": "test_jitter",
    "stability": "test_stability",
    "mtu": "test_mtu",
}


def https_status_ok(status: int) -> bool:
    """2xx/3xx, or 401/403: the service answered and wants credentials."""
    return status in (401, 403) or 200 <= status < 400


class EndpointTestRunner:
    """
    Runs DNS, TCP, HTTPS, latency, loss, jitter, stability and MTU probes
    against one host, in that order.

    A DNS failure short-circuits the endpoint: the remaining probes are
    recorded as UNDETERMINED rather than failed.
    """

    def __init__(self, probes: NetworkProbes, reporter: Reporter, config: Optional[ProbeConfig] = None):
        self.probes = probes
        self.reporter = reporter
        self.config = config or ProbeConfig()

    def run(self, host: str) -> EndpointResult:
        self.reporter.section(f"Endpoint {host}")
        verdicts: List[Verdict] = []

        def record(verdict: Verdict) -> None:
            self.reporter.log_verdict(verdict, prefix=host)
            verdicts.append(verdict)

        dns_ok, dns_ms, detail = self._resolve(host)
        record(classify(MetricKind.REACHABILITY, dns_ok, key="dns", name="DNS Resolution", detail=detail))

        if not dns_ok:
            self.reporter.error(f"[{host}] DNS failed, skipping dependent probes")
            for key, name, metric in DEPENDENT_PROBES:
                verdicts.append(unavailable(metric, key=key, name=name, detail="skipped"))
            return EndpointResult(host=host, verdicts=tuple(verdicts), skipped=True)

        record(classify(MetricKind.DNS_LOOKUP, dns_ms, key="dns_time", name="DNS Lookup Time"))
        for key, name, metric in DEPENDENT_PROBES:
            if key in PROBE_METHODS:
                record(self._isolated(host, key, name, metric))

        return EndpointResult(host=host, verdicts=tuple(verdicts), skipped=False)

    def _isolated(self, host: str, key: str, name: str, metric: MetricKind) -> Verdict:
        """Run one probe; an unexpected error becomes an UNDETERMINED verdict for it alone."""
        test = getattr(self, PROBE_METHODS[key])
        try:
            return test(host)
        except Exception as e:
            self.reporter.warning(f"[{host}] {name} aborted: {e}")
            return unavailable(metric, key=key, name=name, detail=f"aborted: {e}")

    def _resolve(self, host: str):
        start = time.perf_counter()
        try:
            addresses = self.probes.resolve(host)
        except ProbeError as e:
            return False, None, str(e)
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        return True, elapsed, ", ".join(addresses[:3])

    def test_tcp(self, host: str) -> Verdict:
        try:
            elapsed = self.probes.tcp_connect(host, HTTPS_PORT, timeout=self.config.tcp_timeout)
        except ProbeError as e:
            return classify(MetricKind.REACHABILITY, False, key="tcp443", name="TCP 443", detail=str(e))
        return classify(
            MetricKind.REACHABILITY, True, key="tcp443", name="TCP 443",
            detail=f"connected in {elapsed:.1f}ms",
        )

    def test_https(self, host: str) -> Verdict:
        url = f"https://{host}/"
        try:
            status = self.probes.https_get(url, timeout=self.config.http_timeout)
        except ProbeError as e:
            return classify(MetricKind.REACHABILITY, False, key="https", name="HTTPS", detail=str(e))

        detail = f"HTTP {status}"
        if status in (401, 403):
            detail += " (reachable, authentication required)"
        return classify(MetricKind.REACHABILITY, https_status_ok(status), key="https", name="HTTPS", detail=detail)

    def _ping_series(self, host: str, count: int) -> List[Optional[float]]:
        """Sequential echoes; individual errors count as lost echoes."""
        samples: List[Optional[float]] = []
        for _ in range(count):
            try:
                samples.append(self.probes.ping(host, timeout=self.config.ping_timeout))
            except ProbeUnavailable:
                raise
            except ProbeError as e:
                logger.debug("ping %s failed: %s", host, e)
                samples.append(None)
        return samples

    def test_latency(self, host: str) -> Verdict:
        try:
            samples = self._ping_series(host, self.config.latency_pings)
        except ProbeUnavailable as e:
            return unavailable(MetricKind.LATENCY, key="latency", name="Latency", detail=str(e))

        avg = average_latency(samples)
        if avg is None:
            return unavailable(
                MetricKind.LATENCY, key="latency", name="Latency",
                detail="no echo replies, ICMP may be blocked",
            )
        received = len(replies(samples))
        return classify(
            MetricKind.LATENCY, avg, key="latency", name="Latency",
            detail=f"average of {received}/{len(samples)} replies",
        )

    def test_packet_loss(self, host: str) -> Verdict:
        try:
            samples = self._ping_series(host, self.config.loss_pings)
        except ProbeUnavailable as e:
            return unavailable(MetricKind.PACKET_LOSS, key="packet_loss", name="Packet Loss", detail=str(e))

        sent, received = len(samples), len(replies(samples))
        return classify(
            MetricKind.PACKET_LOSS, packet_loss_percent(sent, received),
            key="packet_loss", name="Packet Loss", detail=f"{received}/{sent} received",
        )

    def test_jitter(self, host: str) -> Verdict:
        try:
            samples = self._ping_series(host, self.config.jitter_pings)
        except ProbeUnavailable as e:
            return unavailable(MetricKind.JITTER, key="jitter", name="Jitter", detail=str(e))

        value = jitter(samples)
        if value is None:
            return unavailable(MetricKind.JITTER, key="jitter", name="Jitter", detail="fewer than 2 replies")
        return classify(
            MetricKind.JITTER, value, key="jitter", name="Jitter",
            detail=f"stddev of {len(replies(samples))} samples",
        )

    def test_stability(self, host: str) -> Verdict:
        attempts = self.config.stability_attempts
        connected, timeouts, resets, errors = 0, 0, 0, 0
        times = []

        for _ in range(attempts):
            try:
                times.append(self.probes.tcp_connect(host, HTTPS_PORT, timeout=self.config.stability_timeout))
                connected += 1
            except ProbeTimeout:
                timeouts += 1
            except ProbeReset:
                resets += 1
            except ProbeError as e:
                logger.debug("stability connect to %s failed: %s", host, e)
                errors += 1

        rate = round(connected / attempts * 100, 2) if attempts else None
        detail = f"{connected}/{attempts} connected, {timeouts} timeouts, {resets} resets"
        if errors:
            detail += f", {errors} other errors"
        if times:
            detail += f", avg connect {sum(times) / len(times):.1f}ms"
        return classify(MetricKind.CONNECTION_SUCCESS, rate, key="stability", name="Connection Stability", detail=detail)

    def test_mtu(self, host: str) -> Verdict:
        for size in self.config.mtu_sizes:
            try:
                ok = self.probes.ping_df(host, size, timeout=self.config.ping_timeout)
            except ProbeError as e:
                return unavailable(MetricKind.MTU, key="mtu", name="MTU", detail=str(e))
            if ok:
                return classify(
                    MetricKind.MTU, size + ICMP_IP_OVERHEAD, key="mtu", name="MTU",
                    detail=f"{size} byte payload passed unfragmented",
                )
        return unavailable(MetricKind.MTU, key="mtu", name="MTU", detail="no don't-fragment echo succeeded")
