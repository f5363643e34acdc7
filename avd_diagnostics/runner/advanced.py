"""Suite-level diagnostics that run once per suite, not per endpoint."""

import logging
import socket
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..analysis.thresholds import classify, unavailable
from ..config import AdvancedConfig, ProbeConfig
from ..export.reporter import Reporter
from ..models.results import MetricKind, Verdict, short_names
from ..probes.base import NetworkProbes, ProbeError, ProbeReset, ProbeTimeout
from .endpoint_runner import HTTPS_PORT, https_status_ok


logger = logging.getLogger(__name__)

Check = Tuple[str, str, MetricKind, Callable[[], List[Verdict]]]


class AdvancedDiagnostics:
    """
    Endpoint-independent probes: UDP relay reachability, sustained
    connection, DNS TTL, broker stress, background traffic, adapter power
    management, IPv4/IPv6 comparison, route trace and environment checks.

    None of these contribute to the suite's pass/fail counts.
    """

    def __init__(
        self,
        probes: NetworkProbes,
        reporter: Reporter,
        config: Optional[AdvancedConfig] = None,
        probe_config: Optional[ProbeConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.probes = probes
        self.reporter = reporter
        self.config = config or AdvancedConfig()
        self.probe_config = probe_config or ProbeConfig()
        self.clock = clock
        self.sleep = sleep
        self.now = now

    def checks(self, endpoints: Sequence[str]) -> List[Check]:
        """Ordered (title, key, metric, callable) for one suite run."""
        return [
            ("UDP Relay Reachability", "udp", MetricKind.UDP_REACHABILITY, self.test_udp),
            ("Sustained Connection", "sustained", MetricKind.DISCONNECT_RATE, self.test_sustained_connection),
            ("DNS TTL Inspection", "dns_ttl", MetricKind.INFORMATIONAL, lambda: self.test_dns_ttl(endpoints)),
            ("Broker Stress Test", "broker", MetricKind.BROKER_SUCCESS, self.test_broker_stress),
            ("Background Network Activity", "background", MetricKind.BACKGROUND_ACTIVITY, self.test_background_activity),
            ("Adapter Power Management", "power", MetricKind.POWER_SAVING, self.test_power_management),
            ("IPv4 vs IPv6 Latency", "ip_compare", MetricKind.PROTOCOL_RATIO, self.test_ip_versions),
            ("Route Trace", "route", MetricKind.HOP_COUNT, self.test_route),
            ("Proxy Settings", "proxy", MetricKind.INFORMATIONAL, self.test_proxy),
            ("Wi-Fi Signal", "wifi", MetricKind.INFORMATIONAL, self.test_wifi),
            ("Clock Synchronization", "clock", MetricKind.CLOCK_SKEW, self.test_time_sync),
        ]

    def test_udp(self) -> List[Verdict]:
        host = self.config.udp_host
        answered, closed, errors = [], [], []

        for port in self.config.udp_ports:
            try:
                if self.probes.udp_probe(host, port, timeout=self.config.udp_timeout):
                    answered.append(port)
            except ProbeReset:
                closed.append(port)
            except ProbeError as e:
                logger.debug("udp %s:%d error: %s", host, port, e)
                errors.append(port)

        ports = self.config.udp_ports
        if not ports or len(errors) == len(ports):
            return [unavailable(MetricKind.UDP_REACHABILITY, key="udp", name="UDP Relay",
                                detail=f"could not probe {host}")]

        rate = round(len(answered) / len(ports) * 100, 2)
        detail = f"{host} answered on {answered or 'no ports'}"
        if closed:
            detail += f", closed {closed}"
        return [classify(MetricKind.UDP_REACHABILITY, rate, key="udp", name="UDP Relay", detail=detail)]

    def test_sustained_connection(self) -> List[Verdict]:
        host = self.config.sustained_host
        attempts, disconnects = 0, 0
        end = self.clock() + self.config.sustained_duration

        while self.clock() < end:
            attempts += 1
            try:
                self.probes.tcp_connect(host, HTTPS_PORT, timeout=self.probe_config.tcp_timeout)
            except ProbeError as e:
                disconnects += 1
                logger.debug("sustained poll %d to %s failed: %s", attempts, host, e)
            self.sleep(self.config.sustained_poll)

        if attempts == 0:
            return [unavailable(MetricKind.DISCONNECT_RATE, key="sustained", name="Sustained Connection")]

        rate = round(disconnects / attempts * 100, 2)
        return [classify(
            MetricKind.DISCONNECT_RATE, rate, key="sustained", name="Sustained Connection",
            detail=f"{disconnects} disconnects in {attempts} polls over {self.config.sustained_duration}s",
        )]

    def test_dns_ttl(self, endpoints: Sequence[str]) -> List[Verdict]:
        verdicts = []
        keys = short_names(endpoints)
        for host in endpoints:
            key = f"dns_ttl_{keys[host]}"
            name = f"DNS TTL {host}"
            try:
                ttl = self.probes.dns_ttl(host, timeout=self.probe_config.dns_timeout)
            except ProbeError as e:
                verdicts.append(unavailable(MetricKind.INFORMATIONAL, key=key, name=name, detail=str(e)))
                continue
            detail = "cached entry near expiry" if ttl < 30 else f"cached for {ttl}s"
            verdicts.append(classify(MetricKind.INFORMATIONAL, ttl, key=key, name=name, detail=detail))
        return verdicts

    def test_broker_stress(self) -> List[Verdict]:
        url = self.config.broker_url
        count = self.config.broker_requests
        ok, timeouts, resets, errors, bad_status = 0, 0, 0, 0, 0

        for _ in range(count):
            try:
                status = self.probes.https_get(url, timeout=self.probe_config.http_timeout)
            except ProbeTimeout:
                timeouts += 1
                continue
            except ProbeReset:
                resets += 1
                continue
            except ProbeError:
                errors += 1
                continue
            if https_status_ok(status):
                ok += 1
            else:
                bad_status += 1

        if count <= 0:
            return [unavailable(MetricKind.BROKER_SUCCESS, key="broker", name="Broker Stress")]

        rate = round(ok / count * 100, 2)
        detail = f"{ok}/{count} succeeded, {timeouts} timeouts, {resets} resets"
        if errors or bad_status:
            detail += f", {errors} errors, {bad_status} unexpected status"
        return [classify(MetricKind.BROKER_SUCCESS, rate, key="broker", name="Broker Stress", detail=detail)]

    def test_background_activity(self) -> List[Verdict]:
        try:
            connections = self.probes.established_connections()
        except ProbeError as e:
            return [unavailable(MetricKind.BACKGROUND_ACTIVITY, key="background", name="Background Activity",
                                detail=str(e))]

        top = sorted(connections.items(), key=lambda item: item[1], reverse=True)[:5]
        if top:
            self.reporter.info("Top connection owners: " + ", ".join(f"{n} ({c})" for n, c in top))

        heavy = [h.lower() for h in self.config.heavy_processes]
        flagged: Dict[str, int] = {
            name: count for name, count in connections.items()
            if any(h in name.lower() for h in heavy)
        }
        detail = ", ".join(sorted(flagged)) if flagged else f"{len(connections)} processes with connections"
        return [classify(
            MetricKind.BACKGROUND_ACTIVITY, len(flagged), key="background", name="Background Activity",
            detail=detail,
        )]

    def test_power_management(self) -> List[Verdict]:
        try:
            adapters = self.probes.power_saving_adapters()
        except ProbeError as e:
            return [unavailable(MetricKind.POWER_SAVING, key="power", name="Adapter Power Saving", detail=str(e))]
        detail = ", ".join(adapters) if adapters else "no adapters with power saving"
        return [classify(MetricKind.POWER_SAVING, len(adapters), key="power", name="Adapter Power Saving",
                         detail=detail)]

    def test_ip_versions(self) -> List[Verdict]:
        host = self.config.ipv6_host
        name = "IPv4 vs IPv6"
        timings = {}

        for label, family in (("IPv4", socket.AF_INET), ("IPv6", socket.AF_INET6)):
            try:
                self.probes.resolve(host, family=family)
                timings[label] = self.probes.tcp_connect(
                    host, HTTPS_PORT, timeout=self.probe_config.tcp_timeout, family=family,
                )
            except ProbeError as e:
                return [unavailable(MetricKind.PROTOCOL_RATIO, key="ip_compare", name=name,
                                    detail=f"{label} unavailable: {e}")]

        ratio = round(timings["IPv6"] / max(timings["IPv4"], 0.01), 2)
        return [classify(
            MetricKind.PROTOCOL_RATIO, ratio, key="ip_compare", name=name,
            detail=f"IPv4 {timings['IPv4']:.1f}ms, IPv6 {timings['IPv6']:.1f}ms",
        )]

    def test_route(self) -> List[Verdict]:
        host = self.config.route_host
        try:
            hops = self.probes.traceroute(host, max_hops=self.config.route_max_hops,
                                          timeout=self.config.route_timeout)
        except ProbeError as e:
            return [unavailable(MetricKind.HOP_COUNT, key="route", name="Route Trace", detail=str(e))]
        return [classify(MetricKind.HOP_COUNT, hops, key="route", name="Route Trace", detail=f"{hops} hops to {host}")]

    def test_proxy(self) -> List[Verdict]:
        proxies = self.probes.proxy_settings()
        detail = ", ".join(f"{k}={v}" for k, v in sorted(proxies.items())) if proxies else "direct connection"
        return [classify(MetricKind.INFORMATIONAL, len(proxies), key="proxy", name="Proxy Settings", detail=detail)]

    def test_wifi(self) -> List[Verdict]:
        signal = self.probes.wifi_signal()
        if signal is None:
            return [unavailable(MetricKind.INFORMATIONAL, key="wifi", name="Wi-Fi Signal",
                                detail="no active wireless link")]
        return [classify(MetricKind.INFORMATIONAL, signal, key="wifi", name="Wi-Fi Signal",
                         detail=f"{signal}% signal quality")]

    def test_time_sync(self) -> List[Verdict]:
        try:
            server = self.probes.server_time(self.config.time_sync_url, timeout=self.probe_config.http_timeout)
        except ProbeError as e:
            return [unavailable(MetricKind.CLOCK_SKEW, key="clock", name="Clock Skew", detail=str(e))]
        skew = round((self.now() - server).total_seconds(), 1)
        return [classify(MetricKind.CLOCK_SKEW, skew, key="clock", name="Clock Skew",
                         detail=f"local clock {skew:+.1f}s against {self.config.time_sync_url}")]
