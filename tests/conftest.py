import io
import os
import socket
import sys
from datetime import datetime, timezone

import pytest
from rich.console import Console

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from avd_diagnostics.config import AdvancedConfig, ProbeConfig  # noqa: E402
from avd_diagnostics.export.reporter import Reporter  # noqa: E402
from avd_diagnostics.probes.base import NetworkProbes, ProbeError  # noqa: E402


def _take(spec):
    """Next scripted value: lists are consumed in order (last one repeats)."""
    if isinstance(spec, list):
        value = spec.pop(0) if len(spec) > 1 else spec[0]
    else:
        value = spec
    if isinstance(value, Exception):
        raise value
    return value


def _returns(value):
    """A fixed return value that is itself a list (addresses, adapter names)."""
    if isinstance(value, Exception):
        raise value
    return list(value)


class FakeProbes(NetworkProbes):
    """Scriptable stand-in for the system probes. Records every call."""

    def __init__(self):
        self.calls = []
        self.resolve_results = {}
        self.ipv6_result = ["2001:db8::1"]
        self.tcp_results = {}
        self.tcp_default = 12.0
        self.http_results = {}
        self.http_default = 200
        self.ping_results = {}
        self.ping_default = 30.0
        self.df_max_payload = 1472
        self.udp_results = {}
        self.ttl = 300
        self.hops = 12
        self.connections = {}
        self.adapters = []
        self.signal = None
        self.proxies = {}
        self.clock = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

    def resolve(self, host, family=socket.AF_UNSPEC):
        self.calls.append(("resolve", host))
        if family == socket.AF_INET6:
            return _returns(self.ipv6_result)
        return _returns(self.resolve_results.get(host, ["10.0.0.1"]))

    def tcp_connect(self, host, port, timeout=3.0, family=socket.AF_UNSPEC):
        self.calls.append(("tcp_connect", host))
        key = (host, family) if (host, family) in self.tcp_results else host
        return _take(self.tcp_results.get(key, self.tcp_default))

    def https_get(self, url, timeout=10.0):
        self.calls.append(("https_get", url))
        return _take(self.http_results.get(url, self.http_default))

    def ping(self, host, timeout=2.0):
        self.calls.append(("ping", host))
        return _take(self.ping_results.get(host, self.ping_default))

    def ping_df(self, host, payload_size, timeout=2.0):
        self.calls.append(("ping_df", host))
        if isinstance(self.df_max_payload, Exception):
            raise self.df_max_payload
        return self.df_max_payload is not None and payload_size <= self.df_max_payload

    def udp_probe(self, host, port, timeout=2.0):
        self.calls.append(("udp_probe", port))
        return _take(self.udp_results.get(port, True))

    def dns_ttl(self, host, timeout=5.0):
        self.calls.append(("dns_ttl", host))
        return _take(self.ttl)

    def traceroute(self, host, max_hops=30, timeout=60.0):
        self.calls.append(("traceroute", host))
        return _take(self.hops)

    def established_connections(self):
        return _take(self.connections)

    def power_saving_adapters(self):
        return _returns(self.adapters)

    def wifi_signal(self):
        return _take(self.signal)

    def proxy_settings(self):
        return _take(self.proxies)

    def server_time(self, url, timeout=10.0):
        return _take(self.clock)


@pytest.fixture
def probes():
    return FakeProbes()


@pytest.fixture
def console_output():
    return io.StringIO()


@pytest.fixture
def reporter(tmp_path, console_output):
    rep = Reporter(tmp_path / "run.log", console=Console(file=console_output, width=200))
    yield rep
    rep.close()


@pytest.fixture
def fast_probe_config():
    return ProbeConfig(latency_pings=4, loss_pings=20, jitter_pings=20, stability_attempts=10)


@pytest.fixture
def advanced_config():
    return AdvancedConfig(sustained_duration=10, sustained_poll=2.0, broker_requests=10)


def log_lines(reporter):
    for handler in reporter.logger.handlers:
        handler.flush()
    return reporter.log_path.read_text().splitlines()


__all__ = ["FakeProbes", "ProbeError", "log_lines"]
