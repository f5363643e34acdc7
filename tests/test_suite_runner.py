"""Tests for avd_diagnostics.runner.suite_runner and runner.advanced."""
import socket
from datetime import datetime, timedelta

import pytest

from conftest import log_lines
from avd_diagnostics.analysis.thresholds import UNDETERMINED
from avd_diagnostics.models.results import Severity
from avd_diagnostics.probes.base import ProbeError, ProbeReset, ProbeTimeout, ProbeUnavailable
from avd_diagnostics.runner.advanced import AdvancedDiagnostics
from avd_diagnostics.runner.endpoint_runner import EndpointTestRunner
from avd_diagnostics.runner.suite_runner import DiagnosticSuiteRunner


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def clock(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def advanced(probes, reporter, advanced_config, fast_probe_config, fake_clock):
    return AdvancedDiagnostics(
        probes, reporter, advanced_config, fast_probe_config,
        clock=fake_clock.clock, sleep=fake_clock.sleep,
        now=lambda: probes.clock,
    )


@pytest.fixture
def suite(probes, reporter, fast_probe_config, advanced):
    endpoint_runner = EndpointTestRunner(probes, reporter, fast_probe_config)
    return DiagnosticSuiteRunner(
        endpoint_runner, advanced, reporter, now=lambda: datetime(2026, 10, 18, 9, 30),
    )


def by_key(summary):
    return {v.key: v for v in summary.advanced}


class TestSuiteCounts:

    def test_counts_fold_across_endpoints(self, suite, probes):
        probes.resolve_results["down.example.net"] = ProbeError("NXDOMAIN")

        summary = suite.run_suite(["up.example.com", "down.example.net"])

        assert [e.host for e in summary.endpoints] == ["up.example.com", "down.example.net"]
        assert summary.total == 4
        assert summary.passed == 3
        assert summary.failed == 1
        assert summary.success_rate == 75.0
        assert summary.timestamp == datetime(2026, 10, 18, 9, 30)

    def test_advanced_failures_do_not_change_counts(self, suite, probes):
        probes.udp_results = {p: ProbeError("unreachable") for p in (3478, 3479, 3480, 3481)}
        probes.hops = 45
        probes.adapters = ["wlan0"]

        summary = suite.run_suite(["up.example.com"])

        assert (summary.total, summary.passed, summary.failed) == (3, 3, 0)
        checks = by_key(summary)
        assert checks["route"].label == "SUBOPTIMAL"
        assert checks["power"].label == "ENABLED"
        assert checks["power"].value == 1
        assert checks["udp"].label == UNDETERMINED

    def test_advanced_checks_run_once_in_order(self, suite):
        summary = suite.run_suite(["a.example.com", "b.example.com"])
        keys = [v.key for v in summary.advanced]
        assert keys == [
            "udp", "sustained", "dns_ttl_a", "dns_ttl_b", "broker", "background",
            "power", "ip_compare", "route", "proxy", "wifi", "clock",
        ]

    def test_unexpected_error_is_isolated(self, suite, probes, reporter):
        probes.hops = RuntimeError("traceroute exploded")

        summary = suite.run_suite(["up.example.com"])

        route = by_key(summary)["route"]
        assert route.label == UNDETERMINED
        assert "exploded" in route.detail
        assert by_key(summary)["proxy"].label == "RECORDED"
        assert any("[WARNING] Route Trace failed" in line for line in log_lines(reporter))

    def test_late_probe_crash_keeps_endpoint_counts(self, suite, probes):
        probes.df_max_payload = PermissionError("ping is not executable")

        summary = suite.run_suite(["up.example.com"])

        assert (summary.total, summary.passed, summary.failed) == (3, 3, 0)
        assert summary.endpoints[0].get("mtu").label == UNDETERMINED

    def test_default_checks_all_complete(self, suite, reporter):
        suite.run_suite(["up.example.com"])
        lines = log_lines(reporter)
        assert not any(" failed: " in line for line in lines)
        assert not any("aborted" in line for line in lines)

    def test_endpoint_crash_does_not_abort_suite(self, suite, probes, reporter, monkeypatch):
        original = suite.endpoint_runner.run

        def run(host):
            if host == "bad.example.com":
                raise ValueError("boom")
            return original(host)

        monkeypatch.setattr(suite.endpoint_runner, "run", run)
        summary = suite.run_suite(["bad.example.com", "up.example.com"])

        assert summary.endpoints[0].skipped
        assert summary.total == 3
        assert any("endpoint tests aborted" in line for line in log_lines(reporter))


class TestUdp:

    def test_all_ports_answer(self, advanced):
        [verdict] = advanced.test_udp()
        assert verdict.value == 100.0
        assert verdict.label == "OPTIMAL"

    def test_some_ports_silent(self, advanced, probes):
        probes.udp_results = {3478: True, 3479: False, 3480: ProbeReset("closed"), 3481: False}
        [verdict] = advanced.test_udp()
        assert verdict.value == 25.0
        assert verdict.label == "REDUCED"
        assert "closed [3480]" in verdict.detail

    def test_nothing_answers(self, advanced, probes):
        probes.udp_results = {p: False for p in (3478, 3479, 3480, 3481)}
        [verdict] = advanced.test_udp()
        assert verdict.label == "FILTERED"
        assert verdict.severity == Severity.WARNING


class TestSustainedConnection:

    def test_polls_every_two_seconds(self, advanced, fake_clock):
        [verdict] = advanced.test_sustained_connection()
        assert fake_clock.sleeps == [2.0] * 5
        assert verdict.value == 0.0
        assert verdict.label == "EXCELLENT"

    def test_failed_polls_are_disconnects(self, advanced, probes):
        host = advanced.config.sustained_host
        probes.tcp_results[host] = [10.0, ProbeTimeout("t"), 10.0, 10.0, 10.0]
        [verdict] = advanced.test_sustained_connection()
        assert verdict.value == 20.0
        assert verdict.label == "POOR"
        assert "1 disconnects in 5 polls" in verdict.detail

    def test_zero_duration(self, advanced):
        advanced.config.sustained_duration = 0
        [verdict] = advanced.test_sustained_connection()
        assert verdict.label == UNDETERMINED


class TestBrokerStress:

    def test_auth_responses_are_success(self, advanced, probes):
        probes.http_results[advanced.config.broker_url] = [401, 403] * 5
        [verdict] = advanced.test_broker_stress()
        assert verdict.value == 100.0
        assert verdict.label == "EXCELLENT"

    def test_counts_timeouts_and_resets(self, advanced, probes):
        probes.http_results[advanced.config.broker_url] = (
            [200] * 6 + [ProbeTimeout("t"), ProbeTimeout("t"), ProbeReset("r"), 500]
        )
        [verdict] = advanced.test_broker_stress()
        assert verdict.value == 60.0
        assert verdict.label == "POOR"
        assert "2 timeouts, 1 resets" in verdict.detail
        assert "1 unexpected status" in verdict.detail


class TestEnvironment:

    def test_background_activity_flags_heavy_processes(self, advanced, probes, reporter):
        probes.connections = {"OneDrive.exe": 4, "chrome": 12, "sshd": 1}
        [verdict] = advanced.test_background_activity()
        assert verdict.value == 1
        assert verdict.label == "MODERATE"
        assert "OneDrive.exe" in verdict.detail
        assert any("chrome (12)" in line for line in log_lines(reporter))

    def test_background_scan_not_permitted(self, advanced, probes):
        probes.connections = ProbeUnavailable("needs root")
        [verdict] = advanced.test_background_activity()
        assert verdict.label == UNDETERMINED

    def test_power_saving_disabled(self, advanced):
        [verdict] = advanced.test_power_management()
        assert verdict.value == 0
        assert verdict.label == "DISABLED"
        assert verdict.severity == Severity.SUCCESS

    def test_power_saving_enabled_counts_adapters(self, advanced, probes):
        probes.adapters = ["eth0", "wlan0"]
        [verdict] = advanced.test_power_management()
        assert verdict.value == 2
        assert verdict.label == "ENABLED"
        assert verdict.detail == "eth0, wlan0"

    def test_dns_ttl_keys_follow_csv_short_names(self, advanced):
        verdicts = advanced.test_dns_ttl(["login.microsoftonline.com", "login.windows.net"])
        assert [v.key for v in verdicts] == ["dns_ttl_login", "dns_ttl_login2"]

    def test_dns_ttl_per_endpoint(self, advanced, probes):
        probes.ttl = [300, ProbeTimeout("slow")]
        verdicts = advanced.test_dns_ttl(["a.example.com", "b.example.com"])
        assert verdicts[0].value == 300
        assert verdicts[0].severity == Severity.INFO
        assert verdicts[1].label == UNDETERMINED

    def test_clock_skew(self, advanced, probes):
        advanced.now = lambda: probes.clock + timedelta(seconds=45)
        [verdict] = advanced.test_time_sync()
        assert verdict.value == 45.0
        assert verdict.label == "UNSYNCED"

    def test_wifi_absent(self, advanced):
        [verdict] = advanced.test_wifi()
        assert verdict.label == UNDETERMINED

    def test_proxy_detail(self, advanced, probes):
        probes.proxies = {"https": "http://proxy.corp:8080"}
        [verdict] = advanced.test_proxy()
        assert verdict.value == 1
        assert "proxy.corp" in verdict.detail


class TestIpVersions:

    def test_ipv6_much_slower(self, advanced, probes):
        host = advanced.config.ipv6_host
        probes.tcp_results[(host, socket.AF_INET)] = 20.0
        probes.tcp_results[(host, socket.AF_INET6)] = 40.0
        [verdict] = advanced.test_ip_versions()
        assert verdict.value == 2.0
        assert verdict.label == "IPV6_SLOWER"

    def test_ipv4_much_slower(self, advanced, probes):
        host = advanced.config.ipv6_host
        probes.tcp_results[(host, socket.AF_INET)] = 40.0
        probes.tcp_results[(host, socket.AF_INET6)] = 20.0
        [verdict] = advanced.test_ip_versions()
        assert verdict.label == "IPV4_SLOWER"

    def test_comparable(self, advanced):
        [verdict] = advanced.test_ip_versions()
        assert verdict.label == "COMPARABLE"

    def test_skipped_without_ipv6(self, advanced, probes):
        probes.ipv6_result = ProbeError("no AAAA record")
        [verdict] = advanced.test_ip_versions()
        assert verdict.label == UNDETERMINED
        assert "IPv6 unavailable" in verdict.detail
