"""Tests for avd_diagnostics.analysis.thresholds - grading tables."""
import pytest

from avd_diagnostics.analysis.thresholds import UNDETERMINED, classify
from avd_diagnostics.models.measurement import MeasurementKind
from avd_diagnostics.models.results import MetricKind, Severity


class TestLatency:

    @pytest.mark.parametrize("value,label", [
        (0, "EXCELLENT"),
        (49.99, "EXCELLENT"),
        (50, "GOOD"),
        (99.99, "GOOD"),
        (100, "FAIR"),
        (199.99, "FAIR"),
        (200, "POOR"),
        (1500, "POOR"),
    ])
    def test_buckets(self, value, label):
        assert classify(MetricKind.LATENCY, value).label == label

    def test_severity_follows_label(self):
        assert classify(MetricKind.LATENCY, 30).severity == Severity.SUCCESS
        assert classify(MetricKind.LATENCY, 75).severity == Severity.SUCCESS
        assert classify(MetricKind.LATENCY, 150).severity == Severity.WARNING
        assert classify(MetricKind.LATENCY, 250).severity == Severity.ERROR


class TestPacketLoss:

    @pytest.mark.parametrize("value,label", [
        (0, "NONE"),
        (0.0, "NONE"),
        (4.99, "MINIMAL"),
        (5.0, "MODERATE"),
        (14.99, "MODERATE"),
        (15, "HIGH"),
        (100, "HIGH"),
    ])
    def test_buckets(self, value, label):
        assert classify(MetricKind.PACKET_LOSS, value).label == label

    def test_five_percent_is_a_warning(self):
        verdict = classify(MetricKind.PACKET_LOSS, 5.0)
        assert verdict.severity == Severity.WARNING


class TestJitter:

    @pytest.mark.parametrize("value,label,severity", [
        (0, "EXCELLENT", Severity.SUCCESS),
        (4.99, "EXCELLENT", Severity.SUCCESS),
        (5, "ACCEPTABLE", Severity.WARNING),
        (10, "ACCEPTABLE", Severity.WARNING),
        (15, "MODERATE", Severity.WARNING),
        (30, "HIGH", Severity.ERROR),
    ])
    def test_buckets(self, value, label, severity):
        verdict = classify(MetricKind.JITTER, value)
        assert verdict.label == label
        assert verdict.severity == severity


class TestRates:

    @pytest.mark.parametrize("value,label", [
        (100, "EXCELLENT"),
        (99.9, "GOOD"),
        (95, "GOOD"),
        (94.9, "FAIR"),
        (80, "FAIR"),
        (79.9, "POOR"),
        (0, "POOR"),
    ])
    def test_connection_success(self, value, label):
        assert classify(MetricKind.CONNECTION_SUCCESS, value).label == label

    @pytest.mark.parametrize("value,label", [
        (0, "EXCELLENT"),
        (4.9, "GOOD"),
        (5, "FAIR"),
        (14.9, "FAIR"),
        (15, "POOR"),
    ])
    def test_disconnect_rate(self, value, label):
        assert classify(MetricKind.DISCONNECT_RATE, value).label == label

    @pytest.mark.parametrize("value,label", [
        (100, "EXCELLENT"),
        (90, "GOOD"),
        (89.9, "FAIR"),
        (70, "FAIR"),
        (69.9, "POOR"),
    ])
    def test_broker_success(self, value, label):
        assert classify(MetricKind.BROKER_SUCCESS, value).label == label


class TestDnsAndMtu:

    @pytest.mark.parametrize("value,label,severity", [
        (10, "FAST", Severity.SUCCESS),
        (50, "ACCEPTABLE", Severity.WARNING),
        (199, "ACCEPTABLE", Severity.WARNING),
        (200, "SLOW", Severity.ERROR),
    ])
    def test_dns_lookup(self, value, label, severity):
        verdict = classify(MetricKind.DNS_LOOKUP, value)
        assert (verdict.label, verdict.severity) == (label, severity)

    @pytest.mark.parametrize("value,label", [
        (1528, "OPTIMAL"),
        (1500, "OPTIMAL"),
        (1488, "REDUCED"),
        (1280, "REDUCED"),
        (1279, "LOW"),
    ])
    def test_mtu(self, value, label):
        verdict = classify(MetricKind.MTU, value)
        assert verdict.label == label
        assert verdict.measurement.kind == MeasurementKind.BYTES


class TestSupplementaryTables:

    def test_reachability(self):
        assert classify(MetricKind.REACHABILITY, True).label == "PASS"
        assert classify(MetricKind.REACHABILITY, True).severity == Severity.SUCCESS
        assert classify(MetricKind.REACHABILITY, False).label == "FAIL"
        assert classify(MetricKind.REACHABILITY, False).severity == Severity.ERROR

    def test_hop_count(self):
        assert classify(MetricKind.HOP_COUNT, 20).label == "OPTIMAL"
        assert classify(MetricKind.HOP_COUNT, 21).label == "SUBOPTIMAL"
        assert classify(MetricKind.HOP_COUNT, 21).severity == Severity.WARNING

    @pytest.mark.parametrize("ratio,label", [
        (1.0, "COMPARABLE"),
        (1.5, "COMPARABLE"),
        (1.51, "IPV6_SLOWER"),
        (0.67, "COMPARABLE"),
        (0.5, "IPV4_SLOWER"),
    ])
    def test_protocol_ratio(self, ratio, label):
        assert classify(MetricKind.PROTOCOL_RATIO, ratio).label == label

    def test_clock_skew_uses_magnitude(self):
        assert classify(MetricKind.CLOCK_SKEW, -1.0).label == "SYNCED"
        assert classify(MetricKind.CLOCK_SKEW, -45.0).label == "UNSYNCED"
        assert classify(MetricKind.CLOCK_SKEW, 10.0).label == "DRIFTING"

    def test_informational_is_info(self):
        verdict = classify(MetricKind.INFORMATIONAL, 300)
        assert verdict.label == "RECORDED"
        assert verdict.severity == Severity.INFO


class TestUndetermined:

    @pytest.mark.parametrize("metric", list(MetricKind))
    def test_none_is_undetermined_for_every_metric(self, metric):
        verdict = classify(metric, None)
        assert verdict.label == UNDETERMINED
        assert verdict.severity == Severity.INFO
        assert not verdict.measurement.available

    def test_unavailable_reachability_is_not_counted(self):
        assert not classify(MetricKind.REACHABILITY, None).counted
        assert classify(MetricKind.REACHABILITY, False).counted


class TestVerdictFields:

    def test_key_and_name_defaults(self):
        verdict = classify(MetricKind.PACKET_LOSS, 0)
        assert verdict.key == "packet_loss"
        assert verdict.name == "Packet Loss"

    def test_message_includes_label_value_and_detail(self):
        verdict = classify(MetricKind.LATENCY, 30, key="latency", name="Latency", detail="4/4 replies")
        assert verdict.message() == "Latency: EXCELLENT (30.0ms) - 4/4 replies"

    def test_verdict_is_immutable(self):
        verdict = classify(MetricKind.LATENCY, 30)
        with pytest.raises(AttributeError):
            verdict.label = "POOR"
