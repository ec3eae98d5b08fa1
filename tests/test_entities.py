"""Tests for entities module."""

import pytest

from firewalla_msp_mcp.entities import (
    Alarm,
    Box,
    Device,
    Flow,
    Rule,
    StatEntry,
    TargetList,
    TrendPoint,
    derive_severity,
    next_cursor_of,
    results_of,
    synthesize_rule_name,
)


class TestResultsOf:
    """Tests for results_of and next_cursor_of."""

    def test_list_payload(self):
        assert results_of([1, 2]) == [1, 2]

    def test_paged_payload(self):
        assert results_of({"results": [1], "count": 1}) == [1]

    @pytest.mark.parametrize("payload", [None, {}, {"results": None}, "text"])
    def test_missing_results_is_empty(self, payload):
        assert results_of(payload) == []

    def test_next_cursor(self):
        assert next_cursor_of({"next_cursor": "abc"}) == "abc"
        assert next_cursor_of({"next_cursor": None}) is None
        assert next_cursor_of([]) is None


class TestSeverity:
    """Tests for alarm severity derivation."""

    @pytest.mark.parametrize("code,expected", [
        (1, "HIGH"), (2, "HIGH"), (3, "MEDIUM"), (5, "MEDIUM"), (6, "LOW"), (16, "LOW"), ("2", "HIGH"),
    ])
    def test_derived_from_type(self, code, expected):
        assert derive_severity(code) == expected

    @pytest.mark.parametrize("code", [None, "abc"])
    def test_missing_or_non_numeric_type_is_low(self, code):
        assert derive_severity(code) == "LOW"

    def test_explicit_severity_wins(self):
        """Should prefer the explicit severity field over the type code."""
        alarm = Alarm.from_wire({"type": 1, "severity": "low"})
        assert alarm.severity == "LOW"

    def test_severity_derived_when_absent(self):
        assert Alarm.from_wire({"type": 4}).severity == "MEDIUM"


class TestAlarm:
    """Tests for Alarm.from_wire."""

    def test_placeholders_for_empty_record(self):
        """Should fill every display field for an empty alarm."""
        alarm = Alarm.from_wire({})
        assert alarm.status == "active"
        assert alarm.alarm_type == "Unknown"
        assert alarm.device_name == "Unknown"
        assert alarm.device_ip == "N/A"
        assert alarm.remote == "N/A"
        assert alarm.total == 0
        assert alarm.ts is None

    def test_type_label_fallback(self):
        assert Alarm.from_wire({"type": 9}).alarm_type == "Type 9"

    def test_total_defaults_to_download_plus_upload(self):
        alarm = Alarm.from_wire({"transfer": {"download": 100, "upload": 50}})
        assert alarm.total == 150

    def test_remote_prefers_domain(self):
        alarm = Alarm.from_wire({"remote": {"domain": "a.example", "ip": "1.2.3.4"}})
        assert alarm.remote == "a.example"


class TestRuleName:
    """Tests for rule display names."""

    def test_explicit_name(self):
        assert Rule.from_wire({"name": "My rule", "action": "block"}).name == "My rule"

    def test_blank_name_is_synthesized(self):
        rule = Rule.from_wire({
            "name": "  ",
            "action": "block",
            "direction": "outbound",
            "protocol": "tcp",
            "target": {"type": "domain", "value": "ads.example"},
        })
        assert rule.name == "block outbound tcp ads.example"

    def test_missing_parts_use_defaults(self):
        """Should skip a missing direction and default the rest."""
        assert Rule.from_wire({}).name == "unknown any any"

    def test_synthesize_is_deterministic(self):
        first = synthesize_rule_name("allow", "inbound", None, "10.0.0.1")
        assert first == synthesize_rule_name("allow", "inbound", None, "10.0.0.1")
        assert first == "allow inbound any 10.0.0.1"

    def test_scope_and_schedule_text(self, sample_rules):
        rule = Rule.from_wire(sample_rules[1])
        assert rule.scope == "device: AA:BB:CC:DD:EE:02"
        assert rule.schedule == "daily 21:00-07:00"
        assert rule.status == "paused"


class TestDeviceAndBox:
    """Tests for Device and Box conversions."""

    def test_device_ip_sources(self, sample_devices):
        laptop, phone, unnamed = (Device.from_wire(raw) for raw in sample_devices["results"])
        assert laptop.ip == "192.168.1.10"
        assert phone.ip == "192.168.1.11"
        assert unnamed.ip == "N/A"

    def test_device_box_reference(self, sample_devices):
        laptop, phone, unnamed = (Device.from_wire(raw) for raw in sample_devices["results"])
        assert laptop.box == "Home Gold"
        assert phone.box == "Home Gold"
        assert unnamed.box == "N/A"

    def test_device_placeholders(self):
        device = Device.from_wire({})
        assert device.name == "Unknown Device"
        assert device.device_type == "Unknown"
        assert device.online is False

    def test_box_placeholders(self):
        box = Box.from_wire({"gid": "box-9"})
        assert box.name == "Unknown Box"
        assert box.model == "Unknown"
        assert box.version == "N/A"
        assert box.group == "N/A"

    def test_box_group_object(self):
        assert Box.from_wire({"group": {"id": "g1", "name": "West"}}).group == "West"


class TestFlow:
    """Tests for Flow.from_wire."""

    def test_destination_and_status(self, sample_flows):
        video, blocked = (Flow.from_wire(raw) for raw in sample_flows["results"])
        assert video.destination == "video.example"
        assert video.status == "allowed"
        assert video.total == 1048576 + 1024
        assert blocked.destination == "203.0.113.9"
        assert blocked.status == "blocked"
        assert blocked.country == "US"

    def test_unknown_status_without_block_flag(self):
        assert Flow.from_wire({}).status == "unknown"


class TestTargetListAndStats:
    """Tests for TargetList, StatEntry and TrendPoint."""

    def test_target_list_defaults(self):
        target_list = TargetList.from_wire({"name": "x", "targets": ["a.example", None, ""]})
        assert target_list.owner == "N/A"
        assert target_list.category == "Uncategorized"
        assert target_list.targets == ["a.example"]

    def test_stat_entry_label_from_meta(self):
        entry = StatEntry.from_wire({"meta": {"name": "Home Gold"}, "value": 42})
        assert entry.label == "Home Gold"
        assert entry.value == 42

    def test_stat_entry_count_fallback(self):
        entry = StatEntry.from_wire({"region": "US", "count": 7})
        assert entry.label == "US"
        assert entry.value == 7

    def test_trend_point_value(self):
        point = TrendPoint.from_wire({"ts": 1720000000, "value": 3})
        assert point.ts == 1720000000
        assert point.value == 3

    def test_trend_point_total_fallback(self):
        point = TrendPoint.from_wire({"ts": 1, "total": 9, "blocked": 4})
        assert point.value == 9
        assert point.fields["blocked"] == 4
