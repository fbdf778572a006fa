"""Tests for the severity classifier."""

import pytest

from warroom.engine.classifier import classify_severity


class TestKeywordTiers:
    def test_critical_keyword_wins_regardless_of_source(self):
        assert classify_severity("Production down on api-gateway", "monitoring") == "critical"
        assert classify_severity("Production down on api-gateway", "user_report") == "critical"

    def test_medium_keyword(self):
        assert classify_severity("Slow page loads", "monitoring") == "medium"
        assert classify_severity("Slow page loads", "external") == "medium"

    def test_high_keyword(self):
        assert classify_severity("Checkout payment failures", "user_report") == "high"
        assert classify_severity("Upstream timeout from billing", "automated") == "high"

    def test_first_matching_tier_wins(self):
        # "outage" (critical), "timeout" (high) and "latency" (medium) all match
        assert classify_severity("Latency and timeout causing outage", "automated") == "critical"
        assert classify_severity("Disk latency with CPU spikes", "automated") == "high"

    def test_matching_is_case_insensitive(self):
        assert classify_severity("DATA LOSS in replica", "automated") == "critical"
        assert classify_severity("Memory Leak in worker", "automated") == "high"
        assert classify_severity("Certificate Warning", "automated") == "medium"

    def test_substring_matching(self):
        # "shutdown" contains "down"
        assert classify_severity("Scheduled shutdown overran", "user_report") == "critical"


class TestSourceDefaults:
    @pytest.mark.parametrize("source,expected", [
        ("monitoring", "medium"),
        ("external", "high"),
        ("user_report", "low"),
        ("automated", "low"),
    ])
    def test_no_keyword_falls_back_to_source(self, source, expected):
        assert classify_severity("Unusual report", source) == expected

    def test_unknown_source_is_low(self):
        assert classify_severity("Something odd", "carrier_pigeon") == "low"

    def test_empty_title_uses_source_default(self):
        assert classify_severity("", "external") == "high"
