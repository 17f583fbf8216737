"""
Unit tests for violation aggregation, scoring and the report pipeline.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from tierguard.compliance.engine import build_report
from tierguard.compliance.rules import evaluate_group
from tierguard.compliance.scoring import aggregate, compliance_score, percent


class TestComplianceScore:
    """Test cases for score rounding."""

    def test_no_groups_is_fully_compliant(self):
        assert compliance_score(0, 0) == 100

    def test_two_of_three(self):
        assert compliance_score(2, 3) == 67

    def test_halves_round_up(self):
        assert compliance_score(1, 8) == 13
        assert compliance_score(7, 8) == 88
        assert compliance_score(1, 2) == 50

    def test_bounds(self):
        assert compliance_score(0, 5) == 0
        assert compliance_score(5, 5) == 100

    def test_percent(self):
        assert percent(1, 3) == 33


class TestAggregate:
    """Test cases for aggregate."""

    @pytest.fixture
    def three_groups(self, group):
        return [
            group(service="api", dev="1.0.0", uat="1.0.0", oat="1.0.0", prod="1.0.0"),
            group(service="web", uat="2.0.0", oat="1.0.0"),
            # one critical (prod ahead of oat) + one warning (no uat)
            group(service="worker", oat="0.9.0", prod="1.0.0"),
        ]

    def test_three_groups_one_failing(self, three_groups):
        report = aggregate(three_groups, [evaluate_group(g) for g in three_groups])

        assert report.total_violations == 2
        assert report.critical_count == 1
        assert report.warning_count == 1
        assert report.compliant_group_count == 2
        assert report.total_group_count == 3
        assert report.score == 67

    def test_violations_keep_group_order(self, group):
        groups = [group(service="b", prod="1.0.0"), group(service="a", oat="2.0.0", uat="1.0.0")]
        report = aggregate(groups, [evaluate_group(g) for g in groups])

        assert [v.service_name for v in report.violations] == ["b", "a"]

    def test_zero_groups(self):
        report = aggregate([], [])

        assert report.score == 100
        assert report.total_violations == 0
        assert report.total_group_count == 0

    def test_group_with_several_violations_counts_once(self, group):
        g = group(uat="1.0.0", oat="2.0.0", prod="3.0.0")
        report = aggregate([g], [evaluate_group(g)])

        assert report.total_violations == 3
        assert report.compliant_group_count == 0
        assert report.score == 0

    def test_mismatched_lengths_rejected(self, group):
        with pytest.raises(ValueError):
            aggregate([group(prod="1.0.0")], [])

    def test_generated_at_injectable(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert aggregate([], [], now=now).generated_at == now


class TestBuildReport:
    """Test cases for the end-to-end report pipeline."""

    def test_invariants_hold(self, obs):
        observations = [
            obs(service="api", tier="uat", version="1.0.0"),
            obs(service="api", tier="prod", version="1.1.0"),
            obs(service="web", tier="oat", version="3.0.0"),
            obs(service="web", tier="uat", version="2.0.0"),
            obs(service="cron", tier="dev", version="0.0.1"),
            obs(service="misc", tier="staging", version="7.0.0"),
        ]

        report = build_report(observations)

        keys = {g.key for g in report.groups}
        assert all(v.key in keys for v in report.violations)
        assert report.critical_count + report.warning_count == report.total_violations
        assert report.total_group_count == 4
        assert report.compliant_group_count == 2
        assert report.score == 50
        assert report.has_critical

    def test_violations_for_group(self, obs):
        report = build_report([obs(service="api", tier="prod")])

        assert [v.rule for v in report.violations_for(("api", 1))] == ["prod-without-uat"]
        assert report.violations_for(("other", 1)) == []

    def test_report_is_frozen(self):
        report = build_report([])
        with pytest.raises(Exception):
            report.score = 0

    def test_published_groups_are_read_only(self, obs):
        report = build_report([obs(service="api", tier="uat"), obs(service="api", tier="prod")])
        (group,) = report.groups

        with pytest.raises(ValidationError):
            group.project_name = "Other"
        with pytest.raises(ValidationError):
            group.replaced = ()
        assert isinstance(report.groups, tuple)
        assert isinstance(report.violations, tuple)
