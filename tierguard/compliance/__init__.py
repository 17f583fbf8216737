"""Tier version compliance engine."""

from tierguard.compliance.engine import build_report
from tierguard.compliance.grouping import group_observations
from tierguard.compliance.matrix import build_matrix
from tierguard.compliance.models import (
    CANONICAL_TIERS,
    ComplianceReport,
    MatrixRow,
    Observation,
    ServiceGroup,
    Tier,
    TierTag,
    Violation,
)
from tierguard.compliance.rules import RULES, Rule, evaluate_group
from tierguard.compliance.scoring import aggregate, compliance_score
from tierguard.compliance.tiers import normalize_tier
from tierguard.compliance.versions import compare_versions, version_key

__all__ = [
    "CANONICAL_TIERS",
    "ComplianceReport",
    "MatrixRow",
    "Observation",
    "RULES",
    "Rule",
    "ServiceGroup",
    "Tier",
    "TierTag",
    "Violation",
    "aggregate",
    "build_matrix",
    "build_report",
    "compare_versions",
    "compliance_score",
    "evaluate_group",
    "group_observations",
    "normalize_tier",
    "version_key",
]
