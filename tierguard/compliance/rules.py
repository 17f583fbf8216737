"""Tier ordering rules.

A version has to pass through the acceptance tiers before it reaches
production: prod may not run ahead of oat or uat, oat may not run ahead of
uat, and prod should not exist without a uat deployment. Each rule looks at
one service group and yields at most one violation; rules are independent of
each other.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .models import ServiceGroup, Severity, Tier, Violation
from .versions import is_ahead

TierVersions = Dict[Tier, str]


@dataclass(frozen=True)
class Rule:
    id: str
    severity: Severity
    description: str
    check: Callable[[TierVersions], Optional[str]]


def _ahead_of(upper: Tier, lower: Tier, rule_text: str) -> Callable[[TierVersions], Optional[str]]:
    def check(versions: TierVersions) -> Optional[str]:
        hi = versions.get(upper)
        lo = versions.get(lower)
        if hi is None or lo is None or not is_ahead(hi, lo):
            return None
        return (
            f"{upper.value.upper()} version ({hi}) is higher than "
            f"{lower.value.upper()} version ({lo}). Rule: {rule_text}"
        )
    return check


def _prod_without_uat(versions: TierVersions) -> Optional[str]:
    prod = versions.get(Tier.PROD)
    if prod is None or Tier.UAT in versions:
        return None
    return f"PROD exists ({prod}) but UAT environment is missing"


RULES: Tuple[Rule, ...] = (
    Rule(
        id="prod-ahead-of-oat",
        severity="critical",
        description="PROD version can't be higher than OAT",
        check=_ahead_of(Tier.PROD, Tier.OAT, "PROD version can't be higher than OAT or UAT env."),
    ),
    Rule(
        id="prod-ahead-of-uat",
        severity="critical",
        description="PROD version can't be higher than UAT",
        check=_ahead_of(Tier.PROD, Tier.UAT, "PROD version can't be higher than OAT or UAT env."),
    ),
    Rule(
        id="oat-ahead-of-uat",
        severity="warning",
        description="OAT version can't be higher than UAT",
        check=_ahead_of(Tier.OAT, Tier.UAT, "OAT version can't be higher than UAT env."),
    ),
    Rule(
        id="prod-without-uat",
        severity="warning",
        description="PROD should not be deployed without a UAT environment",
        check=_prod_without_uat,
    ),
)


def evaluate_group(group: ServiceGroup, rules: Tuple[Rule, ...] = RULES) -> List[Violation]:
    """Apply every rule to one group and return the violations in rule order."""
    if not group.has_canonical_tier():
        return []

    versions = group.tier_versions()
    violations: List[Violation] = []
    for rule in rules:
        detail = rule.check(versions)
        if detail is None:
            continue
        violations.append(
            Violation(
                service_name=group.service_name,
                project_id=group.project_id,
                project_name=group.project_name,
                rule=rule.id,
                message=f"{rule.severity.upper()}: {detail}",
                severity=rule.severity,
                tier_versions=dict(versions),
            )
        )
    return violations
