from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Set

from .models import ComplianceReport, GroupKey, ServiceGroup, Violation


def ratio_half_up(num: int, den: int) -> int:
    """num / den rounded to the nearest integer, halves upward (12.5 -> 13)."""
    return (2 * num + den) // (2 * den)


def percent(part: int, total: int) -> int:
    return ratio_half_up(100 * part, total)


def compliance_score(compliant: int, total: int) -> int:
    if total == 0:
        return 100
    return percent(compliant, total)


def aggregate(
    groups: Sequence[ServiceGroup],
    violations_by_group: Sequence[List[Violation]],
    now: Optional[datetime] = None,
) -> ComplianceReport:
    """
    Fold per-group violations into a scored report.

    ``violations_by_group`` is parallel to ``groups``; violations are
    concatenated in group order.
    """
    if len(groups) != len(violations_by_group):
        raise ValueError(
            f"expected violations for {len(groups)} groups, got {len(violations_by_group)}"
        )

    violations: List[Violation] = [v for vs in violations_by_group for v in vs]
    critical = sum(1 for v in violations if v.severity == "critical")
    warning = sum(1 for v in violations if v.severity == "warning")

    non_compliant: Set[GroupKey] = {v.key for v in violations}
    total = len(groups)
    compliant = total - len(non_compliant)

    return ComplianceReport(
        groups=tuple(groups),
        violations=tuple(violations),
        total_violations=len(violations),
        critical_count=critical,
        warning_count=warning,
        compliant_group_count=compliant,
        total_group_count=total,
        score=compliance_score(compliant, total),
        generated_at=now or datetime.now(timezone.utc),
    )
