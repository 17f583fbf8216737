from __future__ import annotations

from typing import List

from .models import CANONICAL_TIERS, ComplianceReport, MatrixRow


def build_matrix(report: ComplianceReport) -> List[MatrixRow]:
    """Project each group of a report onto one row of per-tier versions.

    Absent tiers are ``None``.
    """
    flagged = {v.key for v in report.violations}
    return [
        MatrixRow(
            service_name=group.service_name,
            project_id=group.project_id,
            project_name=group.project_name,
            versions={tier: group.version_of(tier) for tier in CANONICAL_TIERS},
            has_violation=group.key in flagged,
        )
        for group in report.groups
    ]
