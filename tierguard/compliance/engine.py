from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from .grouping import group_observations
from .models import ComplianceReport, Observation
from .rules import evaluate_group
from .scoring import aggregate

logger = logging.getLogger(__name__)


def build_report(observations: Iterable[Observation], now: Optional[datetime] = None) -> ComplianceReport:
    """Group observations, evaluate every group and score the result."""
    groups = group_observations(observations)
    violations = [evaluate_group(g) for g in groups]
    report = aggregate(groups, violations, now=now)
    logger.debug(
        f"Compliance report: {report.total_group_count} groups, "
        f"{report.critical_count} critical, {report.warning_count} warning, score {report.score}"
    )
    return report
