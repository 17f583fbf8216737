from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field

from tierguard.compliance.models import ComplianceReport, Observation, TierTag
from tierguard.compliance.scoring import percent, ratio_half_up
from tierguard.compliance.tiers import normalize_tier


class FleetSummary(BaseModel):
    """Availability overview of the observed instances."""
    total: int = 0
    online: int = 0
    offline: int = 0
    uptime_percent: int = 0
    avg_response_time_ms: int = 0
    by_environment: Dict[str, int] = Field(default_factory=dict)
    by_region: Dict[str, int] = Field(default_factory=dict)


def report_observations(report: ComplianceReport) -> List[Observation]:
    """Observations held by a report's groups, in group then tier order."""
    return [obs for group in report.groups for obs in group.environments.values()]


def filter_observations(
    observations: Iterable[Observation],
    project_id: Optional[int] = None,
    tier: Union[str, TierTag, None] = None,
    region: Optional[str] = None,
) -> List[Observation]:
    wanted = normalize_tier(tier) if tier else None
    out = []
    for obs in observations:
        if project_id is not None and obs.project_id != project_id:
            continue
        if wanted is not None and obs.tier != wanted:
            continue
        if region is not None and obs.region != region:
            continue
        out.append(obs)
    return out


def summarize_fleet(observations: Iterable[Observation]) -> FleetSummary:
    observations = list(observations)
    online = [o for o in observations if o.online]
    total = len(observations)

    by_env: Dict[str, int] = {}
    by_region: Dict[str, int] = {}
    for o in observations:
        env = o.tier.label or "unknown"
        by_env[env] = by_env.get(env, 0) + 1
        region = o.region or "unknown"
        by_region[region] = by_region.get(region, 0) + 1

    avg = 0
    if online:
        avg = ratio_half_up(sum(o.response_time_ms for o in online), len(online))

    return FleetSummary(
        total=total,
        online=len(online),
        offline=total - len(online),
        uptime_percent=percent(len(online), total) if total else 0,
        avg_response_time_ms=avg,
        by_environment=by_env,
        by_region=by_region,
    )
