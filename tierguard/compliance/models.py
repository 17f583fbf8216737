"""Data model for the compliance engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["critical", "warning"]
Status = Literal["online", "offline"]

GroupKey = Tuple[str, int]

PLACEHOLDER_VERSION = "0.0.0"
UNKNOWN_PROJECT = "Unknown Project"


class Tier(str, Enum):
    """Canonical deployment tiers."""
    DEV = "dev"
    UAT = "uat"
    OAT = "oat"
    PROD = "prod"
    UNKNOWN = "unknown"


# Tiers the ordering rules and the matrix know about, in promotion order.
CANONICAL_TIERS: Tuple[Tier, ...] = (Tier.DEV, Tier.UAT, Tier.OAT, Tier.PROD)


class TierTag(BaseModel):
    """A normalized tier label.

    Recognized labels carry their canonical tier and ``label == tier.value``.
    Anything else is ``Tier.UNKNOWN`` with the lower-cased raw label kept, so
    "staging" and "qa" still land in different slots of a group.
    """
    model_config = ConfigDict(frozen=True)

    tier: Tier
    label: str

    @property
    def recognized(self) -> bool:
        return self.tier is not Tier.UNKNOWN

    def __str__(self) -> str:
        return self.label


class Observation(BaseModel):
    """One probe's outcome for one registered instance."""
    model_config = ConfigDict(frozen=True)

    service_name: str
    project_id: int
    project_name: str = UNKNOWN_PROJECT
    url: str
    version: str = PLACEHOLDER_VERSION
    status: Status = "offline"
    tier: TierTag
    region: str = "unknown"
    response_time_ms: int = 0
    instance_id: Optional[int] = None

    @property
    def key(self) -> GroupKey:
        return (self.service_name, self.project_id)

    @property
    def online(self) -> bool:
        return self.status == "online"


class ServiceGroup(BaseModel):
    """All observations of one logical service within one project."""
    model_config = ConfigDict(frozen=True)

    service_name: str
    project_id: int
    project_name: str = UNKNOWN_PROJECT
    # keyed by TierTag.label
    environments: Dict[str, Observation] = Field(default_factory=dict)
    # observations displaced by a later one for the same tier in this cycle
    replaced: Tuple[Observation, ...] = ()

    @property
    def key(self) -> GroupKey:
        return (self.service_name, self.project_id)

    def get(self, tier: Tier) -> Optional[Observation]:
        return self.environments.get(tier.value)

    def version_of(self, tier: Tier) -> Optional[str]:
        obs = self.get(tier)
        return obs.version if obs is not None else None

    def tier_versions(self) -> Dict[Tier, str]:
        """Versions of the canonical tiers present in this group."""
        out: Dict[Tier, str] = {}
        for tier in CANONICAL_TIERS:
            version = self.version_of(tier)
            if version is not None:
                out[tier] = version
        return out

    def has_canonical_tier(self) -> bool:
        return any(self.get(tier) is not None for tier in CANONICAL_TIERS)


class Violation(BaseModel):
    """A tier ordering breach detected in one service group."""
    model_config = ConfigDict(frozen=True)

    service_name: str
    project_id: int
    project_name: str
    rule: str
    message: str
    severity: Severity
    tier_versions: Dict[Tier, str] = Field(default_factory=dict)

    @property
    def key(self) -> GroupKey:
        return (self.service_name, self.project_id)


class ComplianceReport(BaseModel):
    """Scored result of one evaluation cycle. Rebuilt wholesale every cycle."""
    model_config = ConfigDict(frozen=True)

    groups: Tuple[ServiceGroup, ...] = ()
    violations: Tuple[Violation, ...] = ()
    total_violations: int = 0
    critical_count: int = 0
    warning_count: int = 0
    compliant_group_count: int = 0
    total_group_count: int = 0
    score: int = 100
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def violations_for(self, key: GroupKey) -> List[Violation]:
        return [v for v in self.violations if v.key == key]

    @property
    def has_critical(self) -> bool:
        return self.critical_count > 0


class MatrixRow(BaseModel):
    """Per-tier display row for one service group."""
    model_config = ConfigDict(frozen=True)

    service_name: str
    project_id: int
    project_name: str
    versions: Dict[Tier, Optional[str]]
    has_violation: bool
