"""Shared fixtures for the tierguard test suite."""

from typing import Dict, List

import pytest

from tierguard.catalog.models import CatalogSnapshot, InstanceRegistration, Project
from tierguard.compliance.grouping import group_observations
from tierguard.compliance.models import Observation, ServiceGroup
from tierguard.compliance.tiers import normalize_tier


def make_observation(
    service: str = "billing",
    tier: str = "prod",
    version: str = "1.0.0",
    project_id: int = 1,
    project_name: str = "Payments",
    status: str = "online",
    region: str = "us-east-1",
    response_time_ms: int = 100,
    url: str = "",
) -> Observation:
    return Observation(
        service_name=service,
        project_id=project_id,
        project_name=project_name,
        url=url or f"https://{service}.{tier}.example.com/info",
        version=version,
        status=status,
        tier=normalize_tier(tier),
        region=region,
        response_time_ms=response_time_ms,
    )


def make_group(service: str = "billing", project_id: int = 1, **versions: str) -> ServiceGroup:
    """Build one group from tier=version keyword arguments."""
    observations: List[Observation] = [
        make_observation(service=service, tier=tier, version=version, project_id=project_id)
        for tier, version in versions.items()
    ]
    groups = group_observations(observations)
    if not groups:
        return ServiceGroup(service_name=service, project_id=project_id, project_name="Payments")
    assert len(groups) == 1
    return groups[0]


@pytest.fixture
def obs():
    """Factory for observations."""
    return make_observation


@pytest.fixture
def group():
    """Factory for single service groups."""
    return make_group


@pytest.fixture
def snapshot() -> CatalogSnapshot:
    """Catalog with one service deployed to four tiers and an orphan instance."""
    instances: List[Dict] = [
        {"id": 1, "url": "https://billing.dev.example.com/info", "environment": "Development", "region": "eu-west-1", "project_id": 1},
        {"id": 2, "url": "https://billing.uat.example.com/info", "environment": "UAT", "region": "eu-west-1", "project_id": 1},
        {"id": 3, "url": "https://billing.oat.example.com/info", "environment": "OAT-1", "region": "eu-west-1", "project_id": 1},
        {"id": 4, "url": "https://billing.example.com/info", "environment": "Production", "region": "us-east-1", "project_id": 1},
        {"id": 5, "url": "https://ledger.uat.example.com/info", "environment": "uat", "project_id": 99},
    ]
    return CatalogSnapshot(
        instances=[InstanceRegistration(**i) for i in instances],
        projects=[Project(id=1, name="Payments")],
    )
