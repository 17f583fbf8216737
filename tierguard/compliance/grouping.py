from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .models import GroupKey, Observation, ServiceGroup

logger = logging.getLogger(__name__)


def group_observations(observations: Iterable[Observation]) -> List[ServiceGroup]:
    """
    Partition observations by (service name, project id), first-seen order.

    Each group holds one observation per tier. When two observations land in
    the same tier the later one wins; the earlier one is kept on
    ``ServiceGroup.replaced`` and logged. Groups are frozen once built.
    """
    first_seen: Dict[GroupKey, Observation] = {}
    environments: Dict[GroupKey, Dict[str, Observation]] = {}
    replaced: Dict[GroupKey, List[Observation]] = {}

    for obs in observations:
        key = obs.key
        if key not in first_seen:
            first_seen[key] = obs
            environments[key] = {}
            replaced[key] = []
        slots = environments[key]
        previous = slots.get(obs.tier.label)
        slots[obs.tier.label] = obs
        if previous is not None:
            replaced[key].append(previous)
            logger.warning(
                f"Tier '{obs.tier}' of {obs.service_name} (project {obs.project_id}) "
                f"observed twice: {previous.url} replaced by {obs.url}"
            )

    return [
        ServiceGroup(
            service_name=obs.service_name,
            project_id=obs.project_id,
            project_name=obs.project_name,
            environments=environments[key],
            replaced=tuple(replaced[key]),
        )
        for key, obs in first_seen.items()
    ]
