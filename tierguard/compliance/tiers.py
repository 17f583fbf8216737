from __future__ import annotations

from typing import Tuple, Union

from .models import Tier, TierTag

# First match wins: "something-prod-oat" is prod.
_TIER_PRIORITY: Tuple[Tier, ...] = (Tier.PROD, Tier.OAT, Tier.UAT, Tier.DEV)


def normalize_tier(label: Union[str, TierTag, None]) -> TierTag:
    """
    Map a free-text environment label onto a canonical tier.

    Matching is a case-insensitive substring test in the order
    prod, oat, uat, dev. Labels matching none of them are kept lower-cased as
    an unrecognized tag. Passing a TierTag re-normalizes its label, so the
    function is idempotent.
    """
    if isinstance(label, TierTag):
        label = label.label
    normalized = (label or "").lower()
    for tier in _TIER_PRIORITY:
        if tier.value in normalized:
            return TierTag(tier=tier, label=tier.value)
    return TierTag(tier=Tier.UNKNOWN, label=normalized)
