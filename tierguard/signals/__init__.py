"""Probing registered instances and summarizing what was observed."""

from tierguard.signals.fleet import FleetSummary, filter_observations, report_observations, summarize_fleet
from tierguard.signals.probe import (
    ProbeError,
    ProbeParseError,
    ProbePayload,
    collect_observations,
    probe_instance,
    service_from_url,
)

__all__ = [
    "FleetSummary",
    "ProbeError",
    "ProbeParseError",
    "ProbePayload",
    "collect_observations",
    "filter_observations",
    "probe_instance",
    "report_observations",
    "service_from_url",
    "summarize_fleet",
]
