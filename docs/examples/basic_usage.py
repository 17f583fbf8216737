"""
tierguard - Basic Usage Examples

This file demonstrates basic usage patterns for the compliance engine and
the refresh monitor.
"""

import asyncio
from pathlib import Path

from tierguard.catalog import load_catalog
from tierguard.compliance import build_matrix, build_report, compare_versions, normalize_tier
from tierguard.compliance.models import Observation
from tierguard.monitor import ComplianceEvaluationError, ComplianceMonitor
from tierguard.signals import collect_observations, summarize_fleet

CATALOG = Path(__file__).parent / "catalog.yaml"


# =============================================================================
# Example 1: Evaluate hand-made observations
# =============================================================================

def example_offline_evaluation():
    """Build a report without touching the network."""

    def observe(tier: str, version: str) -> Observation:
        return Observation(
            service_name="billing",
            project_id=1,
            project_name="Payments",
            url=f"https://billing.{tier}.example.com/info",
            version=version,
            status="online",
            tier=normalize_tier(tier),
        )

    report = build_report([
        observe("DEV", "1.4.0"),
        observe("OAT", "1.2.0"),
        observe("Production", "1.3.0"),
    ])

    print(f"Score: {report.score}%  critical={report.critical_count} warning={report.warning_count}")
    for v in report.violations:
        print(f"  [{v.severity}] {v.message}")

    print(compare_versions("1.2", "1.2.0"))  # 0


# =============================================================================
# Example 2: Probe a catalog once
# =============================================================================

async def example_probe_catalog():
    """Probe every registered instance and print the matrix."""
    snapshot = load_catalog(CATALOG)
    observations = await collect_observations(snapshot, timeout_s=3.0)
    report = build_report(observations)

    for row in build_matrix(report):
        versions = "  ".join(f"{t.value}={v or '-'}" for t, v in row.versions.items())
        flag = "VIOLATION" if row.has_violation else "ok"
        print(f"{row.service_name:<12} {row.project_name:<12} {versions}  {flag}")

    fleet = summarize_fleet(observations)
    print(f"{fleet.online}/{fleet.total} online, uptime {fleet.uptime_percent}%")


# =============================================================================
# Example 3: Run the monitor
# =============================================================================

async def example_monitor():
    """Refresh periodically and react to every new report."""
    monitor = ComplianceMonitor(
        catalog=lambda: load_catalog(CATALOG),
        refresh_interval_s=30.0,
        auto_refresh=True,
    )

    def on_report(report):
        print(f"New report at {report.generated_at:%H:%M:%S}: score {report.score}%")

    monitor.subscribe(on_report)
    await monitor.start()
    try:
        # on-demand refresh joins the cycle already started by the loop
        await monitor.refresh()
        await asyncio.sleep(65)
    except ComplianceEvaluationError as e:
        print(f"Cycle failed, still showing the previous report: {e}")
    finally:
        await monitor.stop()


if __name__ == "__main__":
    example_offline_evaluation()
    asyncio.run(example_probe_catalog())
