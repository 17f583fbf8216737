from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from .catalog.loader import CatalogError, load_catalog
from .compliance.engine import build_report
from .compliance.matrix import build_matrix
from .compliance.models import CANONICAL_TIERS, ComplianceReport
from .compliance.rules import RULES
from .settings import get_settings
from .signals.probe import collect_observations


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tierguard")
    parser.add_argument("--config", default=None, help="YAML settings file (default: TIERGUARD_CONFIG)")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    sub = parser.add_subparsers(dest="subcommand", required=True)

    # --- one-shot check ---
    check = sub.add_parser("check", help="Probe the catalog once and print the compliance report")
    check.add_argument("catalog", nargs="?", default=None, help="Catalog file (YAML or JSON)")
    check.add_argument("--format", choices=["json", "matrix"], default="matrix", help="Output format")
    check.add_argument(
        "--fail-on-critical",
        action="store_true",
        help="Exit with status 1 when a critical violation is found",
    )

    # --- HTTP service ---
    serve = sub.add_parser("serve", help="Run the compliance monitor behind an HTTP API")
    serve.add_argument("--host", default=None, help="Bind host")
    serve.add_argument("--port", type=int, default=None, help="Bind port")

    sub.add_parser("rules", help="List the tier ordering rules")

    return parser


def format_matrix(report: ComplianceReport) -> str:
    header = ["SERVICE", "PROJECT"] + [t.value.upper() for t in CANONICAL_TIERS] + ["STATUS"]
    rows: List[List[str]] = [header]
    for row in build_matrix(report):
        rows.append(
            [row.service_name, row.project_name]
            + [row.versions.get(t) or "-" for t in CANONICAL_TIERS]
            + ["VIOLATION" if row.has_violation else "ok"]
        )
    widths = [max(len(r[i]) for r in rows) for i in range(len(header))]
    lines = ["  ".join(cell.ljust(w) for cell, w in zip(r, widths)).rstrip() for r in rows]

    lines.append("")
    for v in report.violations:
        lines.append(f"[{v.severity}] {v.service_name} ({v.project_name}): {v.message}")
    lines.append(
        f"score {report.score}% - {report.compliant_group_count}/{report.total_group_count} services compliant, "
        f"{report.critical_count} critical, {report.warning_count} warning"
    )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings(args.config)
    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.subcommand == "check":
        path = args.catalog or settings.catalog_path
        try:
            snapshot = load_catalog(path)
        except (FileNotFoundError, CatalogError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2

        observations = asyncio.run(collect_observations(snapshot, timeout_s=settings.probe_timeout_s))
        report = build_report(observations)
        if args.format == "json":
            print(json.dumps(report.model_dump(mode="json"), indent=2))
        else:
            print(format_matrix(report))
        if args.fail_on_critical and report.has_critical:
            return 1
        return 0

    if args.subcommand == "serve":
        # env var consumed by server.create_app
        if args.config:
            os.environ["TIERGUARD_CONFIG"] = args.config
        uvicorn.run(
            "tierguard.server:create_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=False,
            log_level=settings.log_level,
        )
        return 0

    if args.subcommand == "rules":
        for rule in RULES:
            print(f"{rule.id:<20} {rule.severity:<9} {rule.description}")
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
