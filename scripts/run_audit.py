#!/usr/bin/env python3
"""
Local Audit Script

Run one page audit locally with the configured providers.

Usage:
    python scripts/run_audit.py example.com
    python scripts/run_audit.py https://example.com --mobile --output report.json
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from src.analyzer.engine import AuditOptions
from src.errors import AuditError
from src.integrations.collector import CollectorError
from src.services import build_container


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ]
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_audit(url: str, mobile: bool, output_file: str = None) -> dict:
    """Run a full audit, store it and print a summary."""
    load_dotenv()
    container = build_container()

    try:
        report = await container.engine.run(url, AuditOptions(emulate_mobile=mobile))
        data = report.to_dict()
        container.reports.save(data)
    finally:
        await container.close()

    print(f"\n{'='*60}")
    print(f"AUDIT COMPLETE ({report.scan_mode})")
    print(f"{'='*60}")
    print(f"URL: {report.url}")
    print(f"Report id: {report.id}")
    print(f"Health score: {report.health_score}")

    print(f"\nModules:")
    for name, result in report.modules.items():
        print(f"  {name:12s} | score: {result.score:3d} | risk: {result.risk_level.value:6s} | {result.recommendation_flag.value}")

    if report.aggregate and report.aggregate.risk_domains:
        print(f"\nRisk domains: {', '.join(report.aggregate.risk_domains)}")

    summary = report.insights.get("executive_summary")
    if summary:
        print(f"\nSummary ({report.insights.get('source')}):")
        print(f"  {summary}")

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            json.dump(data, f, indent=2, default=str)

        print(f"\nReport saved to: {output_path}")
    else:
        print(f"\n{json.dumps(data, indent=2, default=str)}")

    return data


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run a page audit locally"
    )
    parser.add_argument(
        "url",
        help="Page to audit (e.g., example.com)"
    )
    parser.add_argument(
        "--mobile",
        action="store_true",
        help="Score with mobile viewport rules"
    )
    parser.add_argument(
        "--output", "-o",
        help="Save the report to a JSON file"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    try:
        asyncio.run(run_audit(args.url, args.mobile, args.output))
    except (AuditError, CollectorError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
