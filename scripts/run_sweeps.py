"""Run lifecycle sweeps once, outside the scheduler.

Usage::

    python scripts/run_sweeps.py overdue
    python scripts/run_sweeps.py recurring --date 2026-03-01
    python scripts/run_sweeps.py all
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import date

# Load .env BEFORE importing anything else (override system env vars)
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

from dotenv import load_dotenv

load_dotenv(os.path.join(ROOT, ".env"), override=True)

from src.core.config import settings
from src.core.tasks.lifecycle_tasks import get_orchestrator

SWEEPS = ("overdue", "recurring", "expenses", "all")


async def main(sweep: str, on: date | None) -> int:
    orchestrator = get_orchestrator()
    reports = []
    if sweep in ("overdue", "all"):
        reports.append(await orchestrator.sweep_overdue(on))
    if sweep in ("recurring", "all"):
        reports.append(await orchestrator.issue_recurring_invoices(on))
    if sweep in ("expenses", "all"):
        reports.append(await orchestrator.issue_recurring_expenses(on))

    for report in reports:
        print(
            f"{report.sweep}: processed={report.processed} skipped={report.skipped} "
            f"failed={report.failed} events_failed={report.events_failed}"
        )
    return 1 if any(r.failed for r in reports) else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("sweep", choices=SWEEPS)
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Evaluate as of this day")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, settings.log_level))
    sys.exit(asyncio.run(main(args.sweep, args.date)))
