from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.database import AsyncSessionLocal
from app.core.errors import SchedulingError
from app.services.db_service import DBService
from app.services.scheduling import RecurrenceRule, expand_dates, find_conflicts
from app.services.scheduling.coordinator import build_occurrence
from app.services.scheduling.dates import today
from app.services.scheduling.types import PracticeDraft


async def run_preview(args: argparse.Namespace) -> None:
    """Print the dates a rule would create and any clashes, without writing."""
    try:
        draft = PracticeDraft(
            event_date=args.date,
            start_time=args.start,
            end_time=args.end,
            location=args.location,
        )
        base = build_occurrence(draft, "preview", today())
        rule = RecurrenceRule(args.type, args.until)
        candidates = [replace(base, event_date=d) for d in expand_dates(base.event_date, rule, today())]

        async with AsyncSessionLocal() as session:
            db_service = DBService(session)
            existing = await db_service.find_practices(base.location, [c.event_date for c in candidates])
    except SchedulingError as e:
        print(f"❌ {e.message}")
        return

    conflicts = find_conflicts(candidates, existing)
    print(json.dumps({
        "dates": [c.event_date.isoformat() for c in candidates],
        "conflicts": [c.to_dict() for c in conflicts],
    }, indent=2))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Preview a repeating practice against the DB.")
    parser.add_argument("--date", required=True, help="First date (YYYY-MM-DD)")
    parser.add_argument("--start", required=True, help="Start time (HH:MM)")
    parser.add_argument("--end", required=True, help="End time (HH:MM)")
    parser.add_argument("--location", required=True, help="Venue")
    parser.add_argument("--type", default="none", help="none | weekly | monthly_by_date | monthly_by_nth_weekday")
    parser.add_argument("--until", default=None, help="Repeat end date (YYYY-MM-DD)")
    return parser.parse_args()


def main() -> None:
    asyncio.run(run_preview(parse_args()))


if __name__ == "__main__":
    main()
