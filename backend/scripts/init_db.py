from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from sqlalchemy.engine import make_url

# Ensure the backend project root (the directory containing the "app" package)
# is on sys.path so this script can be executed from the repo root or backend/.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import get_settings
from app.core.database import create_all


def describe_target(database_url: str) -> str:
    """Host (or SQLite file) of a database URL, without credentials."""
    url = make_url(database_url)
    return url.host or url.database or url.drivername


def main() -> None:
    """Create all tables on the configured database (local development)."""
    asyncio.run(create_all())
    print(f"✅ Tables created on {describe_target(get_settings().database_url)}")


if __name__ == "__main__":
    main()
