#!/usr/bin/env python3
"""Create (or with --reset, drop and recreate) the synoptics tables.

Usage:
    python scripts/init_db.py           # create missing tables
    python scripts/init_db.py --reset   # drop everything first
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import synoptics.models  # noqa: E402,F401 - registers every table on Base.metadata
from synoptics.database import Base, engine  # noqa: E402


async def create_tables(reset: bool = False) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            print("Dropped existing tables.")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(create_tables(reset="--reset" in sys.argv[1:]))
