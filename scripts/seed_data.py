"""
Data Seeder for Productivity Tracker.
Wipes the configured database and populates it with the demo data set.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from productivity.infra.config import get_settings
from productivity.infra.db import get_engine
from productivity.infra.seed import seed_demo_data


async def seed():
    settings = get_settings()
    engine = get_engine(settings.get_db_url())
    print(f"Resetting database at: {engine.engine.url}")

    await engine.create_tables()

    print("Starting data seeding...")
    await seed_demo_data(reset=True)
    print("Seeding complete.")

    await engine.engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())
