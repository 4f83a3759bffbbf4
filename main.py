#!/usr/bin/env python

"""
Productivity Tracker - Main Entry Point

Initializes the database, optionally seeds demo data and logs a
per-project time summary. Request handling (HTTP etc.) lives outside
this package and drives the services in `productivity.services`.

Usage:
    python main.py

Configuration:
    config/settings.yaml or PRODUCTIVITY_* environment variables
"""

import asyncio
import logging
import sys

from productivity.infra.config import get_settings
from productivity.infra.db import init_db
from productivity.infra.seed import seed_demo_data
from productivity.services import ProjectService, TimeTrackingService

logger = logging.getLogger("productivity")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


async def run() -> int:
    settings = get_settings()
    engine = await init_db(settings.get_db_url())
    logger.info(f"Database ready at {engine.engine.url}")

    if settings.seed_demo_data:
        await seed_demo_data()

    projects = ProjectService()
    tracking = TimeTrackingService()
    for project in await projects.list_projects():
        total = await tracking.total_time_for_project(project.id)
        logger.info(
            f"{project.name} [{project.status}]: {len(project.tasks)} task(s), {total} tracked"
        )

    await engine.engine.dispose()
    return 0


def main():
    """Main entry point"""
    configure_logging(get_settings().log_level)
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
