#!/usr/bin/env python3
"""Run one housekeeping pass: record yesterday's stats and prune old orders.

Uses the database configured in ``config.json`` / the environment unless
``--database-url`` is given.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

# Ensure ``pos`` and ``config`` are importable when running as a standalone script
BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from config import get_settings  # noqa: E402
from pos.app.db import create_all, get_engine, get_sessionmaker  # noqa: E402
from pos.app.housekeeping import Housekeeper  # noqa: E402
from pos.app.obs.logging import configure_logging  # noqa: E402
from pos.app.repos_sqlalchemy import SQLStorage  # noqa: E402


async def run(database_url: str, days: int) -> None:
    engine = get_engine(database_url)
    try:
        await create_all(engine)
        storage = SQLStorage(get_sessionmaker(engine))
        result = await Housekeeper(storage, retention_days=days).run_once()
        print(
            f"{result.stats_recorded} stats rows for {result.stats_day.isoformat()}, "
            f"{result.orders_deleted} orders removed"
        )
    finally:
        await engine.dispose()


def _cli() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Record daily item statistics and delete expired orders"
    )
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument(
        "--days",
        type=int,
        default=settings.retention_days,
        help=f"Retention window in days (default: {settings.retention_days})",
    )
    args = parser.parse_args()
    configure_logging(logging.INFO)
    asyncio.run(run(args.database_url, args.days))


if __name__ == "__main__":
    _cli()
