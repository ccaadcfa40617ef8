"""
Rate Limit Cleanup Script

Daily fact counters are one row per user per day and are never read again
once their day is over. This script deletes rows older than a number of
days so the rate_limits table doesn't grow forever.

Usage:
    python scripts/prune_rate_limits.py           # keep the last 7 days
    python scripts/prune_rate_limits.py --days 30

Safe to run at any time, e.g. from a daily cron job.
"""

import argparse
import asyncio
import os
import sys
from datetime import timedelta

# Add parent directory to Python path so we can import moviefacts modules
# This allows running the script from any directory
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from moviefacts.config import settings
from moviefacts.database import create_engine, create_session_factory
from moviefacts.services.quota import QuotaLedger


async def prune(days: int) -> int:
    """
    Delete counters for every UTC day before today minus `days`.

    Returns the number of deleted rows.
    """
    engine = create_engine(settings.DATABASE_URL)
    try:
        async with create_session_factory(engine)() as session:
            ledger = QuotaLedger(session)
            cutoff = ledger.today() - timedelta(days=days)
            return await ledger.prune(cutoff)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Delete old daily fact counters")
    parser.add_argument("--days", type=int, default=7, help="Number of past days to keep")
    args = parser.parse_args()

    deleted = asyncio.run(prune(args.days))
    print(f"Deleted {deleted} rate limit rows")
