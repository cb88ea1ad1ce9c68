#!/usr/bin/env python3
"""Nightly pre-generation job for Railway Cron.

Schedule:
- Run once per day, shortly after 00:00 UTC.

Behavior:
- For each slot (morning, afternoon, evening) x language (es, en, pt):
  - Skip the key if its verse is already stored
  - Otherwise generate it (3 Groq calls) and store it
- A failure on one key is reported and the other keys still run.

Run (local / Railway):
  cd services/api
  python -m scripts.generate_verses

Optional env vars:
  TARGET_DATE="2024-05-01"   (default: today in UTC)
"""

import asyncio
import logging
import os
import sys
from dataclasses import asdict


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from livingword.services.generator import close_content_generator  # noqa: E402
from livingword.services.pregeneration import pregenerate_day, utc_today  # noqa: E402
from livingword.stores.postgres import close_db, init_db, ping_db  # noqa: E402
from livingword.stores.redis import close_redis, init_redis  # noqa: E402


async def main() -> int:
    await init_db()
    await ping_db()
    try:
        await init_redis()
    except Exception:
        # Locks are optional for a single cron worker.
        pass

    try:
        target_date = os.getenv("TARGET_DATE", "").strip() or utc_today()
        stats = await pregenerate_day(target_date)
        # Final output for Railway logs (single JSON-ish blob)
        print({"ok": not stats.errors, "targetDate": target_date, "stats": asdict(stats)})
        return 1 if stats.errors else 0
    finally:
        await close_content_generator()
        await close_redis()
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main()))
