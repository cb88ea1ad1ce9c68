#!/usr/bin/env python3
"""Hourly push job for Railway Cron.

Schedule:
- Run every hour, on the hour ("0 * * * *"). Each run sends to the devices
  whose local time is 10:00, 14:00 or 18:00. Running it twice in the same
  hour sends twice.

Run (local / Railway):
  cd services/api
  python -m scripts.push_hourly
"""

import asyncio
import logging
import os
import sys
from dataclasses import asdict


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from livingword.services.generator import close_content_generator  # noqa: E402
from livingword.services.scheduler import get_delivery_scheduler  # noqa: E402
from livingword.stores.postgres import close_db, init_db, ping_db  # noqa: E402
from livingword.stores.redis import close_redis, init_redis  # noqa: E402


async def main() -> None:
    await init_db()
    await ping_db()
    try:
        await init_redis()
    except Exception:
        pass

    try:
        result = await get_delivery_scheduler().run_hourly_pass()
        print({"ok": True, **asdict(result)})
    finally:
        await close_content_generator()
        await close_redis()
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
