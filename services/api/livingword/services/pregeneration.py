"""Pre-generation of a whole day's verses (all slots x languages).

Meant for a nightly cron so that the first client request or hourly push of
the day finds its verse already stored. Existing keys are skipped; a failure
on one key is recorded and the remaining keys still run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

from livingword.services.catalog import all_verse_keys
from livingword.services.generator import GenerationError
from livingword.services.repositories import StoreError
from livingword.services.verse_cache import VerseCache, get_verse_cache

logger = logging.getLogger("uvicorn.error")


@dataclass
class GenerationStats:
    generated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


async def pregenerate_day(target_date: str | None = None, *, cache: VerseCache | None = None) -> GenerationStats:
    """Make sure all nine verse keys for `target_date` (default: UTC today) exist."""
    target_date = target_date or utc_today()
    cache = cache or get_verse_cache()
    stats = GenerationStats()

    for key in all_verse_keys(target_date):
        try:
            if await cache.lookup(key) is not None:
                stats.skipped += 1
                logger.info(f"[cron] Already exists: {key}")
                continue

            logger.info(f"[cron] Generating: {key}...")
            await cache.resolve(key)
            stats.generated += 1
        except (GenerationError, StoreError) as e:
            logger.error(f"[cron] Error generating {key}: {e}")
            stats.errors.append(str(key))

    return stats
