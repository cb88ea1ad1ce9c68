"""Cron endpoints, triggered by an external scheduler.

GET /api/cron/generate-verses - Pre-generate all verses for a day (nightly)
GET /api/cron/push-hourly     - Run one delivery pass (every hour, on the hour)

No authentication here; keep these behind the platform's private networking
or a cron-only route.
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from livingword.schemas import (
    GenerateVersesResponse,
    GenerationStatsSchema,
    GroupResultSchema,
    PushHourlyResponse,
)
from livingword.services.pregeneration import pregenerate_day, utc_today
from livingword.services.repositories import StoreError
from livingword.services.scheduler import get_delivery_scheduler

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.get("/generate-verses", response_model=GenerateVersesResponse)
async def generate_verses(
    date: str | None = Query(
        default=None,
        description="Target day (YYYY-MM-DD); defaults to today in UTC",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
    ),
) -> GenerateVersesResponse:
    target_date = date or utc_today()
    stats = await pregenerate_day(target_date)
    return GenerateVersesResponse(
        message="Cron execution finished",
        target_date=target_date,
        stats=GenerationStatsSchema(generated=stats.generated, skipped=stats.skipped, errors=stats.errors),
    )


@router.get("/push-hourly", response_model=PushHourlyResponse, response_model_exclude_none=True)
async def push_hourly() -> PushHourlyResponse:
    """Send due notifications according to each device's local time."""
    try:
        result = await get_delivery_scheduler().run_hourly_pass()
    except StoreError as e:
        logger.error(f"Hourly Push Error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if result.registrations == 0:
        return PushHourlyResponse(message="No tokens registered")

    return PushHourlyResponse(
        processed=result.processed_groups,
        results={
            key: GroupResultSchema(
                success_count=r.success_count,
                failure_count=r.failure_count,
                removed_tokens=r.removed_tokens,
            )
            for key, r in result.results.items()
        },
        errors=result.errors,
        skipped_registrations=result.skipped_registrations,
    )
