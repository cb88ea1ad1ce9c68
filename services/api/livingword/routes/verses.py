"""Verse endpoints.

GET /api/daily-verse - Verse of the day for (lang, slot), generated on first request.

Routers are thin: call services for business logic.
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from livingword.schemas import VerseResponse
from livingword.services.catalog import Language, Slot, VerseKey
from livingword.services.generator import GenerationError
from livingword.services.pregeneration import utc_today
from livingword.services.repositories import StoreError
from livingword.services.verse_cache import get_verse_cache

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


@router.get("/daily-verse", response_model=VerseResponse)
async def get_daily_verse(
    lang: Language = Query(description="Content language", examples=["es"]),
    slot: Slot = Query(description="Time slot", examples=["morning"]),
) -> VerseResponse:
    """Get today's (UTC) verse for a language and slot.

    The first request for a key generates and stores the verse; later
    requests return the stored copy.
    """
    key = VerseKey(date=utc_today(), slot=slot, language=lang)
    try:
        artifact = await get_verse_cache().resolve(key)
    except (GenerationError, StoreError) as e:
        logger.error(f"Error resolving verse {key}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return VerseResponse(
        reference=artifact.reference,
        text=artifact.text,
        explanation=artifact.explanation,
        image_url=artifact.image_url,
        lang=artifact.language,
        created_at=artifact.created_at,
    )
