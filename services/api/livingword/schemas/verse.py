"""Schemas for verse, device registration and cron endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from livingword.services.catalog import Language


class VerseResponse(BaseModel):
    """Verse of the day for one (date, slot, language)."""

    reference: str
    text: str
    explanation: str
    image_url: str = Field(alias="imageUrl")
    lang: Language
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True}


class RegisterTokenRequest(BaseModel):
    """Body for POST /api/register-token."""

    token: str = Field(min_length=1)
    lang: Language
    frequency: Literal[1, 3] = Field(description="1 = morning only, 3 = morning, afternoon and evening")
    timezone: str | None = Field(default=None, description="IANA zone, e.g. America/Santiago")


class RegisterTokenResponse(BaseModel):
    success: bool


class GenerationStatsSchema(BaseModel):
    generated: int
    skipped: int
    errors: list[str]


class GenerateVersesResponse(BaseModel):
    message: str
    target_date: str = Field(alias="targetDate")
    stats: GenerationStatsSchema

    model_config = {"populate_by_name": True}


class GroupResultSchema(BaseModel):
    success_count: int = Field(alias="successCount")
    failure_count: int = Field(alias="failureCount")
    removed_tokens: int = Field(alias="removedTokens", default=0)

    model_config = {"populate_by_name": True}


class PushHourlyResponse(BaseModel):
    """Response for GET /api/cron/push-hourly."""

    success: bool = True
    message: str | None = None
    processed: int = 0
    results: dict[str, GroupResultSchema] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
    skipped_registrations: int = Field(alias="skippedRegistrations", default=0)

    model_config = {"populate_by_name": True}
