"""Pydantic schemas for API request/response validation."""

from livingword.schemas.common import ErrorDetail, ErrorResponse
from livingword.schemas.verse import (
    GenerateVersesResponse,
    GenerationStatsSchema,
    GroupResultSchema,
    PushHourlyResponse,
    RegisterTokenRequest,
    RegisterTokenResponse,
    VerseResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "GenerateVersesResponse",
    "GenerationStatsSchema",
    "GroupResultSchema",
    "PushHourlyResponse",
    "RegisterTokenRequest",
    "RegisterTokenResponse",
    "VerseResponse",
]
