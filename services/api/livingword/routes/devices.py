"""Device registration endpoint.

POST /api/register-token - Upsert an FCM token with language, frequency and timezone.
"""

from fastapi import APIRouter, HTTPException

from livingword.schemas import RegisterTokenRequest, RegisterTokenResponse
from livingword.services.registrations import register_device
from livingword.services.repositories import StoreError

router = APIRouter()


@router.post("/register-token", response_model=RegisterTokenResponse)
async def register_token(request: RegisterTokenRequest) -> RegisterTokenResponse:
    """Register (or update) a device for push delivery."""
    try:
        await register_device(
            request.token,
            language=request.lang,
            frequency=request.frequency,
            timezone=request.timezone,
        )
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return RegisterTokenResponse(success=True)
