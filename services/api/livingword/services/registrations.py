"""Device registration (upsert by FCM token)."""

import logging

from livingword.services.catalog import Language
from livingword.services.repositories import SqlRegistrationRepository
from livingword.services.scheduler import InvalidTimezoneError, load_timezone
from livingword.settings import get_settings

logger = logging.getLogger("uvicorn.error")


async def register_device(
    token: str,
    *,
    language: Language,
    frequency: int,
    timezone: str | None = None,
    repository: SqlRegistrationRepository | None = None,
) -> None:
    """Create or overwrite the registration for `token`.

    A missing timezone falls back to the configured default. Unknown zone
    names are stored as sent: the scheduler skips them at delivery time.
    """
    tz_name = (timezone or "").strip() or get_settings().default_timezone
    try:
        load_timezone(tz_name)
    except InvalidTimezoneError:
        logger.warning(f"[registrations] Token {token[:12]}... registered with unknown timezone {tz_name!r}")

    repository = repository or SqlRegistrationRepository()
    await repository.upsert(token, language=language.value, frequency=frequency, timezone=tz_name)
