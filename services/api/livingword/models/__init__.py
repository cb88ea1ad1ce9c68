"""SQLAlchemy ORM models.

Models represent database tables:
- daily_verses: Generated verse artifacts, one row per {date}_{slot}_{lang} key
- device_tokens: FCM device registrations keyed by push token
"""

from livingword.models.daily_verse import DailyVerse
from livingword.models.device_token import DeviceToken

__all__ = ["DailyVerse", "DeviceToken"]
