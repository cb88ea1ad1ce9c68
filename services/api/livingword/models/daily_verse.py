"""DailyVerse model.

One row per verse key ("2024-05-01_morning_es"). Rows are append-only: once a
key is written it is never updated, so every reader sees the same artifact.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from livingword.stores.postgres import Base


class DailyVerse(Base):
    """Cached verse-of-the-day artifact."""

    __tablename__ = "daily_verses"

    # "{date}_{slot}_{lang}"
    verse_key: Mapped[str] = mapped_column(String(40), primary_key=True)

    # Key parts, kept as columns for querying by day
    verse_date: Mapped[str] = mapped_column(String(10), index=True)  # YYYY-MM-DD
    slot: Mapped[str] = mapped_column(String(16))  # morning/afternoon/evening
    language: Mapped[str] = mapped_column(String(5))  # es/en/pt

    # Content
    reference: Mapped[str] = mapped_column(Text)
    text: Mapped[str] = mapped_column(Text)
    explanation: Mapped[str] = mapped_column(Text)
    image_url: Mapped[str] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<DailyVerse {self.verse_key}>"
