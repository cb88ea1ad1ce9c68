"""DeviceToken model.

A device registration for push delivery. The FCM token is the primary key, so
registering the same device again overwrites its preferences.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, SmallInteger, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from livingword.stores.postgres import Base


class DeviceToken(Base):
    """Registered device and its delivery preferences."""

    __tablename__ = "device_tokens"
    __table_args__ = (CheckConstraint("frequency IN (1, 3)", name="ck_device_tokens_frequency"),)

    token: Mapped[str] = mapped_column(Text, primary_key=True)
    language: Mapped[str] = mapped_column(String(5))
    frequency: Mapped[int] = mapped_column(SmallInteger)  # 1 = morning only, 3 = all slots
    timezone: Mapped[str] = mapped_column(String(64))  # IANA zone name

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<DeviceToken {self.token[:12]}... lang={self.language} freq={self.frequency}>"
