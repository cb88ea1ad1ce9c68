"""PostgreSQL-backed repositories for verses and device registrations.

Repositories translate between ORM rows and the plain dataclasses the
services work with, and wrap driver failures in StoreError so callers can
isolate them per operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import func

from livingword.models import DailyVerse, DeviceToken
from livingword.services.catalog import Language, VerseKey
from livingword.services.generator import GeneratedVerse
from livingword.stores.postgres import get_session

logger = logging.getLogger("uvicorn.error")


class StoreError(RuntimeError):
    pass


@dataclass(frozen=True)
class VerseArtifact:
    """A stored verse. Never mutated once written."""

    reference: str
    text: str
    explanation: str
    image_url: str
    language: Language
    created_at: datetime | None = None


@dataclass(frozen=True)
class Registration:
    token: str
    language: str
    frequency: int
    timezone: str | None
    updated_at: datetime | None = None


def _row_to_artifact(row: DailyVerse) -> VerseArtifact:
    return VerseArtifact(
        reference=row.reference,
        text=row.text,
        explanation=row.explanation,
        image_url=row.image_url,
        language=Language(row.language),
        created_at=row.created_at,
    )


def _row_to_registration(row: DeviceToken) -> Registration:
    return Registration(
        token=row.token,
        language=row.language,
        frequency=row.frequency,
        timezone=row.timezone,
        updated_at=row.updated_at,
    )


class SqlVerseRepository:
    """daily_verses table access."""

    async def get(self, key: VerseKey) -> VerseArtifact | None:
        try:
            async with get_session() as session:
                row = await session.get(DailyVerse, str(key))
                return _row_to_artifact(row) if row else None
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read verse {key}: {e}") from e

    async def create_if_absent(self, key: VerseKey, verse: GeneratedVerse) -> VerseArtifact:
        """Insert the verse unless the key already exists; return the stored row.

        When two workers race on the same key the first insert wins and both
        get the same artifact back.
        """
        stmt = (
            pg_insert(DailyVerse)
            .values(
                verse_key=str(key),
                verse_date=key.date,
                slot=key.slot.value,
                language=key.language.value,
                reference=verse.reference,
                text=verse.text,
                explanation=verse.explanation,
                image_url=verse.image_url,
            )
            .on_conflict_do_nothing(index_elements=[DailyVerse.verse_key])
        )
        try:
            async with get_session() as session:
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    logger.info(f"[verse_cache] {key} already written by another worker; keeping stored copy")
                row = (
                    await session.execute(select(DailyVerse).where(DailyVerse.verse_key == str(key)))
                ).scalar_one()
                return _row_to_artifact(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write verse {key}: {e}") from e


class SqlRegistrationRepository:
    """device_tokens table access."""

    async def list_all(self) -> list[Registration]:
        try:
            async with get_session() as session:
                rows = (await session.execute(select(DeviceToken))).scalars().all()
                return [_row_to_registration(r) for r in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read device tokens: {e}") from e

    async def upsert(self, token: str, *, language: str, frequency: int, timezone: str) -> None:
        stmt = pg_insert(DeviceToken).values(
            token=token,
            language=language,
            frequency=frequency,
            timezone=timezone,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DeviceToken.token],
            set_={
                "language": stmt.excluded.language,
                "frequency": stmt.excluded.frequency,
                "timezone": stmt.excluded.timezone,
                "updated_at": func.now(),
            },
        )
        try:
            async with get_session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to upsert device token: {e}") from e

    async def delete(self, token: str) -> None:
        try:
            async with get_session() as session:
                await session.execute(delete(DeviceToken).where(DeviceToken.token == token))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete device token: {e}") from e
