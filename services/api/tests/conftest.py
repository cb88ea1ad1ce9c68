"""Shared in-memory fakes: no database, Redis, Groq or FCM in tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from livingword.services.catalog import Language, Slot, VerseKey
from livingword.services.dispatcher import PushDispatcher
from livingword.services.generator import GeneratedVerse, GenerationError
from livingword.services.push import Notification, PushBatchError, TokenOutcome, TokenResult
from livingword.services.repositories import Registration, StoreError, VerseArtifact
from livingword.services.scheduler import DeliveryScheduler
from livingword.services.verse_cache import VerseCache


class InMemoryVerseRepository:
    def __init__(self) -> None:
        self.rows: dict[str, VerseArtifact] = {}
        self.writes = 0

    async def get(self, key: VerseKey) -> VerseArtifact | None:
        return self.rows.get(str(key))

    async def create_if_absent(self, key: VerseKey, verse: GeneratedVerse) -> VerseArtifact:
        self.writes += 1
        if str(key) not in self.rows:
            self.rows[str(key)] = VerseArtifact(
                reference=verse.reference,
                text=verse.text,
                explanation=verse.explanation,
                image_url=verse.image_url,
                language=verse.language,
                created_at=datetime.now(timezone.utc),
            )
        return self.rows[str(key)]


class FakeGenerator:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.calls: list[str] = []
        self.fail_for = fail_for or set()

    async def generate(self, slot: Slot, language: Language, date: str) -> GeneratedVerse:
        key = str(VerseKey(date=date, slot=slot, language=language))
        self.calls.append(key)
        await asyncio.sleep(0)
        if key in self.fail_for:
            raise GenerationError(f"provider down for {key}")
        n = len(self.calls)
        return GeneratedVerse(
            reference=f"Juan {n}:1",
            text=f"Texto {n} para {key}",
            explanation="Reflexión.",
            image_url=f"https://img.test/{n}",
            language=language,
        )


class InMemoryRegistrationRepository:
    def __init__(self, registrations: list[Registration] | None = None) -> None:
        self.rows: dict[str, Registration] = {r.token: r for r in registrations or []}
        self.fail_delete_for: set[str] = set()

    def add(self, token: str, language: str = "es", frequency: int = 1, tz: str | None = "America/Santiago") -> None:
        self.rows[token] = Registration(token=token, language=language, frequency=frequency, timezone=tz)

    async def list_all(self) -> list[Registration]:
        return list(self.rows.values())

    async def upsert(self, token: str, *, language: str, frequency: int, timezone: str) -> None:
        self.add(token, language, frequency, timezone)

    async def delete(self, token: str) -> None:
        if token in self.fail_delete_for:
            raise StoreError(f"cannot delete {token}")
        self.rows.pop(token, None)


class FakePushProvider:
    """Succeeds for every token unless told otherwise."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.notifications: list[Notification] = []
        self.outcomes: dict[str, TokenOutcome] = {}
        self.fail_batches: set[int] = set()
        self.before_send: Callable[[list[str]], None] | None = None

    async def send_batch(self, tokens: list[str], notification: Notification) -> list[TokenResult]:
        index = len(self.calls)
        self.calls.append(list(tokens))
        self.notifications.append(notification)
        if self.before_send is not None:
            self.before_send(tokens)
        if index in self.fail_batches:
            raise PushBatchError("FCM unavailable")
        return [
            TokenResult(token=t, outcome=self.outcomes.get(t, TokenOutcome.SUCCESS), error_code=None)
            for t in tokens
        ]


@pytest.fixture
def verse_repo() -> InMemoryVerseRepository:
    return InMemoryVerseRepository()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def verse_cache(verse_repo: InMemoryVerseRepository, generator: FakeGenerator) -> VerseCache:
    return VerseCache(verse_repo, generator, distributed_lock=False, lock_ttl=60)


@pytest.fixture
def registrations() -> InMemoryRegistrationRepository:
    return InMemoryRegistrationRepository()


@pytest.fixture
def push_provider() -> FakePushProvider:
    return FakePushProvider()


@pytest.fixture
def dispatcher(push_provider: FakePushProvider, registrations: InMemoryRegistrationRepository) -> PushDispatcher:
    return PushDispatcher(push_provider, registrations, batch_size=500)


@pytest.fixture
def scheduler(
    registrations: InMemoryRegistrationRepository,
    verse_cache: VerseCache,
    dispatcher: PushDispatcher,
) -> DeliveryScheduler:
    return DeliveryScheduler(registrations, verse_cache, dispatcher, default_timezone="America/Santiago")
