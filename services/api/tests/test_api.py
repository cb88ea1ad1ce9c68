"""Tests for HTTP endpoints (services patched, no DB)."""

import pytest
from httpx import ASGITransport, AsyncClient

from livingword.main import app
from livingword.routes import cron as cron_routes
from livingword.routes import devices as devices_routes
from livingword.routes import verses as verses_routes
from livingword.services.pregeneration import GenerationStats
from livingword.services.verse_cache import VerseCache


@pytest.fixture
async def client():
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


@pytest.mark.asyncio
async def test_daily_verse_generates_then_serves_cached(client, monkeypatch, verse_cache, generator):
    monkeypatch.setattr(verses_routes, "get_verse_cache", lambda: verse_cache)
    monkeypatch.setattr(verses_routes, "utc_today", lambda: "2024-05-01")

    first = await client.get("/api/daily-verse", params={"lang": "es", "slot": "morning"})
    second = await client.get("/api/daily-verse", params={"lang": "es", "slot": "morning"})

    assert first.status_code == 200
    data = first.json()
    assert set(data) == {"reference", "text", "explanation", "imageUrl", "lang", "createdAt"}
    assert data["lang"] == "es"
    assert second.json() == data
    assert generator.calls == ["2024-05-01_morning_es"]


@pytest.mark.asyncio
async def test_daily_verse_missing_params_is_400(client):
    response = await client.get("/api/daily-verse", params={"lang": "es"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_daily_verse_unknown_language_is_400(client):
    response = await client.get("/api/daily-verse", params={"lang": "fr", "slot": "morning"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_daily_verse_generation_failure_is_500_without_write(client, monkeypatch, verse_repo, generator):
    generator.fail_for = {"2024-05-01_evening_pt"}
    cache = VerseCache(verse_repo, generator, distributed_lock=False, lock_ttl=60)
    monkeypatch.setattr(verses_routes, "get_verse_cache", lambda: cache)
    monkeypatch.setattr(verses_routes, "utc_today", lambda: "2024-05-01")

    response = await client.get("/api/daily-verse", params={"lang": "pt", "slot": "evening"})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"
    assert verse_repo.rows == {}


@pytest.mark.asyncio
async def test_register_token(client, monkeypatch, registrations):
    async def fake_register_device(token, *, language, frequency, timezone=None):
        await registrations.upsert(token, language=language.value, frequency=frequency, timezone=timezone or "America/Santiago")

    monkeypatch.setattr(devices_routes, "register_device", fake_register_device)

    response = await client.post(
        "/api/register-token",
        json={"token": "T1", "lang": "es", "frequency": 1, "timezone": "America/Santiago"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert registrations.rows["T1"].frequency == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"lang": "es", "frequency": 1},
        {"token": "T1", "frequency": 1},
        {"token": "T1", "lang": "es"},
        {"token": "T1", "lang": "es", "frequency": 2},
    ],
)
async def test_register_token_rejects_missing_or_invalid_fields(client, body):
    response = await client.post("/api/register-token", json=body)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_push_hourly_without_tokens(client, monkeypatch, scheduler):
    monkeypatch.setattr(cron_routes, "get_delivery_scheduler", lambda: scheduler)

    response = await client.get("/api/cron/push-hourly")

    assert response.status_code == 200
    assert response.json()["message"] == "No tokens registered"


@pytest.mark.asyncio
async def test_push_hourly_reports_groups(client, monkeypatch, scheduler, registrations):
    # One device per whole-hour UTC offset: exactly one of them is at 10:00 local right now.
    for i, tz in enumerate(["Etc/GMT+0", "Etc/GMT-1", "Etc/GMT+1", "Etc/GMT-2", "Etc/GMT+2", "Etc/GMT-3",
                            "Etc/GMT+3", "Etc/GMT-4", "Etc/GMT+4", "Etc/GMT-5", "Etc/GMT+5", "Etc/GMT-6",
                            "Etc/GMT+6", "Etc/GMT-7", "Etc/GMT+7", "Etc/GMT-8", "Etc/GMT+8", "Etc/GMT-9",
                            "Etc/GMT+9", "Etc/GMT-10", "Etc/GMT+10", "Etc/GMT-11", "Etc/GMT+11", "Etc/GMT-12"]):
        registrations.add(f"T{i}", language="en", frequency=1, tz=tz)
    monkeypatch.setattr(cron_routes, "get_delivery_scheduler", lambda: scheduler)

    response = await client.get("/api/cron/push-hourly")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["processed"] == 1
    (group,) = data["results"].values()
    assert group == {"successCount": 1, "failureCount": 0, "removedTokens": 0}


@pytest.mark.asyncio
async def test_generate_verses(client, monkeypatch):
    async def fake_pregenerate_day(target_date=None):
        assert target_date == "2024-05-01"
        return GenerationStats(generated=8, skipped=0, errors=["2024-05-01_evening_pt"])

    monkeypatch.setattr(cron_routes, "pregenerate_day", fake_pregenerate_day)

    response = await client.get("/api/cron/generate-verses", params={"date": "2024-05-01"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "Cron execution finished",
        "targetDate": "2024-05-01",
        "stats": {"generated": 8, "skipped": 0, "errors": ["2024-05-01_evening_pt"]},
    }
