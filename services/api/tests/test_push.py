"""Tests for FCM outcome classification and the multicast provider (no network)."""

from types import SimpleNamespace

import pytest
from firebase_admin import exceptions, messaging

from livingword.services import push
from livingword.services.push import (
    FcmPushProvider,
    Notification,
    PushBatchError,
    TokenOutcome,
    classify_send_error,
)

NOTIFICATION = Notification(title="Palavra Viva: Manhã 🌅", body='João 3:16 - "Porque Deus..."', data={"slot": "morning"})


def test_unregistered_token_is_invalid():
    assert classify_send_error(messaging.UnregisteredError("Requested entity was not found.")) is TokenOutcome.INVALID


def test_malformed_token_is_invalid():
    exc = exceptions.InvalidArgumentError("The registration token is not a valid FCM registration token")
    assert classify_send_error(exc) is TokenOutcome.INVALID


def test_other_invalid_argument_is_not_permanent():
    exc = exceptions.InvalidArgumentError("Message payload is too large")
    assert classify_send_error(exc) is TokenOutcome.TRANSIENT


def test_unavailable_is_transient():
    assert classify_send_error(exceptions.UnavailableError("try later")) is TokenOutcome.TRANSIENT


def test_no_error_is_success():
    assert classify_send_error(None) is TokenOutcome.SUCCESS


@pytest.mark.asyncio
async def test_send_batch_maps_responses_in_token_order(monkeypatch):
    sent: list[messaging.MulticastMessage] = []

    def fake_send_each_for_multicast(message, dry_run=False):
        sent.append(message)
        return SimpleNamespace(
            responses=[
                SimpleNamespace(success=True, exception=None),
                SimpleNamespace(success=False, exception=messaging.UnregisteredError("gone")),
                SimpleNamespace(success=False, exception=exceptions.ResourceExhaustedError("quota")),
            ]
        )

    monkeypatch.setattr(push, "ensure_firebase_initialized", lambda: None)
    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send_each_for_multicast)

    results = await FcmPushProvider(dry_run=True).send_batch(["a", "b", "c"], NOTIFICATION)

    assert [r.token for r in results] == ["a", "b", "c"]
    assert [r.outcome for r in results] == [TokenOutcome.SUCCESS, TokenOutcome.INVALID, TokenOutcome.TRANSIENT]
    assert sent[0].tokens == ["a", "b", "c"]
    assert sent[0].notification.title == "Palavra Viva: Manhã 🌅"
    assert sent[0].data == {"slot": "morning"}


@pytest.mark.asyncio
async def test_send_batch_wraps_provider_failure(monkeypatch):
    def fake_send_each_for_multicast(message, dry_run=False):
        raise exceptions.UnavailableError("FCM down")

    monkeypatch.setattr(push, "ensure_firebase_initialized", lambda: None)
    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_send_each_for_multicast)

    with pytest.raises(PushBatchError):
        await FcmPushProvider(dry_run=True).send_batch(["a"], NOTIFICATION)


@pytest.mark.asyncio
async def test_send_batch_rejects_oversized_batch():
    with pytest.raises(PushBatchError):
        await FcmPushProvider(dry_run=True).send_batch([f"t{i}" for i in range(501)], NOTIFICATION)


@pytest.mark.asyncio
async def test_unconfigured_firebase_is_a_batch_error(monkeypatch):
    def not_configured():
        raise RuntimeError("Firebase not configured")

    monkeypatch.setattr(push, "ensure_firebase_initialized", not_configured)

    with pytest.raises(PushBatchError):
        await FcmPushProvider(dry_run=True).send_batch(["a"], NOTIFICATION)
