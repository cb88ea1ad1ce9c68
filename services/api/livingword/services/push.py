"""Firebase Cloud Messaging push provider.

One call = one multicast of up to 500 tokens. Each token gets its own
outcome, classified as:
- SUCCESS
- INVALID: the token will never work again (unregistered / not a valid FCM
  token) and its registration should be deleted
- TRANSIENT: anything else (quota, unavailable, internal); keep the token

The firebase_admin SDK is synchronous, so calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
import json
import os

import firebase_admin
from firebase_admin import credentials, exceptions, messaging

from livingword.settings import get_settings

# FCM multicast limit
MAX_TOKENS_PER_CALL = 500
NOTIFICATION_TTL = timedelta(hours=1)


class TokenOutcome(Enum):
    SUCCESS = "success"
    INVALID = "invalid"
    TRANSIENT = "transient"


class PushBatchError(RuntimeError):
    pass


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenResult:
    token: str
    outcome: TokenOutcome
    error_code: str | None = None


# -----------------------------
# Credentials & initialization
# -----------------------------


def _build_credential() -> credentials.Base | None:
    settings = get_settings()

    if settings.firebase_service_account_path:
        return credentials.Certificate(settings.firebase_service_account_path)

    raw = settings.firebase_config_json.strip()
    if raw:
        # try base64 then raw json
        try:
            data = json.loads(base64.b64decode(raw, validate=True).decode("utf-8"))
        except ValueError:
            data = json.loads(raw)
        if data.get("type") != "service_account" or "private_key" not in data:
            raise ValueError("FIREBASE_CONFIG_JSON is not a service_account key.")
        return credentials.Certificate(data)

    if os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or settings.use_google_application_default:
        return credentials.ApplicationDefault()

    return None


def ensure_firebase_initialized() -> firebase_admin.App:
    """Initialize the default Firebase app exactly once."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass  # no default app yet

    cred = _build_credential()
    if cred is None:
        raise RuntimeError(
            "Firebase not configured. Provide one of: FIREBASE_SERVICE_ACCOUNT_PATH, "
            "FIREBASE_CONFIG_JSON (raw or base64), or GOOGLE_APPLICATION_CREDENTIALS / "
            "USE_GOOGLE_APPLICATION_DEFAULT."
        )
    return firebase_admin.initialize_app(cred)


# -----------------------------
# Error classification
# -----------------------------


def classify_send_error(exc: BaseException | None) -> TokenOutcome:
    """Map a per-token send exception to an outcome."""
    if exc is None:
        return TokenOutcome.SUCCESS
    if isinstance(exc, messaging.UnregisteredError):
        return TokenOutcome.INVALID
    # INVALID_ARGUMENT is also used for payload problems; only the token variant is permanent.
    if isinstance(exc, exceptions.InvalidArgumentError) and "registration token" in str(exc).lower():
        return TokenOutcome.INVALID
    return TokenOutcome.TRANSIENT


def _error_code(exc: BaseException | None) -> str | None:
    if exc is None:
        return None
    code = getattr(exc, "code", None)
    return str(code) if code else type(exc).__name__


# -----------------------------
# Provider
# -----------------------------


class FcmPushProvider:
    """Sends one multicast per batch through firebase_admin."""

    def __init__(self, *, dry_run: bool | None = None):
        self.dry_run = get_settings().push_dry_run if dry_run is None else dry_run

    def _build_message(self, tokens: list[str], notification: Notification) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            notification=messaging.Notification(title=notification.title, body=notification.body),
            data={str(k): str(v) for k, v in notification.data.items()},
            tokens=tokens,
            android=messaging.AndroidConfig(priority="high", ttl=NOTIFICATION_TTL),
        )

    async def send_batch(self, tokens: list[str], notification: Notification) -> list[TokenResult]:
        """Send one multicast; returns one TokenResult per token, in order.

        Raises:
            PushBatchError: the whole call failed (config, auth, network).
        """
        if len(tokens) > MAX_TOKENS_PER_CALL:
            raise PushBatchError(f"FCM accepts at most {MAX_TOKENS_PER_CALL} tokens per call, got {len(tokens)}")

        try:
            ensure_firebase_initialized()
            message = self._build_message(tokens, notification)
            response = await asyncio.to_thread(messaging.send_each_for_multicast, message, self.dry_run)
        except (exceptions.FirebaseError, OSError, RuntimeError, ValueError) as e:
            raise PushBatchError(f"FCM multicast failed: {e}") from e

        results: list[TokenResult] = []
        for token, item in zip(tokens, response.responses):
            if item.success:
                results.append(TokenResult(token=token, outcome=TokenOutcome.SUCCESS))
                continue
            exc = item.exception
            outcome = classify_send_error(exc) if exc is not None else TokenOutcome.TRANSIENT
            results.append(TokenResult(token=token, outcome=outcome, error_code=_error_code(exc)))
        return results


_provider: FcmPushProvider | None = None


def get_push_provider() -> FcmPushProvider:
    """Get FCM provider singleton."""
    global _provider
    if _provider is None:
        _provider = FcmPushProvider()
    return _provider
