"""Push dispatcher: batched delivery plus registration cleanup.

Tokens are sent in batches of at most 500 (the FCM multicast limit). Per
token:
- success -> counted
- permanently invalid -> counted as failure, registration deleted
- transient error -> counted as failure, registration kept (retried next pass)

A failed batch counts all of its tokens as failures and never stops the
batches after it.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
import logging
from typing import Protocol

from livingword.services.push import (
    MAX_TOKENS_PER_CALL,
    Notification,
    PushBatchError,
    TokenOutcome,
    TokenResult,
    get_push_provider,
)
from livingword.services.repositories import SqlRegistrationRepository, StoreError
from livingword.settings import get_settings

logger = logging.getLogger("uvicorn.error")


class PushProvider(Protocol):
    async def send_batch(self, tokens: list[str], notification: Notification) -> list[TokenResult]: ...


class TokenRemover(Protocol):
    async def delete(self, token: str) -> None: ...


@dataclass
class DispatchResult:
    """Outcome of dispatching one notification to a token set."""

    success_count: int = 0
    failure_count: int = 0
    removed_tokens: list[str] = field(default_factory=list)
    failed_batches: int = 0


def partition(tokens: list[str], size: int) -> list[list[str]]:
    return [tokens[i : i + size] for i in range(0, len(tokens), size)]


class PushDispatcher:
    def __init__(
        self,
        provider: PushProvider,
        registrations: TokenRemover,
        *,
        batch_size: int | None = None,
    ):
        size = batch_size or get_settings().push_batch_size
        self._provider = provider
        self._registrations = registrations
        self.batch_size = max(1, min(size, MAX_TOKENS_PER_CALL))

    async def dispatch(self, tokens: Iterable[str], notification: Notification) -> DispatchResult:
        """Send `notification` to every token; delete permanently invalid ones.

        Every input token is counted once as a success or a failure. Blank
        tokens fail without being sent; a repeated token is sent once and its
        outcome counts for each copy.
        """
        copies = Counter(tokens)
        result = DispatchResult(failure_count=copies.pop("", 0))
        unique_tokens = list(copies)

        for batch in partition(unique_tokens, self.batch_size):
            try:
                batch_results = await self._provider.send_batch(batch, notification)
            except PushBatchError as e:
                logger.error(f"[dispatcher] Batch of {len(batch)} tokens failed: {e}")
                result.failure_count += sum(copies[t] for t in batch)
                result.failed_batches += 1
                continue

            outcomes = {r.token: r for r in batch_results}
            for token in batch:
                token_result = outcomes.get(token)
                if token_result is not None and token_result.outcome is TokenOutcome.SUCCESS:
                    result.success_count += copies[token]
                    continue

                result.failure_count += copies[token]
                if token_result is not None and token_result.outcome is TokenOutcome.INVALID:
                    if await self._remove(token, token_result.error_code):
                        result.removed_tokens.append(token)

        return result

    async def _remove(self, token: str, error_code: str | None) -> bool:
        try:
            await self._registrations.delete(token)
        except StoreError as e:
            logger.warning(f"[dispatcher] Could not delete invalid token {token[:12]}...: {e}")
            return False
        logger.info(f"[dispatcher] Removed invalid token {token[:12]}... ({error_code})")
        return True


def get_push_dispatcher() -> PushDispatcher:
    return PushDispatcher(get_push_provider(), SqlRegistrationRepository())
