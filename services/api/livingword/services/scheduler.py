"""Hourly delivery scheduler.

Meant to be triggered once per hour (on the hour) by an external cron. Each
pass:
1. Reads every device registration
2. Converts "now" to the device's local hour and date
3. Maps the local hour to a slot: 10 -> morning, 14 -> afternoon, 18 -> evening
   (afternoon/evening only for frequency=3 devices)
4. Groups devices by (local date, slot, language)
5. Resolves the verse for each group through the verse cache (generating on
   first use) and hands the tokens to the push dispatcher

Failures are isolated: a bad timezone skips one device, a generation or store
error skips one group. Only failing to read the registrations aborts the pass.

Running the pass twice within the same hour sends twice; at-most-once per
hour is the trigger's job.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Protocol
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from livingword.services.catalog import (
    FREQUENCY_ALL_SLOTS,
    FREQUENCY_MORNING_ONLY,
    SLOT_HOURS,
    Language,
    Slot,
    VerseKey,
    notification_title,
    parse_language,
)
from livingword.services.dispatcher import DispatchResult, PushDispatcher, get_push_dispatcher
from livingword.services.generator import GenerationError
from livingword.services.push import Notification
from livingword.services.repositories import (
    Registration,
    SqlRegistrationRepository,
    StoreError,
    VerseArtifact,
)
from livingword.services.verse_cache import VerseCache, get_verse_cache
from livingword.settings import get_settings

logger = logging.getLogger("uvicorn.error")

NOTIFICATION_TYPE = "VERSE_OF_THE_DAY"


class InvalidTimezoneError(ValueError):
    pass


class RegistrationSource(Protocol):
    async def list_all(self) -> list[Registration]: ...


@dataclass
class DeliveryGroup:
    local_date: str
    slot: Slot
    language: Language
    tokens: list[str] = field(default_factory=list)

    @property
    def key(self) -> VerseKey:
        return VerseKey(date=self.local_date, slot=self.slot, language=self.language)


@dataclass
class GroupResult:
    success_count: int
    failure_count: int
    removed_tokens: int = 0


@dataclass
class HourlyPassResult:
    registrations: int = 0
    processed_groups: int = 0
    results: dict[str, GroupResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    skipped_registrations: int = 0


def load_timezone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising InvalidTimezoneError for anything else."""
    try:
        return ZoneInfo(tz_name)
    # Names of tzdata directories ("America") surface as IsADirectoryError.
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError) as e:
        raise InvalidTimezoneError(f"Invalid timezone: {tz_name!r}") from e


def local_hour_and_date(now: datetime, tz_name: str) -> tuple[int, str]:
    """Local wall-clock hour (0-23) and YYYY-MM-DD date of `now` in `tz_name`.

    Naive datetimes are taken as UTC.
    """
    tz = load_timezone(tz_name)

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(tz)
    return local.hour, local.date().isoformat()


def resolve_slot(local_hour: int, frequency: int) -> Slot | None:
    """Slot deliverable at `local_hour` for a device with `frequency`, if any."""
    slot = None
    if local_hour == SLOT_HOURS[Slot.MORNING]:
        slot = Slot.MORNING
    elif local_hour == SLOT_HOURS[Slot.AFTERNOON] and frequency == FREQUENCY_ALL_SLOTS:
        slot = Slot.AFTERNOON
    elif local_hour == SLOT_HOURS[Slot.EVENING] and frequency == FREQUENCY_ALL_SLOTS:
        slot = Slot.EVENING

    # Morning-only devices never get the other slots.
    if frequency == FREQUENCY_MORNING_ONLY and slot is not Slot.MORNING:
        return None
    return slot


def build_delivery_groups(
    registrations: Iterable[Registration],
    now: datetime,
    *,
    default_timezone: str,
) -> tuple[dict[str, DeliveryGroup], int]:
    """Group registrations due at `now` by (local date, slot, language).

    Returns the groups keyed by verse key string, plus the number of
    registrations skipped for a bad timezone or language.
    """
    groups: dict[str, DeliveryGroup] = {}
    skipped = 0

    for reg in registrations:
        tz_name = reg.timezone or default_timezone
        try:
            hour, local_date = local_hour_and_date(now, tz_name)
        except InvalidTimezoneError as e:
            logger.warning(f"[scheduler] Skipping token {reg.token[:12]}...: {e}")
            skipped += 1
            continue

        slot = resolve_slot(hour, reg.frequency)
        if slot is None:
            continue

        language = parse_language(reg.language)
        if language is None:
            logger.warning(f"[scheduler] Skipping token {reg.token[:12]}...: unsupported language {reg.language!r}")
            skipped += 1
            continue

        key = str(VerseKey(date=local_date, slot=slot, language=language))
        group = groups.get(key)
        if group is None:
            group = groups[key] = DeliveryGroup(local_date=local_date, slot=slot, language=language)
        group.tokens.append(reg.token)

    return groups, skipped


def build_notification(key: VerseKey, artifact: VerseArtifact) -> Notification:
    return Notification(
        title=notification_title(key.language, key.slot),
        body=f'{artifact.reference} - "{artifact.text}"',
        data={
            "type": NOTIFICATION_TYPE,
            "date": key.date,
            "slot": key.slot.value,
            "lang": key.language.value,
            "reference": artifact.reference,
        },
    )


class DeliveryScheduler:
    def __init__(
        self,
        registrations: RegistrationSource,
        cache: VerseCache,
        dispatcher: PushDispatcher,
        *,
        default_timezone: str | None = None,
    ):
        self._registrations = registrations
        self._cache = cache
        self._dispatcher = dispatcher
        self._default_timezone = default_timezone or get_settings().default_timezone

    async def run_hourly_pass(self, now: datetime | None = None) -> HourlyPassResult:
        """Run one scheduling pass at `now` (defaults to the current UTC time).

        Raises:
            StoreError: the registration list could not be read.
        """
        now = now or datetime.now(timezone.utc)
        registrations = await self._registrations.list_all()
        if not registrations:
            logger.info("[scheduler] No registrations; nothing to do")
            return HourlyPassResult()

        groups, skipped = build_delivery_groups(
            registrations, now, default_timezone=self._default_timezone
        )
        result = HourlyPassResult(
            registrations=len(registrations),
            processed_groups=len(groups),
            skipped_registrations=skipped,
        )
        logger.info(
            f"[scheduler] Pass at {now.isoformat()}: {len(registrations)} registrations, "
            f"{len(groups)} groups, {skipped} skipped"
        )

        for key_str, group in groups.items():
            try:
                artifact = await self._cache.resolve(group.key)
            except (GenerationError, StoreError) as e:
                logger.error(f"[scheduler] Skipping group {key_str}: {e}")
                result.errors[key_str] = str(e)
                continue

            outcome: DispatchResult = await self._dispatcher.dispatch(
                group.tokens, build_notification(group.key, artifact)
            )
            result.results[key_str] = GroupResult(
                success_count=outcome.success_count,
                failure_count=outcome.failure_count,
                removed_tokens=len(outcome.removed_tokens),
            )
            logger.info(
                f"[scheduler] {key_str}: sent={outcome.success_count} failed={outcome.failure_count} "
                f"removed={len(outcome.removed_tokens)}"
            )

        return result


def get_delivery_scheduler() -> DeliveryScheduler:
    return DeliveryScheduler(SqlRegistrationRepository(), get_verse_cache(), get_push_dispatcher())
