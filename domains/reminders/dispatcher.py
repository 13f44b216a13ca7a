"""What happens when a reminder timer fires.

`on_fire` decides; `ReminderDispatcher` carries the decision out.

Order of a firing:
1. DAILY reminders re-arm for tomorrow first, so the chain survives
   anything that goes wrong later in the firing.
2. DAILY reminders with a day-of-week set stop here on other days.
3. ONCE reminders cancel their timer and disable themselves in the store.
4. The notification is shown, keyed by the reminder's unique id.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

from logger import logger
from .models import ReminderPayload, RepetitionMode, calendar_weekday
from .notifications import NotificationChannel, NotificationPresenter, route_for
from .scheduler import AlarmScheduler, following_day
from .store import PreferenceStore


@dataclass(frozen=True)
class RescheduleTimer:
    key: int
    fire_at: datetime
    payload: ReminderPayload


@dataclass(frozen=True)
class CancelTimer:
    key: int


@dataclass(frozen=True)
class UpdateStore:
    preference_id: str
    is_enabled: bool


@dataclass(frozen=True)
class ShowNotification:
    notification_id: int
    channel: NotificationChannel
    title: str
    body: str
    deep_link: str


SideEffect = Union[RescheduleTimer, CancelTimer, UpdateStore, ShowNotification]


def on_fire(payload: ReminderPayload, now: datetime) -> list[SideEffect]:
    """Side effects for one firing of a reminder timer."""
    if payload.unique_id == 0:
        return []

    effects: list[SideEffect] = []
    is_daily = payload.repetition == RepetitionMode.DAILY

    if is_daily and payload.hour is not None and payload.minute is not None:
        effects.append(RescheduleTimer(
            key=payload.unique_id,
            fire_at=following_day(payload.hour, payload.minute, now),
            payload=payload,
        ))

    if is_daily and payload.days_of_week and calendar_weekday(now) not in payload.days_of_week:
        return effects

    if payload.repetition == RepetitionMode.ONCE:
        effects.append(CancelTimer(payload.unique_id))
        if payload.preference_id:
            effects.append(UpdateStore(payload.preference_id, is_enabled=False))

    route = route_for(payload.type)
    effects.append(ShowNotification(
        notification_id=payload.unique_id,
        channel=route.channel,
        title=route.title,
        body=payload.message,
        deep_link=route.deep_link,
    ))
    return effects


class ReminderDispatcher:
    """Executes the side effects of fired reminders."""

    def __init__(
        self,
        scheduler: AlarmScheduler,
        presenter: NotificationPresenter,
        store: PreferenceStore,
        user_provider: Callable[[], Optional[str]],
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.scheduler = scheduler
        self.presenter = presenter
        self.store = store
        self.user_provider = user_provider
        self._clock = clock or scheduler.now
        self._pending: set[asyncio.Task] = set()

    async def handle(self, data: dict) -> list[SideEffect]:
        """Timer callback. Never raises."""
        payload = ReminderPayload.from_dict(data)
        if payload.unique_id == 0:
            logger.warning(f"Ignoring reminder payload without an id: {data}")
            return []

        effects = on_fire(payload, self._clock())
        logger.info(
            f"Reminder {payload.unique_id} fired ({payload.repetition.value}/{payload.type.value}): "
            f"{', '.join(type(e).__name__ for e in effects) or 'no action'}"
        )

        for effect in effects:
            try:
                await self._apply(effect)
            except Exception as e:
                logger.error(f"Failed to apply {type(effect).__name__} for reminder {payload.unique_id}: {e}")

        return effects

    async def _apply(self, effect: SideEffect) -> None:
        if isinstance(effect, RescheduleTimer):
            self.scheduler.register(effect.key, effect.fire_at, effect.payload)
        elif isinstance(effect, CancelTimer):
            self.scheduler.cancel_key(effect.key)
        elif isinstance(effect, UpdateStore):
            self._update_store_later(effect)
        elif isinstance(effect, ShowNotification):
            await self._show(effect)

    def _update_store_later(self, effect: UpdateStore) -> None:
        user_id = self.user_provider()
        if user_id is None:
            logger.warning(f"No signed-in user, leaving preference {effect.preference_id} enabled")
            return

        task = asyncio.create_task(self._update_store(user_id, effect))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _update_store(self, user_id: str, effect: UpdateStore) -> None:
        try:
            await self.store.set_enabled(user_id, effect.preference_id, effect.is_enabled)
            logger.info(f"Disabled one-time reminder {effect.preference_id}")
        except Exception as e:
            logger.error(f"Failed to update preference {effect.preference_id}: {e}")

    async def _show(self, effect: ShowNotification) -> None:
        try:
            channel = effect.channel
            self.presenter.ensure_channel(channel.id, channel.name, channel.description, channel.importance)
            await self.presenter.show(
                effect.notification_id,
                channel.id,
                effect.title,
                effect.body,
                effect.deep_link,
            )
        except Exception as e:
            logger.error(f"Failed to show notification {effect.notification_id}: {e}")

    async def drain(self) -> None:
        """Wait for outstanding store updates."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
