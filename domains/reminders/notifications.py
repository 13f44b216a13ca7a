"""Notification channels and display."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import discord

from logger import logger
from . import config
from .models import ReminderType


@dataclass(frozen=True)
class NotificationChannel:
    """A notification channel: where and how a reminder is shown."""
    id: str
    name: str
    description: str
    importance: str = config.IMPORTANCE_HIGH


@dataclass(frozen=True)
class NotificationRoute:
    """Channel, title and tap target for a reminder type."""
    channel: NotificationChannel
    title: str
    deep_link: str


MEAL_CHANNEL = NotificationChannel(
    id=config.MEAL_CHANNEL_ID,
    name=config.MEAL_CHANNEL_NAME,
    description=config.MEAL_CHANNEL_DESCRIPTION,
)

WEIGHT_CHANNEL = NotificationChannel(
    id=config.WEIGHT_CHANNEL_ID,
    name=config.WEIGHT_CHANNEL_NAME,
    description=config.WEIGHT_CHANNEL_DESCRIPTION,
)

ROUTES = {
    ReminderType.MEAL: NotificationRoute(MEAL_CHANNEL, config.MEAL_TITLE, config.MEAL_DEEP_LINK),
    ReminderType.WEIGHT: NotificationRoute(WEIGHT_CHANNEL, config.WEIGHT_TITLE, config.WEIGHT_DEEP_LINK),
}


def route_for(reminder_type: ReminderType) -> NotificationRoute:
    return ROUTES[reminder_type]


class NotificationPresenter(ABC):
    """Shows reminder notifications."""

    def __init__(self):
        self.channels: dict[str, NotificationChannel] = {}

    def ensure_channel(
        self,
        channel_id: str,
        name: str,
        description: str,
        importance: str = config.IMPORTANCE_HIGH,
    ) -> NotificationChannel:
        """Create the channel if it does not exist yet."""
        channel = self.channels.get(channel_id)
        if channel is None:
            channel = NotificationChannel(channel_id, name, description, importance)
            self.channels[channel_id] = channel
            logger.info(f"Created notification channel {channel_id}")
        return channel

    @abstractmethod
    async def show(
        self,
        notification_id: int,
        channel_id: str,
        title: str,
        body: str,
        deep_link: str,
    ) -> None:
        """Display a notification. A newer one with the same id replaces it."""


class DiscordPresenter(NotificationPresenter):
    """Posts notifications as embeds into a Discord text channel."""

    def __init__(self, bot: discord.Client, channel_id: int):
        super().__init__()
        self.bot = bot
        self.channel_id = channel_id
        self._messages: dict[int, discord.Message] = {}

    async def _get_channel(self):
        channel = self.bot.get_channel(self.channel_id)
        if not channel:
            channel = await self.bot.fetch_channel(self.channel_id)
        return channel

    async def show(
        self,
        notification_id: int,
        channel_id: str,
        title: str,
        body: str,
        deep_link: str,
    ) -> None:
        notification_channel = self.channels[channel_id]
        channel = await self._get_channel()

        # Replace rather than stack
        previous = self._messages.pop(notification_id, None)
        if previous is not None:
            try:
                await previous.delete()
            except discord.HTTPException as e:
                logger.debug(f"Previous notification {notification_id} already gone: {e}")

        embed = discord.Embed(title=title, description=body)
        embed.set_author(name=notification_channel.name)
        embed.set_footer(text=f"Open: {deep_link}")

        message = await channel.send(embed=embed)
        self._messages[notification_id] = message
        logger.info(f"Showed notification {notification_id} on {channel_id}")
