"""Diet App Reminders - Discord bot.

Posts meal and weight logging reminders into a Discord channel and
manages reminder preferences through channel messages.
"""

import discord
from discord.ext import commands
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from logger import logger
from config import DISCORD_TOKEN
from domains.reminders import (
    AlarmScheduler,
    APSchedulerTimers,
    BootRecovery,
    DiscordPresenter,
    ReminderDispatcher,
    ReminderService,
    create_store,
    handle_reminder_intent,
)
from domains.reminders.config import CHANNEL_ID, USER_ID

# Initialize bot
intents = discord.Intents.default()
intents.message_content = True
bot = commands.Bot(command_prefix="/", intents=intents)

# Initialize scheduler
scheduler = AsyncIOScheduler()


def current_user() -> str | None:
    """The user whose reminders this bot manages."""
    return USER_ID


# Reminder subsystem wiring
store = create_store()
timers = APSchedulerTimers(scheduler)
alarm_scheduler = AlarmScheduler(timers)
presenter = DiscordPresenter(bot, CHANNEL_ID)
dispatcher = ReminderDispatcher(alarm_scheduler, presenter, store, current_user)
timers.set_handler(dispatcher.handle)
service = ReminderService(store, alarm_scheduler)
boot_recovery = BootRecovery(store, alarm_scheduler, current_user)

# on_ready fires again after reconnects; recovery runs once per process
_booted = False


@bot.event
async def on_ready():
    """Called when bot is connected and ready."""
    global _booted
    logger.info(f"Logged in as {bot.user}")

    if _booted:
        logger.info("Reconnected, reminders already restored")
        return
    _booted = True

    # Start scheduler
    scheduler.start()

    try:
        reminder_count = await boot_recovery.on_boot()
        if reminder_count > 0:
            logger.info(f"Restored {reminder_count} reminders")
    except Exception as e:
        logger.error(f"Failed to restore reminders: {e}")

    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")


@bot.event
async def on_message(message):
    """Handle reminder commands in the reminders channel."""
    # Ignore bot messages
    if message.author.bot:
        return

    if message.channel.id != CHANNEL_ID:
        return

    user_id = current_user()
    if user_id is None:
        await message.channel.send("No reminder user configured (set REMINDERS_USER_ID).")
        return

    response = await handle_reminder_intent(message.content, user_id, service)
    if response:
        await message.channel.send(response)


@bot.event
async def on_disconnect():
    """Let in-flight preference updates finish."""
    await dispatcher.drain()


@bot.event
async def on_error(event, *args, **kwargs):
    """Handle errors."""
    logger.error(f"Bot error in {event}: {args}")


def main():
    """Entry point."""
    if not DISCORD_TOKEN:
        logger.error("DISCORD_TOKEN not set")
        return

    logger.info("Starting Diet App Reminders...")
    bot.run(DISCORD_TOKEN)


if __name__ == "__main__":
    main()
