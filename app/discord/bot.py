"""
app/discord/bot.py

Purpose: Discord bot process

- Slash commands: /weather, /forecast, /subscribe, /unsubscribe
- Owns the notification scheduler
- Run with: python -m app.discord.bot
"""

from typing import Optional

import discord
from discord import app_commands

from app.core.config import settings, validate_settings
from app.core.exceptions import WeatherAppError
from app.core.logging import setup_logging, get_logger, LogContext
from app.db.mongo import close_mongo_connection, connect_to_mongo
from app.discord.embeds import create_forecast_embed, create_subscription_embed, create_weather_embed
from app.discord.notifications import NotificationScheduler
from app.services import discord_service, user_service, weather_service
from app.services.weather_api import close_weather_api

logger = get_logger(__name__)

MSG_COMMAND_FAILED = "An error occurred while processing your command."


class WeatherBot(discord.Client):
    def __init__(self):
        super().__init__(intents=discord.Intents.default())
        self.tree = app_commands.CommandTree(self)
        self.notifier = NotificationScheduler(self.send_to_channel)
        register_commands(self.tree)

    async def setup_hook(self):
        await connect_to_mongo()
        self.notifier.start()

    async def on_ready(self):
        synced = await self.tree.sync()
        logger.info(f"🤖 Discord bot logged in as {self.user} ({len(synced)} commands synced)")
        if settings.DISCORD_CLIENT_ID:
            invite = discord.utils.oauth_url(
                settings.DISCORD_CLIENT_ID,
                scopes=("bot", "applications.commands"),
            )
            logger.info(f"Invite URL: {invite}")

    async def send_to_channel(self, channel_id: str, content: str, embed: discord.Embed):
        channel = self.get_channel(int(channel_id)) or await self.fetch_channel(int(channel_id))
        await channel.send(content=content, embed=embed)

    async def close(self):
        self.notifier.shutdown()
        await close_weather_api()
        await close_mongo_connection()
        await super().close()


async def _reply_error(interaction: discord.Interaction, message: str):
    if interaction.response.is_done():
        await interaction.followup.send(message, ephemeral=True)
    else:
        await interaction.response.send_message(message, ephemeral=True)


def register_commands(tree: app_commands.CommandTree):
    @tree.command(name="weather", description="Get current weather for a city")
    @app_commands.describe(city="City name")
    async def weather(interaction: discord.Interaction, city: str):
        try:
            data = await weather_service.get_weather_by_city(city)
        except WeatherAppError as e:
            logger.warning(f"/weather lookup failed for {city}: {e.message}")
            await _reply_error(interaction, f"Could not find weather data for {city}. Please check the city name.")
            return
        await interaction.response.send_message(
            embed=create_weather_embed(weather_service.summarize_weather(data))
        )

    @tree.command(name="forecast", description="Get 5-day weather forecast")
    @app_commands.describe(city="City name")
    async def forecast(interaction: discord.Interaction, city: str):
        try:
            data = await weather_service.get_forecast_by_city(city)
        except WeatherAppError as e:
            logger.warning(f"/forecast lookup failed for {city}: {e.message}")
            await _reply_error(interaction, f"Could not find forecast data for {city}. Please check the city name.")
            return
        await interaction.response.send_message(embed=create_forecast_embed(data))

    @tree.command(name="subscribe", description="Subscribe to weather notifications")
    @app_commands.describe(
        city="City name for notifications",
        email="The email you used to register for the weather app",
    )
    async def subscribe(interaction: discord.Interaction, city: str, email: str):
        discord_user_id = str(interaction.user.id)
        with LogContext(discord_user=discord_user_id, city=city, action="subscribe"):
            if not await user_service.get_user_by_email(email):
                await _reply_error(
                    interaction,
                    "User not found. Please make sure you have an account in the weather app with that email."
                )
                return

            try:
                data = await weather_service.get_weather_by_city(city)
                await discord_service.link_by_email(email, discord_user_id, str(interaction.channel_id), city)
            except WeatherAppError as e:
                logger.error(f"Subscribe error: {e}")
                await _reply_error(
                    interaction,
                    "Error subscribing to notifications. Please check the city name and try again."
                )
                return

            summary = weather_service.summarize_weather(data)
            await interaction.response.send_message(embed=create_subscription_embed(city, summary))

    @tree.command(name="unsubscribe", description="Unsubscribe from weather notifications")
    async def unsubscribe(interaction: discord.Interaction):
        removed = await discord_service.unsubscribe_by_discord_id(str(interaction.user.id))
        if not removed:
            await interaction.response.send_message(
                "You are not subscribed to weather notifications.", ephemeral=True
            )
            return
        await interaction.response.send_message(
            "✅ Successfully unsubscribed from weather notifications.", ephemeral=True
        )

    @tree.error
    async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
        logger.error(f"Command error: {error}", exc_info=error)
        try:
            await _reply_error(interaction, MSG_COMMAND_FAILED)
        except discord.HTTPException as e:
            logger.warning(f"Could not report command error to user: {e}")


def main(token: Optional[str] = None):
    setup_logging()
    validate_settings()

    token = token or settings.DISCORD_TOKEN
    if not token:
        logger.critical("DISCORD_TOKEN is not set; the bot cannot start")
        raise SystemExit(1)

    bot = WeatherBot()
    bot.run(token, log_handler=None)


if __name__ == "__main__":
    main()
