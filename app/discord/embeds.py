"""
app/discord/embeds.py

Purpose: Discord embed builders for weather data

- Current weather embed (emoji + colour by condition)
- 5-day forecast embed
- Subscription confirmation embed
"""

from typing import Any, Dict, List, Tuple

import discord

from app.services.weather_service import group_daily
from utils.constants import (
    DEFAULT_EMBED_COLOR,
    DEFAULT_WEATHER_EMOJI,
    EMBED_FOOTER,
    FORECAST_DAYS,
    WEATHER_COLORS,
    WEATHER_EMOJIS,
)
from utils.time_utils import format_short_date, utcnow


def weather_emoji(main: str) -> str:
    return WEATHER_EMOJIS.get(main, DEFAULT_WEATHER_EMOJI)


def weather_color(main: str) -> int:
    return WEATHER_COLORS.get(main, DEFAULT_EMBED_COLOR)


def create_weather_embed(summary: Dict[str, Any]) -> discord.Embed:
    """
    Args:
        summary: Output of weather_service.summarize_weather
    """
    embed = discord.Embed(
        title=f"{weather_emoji(summary['main'])} Weather in {summary['city']}, {summary['country']}",
        description=f"**{summary['temperature']}°C** - {summary['description']}",
        color=weather_color(summary["main"]),
        timestamp=utcnow(),
    )
    embed.add_field(name="🌡️ Feels Like", value=f"{summary['feelsLike']}°C", inline=True)
    embed.add_field(name="💧 Humidity", value=f"{summary['humidity']}%", inline=True)
    embed.add_field(name="💨 Wind Speed", value=f"{summary['windSpeed']} m/s", inline=True)
    embed.set_footer(text=EMBED_FOOTER)
    return embed


def forecast_fields(forecast: Dict[str, Any], days: int = FORECAST_DAYS) -> List[Tuple[str, str]]:
    """One (date, "min°C - max°C • description") pair per day."""
    fields = []
    for day in group_daily(forecast)[:days]:
        temps = day["temperature"]
        description = day["weather"].get("description", "")
        fields.append((
            format_short_date(day["date"]),
            f"{temps['min']}°C - {temps['max']}°C • {description}",
        ))
    return fields


def create_forecast_embed(forecast: Dict[str, Any]) -> discord.Embed:
    city = forecast.get("city", {})
    embed = discord.Embed(
        title=f"🌤️ {FORECAST_DAYS}-Day Forecast for {city.get('name')}, {city.get('country')}",
        color=DEFAULT_EMBED_COLOR,
        timestamp=utcnow(),
    )
    for name, value in forecast_fields(forecast):
        embed.add_field(name=name, value=value, inline=False)
    embed.set_footer(text=EMBED_FOOTER)
    return embed


def create_subscription_embed(city: str, summary: Dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title="🌤️ Weather Notifications Subscribed!",
        description=f"You will now receive weather updates for **{city}**",
        color=DEFAULT_EMBED_COLOR,
        timestamp=utcnow(),
    )
    embed.add_field(
        name="Current Weather",
        value=f"{summary['temperature']}°C - {summary['description']}",
        inline=True,
    )
    embed.add_field(name="Humidity", value=f"{summary['humidity']}%", inline=True)
    embed.add_field(name="Wind Speed", value=f"{summary['windSpeed']} m/s", inline=True)
    return embed
