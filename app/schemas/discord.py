"""
app/schemas/discord.py

Purpose: Discord link / subscription request bodies
"""

from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Optional

from utils.time_utils import parse_notification_time
from utils.validation_utils import require_number, require_text


class ConnectRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    discordUserId: Optional[str] = None
    channelId: Optional[str] = None

    @field_validator("discordUserId", mode="before")
    @classmethod
    def validate_user_id(cls, v):
        return require_text(v, "Discord User ID is required")

    @field_validator("channelId", mode="before")
    @classmethod
    def validate_channel_id(cls, v):
        return require_text(v, "Channel ID is required")


class SubscribeRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    city: Optional[str] = None
    lat: Any = None
    lon: Any = None
    notificationTime: Optional[str] = None

    @field_validator("city", mode="before")
    @classmethod
    def validate_city(cls, v):
        return require_text(v, "City name is required")

    @field_validator("lat", mode="before")
    @classmethod
    def validate_lat(cls, v):
        return require_number(v, "Latitude must be a number")

    @field_validator("lon", mode="before")
    @classmethod
    def validate_lon(cls, v):
        return require_number(v, "Longitude must be a number")

    @field_validator("notificationTime")
    @classmethod
    def validate_time(cls, v):
        return parse_notification_time(v)


class UpdateCityRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    city: Optional[str] = None

    @field_validator("city", mode="before")
    @classmethod
    def validate_city(cls, v):
        return require_text(v, "City name is required")


class NotificationTimeRequest(BaseModel):
    notificationTime: Optional[str] = None

    @field_validator("notificationTime")
    @classmethod
    def validate_time(cls, v):
        return parse_notification_time(v)
