"""
app/api/discord.py

Purpose: Discord link and notification settings (all require authentication)
"""

from fastapi import APIRouter, Depends
from typing import Any, Dict

from app.api.deps import get_current_user
from app.models.serialization import serialize_doc
from app.schemas.discord import ConnectRequest, NotificationTimeRequest, SubscribeRequest, UpdateCityRequest
from app.services import discord_service
from utils.constants import (
    MSG_DISCORD_CITY_UPDATED,
    MSG_DISCORD_CONNECTED,
    MSG_DISCORD_SUBSCRIBED,
    MSG_DISCORD_TIME_UPDATED,
    MSG_DISCORD_UNSUBSCRIBED,
)

router = APIRouter()


@router.post("/connect")
async def connect(body: ConnectRequest, user: Dict[str, Any] = Depends(get_current_user)):
    discord = await discord_service.connect(user, body.discordUserId, body.channelId)
    return {"message": MSG_DISCORD_CONNECTED, "discord": serialize_doc(discord)}


@router.post("/subscribe")
async def subscribe(body: SubscribeRequest, user: Dict[str, Any] = Depends(get_current_user)):
    discord = await discord_service.subscribe(user, body.city, body.notificationTime)
    return {"message": MSG_DISCORD_SUBSCRIBED, "discord": serialize_doc(discord)}


@router.post("/unsubscribe")
async def unsubscribe(user: Dict[str, Any] = Depends(get_current_user)):
    discord = await discord_service.unsubscribe(user)
    return {"message": MSG_DISCORD_UNSUBSCRIBED, "discord": serialize_doc(discord)}


@router.get("/status")
async def status(user: Dict[str, Any] = Depends(get_current_user)):
    return {"discord": discord_service.discord_status(user)}


@router.put("/update-city")
async def update_city(body: UpdateCityRequest, user: Dict[str, Any] = Depends(get_current_user)):
    discord = await discord_service.update_city(user, body.city)
    return {"message": MSG_DISCORD_CITY_UPDATED, "discord": serialize_doc(discord)}


@router.put("/notification-time")
async def update_notification_time(body: NotificationTimeRequest, user: Dict[str, Any] = Depends(get_current_user)):
    discord = await discord_service.update_notification_time(user, body.notificationTime)
    return {"message": MSG_DISCORD_TIME_UPDATED, "discord": serialize_doc(discord)}
