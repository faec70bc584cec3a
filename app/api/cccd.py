"""
app/api/cccd.py

Purpose: CCCD-assisted registration

- POST /cccd/register  multipart "image" -> extracted card fields
"""

from fastapi import APIRouter, File, UploadFile
from typing import Optional

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.services import cccd_service
from utils.constants import MSG_CCCD_IMAGE_REQUIRED

logger = get_logger(__name__)
router = APIRouter()


@router.post("/register")
async def register_with_cccd(image: Optional[UploadFile] = File(None)):
    if image is None or not image.filename:
        raise ValidationError(MSG_CCCD_IMAGE_REQUIRED)

    content = await image.read()
    if not content:
        raise ValidationError(MSG_CCCD_IMAGE_REQUIRED)
    if len(content) > settings.MAX_UPLOAD_MB * 1024 * 1024:
        raise ValidationError(f"Image must be smaller than {settings.MAX_UPLOAD_MB}MB")

    logger.info(f"🪪 CCCD image received: {image.filename} ({len(content)} bytes)")
    return await cccd_service.extract_from_upload(content, image.filename)
