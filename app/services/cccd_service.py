"""
app/services/cccd_service.py

Purpose: CCCD (Vietnamese ID card) extraction

- Sends the uploaded card image to Gemini with the extraction prompt
- Recovers a JSON object from the model's free-form text answer
- Normalizes the card number and birth date
- Always removes the temporary upload
"""

import json
import os
import re
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from google import genai
from google.genai import types

from app.core.config import settings
from app.core.exceptions import CccdExtractionError, WeatherAppError
from app.core.logging import get_logger
from app.services.user_service import get_user_by_cccd
from utils.constants import CCCD_PROMPT, DEFAULT_IMAGE_MIME, IMAGE_MIME_TYPES
from utils.validation_utils import normalize_birth_date, normalize_cccd_number

logger = get_logger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
TRAILING_COMMA = re.compile(r",\s*([}\]])")
UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")

SMART_QUOTES = {
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
}

OcrFunction = Callable[[bytes, str], Awaitable[str]]


def mime_type_for(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return IMAGE_MIME_TYPES.get(ext, DEFAULT_IMAGE_MIME)


def extract_json_text(text: str) -> str:
    """
    Picks the JSON candidate out of a model answer.

    Prefers a ```json fenced block, then the span from the first "{" to
    the last "}", then the whole text.
    """
    fenced = FENCED_JSON.search(text)
    if fenced:
        return fenced.group(1).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start:end + 1]
    return text.strip()


def clean_json_text(candidate: str) -> str:
    for smart, plain in SMART_QUOTES.items():
        candidate = candidate.replace(smart, plain)
    candidate = TRAILING_COMMA.sub(r"\1", candidate)
    candidate = UNQUOTED_KEY.sub(r'\1"\2":', candidate)
    return candidate


def parse_cccd_response(text: str) -> Dict[str, Any]:
    """
    Parses and normalizes the model's answer.

    Raises:
        CccdExtractionError: No JSON object could be recovered
    """
    candidate = extract_json_text(text or "")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        try:
            data = json.loads(clean_json_text(candidate))
        except json.JSONDecodeError as e:
            logger.error(f"❌ Could not parse CCCD extraction output: {e}")
            raise CccdExtractionError(details={"raw": (text or "")[:500]})

    if not isinstance(data, dict):
        raise CccdExtractionError(details={"raw": (text or "")[:500]})
    return normalize_extracted(data)


def normalize_extracted(data: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(data)
    if result.get("so_cccd"):
        result["so_cccd"] = normalize_cccd_number(result["so_cccd"])
    if result.get("ngay_sinh"):
        result["ngay_sinh"] = normalize_birth_date(result["ngay_sinh"])
    return result


# Global client instance
_gemini_client: Optional[genai.Client] = None


def get_gemini_client() -> genai.Client:
    """Get or create the shared Gemini client."""
    global _gemini_client
    if not settings.GEMINI_API_KEY:
        logger.error("GEMINI_API_KEY is not configured")
        raise CccdExtractionError(details={"reason": "GEMINI_API_KEY is not configured"})
    if _gemini_client is None:
        _gemini_client = genai.Client(api_key=settings.GEMINI_API_KEY.strip())
    return _gemini_client


async def gemini_ocr(image: bytes, mime_type: str) -> str:
    """Runs the extraction prompt against the configured Gemini model."""
    response = await get_gemini_client().aio.models.generate_content(
        model=settings.GEMINI_MODEL,
        contents=[
            CCCD_PROMPT,
            types.Part.from_bytes(data=image, mime_type=mime_type),
        ],
    )
    return response.text or ""


def save_upload(content: bytes, filename: Optional[str]) -> str:
    """Writes the upload under UPLOAD_DIR and returns its path."""
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    ext = os.path.splitext(filename or "")[1].lower() or ".jpg"
    path = os.path.join(settings.UPLOAD_DIR, f"cccd-{uuid.uuid4().hex}{ext}")
    with open(path, "wb") as f:
        f.write(content)
    return path


def remove_upload(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary upload {path}: {e}")


async def extract_from_upload(
    content: bytes,
    filename: Optional[str],
    ocr: Optional[OcrFunction] = None
) -> Dict[str, Any]:
    """
    Full registration pre-step: OCR the card and check whether it is taken.

    Returns:
        {"success": True, "extracted": {...}, "exists": bool}
    """
    ocr = ocr or gemini_ocr
    path = save_upload(content, filename)
    try:
        with open(path, "rb") as f:
            image = f.read()

        try:
            text = await ocr(image, mime_type_for(filename))
        except WeatherAppError:
            raise
        except Exception as e:
            logger.error(f"❌ Gemini OCR failed: {e}", exc_info=True)
            raise CccdExtractionError(details={"reason": str(e)})

        extracted = parse_cccd_response(text)
    finally:
        remove_upload(path)

    exists = False
    if extracted.get("so_cccd"):
        exists = await get_user_by_cccd(extracted["so_cccd"]) is not None

    logger.info(f"🪪 CCCD extracted (already registered: {exists})")
    return {"success": True, "extracted": extracted, "exists": exists}
