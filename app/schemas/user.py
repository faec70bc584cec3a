"""
app/schemas/user.py

Purpose: User data request bodies (favorites, history, preferences, location)
"""

from pydantic import BaseModel, ConfigDict, field_validator
from typing import Any, Optional

from app.models.user import TEMPERATURE_UNITS
from utils.validation_utils import require_number, require_text


class FavoriteCityRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    name: Optional[str] = None
    country: Optional[str] = None
    lat: Any = None
    lon: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "City name is required")

    @field_validator("country", mode="before")
    @classmethod
    def validate_country(cls, v):
        return require_text(v, "Country is required")

    @field_validator("lat", mode="before")
    @classmethod
    def validate_lat(cls, v):
        return require_number(v, "Latitude must be a number")

    @field_validator("lon", mode="before")
    @classmethod
    def validate_lon(cls, v):
        return require_number(v, "Longitude must be a number")


class SearchHistoryRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    city: Optional[str] = None
    country: Optional[str] = None

    @field_validator("city", mode="before")
    @classmethod
    def validate_city(cls, v):
        return require_text(v, "City name is required")

    @field_validator("country", mode="before")
    @classmethod
    def validate_country(cls, v):
        return require_text(v, "Country is required")


class PreferencesRequest(BaseModel):
    temperatureUnit: Optional[str] = None
    language: Optional[str] = None

    @field_validator("temperatureUnit")
    @classmethod
    def validate_unit(cls, v):
        if v is not None and v not in TEMPERATURE_UNITS:
            raise ValueError("Temperature unit must be celsius or fahrenheit")
        return v

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        if v is not None and not (2 <= len(v) <= 5):
            raise ValueError("Language must be 2-5 characters")
        return v


class LastLocationRequest(BaseModel):
    model_config = ConfigDict(validate_default=True)

    lat: Any = None
    lon: Any = None
    city: Optional[str] = None
    country: Optional[str] = None

    @field_validator("lat", mode="before")
    @classmethod
    def validate_lat(cls, v):
        return require_number(v, "Latitude must be a number")

    @field_validator("lon", mode="before")
    @classmethod
    def validate_lon(cls, v):
        return require_number(v, "Longitude must be a number")

    @field_validator("city", mode="before")
    @classmethod
    def validate_city(cls, v):
        return require_text(v, "City name is required")

    @field_validator("country", mode="before")
    @classmethod
    def validate_country(cls, v):
        return require_text(v, "Country is required")
