from typing import Optional, Any

from utils.constants import MSG_CCCD_EXTRACT_FAILED

class WeatherAppError(Exception):
    """
    Base exception for the weather application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ValidationError(WeatherAppError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)

class AuthenticationError(WeatherAppError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Token is not valid", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class ForbiddenError(WeatherAppError):
    """
    Raised when an authenticated user lacks permission.
    """
    def __init__(self, message: str = "Forbidden: admin only", details: Optional[Any] = None):
        super().__init__(message, code="FORBIDDEN", status_code=403, details=details)

class ResourceNotFoundError(WeatherAppError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class ConflictError(WeatherAppError):
    """
    Raised when a record already exists (duplicate user, favorite).
    """
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(message, code="ALREADY_EXISTS", status_code=400, details=details)

class ExternalServiceError(WeatherAppError):
    """
    Raised when an external service (OCR, Discord) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)

class WeatherApiError(WeatherAppError):
    """
    Raised when the OpenWeatherMap request fails.
    """
    def __init__(self, message: str = "Weather API request failed", code: str = "WEATHER_API_ERROR", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=500, details=details)

class WeatherApiKeyError(WeatherApiError):
    """
    Raised when the OpenWeatherMap key is missing or rejected.
    """
    def __init__(self, message: str = "Weather API key is not configured. Please check server configuration.", details: Optional[Any] = None):
        super().__init__(message, code="API_KEY_MISSING", details=details)

class FeatureDisabledError(WeatherAppError):
    """
    Raised for endpoints that are intentionally unavailable.
    """
    def __init__(self, message: str = "Feature is disabled on this server", details: Optional[Any] = None):
        super().__init__(message, code="FEATURE_DISABLED", status_code=501, details=details)

class CccdExtractionError(WeatherAppError):
    """
    Raised when the ID card image could not be turned into structured data.
    """
    def __init__(self, message: str = MSG_CCCD_EXTRACT_FAILED, details: Optional[Any] = None):
        super().__init__(message, code="CCCD_EXTRACTION_FAILED", status_code=500, details=details)
