"""
utils/constants.py

Purpose: Centralized static content

- User-facing API messages
- Discord embed emojis, colours and footer
- Metrics action names
- CCCD extraction prompt

(Prevents hardcoding across the codebase)
"""

# ============================================================
# AUTH MESSAGES
# ============================================================

MSG_REGISTERED = "User registered successfully"
MSG_LOGIN_OK = "Login successful"
MSG_USER_EXISTS = "User with this email or username already exists"
MSG_INVALID_CREDENTIALS = "Invalid credentials"
MSG_ACCOUNT_BANNED = "Account has been banned"
MSG_CCCD_NOT_REGISTERED = "CCCD chưa được đăng ký"
MSG_USER_NOT_FOUND = "User not found"

MSG_NO_TOKEN = "No token, authorization denied"
MSG_TOKEN_NOT_VALID = "Token is not valid"
MSG_ADMIN_ONLY = "Forbidden: admin only"

# ============================================================
# WEATHER MESSAGES
# ============================================================

MSG_COORDS_REQUIRED = "Latitude and longitude are required"
MSG_COORDS_INVALID = "Invalid coordinates provided"
MSG_HISTORICAL_REQUIRED = "Latitude, longitude, and timestamp (dt) are required"
MSG_HISTORICAL_INVALID = "Invalid coordinates or timestamp provided"
MSG_HISTORICAL_DISABLED = (
    "Historical weather endpoint is disabled on this server. "
    "Enable a provider or contact the administrator."
)
MSG_SEARCH_TOO_SHORT = "Search query must be at least 2 characters"
MSG_SEARCH_SKIPPED = "Request skipped due to recent duplicate"
MSG_API_KEY_MISSING = "Weather API key is not configured. Please check server configuration."

# ============================================================
# USER DATA MESSAGES
# ============================================================

MSG_FAVORITE_ADDED = "City added to favorites"
MSG_FAVORITE_REMOVED = "City removed from favorites"
MSG_FAVORITE_EXISTS = "City already in favorites"
MSG_HISTORY_ADDED = "Search added to history"
MSG_HISTORY_CLEARED = "Search history cleared"
MSG_PREFERENCES_UPDATED = "Preferences updated"
MSG_LAST_LOCATION_UPDATED = "Last location updated"

# ============================================================
# DISCORD MESSAGES
# ============================================================

MSG_DISCORD_CONNECTED = "Discord account connected successfully"
MSG_DISCORD_SUBSCRIBED = "Successfully subscribed to Discord weather notifications"
MSG_DISCORD_UNSUBSCRIBED = "Successfully unsubscribed from Discord weather notifications"
MSG_DISCORD_CITY_UPDATED = "Notification city updated successfully"
MSG_DISCORD_TIME_UPDATED = "Notification time updated successfully"
MSG_DISCORD_CONNECT_FIRST = "Discord account not connected. Please connect your Discord account first."
MSG_DISCORD_NOT_CONNECTED = "Discord account not connected"
MSG_DISCORD_NOT_SUBSCRIBED = "Not subscribed to notifications"

# ============================================================
# CCCD MESSAGES
# ============================================================

MSG_CCCD_IMAGE_REQUIRED = "Vui lòng tải lên ảnh CCCD"
MSG_CCCD_EXTRACT_FAILED = "Không thể trích xuất thông tin từ ảnh CCCD"

CCCD_PROMPT = """
Bạn là một trợ lý AI chuyên về trích xuất thông tin. Phân tích hình ảnh CCCD Việt Nam này.
Chỉ trích xuất các thông tin sau và trả về dưới dạng JSON:
* `so_cccd` (Số CCCD)
* `ho_va_ten` (Họ và tên)
* `ngay_sinh` (Ngày sinh, DD/MM/YYYY)
* `gioi_tinh` (Giới tính)
* `quoc_tich` (Quốc tịch)
* `que_quan` (Quê quán)
* `noi_thuong_tru` (Nơi thường trú)
* `ngay_het_han` (Ngày hết hạn)
Chỉ trả về duy nhất đối tượng JSON, không giải thích, không markdown.
"""

IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
}
DEFAULT_IMAGE_MIME = "image/jpeg"

# ============================================================
# DISCORD EMBEDS
# ============================================================

WEATHER_EMOJIS = {
    "Clear": "☀️",
    "Clouds": "☁️",
    "Rain": "🌧️",
    "Snow": "❄️",
    "Thunderstorm": "⛈️",
    "Mist": "🌫️",
    "Fog": "🌫️",
}
DEFAULT_WEATHER_EMOJI = "🌤️"

WEATHER_COLORS = {
    "Clear": 0xFFD700,
    "Clouds": 0x87CEEB,
    "Rain": 0x4682B4,
    "Snow": 0xE6E6FA,
    "Thunderstorm": 0x2F4F4F,
    "Mist": 0xC0C0C0,
    "Fog": 0xC0C0C0,
}
DEFAULT_EMBED_COLOR = 0x00AE86
BANNED_ALERT_COLOR = 0xFF0000

EMBED_FOOTER = "Weather Bot • Powered by OpenWeatherMap"
FORECAST_DAYS = 5

# ============================================================
# METRICS
# ============================================================

ACTION_SEARCH = "search"
ACTION_DISCORD_EVENT = "discord_event"

METRIC_API_EVENTS = "api_events"
METRIC_SEARCHES = "searches"
METRIC_NEW_USERS = "new_users"
METRIC_DISCORD_NOTIFICATIONS = "discord_notifications"

STATS_CACHE_SECONDS = 30
METRICS_CACHE_SECONDS = 20
