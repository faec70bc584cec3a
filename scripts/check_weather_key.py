"""
Checks that WEATHER_API_KEY is accepted by OpenWeatherMap

Run: python scripts/check_weather_key.py [city]
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

load_dotenv()

import logging

from app.core.exceptions import WeatherApiError, WeatherApiKeyError
from app.services.weather_api import WeatherApiClient

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def main(city: str) -> int:
    client = WeatherApiClient()
    try:
        data = await client.get("/weather", {"q": city, "units": "metric"})
        logger.info(f"✅ Key works: {data['name']} is {round(data['main']['temp'])}°C, "
                    f"{data['weather'][0]['description']}")
        return 0
    except WeatherApiKeyError as e:
        logger.error(f"❌ API key problem: {e.message}")
        return 1
    except WeatherApiError as e:
        logger.error(f"❌ Request failed: {e.message}")
        return 2
    finally:
        await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "Hanoi")))
