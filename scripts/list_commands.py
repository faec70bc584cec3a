"""
Lists the slash commands registered for the bot application

Run:
    python scripts/list_commands.py            global commands
    python scripts/list_commands.py GUILD_ID   commands of one guild
"""

import asyncio
import json
import sys
from pathlib import Path
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

load_dotenv()

import logging

import httpx

from app.core.config import settings

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api/v10"


async def main(guild_id: str = None) -> int:
    if not settings.DISCORD_TOKEN or not settings.DISCORD_CLIENT_ID:
        logger.error("❌ DISCORD_TOKEN and DISCORD_CLIENT_ID must be set in .env file")
        return 1

    path = f"/applications/{settings.DISCORD_CLIENT_ID}"
    path += f"/guilds/{guild_id}/commands" if guild_id else "/commands"

    async with httpx.AsyncClient(
        base_url=DISCORD_API,
        headers={"Authorization": f"Bot {settings.DISCORD_TOKEN}"},
        timeout=15.0,
    ) as client:
        try:
            response = await client.get(path)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to fetch commands: {e}")
            return 2

    scope = f"Guild {guild_id}" if guild_id else "Global"
    logger.info(f"{scope} commands:\n{json.dumps(response.json(), indent=2)}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None)))
