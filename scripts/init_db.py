"""
Database initialization script

Run once (or after schema changes) to create indexes and print counts:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import logging

from app.core.config import settings
from app.db import mongo
from app.db.indexes import create_indexes

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


async def main():
    logger.info("=" * 60)
    logger.info("  Weather App Database Setup")
    logger.info("=" * 60 + "\n")

    logger.info(f"🔌 Connecting to MongoDB: {settings.MONGODB_DB_NAME}")
    await mongo.connect_to_mongo()

    try:
        await create_indexes()

        db = await mongo.get_database()
        logger.info("\n🔍 Verifying indexes...")
        for collection_name in (mongo.USERS, mongo.API_EVENTS, mongo.ADMIN_AUDITS):
            indexes = await db[collection_name].index_information()
            logger.info(f"\n  {collection_name}:")
            for idx_name in indexes.keys():
                if idx_name != "_id_":
                    logger.info(f"    ✅ {idx_name}")

        logger.info("\n📊 Current documents:")
        for collection_name in (mongo.USERS, mongo.API_EVENTS, mongo.ADMIN_AUDITS):
            count = await db[collection_name].count_documents({})
            logger.info(f"  {collection_name}: {count}")

        logger.info("\n✅ Database initialization complete!")

    finally:
        await mongo.close_mongo_connection()

    logger.info("\n" + "=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
