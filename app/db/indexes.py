"""
app/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- Ensures fast lookups and data integrity
"""

from app.db.mongo import (
    get_users_collection,
    get_api_events_collection,
    get_admin_audits_collection
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes for optimal performance.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()
        events = get_api_events_collection()
        audits = get_admin_audits_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # USERS COLLECTION INDEXES
        # ==============================================

        await users.create_index("username", unique=True, name="username_unique")
        await users.create_index("email", unique=True, name="email_unique")
        logger.debug("Created unique indexes on users.username and users.email")

        # Sparse so users without an ID card don't collide on null
        await users.create_index("cccd", unique=True, sparse=True, name="cccd_unique")
        logger.debug("Created unique sparse index on users.cccd")

        await users.create_index("banned", name="banned_idx")
        await users.create_index("role", name="role_idx")
        await users.create_index("createdAt", name="created_at_idx")

        await users.create_index(
            [("favoriteCities.name", 1), ("favoriteCities.country", 1)],
            name="favorite_cities_idx"
        )
        await users.create_index(
            [("searchHistory.searchedAt", -1)],
            name="search_history_idx"
        )
        logger.debug("Created indexes on embedded favorites and search history")

        await users.create_index("discord.userId", name="discord_user_idx")
        await users.create_index("discord.subscribed", name="discord_subscribed_idx")
        logger.debug("Created indexes on users.discord")

        # ==============================================
        # API EVENTS COLLECTION INDEXES
        # ==============================================

        await events.create_index([("ts", 1)], name="ts_idx")
        await events.create_index([("type", 1), ("ts", -1)], name="type_ts_idx")
        await events.create_index([("userId", 1), ("ts", -1)], name="user_ts_idx")
        logger.debug("Created indexes on apievents")

        # ==============================================
        # ADMIN AUDITS COLLECTION INDEXES
        # ==============================================

        await audits.create_index([("ts", -1)], name="audit_ts_idx")
        await audits.create_index([("adminId", 1), ("ts", -1)], name="audit_admin_ts_idx")
        await audits.create_index([("action", 1), ("ts", -1)], name="audit_action_ts_idx")
        logger.debug("Created indexes on adminaudits")

        logger.info("✅ All database indexes created successfully")

        user_indexes = await users.index_information()
        event_indexes = await events.index_information()
        audit_indexes = await audits.index_information()

        logger.info(
            f"Index summary: Users={len(user_indexes)}, "
            f"ApiEvents={len(event_indexes)}, "
            f"AdminAudits={len(audit_indexes)}"
        )

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


if __name__ == "__main__":
    """
    Run this script directly to create indexes manually.
    """
    import asyncio
    from app.db.mongo import connect_to_mongo, close_mongo_connection

    async def main():
        await connect_to_mongo()
        await create_indexes()
        await close_mongo_connection()

    asyncio.run(main())
