"""
Creates (or promotes) a local test account

Run:
    python scripts/create_test_user.py
    python scripts/create_test_user.py --email admin@example.com --admin
"""

import argparse
import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

load_dotenv()

import logging

from app.core.security import hash_password
from app.db import mongo
from app.models.user import build_user_document

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Create a test user")
    parser.add_argument("--username", default="testuser")
    parser.add_argument("--email", default="test@example.com")
    parser.add_argument("--password", default="password123")
    parser.add_argument("--admin", action="store_true", help="Give the account the admin role")
    return parser.parse_args()


async def main():
    args = parse_args()
    await mongo.connect_to_mongo()

    try:
        users = mongo.get_users_collection()
        existing = await users.find_one({"email": args.email.lower()})

        if existing:
            logger.info(f"ℹ️  User {args.email} already exists")
            if args.admin and existing.get("role") != "admin":
                await users.update_one({"_id": existing["_id"]}, {"$set": {"role": "admin"}})
                logger.info("✅ Promoted to admin")
            return

        document = build_user_document(args.username, args.email, hash_password(args.password))
        if args.admin:
            document["role"] = "admin"

        result = await users.insert_one(document)
        logger.info(f"✅ Test user created: {args.email} / {args.password} (id {result.inserted_id})")

    finally:
        await mongo.close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
