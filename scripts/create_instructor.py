#!/usr/bin/env python3
"""
Script to create an instructor account in MongoDB.

Usage:
    python scripts/create_instructor.py <email> <password> <first name> <last name>
"""

import asyncio
import sys

from skillora.core.config import settings
from skillora.core.exceptions import ConflictError
from skillora.db.mongodb import MongoDB
from skillora.services.auth_service import AuthService


async def create_instructor(email: str, password: str, first_name: str, last_name: str) -> bool:
    print("Connecting to MongoDB...")
    mongodb = MongoDB(settings)
    await mongodb.connect()

    try:
        auth_service = AuthService(mongodb.db, settings)
        _, user = await auth_service.register(
            first_name=first_name,
            last_name=last_name,
            email=email,
            password=password,
            role="instructor"
        )
    except ConflictError:
        existing = await mongodb.db.users.find_one({"email": email.lower()})
        print(f"⚠️ User with email {email} already exists!")
        print(f"   User ID: {existing.get('user_id')}")
        print(f"   Role: {existing.get('role')}")
        return False
    finally:
        await mongodb.close()

    print("✅ Instructor created successfully!")
    print(f"   Email: {user.email}")
    print(f"   User ID: {user.user_id}")
    print("   Role: instructor")
    return True


if __name__ == "__main__":
    if len(sys.argv) != 5:
        print(__doc__)
        sys.exit(2)
    created = asyncio.run(create_instructor(*sys.argv[1:]))
    sys.exit(0 if created else 1)
