#!/usr/bin/env python3
"""
Seed a local dev database with a demo team for manual testing.

Creates a trainer, a parent and a player account with easy-to-remember
credentials, a small roster, two upcoming events and a welcome message.
Idempotent: skips accounts and players that already exist.

Usage:
    DATABASE_URL=sqlite+aiosqlite:///./teamhub.db python scripts/seed_demo_team.py
"""

import asyncio
import datetime
import os
import sys

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from sqlalchemy import select  # noqa: E402

from teamhub.database.db import Database  # noqa: E402
from teamhub.database.models import Player, Role  # noqa: E402
from teamhub.services import data_service, user_service  # noqa: E402
from teamhub.services.auth_service import hash_password  # noqa: E402

DEMO_PASSWORD = "test1234"

DEMO_USERS = [
    {"email": "trainer@test.com", "name": "Tina Trainer", "role": Role.TRAINER},
    {"email": "parent@test.com", "name": "Paul Parent", "role": Role.PARENT},
    {"email": "player@test.com", "name": "Pia Player", "role": Role.PLAYER},
]

DEMO_ROSTER = [
    {"name": "Pia Player", "number": 1, "position": "Goalkeeper"},
    {"name": "Lena Brandt", "number": 4, "position": "Defence"},
    {"name": "Jonas Weber", "number": 8, "position": "Midfield"},
    {"name": "Emil Schulz", "number": 9, "position": "Forward"},
]


async def seed(database: Database, today: datetime.date = None) -> dict:
    """
    Create the demo team in ``database``.

    Returns:
        Dict of created user ids by email
    """
    today = today or datetime.date.today()
    await database.init_database()

    created = {}
    async with database.session_factory() as session:
        roster = {}
        for entry in DEMO_ROSTER:
            result = await session.execute(select(Player).where(Player.name == entry["name"]))
            existing = result.scalar_one_or_none()
            if existing:
                roster[entry["name"]] = existing.id
                continue
            player = await data_service.create_player(session, entry)
            roster[entry["name"]] = player["id"]

        trainer_id = None
        for user_data in DEMO_USERS:
            existing = await user_service.get_user_by_email(session, user_data["email"])
            if existing:
                print(f"  ⏭️  {user_data['name']} already exists (user #{existing['id']})")
                user_id = existing["id"]
            else:
                user = await user_service.create_user(
                    session,
                    email=user_data["email"],
                    password_hash=hash_password(DEMO_PASSWORD),
                    name=user_data["name"],
                    role=user_data["role"],
                    player_id=roster["Pia Player"] if user_data["role"] is not Role.TRAINER else None,
                )
                user_id = user["id"]
                created[user_data["email"]] = user_id
                print(f"  ✅ Created {user_data['name']} (user #{user_id})")
            if user_data["role"] is Role.TRAINER:
                trainer_id = user_id

        # Events and the welcome message only on a fresh database
        if created.get("trainer@test.com"):
            await data_service.create_event(
                session,
                {
                    "type": "training",
                    "title": "Training",
                    "date": today + datetime.timedelta(days=2),
                    "time": datetime.time(17, 30),
                    "end_time": datetime.time(19, 0),
                    "location": "Main pitch",
                },
                created_by=trainer_id,
            )
            await data_service.create_event(
                session,
                {
                    "type": "match",
                    "title": "League match",
                    "date": today + datetime.timedelta(days=6),
                    "time": datetime.time(10, 0),
                    "location": "Away ground",
                    "opponent": "FC Rivals",
                },
                created_by=trainer_id,
            )
            await data_service.create_message(
                session,
                trainer_id,
                {"subject": "Welcome", "content": "Welcome to the new season!"},
            )

    return created


async def main():
    """Seed the database configured by DATABASE_URL and print the credentials."""
    print("\n⚽  Seeding demo team...\n")
    database = Database()
    try:
        await seed(database)
    finally:
        await database.dispose()

    print("\n" + "─" * 50)
    print("📋 Demo Credentials:")
    print("─" * 50)
    for u in DEMO_USERS:
        print(f"  {u['name']:<14}  email: {u['email']:<18}  pw: {DEMO_PASSWORD}")
    print("─" * 50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
