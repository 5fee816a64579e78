"""Seed the demo portfolio for one user.

Idempotent: does nothing when the user already has projects.

Run from backend/:
    python -m scripts.seed_demo_projects user_2abc123
"""

import asyncio
import sys

from sidepilot.core.auth import UserIdentity
from sidepilot.db.base import close_db, init_db
from sidepilot.db.seed import seed_demo_projects
from sidepilot.db.storage import SqlProjectStore


async def main(user_id: str) -> None:
    await init_db()
    try:
        store = SqlProjectStore()
        # Projects reference users.id, so make sure the owner row exists
        if await store.get_user(user_id) is None:
            await store.upsert_user(UserIdentity(id=user_id))
        created = await seed_demo_projects(store, user_id)
        print(f"Created {created} demo project(s) for {user_id}")
    finally:
        await close_db()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python -m scripts.seed_demo_projects <clerk_user_id>")
        sys.exit(2)
    asyncio.run(main(sys.argv[1]))
