"""
Seed script populating a demo hierarchy under the master account.

Creates, through the same permission-checked path the API uses:
- one admin
- two managers, each with two team leaders
- three users per team leader

Usage:
    uv run python -m scripts.seed_demo_users
"""
import asyncio

from app.core.database.engine import get_db, init_db
from app.features.hierarchy.roles import Actor, Role
from app.features.users import service
from app.features.users.directory import SqlUserDirectory, with_roles
from app.utils import get_logger


log = get_logger(__name__)

DEMO_DOMAIN = "demo.example.com"


def _fields(handle: str, role: Role, **links) -> dict:
    return {
        "appwrite_id": f"demo-{handle}",
        "email": f"{handle}@{DEMO_DOMAIN}",
        "first_name": handle.split("-")[0].title(),
        "last_name": handle.split("-", 1)[-1].replace("-", " ").title(),
        "phone_num": "0000000000",
        "role": role,
        **links,
    }


async def seed_demo_users(directory: SqlUserDirectory, master: Actor, managers: int = 2, tls_per_manager: int = 2, users_per_tl: int = 3) -> int:
    """Create the demo tree and return the number of records created."""
    created = 0
    await service.create_user(master, _fields("demo-admin", Role.ADMIN), directory)
    created += 1

    for m in range(1, managers + 1):
        manager = await service.create_user(master, _fields(f"manager-{m}", Role.MANAGER), directory)
        created += 1
        for t in range(1, tls_per_manager + 1):
            tl = await service.create_user(
                master, _fields(f"tl-{m}-{t}", Role.TL, manager_id=manager.id), directory
            )
            created += 1
            for u in range(1, users_per_tl + 1):
                await service.create_user(
                    master,
                    _fields(f"user-{m}-{t}-{u}", Role.USER, manager_id=manager.id, tl_id=tl.id),
                    directory,
                )
                created += 1

    log.info("Created %d demo users", created)
    return created


async def main():
    await init_db()
    async for db in get_db():
        directory = SqlUserDirectory(db)
        masters = await directory.find_where(with_roles(Role.MASTER))
        if not masters:
            raise SystemExit("No master account; run scripts.seed_master first")
        if await directory.count_where(with_roles(Role.ADMIN, Role.MANAGER, Role.TL, Role.USER)):
            log.info("Directory already has users below master, skipping demo seed")
            break
        await seed_demo_users(directory, masters[0].as_actor())
        await db.commit()
        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
