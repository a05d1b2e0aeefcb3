"""
Seed script creating the initial master account.

Records are otherwise only created by a user who outranks them, so the
first master has to be written directly.

Usage:
    MASTER_APPWRITE_ID=<appwrite user id> uv run python -m scripts.seed_master
"""
import asyncio

from app.core import config
from app.core.database.engine import get_db, init_db
from app.features.hierarchy.roles import Role, UserRecord, UserStatus
from app.features.users.directory import SqlUserDirectory, with_roles
from app.utils import get_logger


log = get_logger(__name__)


async def seed_master(directory: SqlUserDirectory, appwrite_id: str) -> UserRecord:
    """Create the master record unless one already exists."""
    existing = await directory.find_where(with_roles(Role.MASTER))
    if existing:
        log.info("Master account already exists (%s), skipping", existing[0].id)
        return existing[0]

    record = await directory.add({
        "appwrite_id": appwrite_id,
        "email": config.MASTER_EMAIL,
        "first_name": config.MASTER_FIRST_NAME,
        "last_name": config.MASTER_LAST_NAME,
        "role": Role.MASTER,
        "status": UserStatus.ACTIVE,
    })
    log.info("Created master account %s <%s>", record.id, config.MASTER_EMAIL)
    return record


async def main():
    if not config.MASTER_APPWRITE_ID:
        raise SystemExit("MASTER_APPWRITE_ID is not set")

    await init_db()
    async for db in get_db():
        await seed_master(SqlUserDirectory(db), config.MASTER_APPWRITE_ID)
        await db.commit()
        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
