"""
FastAPI dependencies for authentication and directory access.
"""
from typing import Annotated
from datetime import datetime, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.hierarchy.roles import Actor, UserStatus
from app.features.users.auth import verify_jwt_token
from app.features.users.directory import SqlUserDirectory
from app.features.users.models import User


security = HTTPBearer()


async def get_directory(db: Annotated[AsyncSession, Depends(get_db)]) -> SqlUserDirectory:
    """Directory bound to the request's session."""
    return SqlUserDirectory(db)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
) -> User:
    """
    Get the directory record of the authenticated caller.

    This dependency:
    1. Extracts JWT from Authorization header
    2. Decodes it and reads the Appwrite user id
    3. Looks up the matching directory record
    4. Updates last_login_at timestamp

    Records are only ever created by a privileged user, so an Appwrite
    account without a directory record is rejected rather than provisioned.
    """
    payload = verify_jwt_token(credentials.credentials)
    appwrite_user_id = payload.get("userId")

    if not appwrite_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = await directory.get_by_appwrite_id(appwrite_user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No directory record for this account",
        )

    if user.status is not UserStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    user.last_login_at = datetime.now(timezone.utc)
    await directory.db.flush()
    await directory.db.refresh(user)
    return user


async def get_current_actor(
    user: Annotated[User, Depends(get_current_user)]
) -> Actor:
    """
    The caller as the access-control core sees it.

    Usage:
        @router.get("/users")
        async def list_users(actor: Actor = Depends(get_current_actor)):
            ...
    """
    return Actor(id=user.id, role=user.role)
