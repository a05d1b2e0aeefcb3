"""
User directory routes.

Every handler resolves the caller to an Actor and defers the decision to
the hierarchy core; HierarchyError subclasses are mapped to responses in
app.main.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError

from app.core import config
from app.core.rate_limit import limiter
from app.features.hierarchy.roles import Actor
from app.features.hierarchy.scope import visible_users
from app.features.users import service
from app.features.users.auth import get_appwrite_account, split_name
from app.features.users.dependencies import get_current_actor, get_current_user, get_directory
from app.features.users.directory import SqlUserDirectory
from app.features.users.models import User
from app.features.users.schemas import ProfileUpdate, UserCreate, UserResponse, UserUpdate
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["users"])


def _conflict() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="A user with this email or Appwrite account already exists"
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get current authenticated user's profile."""
    return user


@router.patch("/me", response_model=UserResponse)
async def update_current_user_profile(
    update_data: ProfileUpdate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """Update current user's own profile fields."""
    await service.update_user(actor, actor.id, update_data.changes(), directory)
    return await directory.get_model(actor.id)


@router.get("/", response_model=list[UserResponse])
async def list_users(
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """List the users in the caller's scope of the management tree."""
    records = await visible_users(actor, directory)
    return await directory.get_models([record.id for record in records])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(config.RATE_LIMIT)
async def create_user(
    request: Request,
    payload: UserCreate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """Create a user with a role below the caller's (any role for master)."""
    fields = payload.model_dump()
    if not (payload.email and payload.first_name and payload.last_name):
        account = await get_appwrite_account(payload.appwrite_id)
        first_name, last_name = split_name(account.get("name", ""))
        fields["email"] = payload.email or account.get("email", "")
        fields["first_name"] = payload.first_name or first_name
        fields["last_name"] = payload.last_name or last_name

    try:
        record = await service.create_user(actor, fields, directory)
    except IntegrityError:
        await directory.db.rollback()
        raise _conflict()
    return await directory.get_model(record.id)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id(
    user_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """Get a user the caller may view (self, or a lower-ranked user)."""
    await service.get_user(actor, user_id, directory)
    return await directory.get_model(user_id)


@router.put("/{user_id}", response_model=UserResponse)
@limiter.limit(config.RATE_LIMIT)
async def update_user(
    request: Request,
    user_id: str,
    update_data: UserUpdate,
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """Update a user; role and link changes are re-validated."""
    try:
        await service.update_user(actor, user_id, update_data.changes(), directory)
    except IntegrityError:
        await directory.db.rollback()
        raise _conflict()
    return await directory.get_model(user_id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(config.RATE_LIMIT)
async def delete_user(
    request: Request,
    user_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """Delete a user who owns no one; self-deletion is never allowed."""
    await service.delete_user(actor, user_id, directory)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
