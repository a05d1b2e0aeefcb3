"""
Directory mutations and lookups guarded by the permission engine.

Every path re-reads the records it acts on, checks permission against the
current directory state, validates structure, and only then hands the
write to the directory.
"""
from typing import Any

from app.features.hierarchy.errors import NotFound
from app.features.hierarchy.permissions import (
    LINK_FIELDS,
    can_assign_role,
    can_delete,
    can_edit,
    can_edit_fields,
    can_relink,
    can_view,
    changed_fields,
    validate_links,
    validate_role_transition,
)
from app.features.hierarchy.roles import Actor, Role, UserRecord
from app.features.users.directory import UserDirectory
from app.utils import get_logger


log = get_logger(__name__)


async def require_record(user_id: str, directory: UserDirectory) -> UserRecord:
    record = await directory.find_by_id(user_id)
    if record is None:
        raise NotFound(user_id)
    return record


async def get_user(actor: Actor, target_id: str, directory: UserDirectory) -> UserRecord:
    target = await require_record(target_id, directory)
    can_view(actor, target).enforce()
    return target


async def create_user(actor: Actor, fields: dict[str, Any], directory: UserDirectory) -> UserRecord:
    """
    Create a directory record.

    The actor must outrank the new record's role (master may create any
    role); link validation runs only after that check passes.
    """
    role = Role(fields.get("role", Role.USER))
    can_assign_role(actor, role).enforce()
    await validate_links(role, fields.get("manager_id"), fields.get("tl_id"), directory)

    record = await directory.add({**fields, "role": role})
    log.info("User %s (%s) created by %s", record.id, role.value, actor.id)
    return record


async def update_user(
    actor: Actor,
    target_id: str,
    changes: dict[str, Any],
    directory: UserDirectory,
) -> UserRecord:
    """
    Apply changes to a record.

    Moving a record away from an owner needs rank over that owner. Role
    and link changes are then re-checked against the target's dependents
    and the structural rules using the merged (current + changed) values.
    """
    target = await require_record(target_id, directory)
    can_edit(actor, target).enforce()
    can_edit_fields(actor, target, changes).enforce()
    relink = await can_relink(actor, target, changes, directory)
    relink.enforce()

    changed = changed_fields(target, changes)
    if not changed:
        return target

    if changed & LINK_FIELDS:
        new_role = Role(changes.get("role", target.role))
        await validate_role_transition(target, new_role, directory)
        await validate_links(
            new_role,
            changes.get("manager_id", target.manager_id),
            changes.get("tl_id", target.tl_id),
            directory,
            record_id=target.id,
        )

    record = await directory.update(target_id, {key: changes[key] for key in changed})
    log.info("User %s updated by %s: %s", target_id, actor.id, sorted(changed))
    return record


async def delete_user(actor: Actor, target_id: str, directory: UserDirectory) -> None:
    target = await require_record(target_id, directory)
    decision = await can_delete(actor, target, directory)
    decision.enforce()
    await directory.delete(target_id)
    log.info("User %s deleted by %s", target_id, actor.id)
