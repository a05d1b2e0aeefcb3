"""
Permission engine for the role ladder.

Implements:
- The single rank rule (can_manage) with its explicit master override
- View/edit/delete/assign decisions built on it plus identity checks
- Structural validation of ownership links, run after permission passes
"""
from dataclasses import dataclass
from typing import Any, Iterable

from app.features.hierarchy.errors import DenialReason, NotFound, PermissionDenied, ValidationFailed
from app.features.hierarchy.roles import Actor, Role, UserRecord
from app.features.hierarchy.scope import has_dependents
from app.features.users.directory import UserDirectory, UserFilter
from app.utils import get_logger


log = get_logger(__name__)

# Fields a user may never change on their own record
PRIVILEGED_FIELDS = frozenset({"role", "manager_id", "tl_id", "status"})
LINK_FIELDS = frozenset({"role", "manager_id", "tl_id"})


@dataclass(frozen=True)
class Decision:
    """Outcome of a permission check; denials always carry a reason."""
    allowed: bool
    reason: DenialReason | None = None

    def __bool__(self) -> bool:
        return self.allowed

    def enforce(self) -> None:
        """Raise PermissionDenied if this decision is a denial."""
        if not self.allowed:
            log.info("Permission denied: %s", self.reason.value)
            raise PermissionDenied(self.reason)


ALLOW = Decision(allowed=True)


def deny(reason: DenialReason) -> Decision:
    return Decision(allowed=False, reason=reason)


# ============================================================================
# Rank rule
# ============================================================================

def can_manage(actor_role: Role, target_role: Role) -> bool:
    """
    True iff the actor's role strictly outranks the target's.

    master is an explicit override: it manages every role, including other
    masters, which the strict comparison alone would refuse.
    """
    if actor_role is Role.MASTER:
        return True
    return actor_role.rank > target_role.rank


# ============================================================================
# Decisions
# ============================================================================

def can_view(actor: Actor, target: UserRecord) -> Decision:
    if actor.id == target.id:
        return ALLOW
    if can_manage(actor.role, target.role):
        return ALLOW
    return deny(DenialReason.INSUFFICIENT_RANK)


def can_edit(actor: Actor, target: UserRecord) -> Decision:
    """
    Same rule as can_view.

    Self-edits pass here; which fields they may touch is decided by
    can_edit_fields.
    """
    return can_view(actor, target)


def can_assign_role(actor: Actor, new_role: Role) -> Decision:
    if can_manage(actor.role, new_role):
        return ALLOW
    return deny(DenialReason.INSUFFICIENT_RANK)


async def can_delete(actor: Actor, target: UserRecord, directory: UserDirectory) -> Decision:
    if actor.id == target.id:
        return deny(DenialReason.SELF_ACTION_FORBIDDEN)
    if not can_manage(actor.role, target.role):
        return deny(DenialReason.INSUFFICIENT_RANK)
    if await has_dependents(target.id, directory):
        return deny(DenialReason.TARGET_HAS_DEPENDENTS)
    return ALLOW


def changed_fields(target: UserRecord, changes: dict[str, Any]) -> set[str]:
    """Keys of changes that differ from the record's current value."""
    current = target.model_dump()
    return {key for key, value in changes.items() if key not in current or current[key] != value}


def can_edit_fields(actor: Actor, target: UserRecord, changes: dict[str, Any]) -> Decision:
    """
    Field-level check for an edit already allowed by can_edit.

    Role, ownership links and status are never self-editable; a role change
    on someone else needs can_assign_role for the new role.
    """
    changed = changed_fields(target, changes)
    if actor.id == target.id:
        if changed & PRIVILEGED_FIELDS:
            return deny(DenialReason.SELF_ACTION_FORBIDDEN)
        return ALLOW
    if "role" in changed:
        return can_assign_role(actor, Role(changes["role"]))
    return ALLOW


async def can_relink(actor: Actor, target: UserRecord, changes: dict[str, Any], directory: UserDirectory) -> Decision:
    """
    A record can only be moved away from an owner the actor is, or outranks.

    Where the record is moved to is left to validate_links, the same as on
    create.
    """
    current = target.model_dump()
    for field in changed_fields(target, changes) & {"manager_id", "tl_id"}:
        if not current[field] or current[field] == actor.id:
            continue
        owner = await directory.find_by_id(current[field])
        if owner is not None and not can_manage(actor.role, owner.role):
            return deny(DenialReason.INSUFFICIENT_RANK)
    return ALLOW


# ============================================================================
# Structural validation
# ============================================================================

def _invalid(detail: str) -> ValidationFailed:
    log.info("Link validation failed: %s", detail)
    return ValidationFailed(DenialReason.INVALID_LINK, detail)


def is_valid_owner(owner_role: Role, owned_role: Role) -> bool:
    """A manager link must point at manager rank or above, and outrank the record."""
    return owner_role.rank >= Role.MANAGER.rank and owner_role.outranks(owned_role)


async def validate_links(
    role: Role,
    manager_id: str | None,
    tl_id: str | None,
    directory: UserDirectory,
    record_id: str | None = None,
) -> None:
    """
    Check a record's ownership links.

    Raises:
        ValidationFailed: missing-required-link when a user lacks a team
            leader, or a user/tl lacks a manager; invalid-link when a link is
            self-referencing or points at the wrong kind of record
        NotFound: a linked manager or team leader does not exist
    """
    if role is Role.USER and not tl_id:
        raise ValidationFailed(DenialReason.MISSING_REQUIRED_LINK, "Users must have a Team Leader")
    if role in (Role.USER, Role.TL) and not manager_id:
        raise ValidationFailed(DenialReason.MISSING_REQUIRED_LINK, "Users and Team Leaders must have a Manager")

    if record_id is not None and record_id in (manager_id, tl_id):
        raise _invalid("A user cannot be their own manager or team leader")
    if tl_id and role is not Role.USER:
        raise _invalid("Only users can be assigned a team leader")

    if manager_id:
        manager = await directory.find_by_id(manager_id)
        if manager is None:
            raise NotFound(manager_id, f"Manager {manager_id} does not exist")
        if not is_valid_owner(manager.role, role):
            raise _invalid(f"{manager.role.value} cannot manage a {role.value}")

    if tl_id:
        team_lead = await directory.find_by_id(tl_id)
        if team_lead is None:
            raise NotFound(tl_id, f"Team leader {tl_id} does not exist")
        if team_lead.role is not Role.TL:
            raise _invalid(f"Team leader link points at a {team_lead.role.value}")


async def validate_role_transition(record: UserRecord, new_role: Role, directory: UserDirectory) -> None:
    """
    Refuse a role change that would leave the record's dependents with an
    owner that can no longer own them.
    """
    if new_role is record.role:
        return
    managed: Iterable[UserRecord] = await directory.find_where(UserFilter(manager_id=record.id))
    led = await directory.count_where(UserFilter(tl_ids=frozenset({record.id})))
    if any(not is_valid_owner(new_role, dependent.role) for dependent in managed) or (led and new_role is not Role.TL):
        log.info("Role transition %s -> %s refused for %s", record.role.value, new_role.value, record.id)
        raise ValidationFailed(DenialReason.INVALID_ROLE_TRANSITION)
