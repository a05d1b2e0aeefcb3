"""
Directory scoping along the management tree.

Visibility is a reachability query over the two ownership edges
(manager_id, tl_id), one or two hops from the actor, not a rank filter.
"""
from app.features.hierarchy.roles import Actor, Role, UserRecord
from app.features.users.directory import UserDirectory, UserFilter, with_roles


async def team_lead_ids(manager_id: str, directory: UserDirectory) -> frozenset[str]:
    """Ids of tl records owned by the given manager."""
    team_leads = await directory.find_where(with_roles(Role.TL, manager_id=manager_id))
    return frozenset(record.id for record in team_leads)


async def scope_filters(actor: Actor, directory: UserDirectory) -> tuple[UserFilter, ...] | None:
    """
    Filters describing the actor's scope.

    Returns None for an empty scope; an empty tuple means the whole directory.
    """
    if actor.role is Role.MASTER:
        return ()
    if actor.role is Role.ADMIN:
        return (with_roles(Role.MANAGER, Role.TL, Role.USER),)
    if actor.role is Role.MANAGER:
        # Direct reports plus everyone owned by the manager's team leads
        tl_ids = await team_lead_ids(actor.id, directory)
        return (UserFilter(manager_id=actor.id), UserFilter(tl_ids=tl_ids))
    if actor.role is Role.TL:
        return (UserFilter(tl_ids=frozenset({actor.id})),)
    if actor.role is Role.USER:
        return None
    raise AssertionError(f"Unhandled role {actor.role!r}")


async def visible_users(actor: Actor, directory: UserDirectory) -> list[UserRecord]:
    """Records the actor may list in the directory."""
    filters = await scope_filters(actor, directory)
    if filters is None:
        return []
    return await directory.find_where(*filters)


async def has_dependents(target_id: str, directory: UserDirectory) -> bool:
    """True if any record names the target as its manager or team lead."""
    count = await directory.count_where(
        UserFilter(manager_id=target_id),
        UserFilter(tl_ids=frozenset({target_id})),
    )
    return count > 0
